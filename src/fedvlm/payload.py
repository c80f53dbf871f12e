"""Wire schema for federated responses (the pydantic wall).

Raw JSON is validated here before anything downstream sees it. Identifiers
and counts use strict types so that a string allele count or a missing
``info`` object is a malformed-payload condition instead of being silently
coerced.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
    model_validator,
)

from fedvlm.errors import MalformedPayloadError

M = TypeVar("M", bound=BaseModel)

_WIRE_CONFIG = ConfigDict(extra="ignore", frozen=True)


class RawAssociation(BaseModel):
    model_config = _WIRE_CONFIG

    id: StrictInt
    p_value: float | None = None
    phenotype_description: str | None = None
    phenotype_id: str | None = None

    @model_validator(mode="after")
    def require_phenotype(self) -> RawAssociation:
        """An association must name its phenotype one way or another."""
        if self.phenotype_description is None and self.phenotype_id is None:
            raise ValueError("phenotype_description or phenotype_id is required")
        return self


class RawResult(BaseModel):
    model_config = _WIRE_CONFIG

    id: StrictStr


class RawExon(BaseModel):
    model_config = _WIRE_CONFIG

    start: StrictInt
    stop: StrictInt
    feature_type: StrictStr

    @model_validator(mode="after")
    def check_bounds(self) -> RawExon:
        if self.stop < self.start:
            raise ValueError(f"exon stop {self.stop} precedes start {self.start}")
        return self


class RawVariantInfo(BaseModel):
    model_config = _WIRE_CONFIG

    ac: StrictInt = Field(ge=0)
    consequence: str | None = None
    associations: list[RawAssociation] = Field(default_factory=list)

    @field_validator("consequence", mode="before")
    @classmethod
    def blank_consequence_is_absent(cls, v: Any) -> Any:
        """Map empty consequence strings to None."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class RawVariantRecord(BaseModel):
    """A variant-shaped record; ``id`` is optional inside gene payloads."""

    model_config = _WIRE_CONFIG

    id: StrictStr | None = None
    results: list[RawResult] = Field(default_factory=list)
    info: RawVariantInfo


class RawNodeResult(RawVariantRecord):
    """One node's entry in a variant response."""

    id: StrictStr


class RawGeneInfo(BaseModel):
    model_config = _WIRE_CONFIG

    gene_symbol: StrictStr = Field(min_length=1)
    variants: list[RawVariantRecord] = Field(default_factory=list)
    exons: list[RawExon] | None = None


class RawGeneNodeResult(BaseModel):
    """One node's entry in a gene response."""

    model_config = _WIRE_CONFIG

    id: StrictStr
    results: list[RawResult] = Field(default_factory=list)
    info: RawGeneInfo


class RawResponse(BaseModel):
    """Top-level federated response.

    Node entries are left unvalidated so each one can fail on its own.
    """

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    exists: StrictBool = True
    result_sets: list[Any] = Field(default_factory=list, alias="resultSets")


def validate_payload(model: type[M], raw: Any, *, peer_node_id: str | None = None) -> M:
    """Validate *raw* against *model*, raising ``MalformedPayloadError``.

    The first validation error's location becomes the error's ``field``.
    """
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        errors = exc.errors()
        first = errors[0] if errors else {}
        loc = ".".join(str(part) for part in first.get("loc", ()))
        reason = first.get("msg", str(exc))
        where = f" from node {peer_node_id}" if peer_node_id is not None else ""
        raise MalformedPayloadError(
            f"Malformed {model.__name__}{where}: {loc or '<root>'}: {reason}",
            hint="The node returned data that does not match the federated response schema.",
            peer_node_id=peer_node_id,
            field=loc or None,
        ) from exc


def peek_node_id(raw: Any) -> str | None:
    """Best-effort node id for error attribution, before validation."""
    if isinstance(raw, dict):
        node_id = raw.get("id")
        if isinstance(node_id, str):
            return node_id
        if isinstance(node_id, int) and not isinstance(node_id, bool):
            return str(node_id)
    return None
