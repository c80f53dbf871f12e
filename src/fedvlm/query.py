"""Search-term routing and query keys."""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Literal

from fedvlm.errors import QueryError

QueryKind = Literal["variant", "gene"]

# <chromosome>-<position>-<ref>-<alt>
_VARIANT_ID_RE = re.compile(r"^[^-\s]+-\d+-[^-\s]+-[^-\s]+$")


@dataclass(frozen=True, slots=True)
class QueryKey:
    """Normalized identity of one logical federated query.

    Equal keys are the same query for caching and de-duplication.
    """

    kind: QueryKind
    value: str

    def __str__(self) -> str:
        return f"{self.kind}:{self.value}"


def normalize_term(term: str) -> str:
    """Trim and upper-case a search term."""
    return term.strip().upper()


def looks_like_variant_id(term: str) -> bool:
    """Return True when *term* has the ``chrom-pos-ref-alt`` shape."""
    return _VARIANT_ID_RE.fullmatch(term.strip()) is not None


def variant_key(variant_id: str) -> QueryKey:
    return _make_key("variant", variant_id)


def gene_key(gene_symbol: str) -> QueryKey:
    return _make_key("gene", gene_symbol)


def classify(term: str) -> QueryKey:
    """Route a free-text term to a variant or gene query key.

    The classification is made once per submission; callers keep the
    returned key rather than re-classifying.

    Raises:
        QueryError: If the term is empty or whitespace-only.
    """
    if not isinstance(term, str):
        raise QueryError(
            f"Expected a string search term, got {type(term).__name__}",
            hint="Pass a gene symbol such as 'BRCA1' or a variant id such as '13-42298583-A-G'.",
        )
    if looks_like_variant_id(term):
        return variant_key(term)
    return gene_key(term)


def _make_key(kind: QueryKind, raw: str) -> QueryKey:
    value = normalize_term(raw)
    if not value:
        raise QueryError(
            "Search term is empty or whitespace-only",
            hint="Pass a gene symbol such as 'BRCA1' or a variant id such as '13-42298583-A-G'.",
        )
    return QueryKey(kind=kind, value=value)
