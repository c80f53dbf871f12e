"""Configuration: frozen Config with environment-resolved endpoints."""

from __future__ import annotations

from dataclasses import dataclass
import os
from urllib.parse import urlparse

from dotenv import load_dotenv

from fedvlm._http import (
    DEFAULT_GENE_ENDPOINT,
    DEFAULT_TIMEOUT_S,
    DEFAULT_VARIANT_ENDPOINT,
)
from fedvlm.errors import ConfigurationError
from fedvlm.registry import DEFAULT_REGISTRY, NodeRegistry

load_dotenv()

_VARIANT_ENDPOINT_ENV = "FEDVLM_VARIANT_ENDPOINT"
_GENE_ENDPOINT_ENV = "FEDVLM_GENE_ENDPOINT"
_TIMEOUT_ENV = "FEDVLM_TIMEOUT_S"


@dataclass(frozen=True)
class Config:
    """Immutable configuration for federated queries.

    Endpoints left as *None* are resolved from ``FEDVLM_VARIANT_ENDPOINT`` and
    ``FEDVLM_GENE_ENDPOINT``, then from the local-development defaults.

    Example:
        config = Config(variant_endpoint="https://vlm.example.org/variant/")
        transport = build_transport(config)
    """

    variant_endpoint: str | None = None
    gene_endpoint: str | None = None
    #: Auto-resolved from ``FEDVLM_TIMEOUT_S`` when *None*.
    timeout_s: float | None = None
    #: *None* keeps results for as long as the process lives; staleness is
    #: decided by query-key identity only.
    cache_ttl_seconds: float | None = None
    use_mock: bool = False
    registry: NodeRegistry = DEFAULT_REGISTRY

    def __post_init__(self) -> None:
        """Resolve environment defaults and validate configuration."""
        variant = _resolve(
            self.variant_endpoint, _VARIANT_ENDPOINT_ENV, DEFAULT_VARIANT_ENDPOINT
        )
        gene = _resolve(self.gene_endpoint, _GENE_ENDPOINT_ENV, DEFAULT_GENE_ENDPOINT)
        object.__setattr__(
            self, "variant_endpoint", _normalize_endpoint(variant, "variant_endpoint")
        )
        object.__setattr__(
            self, "gene_endpoint", _normalize_endpoint(gene, "gene_endpoint")
        )

        timeout = self.timeout_s
        if timeout is None:
            raw_timeout = os.environ.get(_TIMEOUT_ENV)
            try:
                timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT_S
            except ValueError as exc:
                raise ConfigurationError(
                    f"{_TIMEOUT_ENV} must be a number, got {raw_timeout!r}",
                    hint="Set it to a positive number of seconds, e.g. 10.",
                ) from exc
            object.__setattr__(self, "timeout_s", timeout)
        if timeout <= 0:
            raise ConfigurationError(
                f"timeout_s must be > 0, got {timeout}",
                hint="This bounds how long a federated query may take.",
            )

        if self.cache_ttl_seconds is not None and self.cache_ttl_seconds < 0:
            raise ConfigurationError(
                f"cache_ttl_seconds must be ≥ 0 or None, got {self.cache_ttl_seconds}",
                hint="Leave it as None to keep results for the whole session.",
            )
        if not isinstance(self.registry, NodeRegistry):
            raise ConfigurationError(
                f"registry must be a NodeRegistry, got {type(self.registry).__name__}",
                hint="Build one with NodeRegistry.from_nodes([...]).",
            )


def _resolve(value: str | None, env_var: str, default: str) -> str:
    if value is not None:
        return value
    return os.environ.get(env_var) or default


def _normalize_endpoint(url: str, name: str) -> str:
    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigurationError(
            f"{name} must be an http(s) URL, got {url!r}",
            hint="For example: http://localhost:8000/variant/",
        )
    return url if url.endswith("/") else url + "/"
