"""Transport: fetch raw federated JSON for a query key.

The orchestrator only depends on the ``Transport`` protocol. ``HttpTransport``
talks to the federation endpoints with httpx; ``StaticTransport`` serves
canned payloads for mock mode and tests.
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
from typing import TYPE_CHECKING, Any, Protocol, Self, runtime_checkable
from urllib.parse import quote

import httpx

from fedvlm._http import RETRYABLE_STATUS_CODES
from fedvlm.errors import InternalError, TransportError, _walk_exception_chain

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from fedvlm.config import Config
    from fedvlm.query import QueryKey

logger = logging.getLogger(__name__)

_RETRY_LATER_HINT = "The federation service may be unavailable; try again later."


@runtime_checkable
class Transport(Protocol):
    """Minimal transport protocol: one JSON document per query key."""

    async def fetch(self, key: QueryKey) -> Any:
        """Return the decoded JSON response for *key*.

        Raises:
            TransportError: On network failure, non-2xx status or invalid JSON.
        """
        ...


class HttpTransport:
    """Fetch federated responses over HTTP.

    Owns its ``httpx.AsyncClient`` unless one is passed in; use as an async
    context manager or call ``aclose()`` when done.
    """

    def __init__(
        self,
        *,
        variant_endpoint: str,
        gene_endpoint: str,
        timeout_s: float,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._endpoints = {"variant": variant_endpoint, "gene": gene_endpoint}
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout_s)

    @classmethod
    def from_config(
        cls, config: Config, *, client: httpx.AsyncClient | None = None
    ) -> HttpTransport:
        if (
            config.variant_endpoint is None
            or config.gene_endpoint is None
            or config.timeout_s is None
        ):
            raise InternalError(
                "Config was not resolved; construct it through Config(...)",
                hint="Config.__post_init__ fills endpoints and timeout.",
            )
        return cls(
            variant_endpoint=config.variant_endpoint,
            gene_endpoint=config.gene_endpoint,
            timeout_s=config.timeout_s,
            client=client,
        )

    def url_for(self, key: QueryKey) -> str:
        return self._endpoints[key.kind] + quote(key.value, safe="")

    async def fetch(self, key: QueryKey) -> Any:
        url = self.url_for(key)
        logger.debug("GET %s", url)
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except asyncio.CancelledError:
            raise
        except httpx.HTTPError as exc:
            raise wrap_transport_error(exc, url=url) from exc

        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise TransportError(
                f"Response from {url} is not valid JSON: {exc}",
                hint=_RETRY_LATER_HINT,
                status_code=response.status_code,
                retryable=False,
                url=url,
            ) from exc

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


class StaticTransport:
    """Serve canned payloads keyed by query key.

    Keys missing from the table answer ``{"exists": false}``. Values that are
    exceptions are raised instead of returned.
    """

    def __init__(self, payloads: Mapping[QueryKey, Any] | None = None) -> None:
        self._payloads = dict(payloads or {})
        self.calls: list[QueryKey] = []

    async def fetch(self, key: QueryKey) -> Any:
        self.calls.append(key)
        payload = self._payloads.get(key, {"exists": False})
        if isinstance(payload, BaseException):
            raise payload
        return copy.deepcopy(payload)

    async def aclose(self) -> None:
        return None


def extract_status_code(exc: BaseException) -> int | None:
    """Walk the exception chain to find an HTTP status code."""
    for e in _walk_exception_chain(exc):
        response = getattr(e, "response", None)
        value = getattr(response, "status_code", None)
        if isinstance(value, int) and 100 <= value <= 599:
            return value
    return None


def wrap_transport_error(exc: BaseException, *, url: str) -> TransportError:
    """Map an httpx exception into ``TransportError`` with retry metadata."""
    if isinstance(exc, TransportError):
        return exc

    status_code = extract_status_code(exc)
    retryable = False
    if isinstance(status_code, int):
        retryable = status_code in RETRYABLE_STATUS_CODES
    else:
        retryable = any(
            isinstance(e, (httpx.TimeoutException, httpx.TransportError))
            for e in _walk_exception_chain(exc)
        )

    status_note = f" (status={status_code})" if isinstance(status_code, int) else ""
    cause = str(exc)
    message = f"GET {url} failed{status_note}"
    return TransportError(
        f"{message}: {cause}" if cause else message,
        hint=_RETRY_LATER_HINT if retryable else None,
        status_code=status_code,
        retryable=retryable,
        url=url,
    )


def build_transport(
    config: Config, *, client: httpx.AsyncClient | None = None
) -> Transport:
    """Return the transport selected by *config*."""
    if config.use_mock:
        from fedvlm.fixtures import demo_payloads

        return StaticTransport(demo_payloads())
    return HttpTransport.from_config(config, client=client)
