"""Pytest configuration and fixtures.

Provides environment isolation, logging configuration and the shared
payload/transport doubles. Environment fixtures are autouse.
"""

from __future__ import annotations

import asyncio
from contextlib import suppress
from dataclasses import dataclass, field
import logging
import os
from typing import Any

import pytest

from fedvlm.fixtures import DEMO_VARIANT_ID, demo_gene_payload, demo_variant_payload
from fedvlm.query import QueryKey, gene_key, variant_key

# =============================================================================
# Test Doubles
# =============================================================================


@dataclass
class FakeTransport:
    """Transport test double returning payloads from a table.

    Records every fetch; table values that are exceptions are raised.
    """

    payloads: dict[QueryKey, Any] = field(default_factory=dict)
    calls: list[QueryKey] = field(default_factory=list)

    async def fetch(self, key: QueryKey) -> Any:
        self.calls.append(key)
        payload = self.payloads.get(key, {"exists": False})
        if isinstance(payload, BaseException):
            raise payload
        return payload


@dataclass
class GateTransport(FakeTransport):
    """FakeTransport whose fetches block until ``release(key)`` is called.

    Lets tests interleave submissions deterministically.
    """

    _gates: dict[QueryKey, asyncio.Event] = field(default_factory=dict)

    def _gate(self, key: QueryKey) -> asyncio.Event:
        return self._gates.setdefault(key, asyncio.Event())

    def release(self, key: QueryKey) -> None:
        self._gate(key).set()

    async def fetch(self, key: QueryKey) -> Any:
        self.calls.append(key)
        await self._gate(key).wait()
        payload = self.payloads.get(key, {"exists": False})
        if isinstance(payload, BaseException):
            raise payload
        return payload


def node_entry(
    node_id: str,
    variant_id: str = DEMO_VARIANT_ID,
    *,
    ac: int = 1,
    consequence: str | None = None,
    associations: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Build one variant-response node entry."""
    info: dict[str, Any] = {"ac": ac, "associations": associations or []}
    if consequence is not None:
        info["consequence"] = consequence
    return {"id": node_id, "results": [{"id": variant_id}], "info": info}


# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests."""
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_fedvlm_env(request, monkeypatch):
    """Clear FEDVLM_* env vars so endpoints resolve to defaults.

    Opt-out: @pytest.mark.allow_env_pollution
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return
    for key in list(os.environ.keys()):
        if key.startswith("FEDVLM_"):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Suppress noisy third-party loggers."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# =============================================================================
# Payload fixtures
# =============================================================================


@pytest.fixture
def demo_variant_key() -> QueryKey:
    return variant_key(DEMO_VARIANT_ID)


@pytest.fixture
def demo_gene_key() -> QueryKey:
    return gene_key("BRCA1")


@pytest.fixture
def variant_payload() -> dict[str, Any]:
    return demo_variant_payload()


@pytest.fixture
def gene_payload() -> dict[str, Any]:
    return demo_gene_payload()


@pytest.fixture
def fake_transport(demo_variant_key, demo_gene_key, variant_payload, gene_payload):
    return FakeTransport(
        payloads={demo_variant_key: variant_payload, demo_gene_key: gene_payload}
    )
