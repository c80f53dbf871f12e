"""Top-level search() convenience entry point."""

from __future__ import annotations

import pytest

import fedvlm
from fedvlm import Config, QueryPhase, search
from tests.conftest import FakeTransport

pytestmark = pytest.mark.unit


@pytest.mark.asyncio
async def test_search_with_mock_config() -> None:
    state = await search("13-42298583-A-G", config=Config(use_mock=True))

    assert state.phase is QueryPhase.SUCCESS
    assert state.data.peer_node_ids == ("1", "3", "4")


@pytest.mark.asyncio
async def test_search_uses_caller_transport() -> None:
    transport = FakeTransport()

    state = await search("BRCA1", transport=transport)

    assert state.is_success
    assert state.data.exists is False
    assert [str(k) for k in transport.calls] == ["gene:BRCA1"]


def test_public_api_exports_are_importable() -> None:
    for name in fedvlm.__all__:
        assert hasattr(fedvlm, name), name
