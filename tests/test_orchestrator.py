"""Keyed state machine behavior of QueryOrchestrator."""

from __future__ import annotations

import asyncio

import pytest

from fedvlm.config import Config
from fedvlm.errors import InternalError, MalformedPayloadError, QueryError, TransportError
from fedvlm.orchestrator import QueryOrchestrator, QueryPhase, QueryState
from fedvlm.query import gene_key, variant_key
from tests.conftest import FakeTransport, GateTransport

pytestmark = pytest.mark.unit


async def _settle() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


def test_starts_idle() -> None:
    orchestrator = QueryOrchestrator(FakeTransport())
    assert orchestrator.state.phase is QueryPhase.IDLE
    assert orchestrator.current_key is None


@pytest.mark.parametrize(
    "kwargs",
    [
        {"phase": QueryPhase.SUCCESS, "key": gene_key("A")},
        {"phase": QueryPhase.ERROR, "key": gene_key("A")},
        {"phase": QueryPhase.PENDING},
    ],
)
def test_inconsistent_states_are_rejected(kwargs) -> None:
    with pytest.raises(InternalError):
        QueryState(**kwargs)


@pytest.mark.asyncio
async def test_success_flow(fake_transport, demo_variant_key) -> None:
    orchestrator = QueryOrchestrator(fake_transport)

    state = await orchestrator.submit("13-42298583-A-G")

    assert state.is_success
    assert state.key == demo_variant_key
    assert [rs.peer_node_id for rs in state.data.result_sets] == ["1", "3", "4"]
    assert orchestrator.state == state
    assert fake_transport.calls == [demo_variant_key]


@pytest.mark.asyncio
async def test_state_is_pending_while_fetching() -> None:
    key = gene_key("BRCA1")
    transport = GateTransport(payloads={key: {"exists": True, "resultSets": []}})
    orchestrator = QueryOrchestrator(transport)

    task = asyncio.create_task(orchestrator.submit(key))
    await _settle()
    assert orchestrator.state.is_pending
    assert orchestrator.state.data is None

    transport.release(key)
    state = await task
    assert state.is_success


@pytest.mark.asyncio
async def test_resubmitting_a_succeeded_key_does_not_refetch(
    fake_transport, demo_gene_key
) -> None:
    orchestrator = QueryOrchestrator(fake_transport)

    first = await orchestrator.submit(demo_gene_key)
    second = await orchestrator.submit("brca1")

    assert second.data is first.data
    assert fake_transport.calls == [demo_gene_key]


@pytest.mark.asyncio
async def test_concurrent_submits_for_one_key_fetch_once() -> None:
    key = gene_key("BRCA1")
    transport = GateTransport(payloads={key: {"exists": True, "resultSets": []}})
    orchestrator = QueryOrchestrator(transport)

    tasks = [asyncio.create_task(orchestrator.submit(key)) for _ in range(3)]
    await _settle()
    transport.release(key)
    states = await asyncio.gather(*tasks)

    assert transport.calls == [key]
    assert all(s.is_success for s in states)


@pytest.mark.asyncio
async def test_late_response_for_old_key_does_not_overwrite_new_key() -> None:
    old, new = gene_key("OLD"), gene_key("NEW")
    transport = GateTransport(
        payloads={
            old: {"resultSets": [{"id": "1", "info": {"gene_symbol": "OLD"}}]},
            new: {"resultSets": [{"id": "2", "info": {"gene_symbol": "NEW"}}]},
        }
    )
    orchestrator = QueryOrchestrator(transport)

    old_task = asyncio.create_task(orchestrator.submit(old))
    await _settle()
    new_task = asyncio.create_task(orchestrator.submit(new))
    await _settle()
    assert orchestrator.current_key == new

    transport.release(new)
    await new_task
    transport.release(old)
    old_state = await old_task

    assert old_state.is_success
    assert orchestrator.state.key == new
    assert orchestrator.state.data.genes[0].gene_symbol == "NEW"
    # The late response is still cached for when the user comes back to it.
    assert orchestrator.cache.get(old) is not None


@pytest.mark.asyncio
async def test_switching_keys_drops_previous_data() -> None:
    first, second = gene_key("A"), gene_key("B")
    transport = GateTransport(payloads={first: {"resultSets": []}})
    orchestrator = QueryOrchestrator(transport)

    transport.release(first)
    await orchestrator.submit(first)
    task = asyncio.create_task(orchestrator.submit(second))
    await _settle()

    assert orchestrator.state.key == second
    assert orchestrator.state.is_pending
    assert orchestrator.state.data is None

    transport.release(second)
    await task


@pytest.mark.asyncio
async def test_transport_failure_becomes_error_state(caplog) -> None:
    caplog.set_level("WARNING", logger="fedvlm.orchestrator")
    key = variant_key("1-1-A-T")
    transport = FakeTransport(
        payloads={key: TransportError("down", status_code=503, retryable=True)}
    )
    orchestrator = QueryOrchestrator(transport)

    state = await orchestrator.submit(key)

    assert state.is_error
    assert isinstance(state.error, TransportError)
    assert state.data is None
    assert "failed" in caplog.text


@pytest.mark.asyncio
async def test_malformed_document_becomes_error_state() -> None:
    key = gene_key("BRCA1")
    orchestrator = QueryOrchestrator(FakeTransport(payloads={key: ["not", "an", "object"]}))

    state = await orchestrator.submit(key)

    assert state.is_error
    assert isinstance(state.error, MalformedPayloadError)


@pytest.mark.asyncio
async def test_unexpected_exception_becomes_error_state() -> None:
    key = gene_key("BRCA1")
    orchestrator = QueryOrchestrator(FakeTransport(payloads={key: RuntimeError("bug")}))

    state = await orchestrator.submit(key)

    assert state.is_error
    assert isinstance(state.error, RuntimeError)


@pytest.mark.asyncio
async def test_errors_are_not_cached_and_resubmit_refetches() -> None:
    key = gene_key("BRCA1")
    transport = FakeTransport(payloads={key: TransportError("down")})
    orchestrator = QueryOrchestrator(transport)

    assert (await orchestrator.submit(key)).is_error
    transport.payloads[key] = {"exists": True, "resultSets": []}
    state = await orchestrator.submit(key)

    assert state.is_success
    assert transport.calls == [key, key]


@pytest.mark.asyncio
async def test_error_is_not_retried_automatically() -> None:
    key = gene_key("BRCA1")
    transport = FakeTransport(payloads={key: TransportError("down", retryable=True)})
    orchestrator = QueryOrchestrator(transport)

    await orchestrator.submit(key)

    assert transport.calls == [key]


@pytest.mark.asyncio
async def test_invalid_term_raises_before_any_transition() -> None:
    transport = FakeTransport()
    orchestrator = QueryOrchestrator(transport)

    with pytest.raises(QueryError):
        await orchestrator.submit("   ")

    assert orchestrator.state.phase is QueryPhase.IDLE
    assert transport.calls == []


@pytest.mark.asyncio
async def test_reset_returns_to_idle_but_keeps_cache(fake_transport, demo_gene_key) -> None:
    orchestrator = QueryOrchestrator(fake_transport)
    await orchestrator.submit(demo_gene_key)

    orchestrator.reset()
    assert orchestrator.state.phase is QueryPhase.IDLE

    await orchestrator.submit(demo_gene_key)
    assert fake_transport.calls == [demo_gene_key]


@pytest.mark.asyncio
async def test_not_found_is_a_success_with_exists_false() -> None:
    orchestrator = QueryOrchestrator(FakeTransport())

    state = await orchestrator.submit("NOSUCHGENE")

    assert state.is_success
    assert state.data.exists is False


def test_from_config_carries_cache_ttl() -> None:
    orchestrator = QueryOrchestrator.from_config(
        FakeTransport(), Config(cache_ttl_seconds=30.0)
    )
    assert orchestrator.cache.ttl_seconds == 30.0


@pytest.mark.asyncio
async def test_config_ttl_expires_cached_responses(fake_transport, demo_gene_key) -> None:
    orchestrator = QueryOrchestrator.from_config(
        fake_transport, Config(cache_ttl_seconds=0)
    )

    await orchestrator.submit(demo_gene_key)
    state = await orchestrator.submit(demo_gene_key)

    assert state.is_success
    assert fake_transport.calls == [demo_gene_key, demo_gene_key]


@pytest.mark.asyncio
async def test_default_config_keeps_responses_for_the_session(
    fake_transport, demo_gene_key
) -> None:
    orchestrator = QueryOrchestrator.from_config(fake_transport, Config())

    await orchestrator.submit(demo_gene_key)
    await orchestrator.submit(demo_gene_key)

    assert orchestrator.cache.ttl_seconds is None
    assert fake_transport.calls == [demo_gene_key]
