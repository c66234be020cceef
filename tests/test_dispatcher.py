# Text Query Console
# File: tests/test_dispatcher.py
# Version: v2
#
# Request lifecycle tests. Fake clients stand in for the query service so no
# HTTP calls are made.

from __future__ import annotations

import asyncio
import re
import time
from typing import Any, List

import pytest

from query_console.dispatcher import QueryDispatcher
from query_console.errors import BackendError, MalformedPayloadError, QueryInFlightError
from query_console.models import OpaqueResult, RequestState, Severity, TabularResult


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class _FakeClient:
    """Returns a canned payload (or raises) and records every query."""

    def __init__(self, payload: Any = None, exc: Exception | None = None, delay: float = 0.0) -> None:
        self.payload = payload
        self.exc = exc
        self.delay = delay
        self.calls: List[str] = []

    async def run_query(self, query: str) -> Any:
        self.calls.append(query)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.exc is not None:
            raise self.exc
        return self.payload


class _GatedClient:
    """Blocks inside run_query until released."""

    def __init__(self, payload: Any) -> None:
        self.payload = payload
        self.calls: List[str] = []
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def run_query(self, query: str) -> Any:
        self.calls.append(query)
        self.entered.set()
        await self.release.wait()
        return self.payload


class _StepClock:
    """Fake perf_counter: each reading advances by a fixed step (seconds)."""

    def __init__(self, step: float) -> None:
        self.now = 100.0
        self.step = step

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.parametrize("query", ["", "   ", "\n\t  \n"])
async def test_blank_query_is_a_noop(query):
    client = _FakeClient(payload={"time_taken": 1})
    seen = []
    dispatcher = QueryDispatcher(client, on_change=seen.append)
    before = dispatcher.session

    session = await dispatcher.submit(query)

    assert session is before
    assert session.state is RequestState.IDLE
    assert client.calls == []
    assert seen == []


@pytest.mark.asyncio
async def test_success_with_rows_sets_result_and_status():
    client = _FakeClient(payload={"rows": [[1], [2], [3], [4], [5]], "headers": ["n"], "time_taken": 42})
    dispatcher = QueryDispatcher(client)

    session = await dispatcher.submit("  ?[n] := n in [1,2,3,4,5]  \n")

    assert client.calls == ["?[n] := n in [1,2,3,4,5]"]
    assert session.state is RequestState.IDLE
    assert session.status is not None
    assert session.status.message == "finished 5 rows in 42ms"
    assert session.status.severity is Severity.SUCCESS
    assert session.error is None
    assert isinstance(session.result, TabularResult)
    assert dispatcher.session is session
    assert dispatcher.can_submit is True


@pytest.mark.asyncio
async def test_success_without_rows_uses_server_time():
    # The clock would report a very different elapsed time; server time wins.
    client = _FakeClient(payload={"affected": 3, "time_taken": 7})
    dispatcher = QueryDispatcher(client, clock=_StepClock(step=5.0))

    session = await dispatcher.submit(":put users {name: 'x'}")

    assert session.status is not None
    assert session.status.message == "finished in 7ms"
    assert isinstance(session.result, OpaqueResult)
    assert session.elapsed_ms == 7


@pytest.mark.asyncio
async def test_backend_failure_uses_body_and_client_time():
    client = _FakeClient(exc=BackendError("parse error at 1:3", status_code=400))
    dispatcher = QueryDispatcher(client, clock=_StepClock(step=0.030))

    session = await dispatcher.submit("garbage")

    assert session.state is RequestState.IDLE
    assert session.error == "parse error at 1:3"
    assert session.result is None
    assert session.status is not None
    assert session.status.message == "finished in 30ms"
    assert session.status.severity is Severity.ERROR


@pytest.mark.asyncio
async def test_failure_time_is_measured_not_server_reported():
    client = _FakeClient(exc=BackendError('{"time_taken": 99999}', status_code=500), delay=0.03)
    dispatcher = QueryDispatcher(client)

    started = time.perf_counter()
    session = await dispatcher.submit("slow failure")
    measured = (time.perf_counter() - started) * 1000

    assert session.status is not None
    match = re.fullmatch(r"finished in (\d+)ms", session.status.message)
    assert match is not None
    n = int(match.group(1))
    assert 25 <= n <= measured + 1
    assert n != 99999


@pytest.mark.asyncio
async def test_malformed_payload_is_a_failure():
    client = _FakeClient(payload=["not", "an", "object"])
    dispatcher = QueryDispatcher(client, clock=_StepClock(step=0.002))

    session = await dispatcher.submit("q")

    assert session.result is None
    assert session.error is not None
    assert "expected JSON object" in session.error
    assert session.status is not None
    assert session.status.severity is Severity.ERROR


@pytest.mark.asyncio
async def test_parse_error_from_client_is_a_failure():
    client = _FakeClient(exc=MalformedPayloadError("Could not decode query response"))
    dispatcher = QueryDispatcher(client, clock=_StepClock(step=0.001))

    session = await dispatcher.submit("q")

    assert session.error == "Could not decode query response"
    assert session.status is not None
    assert session.status.message == "finished in 1ms"


@pytest.mark.asyncio
async def test_exception_without_message_still_reports_something():
    client = _FakeClient(exc=TimeoutError())
    dispatcher = QueryDispatcher(client)

    session = await dispatcher.submit("q")

    assert session.error == "TimeoutError"


@pytest.mark.asyncio
async def test_single_flight_rejects_second_submission():
    client = _GatedClient(payload={"rows": [[1]], "time_taken": 1})
    dispatcher = QueryDispatcher(client)

    first = asyncio.create_task(dispatcher.submit("first"))
    await client.entered.wait()

    assert dispatcher.in_flight is True
    assert dispatcher.can_submit is False
    with pytest.raises(QueryInFlightError):
        await dispatcher.submit("second")

    client.release.set()
    session = await first

    assert client.calls == ["first"]
    assert session.state is RequestState.IDLE
    assert dispatcher.can_submit is True


@pytest.mark.asyncio
async def test_in_flight_clears_previous_outcome():
    client = _GatedClient(payload={"rows": [[1]], "time_taken": 1})
    client.release.set()
    seen = []
    dispatcher = QueryDispatcher(client, on_change=seen.append)

    await dispatcher.submit("first")
    await dispatcher.submit("second")

    # in flight -> resolved -> in flight -> resolved
    assert [s.state for s in seen] == [
        RequestState.IN_FLIGHT,
        RequestState.IDLE,
        RequestState.IN_FLIGHT,
        RequestState.IDLE,
    ]
    in_flight = seen[2]
    assert in_flight.status is None
    assert in_flight.error is None
    assert in_flight.result is None


@pytest.mark.asyncio
async def test_error_then_success_replaces_session_wholesale():
    failing = _FakeClient(exc=BackendError("boom"))
    dispatcher = QueryDispatcher(failing)
    failed = await dispatcher.submit("q")
    assert failed.error == "boom"

    dispatcher.client = _FakeClient(payload={"rows": [], "time_taken": 2})
    ok = await dispatcher.submit("q")

    assert ok.error is None
    assert ok.status is not None
    assert ok.status.message == "finished 0 rows in 2ms"


@pytest.mark.asyncio
async def test_cancelled_request_returns_to_idle():
    client = _GatedClient(payload={"time_taken": 1})
    dispatcher = QueryDispatcher(client)

    task = asyncio.create_task(dispatcher.submit("never finishes"))
    await client.entered.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert dispatcher.in_flight is False
    assert dispatcher.can_submit is True


@pytest.mark.asyncio
async def test_missing_time_taken_falls_back_to_client_time():
    client = _FakeClient(payload={"rows": [[1]]})
    dispatcher = QueryDispatcher(client, clock=_StepClock(step=0.004))

    session = await dispatcher.submit("q")

    assert session.status is not None
    assert session.status.message == "finished 1 rows in 4ms"


@pytest.mark.asyncio
async def test_failing_observer_does_not_wedge_session():
    def explode(session):
        raise RuntimeError("observer broke")

    client = _FakeClient(payload={"rows": [[1]], "time_taken": 2})
    dispatcher = QueryDispatcher(client, on_change=explode)

    first = await dispatcher.submit("q")
    second = await dispatcher.submit("q2")

    assert client.calls == ["q", "q2"]
    assert first.status is not None
    assert first.status.message == "finished 1 rows in 2ms"
    assert second.state is RequestState.IDLE
    assert dispatcher.can_submit is True
