import json
from typing import List

import pytest

from mcp_agent_bridge.bridge_core import EventLog, StreamRecord, StreamWriteError, ToolEvent


class ListSink:
    def __init__(self, fail_after: int | None = None) -> None:
        self.payloads: List[str] = []
        self.closed = False
        self.fail_after = fail_after

    async def push(self, payload: str) -> None:
        if self.fail_after is not None and len(self.payloads) >= self.fail_after:
            raise StreamWriteError("client went away")
        self.payloads.append(payload)

    async def close(self) -> None:
        self.closed = True


def event(n: int) -> ToolEvent:
    return ToolEvent(tool="echo_tool", action="echo", details=str(n), timestamp=n)


@pytest.mark.asyncio
async def test_snapshot_keeps_record_order() -> None:
    log = EventLog()
    for n in range(5):
        await log.record(event(n))
    assert [e.details for e in log.snapshot()] == ["0", "1", "2", "3", "4"]
    assert len(log) == 5


@pytest.mark.asyncio
async def test_subscriber_sees_events_in_log_order() -> None:
    log = EventLog()
    sink = ListSink()
    log.attach_subscriber(sink)
    for n in range(3):
        await log.record(event(n))

    records = [json.loads(p) for p in sink.payloads]
    assert [r["type"] for r in records] == ["event"] * 3
    assert [r["data"]["details"] for r in records] == [e.details for e in log.snapshot()]


@pytest.mark.asyncio
async def test_failing_subscriber_degrades_to_buffering() -> None:
    log = EventLog()
    sink = ListSink(fail_after=2)
    log.attach_subscriber(sink)

    for n in range(4):
        await log.record(event(n))

    assert len(sink.payloads) == 2
    assert len(log.snapshot()) == 4
    assert log.degraded
    assert not log.has_subscriber


@pytest.mark.asyncio
async def test_attaching_replaces_previous_subscriber() -> None:
    log = EventLog()
    first, second = ListSink(), ListSink()
    log.attach_subscriber(first)
    await log.record(event(0))
    log.attach_subscriber(second)
    await log.record(event(1))

    assert len(first.payloads) == 1
    assert len(second.payloads) == 1
    assert log.detach_subscriber() is second
    assert log.detach_subscriber() is None


@pytest.mark.asyncio
async def test_finish_pushes_terminal_record_and_closes() -> None:
    log = EventLog()
    sink = ListSink()
    log.attach_subscriber(sink)
    await log.record(event(0))
    await log.finish(StreamRecord(type="completion", data="all done"))

    assert json.loads(sink.payloads[-1]) == {"type": "completion", "data": "all done"}
    assert sink.closed
    assert not log.has_subscriber

    # Nothing is pushed after the terminal record
    await log.record(event(1))
    assert len(sink.payloads) == 2


@pytest.mark.asyncio
async def test_finish_without_subscriber_is_noop() -> None:
    log = EventLog()
    await log.finish(StreamRecord(type="error", data="x"))
    assert log.snapshot() == ()


@pytest.mark.asyncio
async def test_finish_rejects_event_records() -> None:
    log = EventLog()
    log.attach_subscriber(ListSink())
    with pytest.raises(ValueError):
        await log.finish(StreamRecord(type="event", data=event(0)))
    assert log.has_subscriber


@pytest.mark.asyncio
async def test_finish_closes_subscriber_even_when_terminal_push_fails() -> None:
    log = EventLog()
    sink = ListSink(fail_after=0)
    log.attach_subscriber(sink)
    await log.finish(StreamRecord(type="completion", data="done"))
    assert sink.closed
    assert log.degraded
