"""Append-only log of tool events with an optional live subscriber."""

from __future__ import annotations

import asyncio
from typing import List, Optional, Protocol, Tuple

from ..exceptions import StreamWriteError
from ..logger import get_logger
from ..tools.models import StreamRecord, ToolEvent

logger = get_logger(__name__)

# Failures of the subscriber channel; anything else is a bug and propagates.
SINK_ERRORS = (StreamWriteError, OSError)


class EventSink(Protocol):
    """
    Protocol for a live subscriber of a run's events.
    """

    async def push(self, payload: str) -> None:
        """Deliver one serialized StreamRecord. Raises StreamWriteError if the subscriber is gone."""
        ...

    async def close(self) -> None:
        """Signal that no more records will follow."""
        ...


class EventLog:
    """
    Ordered record of every tool dispatch in a run.

    Events are never removed or reordered. When a subscriber is attached, each
    event is pushed to it before ``record`` returns, so the subscriber sees the
    events in log order. A subscriber that fails is dropped and the log keeps
    buffering on its own.
    """

    def __init__(self) -> None:
        self._events: List[ToolEvent] = []
        self._sink: Optional[EventSink] = None
        self._lock = asyncio.Lock()
        self.degraded = False

    @property
    def has_subscriber(self) -> bool:
        return self._sink is not None

    def attach_subscriber(self, sink: EventSink) -> None:
        """Attach a live subscriber, replacing the current one."""
        if self._sink is not None and self._sink is not sink:
            logger.debug("Replacing live subscriber.")
        self._sink = sink

    def detach_subscriber(self) -> Optional[EventSink]:
        """Detach and return the current subscriber, if any."""
        sink, self._sink = self._sink, None
        return sink

    async def record(self, event: ToolEvent) -> None:
        """Append an event and forward it to the subscriber.

        Args:
            event: The event to record.
        """
        async with self._lock:
            self._events.append(event)
            logger.debug("Recorded event #%d: %s %s", len(self._events), event.tool, event.action)
            if self._sink is not None:
                await self._push(StreamRecord(type="event", data=event))

    async def finish(self, record: StreamRecord) -> None:
        """Push the terminal record, then close and detach the subscriber.

        Args:
            record: The ``completion`` or ``error`` record ending the stream.

        Raises:
            ValueError: If ``record`` is an ``event`` record.
        """
        if not record.is_terminal:
            raise ValueError("finish() needs a completion or error record.")
        async with self._lock:
            sink = self._sink
            if sink is None:
                return
            await self._push(record)
            self._sink = None
            try:
                await sink.close()
            except SINK_ERRORS as exc:
                logger.warning("Closing the live subscriber failed: %s", exc)

    def snapshot(self) -> Tuple[ToolEvent, ...]:
        """Return every event recorded so far, in order."""
        return tuple(self._events)

    def __len__(self) -> int:
        return len(self._events)

    async def _push(self, record: StreamRecord) -> None:
        sink = self._sink
        if sink is None:
            return
        try:
            await sink.push(record.model_dump_json())
        except SINK_ERRORS as exc:
            logger.warning("Live subscriber failed (%s). Continuing without streaming.", exc)
            self._sink = None
            self.degraded = True
