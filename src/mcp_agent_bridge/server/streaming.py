"""Live delivery of a run's records to an HTTP client."""

import asyncio
import json
from typing import AsyncIterator, Optional

from mcp_agent_bridge.bridge_core import StreamWriteError
from mcp_agent_bridge.bridge_core.logger import get_logger

logger = get_logger(__name__)


# Upper bound on records waiting for a client that has not started reading.
DEFAULT_MAX_PENDING = 1000


class QueueSink:
    """
    EventSink backed by a bounded asyncio.Queue and drained by the response generator.

    Once the client is gone (``disconnect``), pushes raise StreamWriteError so
    the event log stops streaming. A client that never starts reading is caught
    by the queue bound: a full queue counts as a disconnect.
    """

    def __init__(self, max_pending: int = DEFAULT_MAX_PENDING) -> None:
        self._queue: "asyncio.Queue[Optional[str]]" = asyncio.Queue(maxsize=max_pending)
        self._disconnected = False
        self._closed = False

    @property
    def disconnected(self) -> bool:
        return self._disconnected

    async def push(self, payload: str) -> None:
        if self._disconnected:
            raise StreamWriteError("Subscriber has disconnected.")
        if self._closed:
            raise StreamWriteError("Stream is already closed.")
        try:
            self._queue.put_nowait(payload)
        except asyncio.QueueFull:
            logger.warning("Streaming client is not reading (%d records pending).", self._queue.qsize())
            self.disconnect()
            raise StreamWriteError("Subscriber is not reading.") from None

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # A full queue is drained by payloads(), which stops on the closed flag
        try:
            self._queue.put_nowait(None)
        except asyncio.QueueFull:
            pass

    def disconnect(self) -> None:
        """Mark the client as gone and drop whatever it did not read."""
        if not self._closed and not self._disconnected:
            logger.info("Streaming client disconnected.")
        self._disconnected = True
        while not self._queue.empty():
            self._queue.get_nowait()

    async def payloads(self) -> AsyncIterator[str]:
        """Yield queued payloads until the stream is closed."""
        while True:
            if self._closed and self._queue.empty():
                return
            payload = await self._queue.get()
            if payload is None:
                return
            yield payload


def format_sse(payload: str) -> str:
    """Frame a serialized StreamRecord as a server-sent event named after its type."""
    event_type = json.loads(payload).get("type", "event")
    return f"event: {event_type}\ndata: {payload}\n\n"


async def sse_stream(sink: QueueSink) -> AsyncIterator[str]:
    """Response body for a streaming run. Marks the sink disconnected when the client goes away."""
    try:
        async for payload in sink.payloads():
            yield format_sse(payload)
    finally:
        sink.disconnect()
