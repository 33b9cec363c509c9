"""Orchestration of one end-to-end request."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, FrozenSet, Iterable, List, Optional

from ..base import ReasoningLoop
from ..config import BridgeSettings
from ..events import EventLog, EventSink
from ..exceptions import SessionStateError, ToolConnectionError
from ..logger import get_logger
from ..tools.execution import ToolInvoker
from ..tools.models import StreamRecord
from ..tools.normalizer import NormalizerRegistry, default_registry

if TYPE_CHECKING:
    from mcp_agent_bridge.mcp_wrapper import ConnectionSession

logger = get_logger(__name__)

GENERIC_ERROR_MESSAGE = "Failed to process request"

ConnectionFactory = Callable[[BridgeSettings], "ConnectionSession"]


class SessionState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    READY = "ready"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CLOSING = "closing"
    CLOSED = "closed"


_TRANSITIONS: Dict[SessionState, FrozenSet[SessionState]] = {
    SessionState.IDLE: frozenset({SessionState.CONNECTING}),
    SessionState.CONNECTING: frozenset({SessionState.READY, SessionState.FAILED, SessionState.CLOSING}),
    SessionState.READY: frozenset({SessionState.RUNNING, SessionState.FAILED, SessionState.CLOSING}),
    SessionState.RUNNING: frozenset({SessionState.COMPLETED, SessionState.FAILED, SessionState.CLOSING}),
    SessionState.COMPLETED: frozenset({SessionState.CLOSING}),
    SessionState.FAILED: frozenset({SessionState.CLOSING}),
    SessionState.CLOSING: frozenset({SessionState.CLOSED}),
    SessionState.CLOSED: frozenset(),
}


class RunSession:
    """
    Runs one objective: connect providers, wrap their tools, hand them to the
    reasoning loop, and tear everything down again.

    Batch and streaming runs share this code. A streaming run simply has a
    subscriber attached to ``events`` before ``run`` is awaited; it then receives
    every tool event followed by exactly one ``completion`` or ``error`` record.
    """

    def __init__(
        self,
        settings: BridgeSettings,
        reasoning_loop: ReasoningLoop,
        *,
        connection_factory: Optional[ConnectionFactory] = None,
        normalizers: Optional[NormalizerRegistry] = None,
        sink: Optional[EventSink] = None,
    ) -> None:
        """
        Args:
            settings: Static provider configuration.
            reasoning_loop: Component choosing the tool calls.
            connection_factory: Builds the run's ConnectionSession. Defaults to the MCP-backed one.
            normalizers: Normalization rules. Defaults to ``default_registry()``.
            sink: Optional live subscriber for streaming.
        """
        if connection_factory is None:
            from mcp_agent_bridge.mcp_wrapper import ConnectionSession

            connection_factory = ConnectionSession

        self._settings = settings
        self._reasoning_loop = reasoning_loop
        self._connection_factory = connection_factory
        self._normalizers = normalizers or default_registry()
        self.events = EventLog()
        if sink is not None:
            self.events.attach_subscriber(sink)

        self._state = SessionState.IDLE
        self.transitions: List[SessionState] = [SessionState.IDLE]
        self.output: Optional[str] = None
        self.error: Optional[BaseException] = None

    @property
    def state(self) -> SessionState:
        return self._state

    async def run(self, objective: str, enabled_categories: Iterable[str]) -> str:
        """Execute the run and return the reasoning loop's final answer.

        Connections are closed and the terminal stream record is flushed on every
        exit path, including errors and cancellation.

        Args:
            objective: What the agent should accomplish.
            enabled_categories: Tool categories the caller enabled.

        Returns:
            The final answer.

        Raises:
            ToolConnectionError: If no tool provider could be reached.
            SessionStateError: If the session was already used.
            Exception: Whatever the reasoning loop raised.
        """
        if self._state is not SessionState.IDLE:
            raise SessionStateError(f"RunSession can only run once (state: {self._state.value}).")

        logger.info("Starting run for objective: %s", objective)
        self._transition(SessionState.CONNECTING)
        try:
            async with self._connection_factory(self._settings) as connections:
                try:
                    output = await self._run_with(connections, objective, enabled_categories)
                except BaseException as exc:
                    self._fail(exc)
                    raise
                finally:
                    self._transition(SessionState.CLOSING)
        except BaseException as exc:
            if self._state is SessionState.CONNECTING:
                # The connection session itself could not be created
                self._fail(exc)
                self._transition(SessionState.CLOSING)
            if isinstance(exc, Exception):
                logger.error("Run failed: %s", exc, exc_info=True)
            raise
        finally:
            await self._finish_stream()
            self._transition(SessionState.CLOSED)
            logger.info("Run closed (%d tool events).", len(self.events))

        return output

    async def _run_with(self, connections: "ConnectionSession", objective: str, enabled_categories: Iterable[str]) -> str:
        descriptors = await connections.open(enabled_categories)
        if not descriptors:
            raise ToolConnectionError("Connected providers offer no tools.")
        self._transition(SessionState.READY)

        invokers = [
            ToolInvoker(
                descriptor,
                connections,
                self.events,
                self._normalizers,
                timeout=connections.timeout_for(descriptor.name),
            )
            for descriptor in descriptors
        ]
        logger.info("Handing %d tools to the reasoning loop: %s", len(invokers), [i.name for i in invokers])

        self._transition(SessionState.RUNNING)
        output = await self._reasoning_loop.run(invokers, objective)
        self.output = output
        self._transition(SessionState.COMPLETED)
        return output

    def _fail(self, exc: BaseException) -> None:
        self.error = exc
        self._transition(SessionState.FAILED)

    async def _finish_stream(self) -> None:
        if self.error is None and self.output is not None:
            record = StreamRecord(type="completion", data=self.output)
        else:
            record = StreamRecord(type="error", data=GENERIC_ERROR_MESSAGE)
        await self.events.finish(record)

    def _transition(self, new_state: SessionState) -> None:
        if new_state not in _TRANSITIONS[self._state]:
            raise SessionStateError(f"Illegal transition {self._state.value} -> {new_state.value}.")
        logger.debug("RunSession %s -> %s", self._state.value, new_state.value)
        self._state = new_state
        self.transitions.append(new_state)
