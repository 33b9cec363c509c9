"""The uniform callable the reasoning loop uses for one remote tool."""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING, Any, Dict, Optional, Protocol

from ...logger import get_logger
from ..models import ToolDescriptor, ToolEvent
from ..normalizer import NormalizerRegistry
from ..schema import SchemaValidator

if TYPE_CHECKING:
    from ...events import EventLog

logger = get_logger(__name__)


class ToolDispatcher(Protocol):
    """Anything that can route a normalized call to the provider owning the tool."""

    async def call(self, tool_name: str, payload: Dict[str, Any]) -> Any: ...


class ToolInvoker:
    """Wraps a remote tool with input normalization, event recording and failure containment.

    ``invoke`` always returns a string observation: the tool's result on success,
    an ``Error:`` message otherwise. A bad call therefore never ends the run; the
    reasoning loop sees the error and can change its next action.
    """

    def __init__(
        self,
        descriptor: ToolDescriptor,
        dispatcher: ToolDispatcher,
        event_log: EventLog,
        normalizers: NormalizerRegistry,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Args:
            descriptor: The tool as reported by its provider.
            dispatcher: Routes calls to the provider. Not owned by the invoker.
            event_log: The run's event log. Not owned by the invoker.
            normalizers: Registry resolving the tool's normalization rule.
            timeout: Per-call timeout in seconds, None for no limit.
        """
        self.descriptor = descriptor
        self._dispatcher = dispatcher
        self._event_log = event_log
        self._entry = normalizers.resolve(descriptor)
        self.timeout = timeout

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def description(self) -> str:
        return self.descriptor.description or f"Tool {self.name} provided by {self.descriptor.provider or 'MCP server'}."

    @property
    def parameters(self) -> Dict[str, Any]:
        """Sanitized input schema for function-calling models."""
        return SchemaValidator.to_parameters(self.descriptor.raw_schema)

    async def invoke(self, raw_input: Any) -> str:
        """Normalize, record and dispatch one call.

        Args:
            raw_input: Whatever the reasoning loop produced for this tool.

        Returns:
            The result text, or an ``Error:`` prefixed message.
        """
        logger.debug("Tool '%s' received input %r (type: %s).", self.name, raw_input, type(raw_input).__name__)

        try:
            normalization = self._entry.normalizer(self.name, raw_input)
        except Exception as exc:
            logger.error("Normalizer for tool '%s' failed: %s", self.name, exc, exc_info=True)
            return f"Error: Could not read the input for tool '{self.name}': {type(exc).__name__}"
        if normalization.error is not None:
            return f"Error: {normalization.error}"
        call = normalization.unwrap()

        await self._event_log.record(ToolEvent(tool=self.name, action=self._entry.action, details=normalization.details))

        try:
            logger.info("Dispatching tool '%s'...", self.name)
            logger.debug("Tool '%s' payload: %s", self.name, call.payload)
            result = await asyncio.wait_for(self._dispatcher.call(self.name, call.payload), timeout=self.timeout)
        except asyncio.TimeoutError:
            msg = f"Tool '{self.name}' timed out after {self.timeout} seconds."
            logger.warning(msg)
            return f"Error: {msg}"
        except Exception as exc:
            logger.warning("Tool '%s' failed: %s (%s)", self.name, exc, type(exc).__name__)
            return f"Error: {exc}"

        text = self._to_text(result)
        logger.debug("Tool '%s' result: %s", self.name, text[:200] + "..." if len(text) > 200 else text)
        return text

    __call__ = invoke

    @staticmethod
    def _to_text(result: Any) -> str:
        if result is None:
            return "Success"
        if isinstance(result, str):
            return result
        try:
            return json.dumps(result, sort_keys=True, default=str)
        except (TypeError, ValueError, RecursionError):
            # Mixed key types or circular structures
            return str(result)

    def __repr__(self) -> str:
        return f"ToolInvoker(name={self.name!r}, provider={self.descriptor.provider!r})"
