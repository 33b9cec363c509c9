"""
Custom exception classes for the MCP agent bridge.

Only ToolConnectionError and failures of the reasoning loop end a run. Every
per-call error (InputShapeError, RemoteToolError) is turned into an observation
string by the ToolInvoker, and StreamWriteError only degrades live streaming.
"""

from typing import Optional


class BridgeError(Exception):
    """Base exception for all bridge errors."""

    pass


class InputShapeError(BridgeError):
    """Raised when a tool input cannot be coerced into the payload the tool expects."""

    def __init__(self, tool_name: str, received_type: str, message: Optional[str] = None) -> None:
        self.tool_name = tool_name
        self.received_type = received_type
        super().__init__(message or f"Tool '{tool_name}' received unexpected input type: {received_type}")


class ToolConnectionError(BridgeError, ConnectionError):
    """Raised when no enabled tool provider could be reached."""

    pass


class RemoteToolError(BridgeError):
    """Raised when a reachable remote tool reports a failure."""

    pass


class StreamWriteError(BridgeError):
    """Raised by an event sink when the live subscriber can no longer be written to."""

    pass


class ReasoningLoopError(BridgeError):
    """Raised when the reasoning loop cannot produce a final answer."""

    pass


class SessionStateError(BridgeError):
    """Raised on an illegal RunSession state transition."""

    pass


class ToolRegistrationError(BridgeError):
    """Raised when there is an error registering a tool normalizer."""

    pass


class ToolNotFoundError(BridgeError):
    """Raised when a requested tool is not known."""

    pass
