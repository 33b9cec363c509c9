"""Export the bridge exception hierarchy used across normalization, connection and streaming paths."""

from .exceptions import (
    BridgeError,
    InputShapeError,
    ToolConnectionError,
    RemoteToolError,
    StreamWriteError,
    ReasoningLoopError,
    SessionStateError,
    ToolRegistrationError,
    ToolNotFoundError,
)

__all__ = [
    "BridgeError",
    "InputShapeError",
    "ToolConnectionError",
    "RemoteToolError",
    "StreamWriteError",
    "ReasoningLoopError",
    "SessionStateError",
    "ToolRegistrationError",
    "ToolNotFoundError",
]
