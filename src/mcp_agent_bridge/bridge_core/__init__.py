"""Public exports for the core bridge abstractions and utilities."""

from .logger import get_logger, setup_logging
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
from .config import RestartPolicy, ProviderConfig, BridgeSettings, default_settings, load_settings
from .tools import (
    ToolDescriptor,
    NormalizedCall,
    ToolEvent,
    StreamRecord,
    SchemaValidator,
    Normalization,
    NormalizerRegistry,
    default_registry,
    single_field,
    no_argument,
    pass_through,
    ToolInvoker,
    ToolDispatcher,
)
from .events import EventLog, EventSink
from .base import ToolProvider, ReasoningLoop
from .session import RunSession, SessionState, GENERIC_ERROR_MESSAGE

__all__ = [
    "get_logger",
    "setup_logging",
    "BridgeError",
    "InputShapeError",
    "ToolConnectionError",
    "RemoteToolError",
    "StreamWriteError",
    "ReasoningLoopError",
    "SessionStateError",
    "ToolRegistrationError",
    "ToolNotFoundError",
    "RestartPolicy",
    "ProviderConfig",
    "BridgeSettings",
    "default_settings",
    "load_settings",
    "ToolDescriptor",
    "NormalizedCall",
    "ToolEvent",
    "StreamRecord",
    "SchemaValidator",
    "Normalization",
    "NormalizerRegistry",
    "default_registry",
    "single_field",
    "no_argument",
    "pass_through",
    "ToolInvoker",
    "ToolDispatcher",
    "EventLog",
    "EventSink",
    "ToolProvider",
    "ReasoningLoop",
    "RunSession",
    "SessionState",
    "GENERIC_ERROR_MESSAGE",
]
