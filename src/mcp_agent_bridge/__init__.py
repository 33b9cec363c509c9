"""MCP Agent Bridge - normalized, observable remote tool calls for language-model agents."""

from .bridge_core import (
    BridgeSettings,
    ProviderConfig,
    RestartPolicy,
    load_settings,
    ToolDescriptor,
    ToolEvent,
    StreamRecord,
    NormalizerRegistry,
    default_registry,
    ToolInvoker,
    EventLog,
    RunSession,
    SessionState,
    ReasoningLoop,
    ToolProvider,
)
from .mcp_wrapper import ConnectionSession, MCPToolProvider
from .llm_impl import OpenAIReasoningLoop

__all__ = [
    "BridgeSettings",
    "ProviderConfig",
    "RestartPolicy",
    "load_settings",
    "ToolDescriptor",
    "ToolEvent",
    "StreamRecord",
    "NormalizerRegistry",
    "default_registry",
    "ToolInvoker",
    "EventLog",
    "RunSession",
    "SessionState",
    "ReasoningLoop",
    "ToolProvider",
    "ConnectionSession",
    "MCPToolProvider",
    "OpenAIReasoningLoop",
]
