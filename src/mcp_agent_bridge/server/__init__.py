"""HTTP surface of the bridge."""

from .app import AgentRequest, create_app, main, openai_reasoning_loop
from .streaming import QueueSink, format_sse, sse_stream

__all__ = ["AgentRequest", "create_app", "main", "openai_reasoning_loop", "QueueSink", "format_sse", "sse_stream"]
