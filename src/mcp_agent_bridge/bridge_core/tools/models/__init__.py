"""Tool-related data models."""

from .models import ToolDescriptor, NormalizedCall, ToolEvent, StreamRecord, now_ms

__all__ = ["ToolDescriptor", "NormalizedCall", "ToolEvent", "StreamRecord", "now_ms"]
