"""Tool execution."""

from .invoker import ToolInvoker, ToolDispatcher

__all__ = ["ToolInvoker", "ToolDispatcher"]
