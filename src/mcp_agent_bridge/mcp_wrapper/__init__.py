"""MCP tool providers and the connection session that owns them."""

from .wrapper import MCPToolProvider
from .session import ConnectionSession, ProviderFactory

__all__ = ["MCPToolProvider", "ConnectionSession", "ProviderFactory"]
