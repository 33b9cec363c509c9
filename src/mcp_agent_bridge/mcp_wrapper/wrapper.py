"""Bridge one MCP server into the ToolProvider interface through an async client session."""

from contextlib import AsyncExitStack
from datetime import timedelta
from typing import Any, Dict, List, Optional, cast

from mcp import ClientSession
from mcp.client.sse import sse_client
from mcp.client.stdio import stdio_client, StdioServerParameters
from mcp.types import CallToolResult, TextContent, ImageContent, EmbeddedResource

from mcp_agent_bridge.bridge_core import ProviderConfig, RemoteToolError, ToolDescriptor, ToolProvider
from mcp_agent_bridge.bridge_core.logger import get_logger

logger = get_logger(__name__)

__all__ = ["MCPToolProvider"]


class MCPToolProvider(ToolProvider):
    """Client for one MCP server, reachable over SSE or as a stdio subprocess."""

    def __init__(self, config: ProviderConfig):
        """Initializes the provider from its configuration.

        Args:
            config: Transport and timeout settings of the server.
        """
        self.config = config
        self.name = config.name
        self._session: Optional[ClientSession] = None
        self._exit_stack = AsyncExitStack()

    @property
    def connected(self) -> bool:
        return self._session is not None

    async def connect(self) -> None:
        """Opens the transport and initializes the session.

        Raises:
            RuntimeError: If the provider is already connected.
        """
        if self._session is not None:
            raise RuntimeError(f"MCP provider '{self.name}' is already connected.")

        logger.debug("Connecting to MCP provider '%s' via %s...", self.name, self.config.transport)
        try:
            if self.config.transport == "sse":
                read, write = await self._exit_stack.enter_async_context(
                    sse_client(cast(str, self.config.url), sse_read_timeout=max(self.config.request_timeout, 300))
                )
            else:
                params = StdioServerParameters(
                    command=cast(str, self.config.command), args=self.config.args, env=self.config.env
                )
                read, write = await self._exit_stack.enter_async_context(stdio_client(params))

            session = await self._exit_stack.enter_async_context(ClientSession(read, write))
            await session.initialize()
        except BaseException:
            await self._exit_stack.aclose()
            self._exit_stack = AsyncExitStack()
            raise

        self._session = session
        logger.info("MCP provider '%s' connected.", self.name)

    async def list_tools(self) -> List[ToolDescriptor]:
        """Fetches the tools the server offers.

        Raises:
            RuntimeError: If the provider is not connected.
        """
        session = self._require_session()
        result = await session.list_tools()
        logger.info("Found %d tools on MCP provider '%s'.", len(result.tools), self.name)
        return [
            ToolDescriptor(
                name=tool.name,
                description=tool.description or f"Tool {tool.name} provided by MCP server '{self.name}'.",
                raw_schema=tool.inputSchema,
                provider=self.name,
            )
            for tool in result.tools
        ]

    async def call(self, tool_name: str, payload: Dict[str, Any]) -> Any:
        """Calls a tool on the server.

        Args:
            tool_name: Name of the tool.
            payload: Normalized arguments.

        Returns:
            The text content of the result, or its structured content when there is no text.

        Raises:
            RemoteToolError: If the server reports the call as failed.
        """
        session = self._require_session()
        logger.info("Delegating tool '%s' to MCP provider '%s'...", tool_name, self.name)

        mcp_result = await session.call_tool(
            tool_name,
            arguments=payload,
            read_timeout_seconds=timedelta(milliseconds=self.config.request_timeout_ms),
        )

        text = self._render_content(mcp_result)
        if mcp_result.isError:
            raise RemoteToolError(text or f"Tool '{tool_name}' failed without a message.")

        if not mcp_result.content and mcp_result.structuredContent is not None:
            return mcp_result.structuredContent
        return text or None

    async def close(self) -> None:
        """Cleanly closes the session and its transport."""
        logger.debug("Closing MCP provider '%s'...", self.name)
        await self._exit_stack.aclose()
        self._session = None
        logger.info("MCP provider '%s' closed.", self.name)

    def _require_session(self) -> ClientSession:
        if self._session is None:
            raise RuntimeError(f"MCP provider '{self.name}' is not connected.")
        return self._session

    @staticmethod
    def _render_content(mcp_result: CallToolResult) -> str:
        output = []
        for c in mcp_result.content or []:
            if c.type == "text":
                output.append(cast(TextContent, c).text)
            elif c.type == "image":
                output.append(f"[Image: {cast(ImageContent, c).mimeType}]")
            elif c.type == "resource":
                output.append(f"[Resource: {cast(EmbeddedResource, c).resource.uri}]")
            else:
                output.append(f"[Unknown content type: {c.type}]")
        return "\n".join(output)
