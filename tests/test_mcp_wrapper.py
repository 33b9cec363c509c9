from contextlib import asynccontextmanager
import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from mcp.types import Tool as MCPTool, TextContent, ImageContent, CallToolResult, ListToolsResult
from mcp_agent_bridge.bridge_core import ProviderConfig, RemoteToolError
from mcp_agent_bridge.mcp_wrapper import MCPToolProvider
from typing import Any, AsyncIterator

SSE_CONFIG = ProviderConfig(name="stagehand", url="http://localhost:3002/stagehand/sse", request_timeout_ms=120000)
STDIO_CONFIG = ProviderConfig(name="local", transport="stdio", command="node", args=["server.js"])


@asynccontextmanager
async def connected(config: ProviderConfig) -> AsyncIterator[MCPToolProvider]:
    provider = MCPToolProvider(config)
    await provider.connect()
    try:
        yield provider
    finally:
        await provider.close()


@pytest.fixture
def mock_session() -> Any:
    session = AsyncMock()
    session.initialize = AsyncMock()
    # Ensure context manager returns the session itself
    session.__aenter__.return_value = session
    return session


def transport_mock() -> MagicMock:
    transport = MagicMock()
    transport.return_value = AsyncMock()
    transport.return_value.__aenter__.return_value = (AsyncMock(), AsyncMock())
    return transport


@pytest.mark.asyncio
async def test_sse_provider_lifecycle(mock_session: Any) -> None:
    """The provider opens the SSE transport, initializes the session and closes both."""
    mock_sse = transport_mock()
    with patch("mcp_agent_bridge.mcp_wrapper.wrapper.sse_client", mock_sse):
        with patch("mcp_agent_bridge.mcp_wrapper.wrapper.ClientSession", return_value=mock_session):
            async with connected(SSE_CONFIG) as provider:
                assert provider.connected
                assert mock_session.initialize.call_count == 1

            assert not provider.connected

    assert mock_sse.call_args.args[0] == "http://localhost:3002/stagehand/sse"


@pytest.mark.asyncio
async def test_stdio_provider_uses_subprocess_parameters(mock_session: Any) -> None:
    mock_stdio = transport_mock()
    with patch("mcp_agent_bridge.mcp_wrapper.wrapper.stdio_client", mock_stdio):
        with patch("mcp_agent_bridge.mcp_wrapper.wrapper.ClientSession", return_value=mock_session):
            async with connected(STDIO_CONFIG):
                pass

    params = mock_stdio.call_args.args[0]
    assert params.command == "node"
    assert params.args == ["server.js"]


@pytest.mark.asyncio
async def test_failed_initialize_releases_transport(mock_session: Any) -> None:
    mock_session.initialize = AsyncMock(side_effect=OSError("handshake failed"))
    mock_sse = transport_mock()
    with patch("mcp_agent_bridge.mcp_wrapper.wrapper.sse_client", mock_sse):
        with patch("mcp_agent_bridge.mcp_wrapper.wrapper.ClientSession", return_value=mock_session):
            provider = MCPToolProvider(SSE_CONFIG)
            with pytest.raises(OSError):
                await provider.connect()

    assert not provider.connected
    assert mock_sse.return_value.__aexit__.call_count == 1


@pytest.mark.asyncio
async def test_list_tools_returns_descriptors(mock_session: Any) -> None:
    """Tools from the server keep their raw schema and the provider name."""
    schema = {"type": "object", "properties": {"url": {"type": "string"}}, "required": ["url"]}
    mock_session.list_tools = AsyncMock(
        return_value=ListToolsResult(
            tools=[
                MCPTool(name="stagehand_navigate", description="Open a page", inputSchema=schema),
                MCPTool(name="screenshot", inputSchema={"type": "object"}),
            ]
        )
    )

    with patch("mcp_agent_bridge.mcp_wrapper.wrapper.sse_client", transport_mock()):
        with patch("mcp_agent_bridge.mcp_wrapper.wrapper.ClientSession", return_value=mock_session):
            async with connected(SSE_CONFIG) as provider:
                descriptors = await provider.list_tools()

    assert [d.name for d in descriptors] == ["stagehand_navigate", "screenshot"]
    assert descriptors[0].raw_schema == schema
    assert descriptors[0].provider == "stagehand"
    assert "stagehand" in descriptors[1].description


@pytest.mark.asyncio
async def test_call_renders_content(mock_session: Any) -> None:
    mock_session.call_tool = AsyncMock(
        return_value=CallToolResult(
            content=[
                TextContent(type="text", text="Navigated"),
                ImageContent(type="image", data="aGk=", mimeType="image/png"),
            ],
            isError=False,
        )
    )

    with patch("mcp_agent_bridge.mcp_wrapper.wrapper.sse_client", transport_mock()):
        with patch("mcp_agent_bridge.mcp_wrapper.wrapper.ClientSession", return_value=mock_session):
            async with connected(SSE_CONFIG) as provider:
                result = await provider.call("stagehand_navigate", {"url": "https://example.com"})

    assert result == "Navigated\n[Image: image/png]"
    args, kwargs = mock_session.call_tool.call_args
    assert args == ("stagehand_navigate",)
    assert kwargs["arguments"] == {"url": "https://example.com"}
    assert kwargs["read_timeout_seconds"].total_seconds() == 120


@pytest.mark.asyncio
async def test_call_without_content_returns_none(mock_session: Any) -> None:
    mock_session.call_tool = AsyncMock(return_value=CallToolResult(content=[], isError=False))

    with patch("mcp_agent_bridge.mcp_wrapper.wrapper.sse_client", transport_mock()):
        with patch("mcp_agent_bridge.mcp_wrapper.wrapper.ClientSession", return_value=mock_session):
            async with connected(SSE_CONFIG) as provider:
                assert await provider.call("screenshot", {}) is None


@pytest.mark.asyncio
async def test_error_result_raises_remote_tool_error(mock_session: Any) -> None:
    mock_session.call_tool = AsyncMock(
        return_value=CallToolResult(content=[TextContent(type="text", text="Element not found")], isError=True)
    )

    with patch("mcp_agent_bridge.mcp_wrapper.wrapper.sse_client", transport_mock()):
        with patch("mcp_agent_bridge.mcp_wrapper.wrapper.ClientSession", return_value=mock_session):
            async with connected(SSE_CONFIG) as provider:
                with pytest.raises(RemoteToolError, match="Element not found"):
                    await provider.call("stagehand_act", {"action": "click"})


@pytest.mark.asyncio
async def test_calls_require_connection() -> None:
    provider = MCPToolProvider(SSE_CONFIG)
    with pytest.raises(RuntimeError):
        await provider.call("screenshot", {})
    # Closing an unconnected provider is harmless, and so is closing twice
    await provider.close()
    await provider.close()


@pytest.mark.asyncio
async def test_call_returns_structured_content_without_text(mock_session: Any) -> None:
    mock_session.call_tool = AsyncMock(
        return_value=CallToolResult(content=[], structuredContent={"title": "Example Domain"}, isError=False)
    )

    with patch("mcp_agent_bridge.mcp_wrapper.wrapper.sse_client", transport_mock()):
        with patch("mcp_agent_bridge.mcp_wrapper.wrapper.ClientSession", return_value=mock_session):
            async with connected(SSE_CONFIG) as provider:
                assert await provider.call("stagehand_extract", {}) == {"title": "Example Domain"}
