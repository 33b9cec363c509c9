"""Lifecycle of the provider connections used by one run."""

from __future__ import annotations

import asyncio
from types import TracebackType
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Type

from mcp_agent_bridge.bridge_core import (
    BridgeSettings,
    ProviderConfig,
    ToolConnectionError,
    ToolDescriptor,
    ToolNotFoundError,
    ToolProvider,
)
from mcp_agent_bridge.bridge_core.logger import get_logger
from .wrapper import MCPToolProvider

logger = get_logger(__name__)

ProviderFactory = Callable[[ProviderConfig], ToolProvider]


class ConnectionSession:
    """
    Owns every provider connection of a run: connect, list tools, guarantee close.

    Use it as an async context manager so ``close`` runs on every exit path::

        async with ConnectionSession(settings) as connections:
            descriptors = await connections.open({"browser"})
    """

    def __init__(self, settings: BridgeSettings, provider_factory: ProviderFactory = MCPToolProvider) -> None:
        """
        Args:
            settings: Provider and category configuration.
            provider_factory: Builds a provider for a config. A fresh provider is built per connect attempt.
        """
        self._settings = settings
        self._provider_factory = provider_factory
        self._providers: List[Tuple[ProviderConfig, ToolProvider]] = []
        self._routes: Dict[str, Tuple[ProviderConfig, ToolProvider]] = {}
        self._descriptors: List[ToolDescriptor] = []
        self._opened = False
        self._closed = False

    @property
    def descriptors(self) -> List[ToolDescriptor]:
        return list(self._descriptors)

    @property
    def closed(self) -> bool:
        return self._closed

    async def open(self, enabled_categories: Iterable[str]) -> List[ToolDescriptor]:
        """Connect every provider behind the enabled categories and collect their tools.

        Providers that stay unreachable after their restart budget are left out.

        Args:
            enabled_categories: Tool categories requested by the caller.

        Returns:
            The descriptors of all tools from the connected providers.

        Raises:
            ToolConnectionError: If no provider could be connected.
            RuntimeError: If the session was already opened or closed.
        """
        if self._opened or self._closed:
            raise RuntimeError("ConnectionSession.open() may only be called once on a fresh session.")
        self._opened = True

        configs = self._settings.providers_for(enabled_categories)
        if not configs:
            raise ToolConnectionError("No tool providers are enabled for this request.")

        # One after the other: MCP transports must be closed by the task that opened them.
        for config in configs:
            connected = await self._connect_with_restart(config)
            if connected is None:
                continue
            provider, tools = connected
            self._providers.append((config, provider))
            for descriptor in tools:
                if descriptor.name in self._routes:
                    owner = self._routes[descriptor.name][0].name
                    logger.warning(
                        "Tool '%s' from '%s' shadows the tool of '%s'. Keeping the first.", descriptor.name, config.name, owner
                    )
                    continue
                self._routes[descriptor.name] = (config, provider)
                self._descriptors.append(descriptor)

        if not self._providers:
            names = ", ".join(c.name for c in configs)
            raise ToolConnectionError(f"Could not connect to any tool provider ({names}).")

        logger.info("Connected %d/%d providers with %d tools.", len(self._providers), len(configs), len(self._descriptors))
        return self.descriptors

    async def call(self, tool_name: str, payload: Dict[str, Any]) -> Any:
        """Dispatch a normalized call to the provider owning the tool.

        Raises:
            ToolNotFoundError: If no connected provider offers the tool.
        """
        if tool_name not in self._routes:
            raise ToolNotFoundError(f"Tool '{tool_name}' is not offered by any connected provider.")
        _, provider = self._routes[tool_name]
        return await provider.call(tool_name, payload)

    def timeout_for(self, tool_name: str) -> Optional[float]:
        """Per-call timeout in seconds for a tool, from its provider's config."""
        route = self._routes.get(tool_name)
        return route[0].request_timeout if route else None

    async def close(self) -> None:
        """Release every open provider connection. Further calls do nothing."""
        if self._closed:
            return
        self._closed = True

        for config, provider in reversed(self._providers):
            await self._close_provider(config, provider)
        self._providers.clear()
        self._routes.clear()
        logger.debug("ConnectionSession closed.")

    async def __aenter__(self) -> "ConnectionSession":
        return self

    async def __aexit__(
        self, exc_type: Optional[Type[BaseException]], exc_val: Optional[BaseException], exc_tb: Optional[TracebackType]
    ) -> None:
        await self.close()

    async def _connect_with_restart(self, config: ProviderConfig) -> Optional[Tuple[ToolProvider, List[ToolDescriptor]]]:
        policy = config.restart
        for attempt in range(1, policy.total_attempts + 1):
            provider = self._provider_factory(config)
            try:
                await provider.connect()
                tools = await provider.list_tools()
                return provider, tools
            except Exception as exc:
                await self._close_provider(config, provider)
                if attempt == policy.total_attempts:
                    logger.error(
                        "Provider '%s' unreachable after %d attempt(s): %s", config.name, policy.total_attempts, exc
                    )
                    return None
                logger.warning(
                    "Connecting to '%s' failed (attempt %d/%d): %s. Retrying in %ss...",
                    config.name,
                    attempt,
                    policy.total_attempts,
                    exc,
                    policy.delay_seconds,
                )
                await asyncio.sleep(policy.delay_seconds)
        return None

    @staticmethod
    async def _close_provider(config: ProviderConfig, provider: ToolProvider) -> None:
        try:
            await provider.close()
        except Exception as exc:
            logger.error("Error closing provider '%s': %s", config.name, exc, exc_info=True)
