from typing import Any, Callable, Dict, List, Optional, Sequence

import pytest

from mcp_agent_bridge.bridge_core import (
    BridgeSettings,
    ProviderConfig,
    ReasoningLoop,
    RemoteToolError,
    RestartPolicy,
    ToolDescriptor,
    ToolInvoker,
    ToolProvider,
)


ECHO_SCHEMA = {"type": "object", "properties": {"message": {"type": "string"}}, "required": ["message"]}
NAVIGATE_SCHEMA = {"type": "object", "properties": {"url": {"type": "string"}}, "required": ["url"]}


class FakeProvider(ToolProvider):
    """In-memory provider: records connects, calls and closes."""

    def __init__(
        self,
        name: str,
        tools: Sequence[ToolDescriptor],
        results: Optional[Dict[str, Any]] = None,
        fail_connects: int = 0,
    ) -> None:
        self.name = name
        self.tools = list(tools)
        self.results = results or {}
        self.fail_connects = fail_connects
        self.connect_count = 0
        self.close_count = 0
        self.calls: List[tuple] = []

    async def connect(self) -> None:
        self.connect_count += 1
        if self.connect_count <= self.fail_connects:
            raise OSError(f"{self.name} refused connection")

    async def list_tools(self) -> List[ToolDescriptor]:
        return list(self.tools)

    async def call(self, tool_name: str, payload: Dict[str, Any]) -> Any:
        self.calls.append((tool_name, payload))
        result = self.results.get(tool_name, f"{tool_name} ok")
        if isinstance(result, Exception):
            raise result
        if callable(result):
            return await result(payload)
        return result

    async def close(self) -> None:
        self.close_count += 1


class ProviderPool:
    """Provider factory handing out one shared FakeProvider per config name."""

    def __init__(self, providers: Dict[str, FakeProvider]) -> None:
        self.providers = providers
        self.built: List[str] = []

    def __call__(self, config: ProviderConfig) -> FakeProvider:
        self.built.append(config.name)
        return self.providers[config.name]


class ScriptedLoop(ReasoningLoop):
    """Reasoning loop that calls tools from a fixed script and returns a fixed answer."""

    def __init__(self, script: Sequence[tuple] = (), answer: str = "done", error: Optional[Exception] = None) -> None:
        super().__init__(max_retries=0, base_retry_delay=0)
        self.script = list(script)
        self.answer = answer
        self.error = error
        self.observations: List[str] = []
        self.seen_tools: List[str] = []
        self.after_each: Optional[Callable[[int], Any]] = None

    async def run(self, tools: Sequence[ToolInvoker], objective: str) -> str:
        self.seen_tools = [t.name for t in tools]
        by_name = {t.name: t for t in tools}
        for index, (name, raw_input) in enumerate(self.script):
            self.observations.append(await by_name[name].invoke(raw_input))
            if self.after_each is not None:
                self.after_each(index)
        if self.error is not None:
            raise self.error
        return self.answer


def descriptor(name: str, schema: Any = None, provider: str = "fake") -> ToolDescriptor:
    return ToolDescriptor(name=name, description=f"{name} tool", raw_schema=schema, provider=provider)


def fast_restart(max_attempts: int = 2) -> RestartPolicy:
    return RestartPolicy(enabled=True, max_attempts=max_attempts, delay_ms=0)


@pytest.fixture
def settings() -> BridgeSettings:
    return BridgeSettings(
        providers={
            "echo_server": ProviderConfig(name="echo_server", url="http://echo/sse", restart=fast_restart()),
            "browser_server": ProviderConfig(
                name="browser_server", url="http://browser/sse", restart=fast_restart(), request_timeout_ms=120000
            ),
        },
        categories={"calculator": ["echo_server"], "browser": ["browser_server"]},
    )


@pytest.fixture
def echo_provider() -> FakeProvider:
    return FakeProvider("echo_server", [descriptor("echo_tool", ECHO_SCHEMA, "echo_server")])


@pytest.fixture
def browser_provider() -> FakeProvider:
    return FakeProvider(
        "browser_server",
        [
            descriptor("stagehand_navigate", NAVIGATE_SCHEMA, "browser_server"),
            descriptor("screenshot", {"type": "object", "properties": {}}, "browser_server"),
        ],
    )


@pytest.fixture
def provider_pool(echo_provider: FakeProvider, browser_provider: FakeProvider) -> ProviderPool:
    return ProviderPool({"echo_server": echo_provider, "browser_server": browser_provider})
