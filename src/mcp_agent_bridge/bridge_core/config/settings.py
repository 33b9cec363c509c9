"""Settings for the tool providers a run may connect to."""

import json
import os
from pathlib import Path
from typing import Dict, Iterable, List, Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

from ..logger import get_logger

logger = get_logger(__name__)

CONFIG_PATH_ENV = "MCP_BRIDGE_CONFIG"
REMOTE_BASE_URL_ENV = "MCP_SERVER_BASE_URL"


class RestartPolicy(BaseModel):
    """
    How often a provider connection is retried when the initial connect fails.

    Attributes:
        enabled: Whether failed connects are retried at all.
        max_attempts: Number of restarts after the first attempt.
        delay_ms: Fixed pause between two attempts in milliseconds.
    """

    enabled: bool = True
    max_attempts: int = Field(default=3, ge=0)
    delay_ms: int = Field(default=1000, ge=0)

    @property
    def total_attempts(self) -> int:
        """Number of connect attempts including the first one."""
        return 1 + self.max_attempts if self.enabled else 1

    @property
    def delay_seconds(self) -> float:
        return self.delay_ms / 1000


class ProviderConfig(BaseModel):
    """
    Connection parameters of one remote tool provider (an MCP server).

    Attributes:
        name: Unique provider name.
        transport: ``sse`` for a remote server, ``stdio`` for a local subprocess.
        url: SSE endpoint, required for the ``sse`` transport.
        command: Executable, required for the ``stdio`` transport.
        args: Arguments for ``command``.
        env: Optional environment for ``command``.
        restart: Restart policy applied to the initial connect.
        request_timeout_ms: Upper bound for a single tool call.
    """

    name: str
    transport: Literal["sse", "stdio"] = "sse"
    url: Optional[str] = None
    command: Optional[str] = None
    args: List[str] = Field(default_factory=list)
    env: Optional[Dict[str, str]] = None
    restart: RestartPolicy = Field(default_factory=RestartPolicy)
    request_timeout_ms: int = Field(default=30000, gt=0)

    @model_validator(mode="after")
    def _check_transport(self) -> "ProviderConfig":
        if self.transport == "sse" and not self.url:
            raise ValueError(f"Provider '{self.name}' uses the sse transport but has no url.")
        if self.transport == "stdio" and not self.command:
            raise ValueError(f"Provider '{self.name}' uses the stdio transport but has no command.")
        return self

    @property
    def request_timeout(self) -> float:
        """Request timeout in seconds."""
        return self.request_timeout_ms / 1000


class BridgeSettings(BaseModel):
    """
    Static configuration shared by all runs.

    Attributes:
        providers: Provider configurations keyed by provider name.
        categories: Tool categories a caller can enable, mapped to provider names.
        openai_model: Model used by the default reasoning loop.
        max_iterations: Upper bound on reasoning steps per run.
        temperature: Sampling temperature for the default reasoning loop.
        max_tokens: Completion token limit for the default reasoning loop.
    """

    providers: Dict[str, ProviderConfig] = Field(default_factory=dict)
    categories: Dict[str, List[str]] = Field(default_factory=dict)
    openai_model: str = "gpt-4o-mini"
    max_iterations: int = Field(default=10, gt=0)
    temperature: float = 0.0
    max_tokens: int = 3000

    @model_validator(mode="after")
    def _check_categories(self) -> "BridgeSettings":
        for category, names in self.categories.items():
            missing = [n for n in names if n not in self.providers]
            if missing:
                raise ValueError(f"Category '{category}' references unknown providers: {missing}")
        return self

    def providers_for(self, categories: Iterable[str]) -> List[ProviderConfig]:
        """Resolve enabled categories to provider configs, keeping declaration order and dropping duplicates.

        Args:
            categories: Category names requested by the caller.

        Returns:
            The provider configurations to connect.
        """
        wanted: List[str] = []
        for category in sorted(set(categories)):
            names = self.categories.get(category)
            if names is None:
                logger.warning("Ignoring unknown tool category '%s'.", category)
                continue
            for name in names:
                if name not in wanted:
                    wanted.append(name)
        return [config for name, config in self.providers.items() if name in wanted]


def default_settings() -> BridgeSettings:
    """Settings for the echo test server and the Stagehand browser server."""
    providers = {
        "simple_sse_server": ProviderConfig(
            name="simple_sse_server",
            url=os.getenv("SIMPLE_SSE_SERVER_URL", "http://localhost:3001/sse"),
            restart=RestartPolicy(max_attempts=3, delay_ms=1000),
        ),
        # Browser sessions can crash and restart slowly, and page actions run long.
        "stagehand": ProviderConfig(
            name="stagehand",
            url=os.getenv("STAGEHAND_MCP_URL", "http://localhost:3002/stagehand/sse"),
            restart=RestartPolicy(max_attempts=5, delay_ms=2000),
            request_timeout_ms=120000,
        ),
    }
    return BridgeSettings(
        providers=providers,
        categories={"browser": ["stagehand"], "calculator": ["simple_sse_server"]},
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
    )


def apply_remote_base_url(settings: BridgeSettings, base_url: Optional[str]) -> BridgeSettings:
    """Point every stdio provider at its remotely hosted SSE endpoint.

    Args:
        settings: Settings to rewrite.
        base_url: Base URL of the remote MCP host. Nothing changes when empty.

    Returns:
        New settings with stdio providers converted to ``<base_url>/<name>/events``.
    """
    if not base_url:
        return settings
    base_url = base_url.rstrip("/")
    providers = {}
    for name, config in settings.providers.items():
        if config.transport == "stdio":
            logger.info("Rewriting stdio provider '%s' to remote SSE endpoint.", name)
            config = config.model_copy(
                update={"transport": "sse", "url": f"{base_url}/{name}/events", "command": None, "args": []}
            )
        providers[name] = config
    return settings.model_copy(update={"providers": providers})


def load_settings(path: str | Path | None = None) -> BridgeSettings:
    """Load bridge settings.

    Reads ``.env`` first, then a JSON settings file from ``path`` or the
    ``MCP_BRIDGE_CONFIG`` environment variable. Without a file the built-in
    defaults are used.

    Args:
        path: Optional path to a JSON settings file.

    Returns:
        The validated settings.
    """
    load_dotenv()
    config_path = path or os.getenv(CONFIG_PATH_ENV)
    if config_path:
        logger.info("Loading bridge settings from '%s'.", config_path)
        raw = json.loads(Path(config_path).read_text(encoding="utf-8"))
        for name, provider in raw.get("providers", {}).items():
            provider.setdefault("name", name)
        settings = BridgeSettings.model_validate(raw)
    else:
        settings = default_settings()
    return apply_remote_base_url(settings, os.getenv(REMOTE_BASE_URL_ENV))
