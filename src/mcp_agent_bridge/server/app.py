"""
HTTP boundary of the bridge.

Endpoints:
    POST /api/agent         - Run an objective and return the final answer
    POST /api/agent/stream  - Same run, streamed as server-sent events
    GET  /health            - Liveness probe
"""

import asyncio
from typing import Callable, Dict, List, Optional, Set

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from openai import AsyncOpenAI
from pydantic import BaseModel, ConfigDict, Field

from mcp_agent_bridge.bridge_core import (
    GENERIC_ERROR_MESSAGE,
    BridgeSettings,
    ReasoningLoop,
    RunSession,
    ToolConnectionError,
    load_settings,
    setup_logging,
)
from mcp_agent_bridge.bridge_core.logger import get_logger
from mcp_agent_bridge.bridge_core.session import ConnectionFactory
from mcp_agent_bridge.llm_impl import OpenAIReasoningLoop
from .streaming import QueueSink, sse_stream

logger = get_logger(__name__)

ReasoningLoopFactory = Callable[[BridgeSettings], ReasoningLoop]


class AgentRequest(BaseModel):
    """
    Body of both agent endpoints.

    Attributes:
        objective: What the agent should do.
        enabled_tool_categories: Tool categories to connect (``enabledToolCategories``).
        active_tools: Category toggles as sent by the chat UI (``activeTools``).
    """

    model_config = ConfigDict(populate_by_name=True)

    objective: str = Field(min_length=1)
    enabled_tool_categories: List[str] = Field(default_factory=list, alias="enabledToolCategories")
    active_tools: Dict[str, bool] = Field(default_factory=dict, alias="activeTools")

    def categories(self) -> Set[str]:
        """All enabled categories from both request forms."""
        enabled = set(self.enabled_tool_categories)
        enabled.update(name for name, active in self.active_tools.items() if active)
        return enabled


def openai_reasoning_loop(settings: BridgeSettings) -> ReasoningLoop:
    """Default reasoning loop. Reads OPENAI_API_KEY (and OPENAI_BASE_URL) from the environment."""
    return OpenAIReasoningLoop(
        client=AsyncOpenAI(),
        model_name=settings.openai_model,
        temp=settings.temperature,
        max_tokens=settings.max_tokens,
        max_iterations=settings.max_iterations,
    )


def create_app(
    settings: Optional[BridgeSettings] = None,
    reasoning_loop_factory: ReasoningLoopFactory = openai_reasoning_loop,
    connection_factory: Optional[ConnectionFactory] = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Provider configuration. Loaded with ``load_settings()`` when None.
        reasoning_loop_factory: Builds the reasoning loop for a run.
        connection_factory: Builds the run's ConnectionSession. Defaults to the MCP-backed one.

    Returns:
        The application.
    """
    app = FastAPI(title="MCP Agent Bridge")
    app.state.settings = settings or load_settings()
    # Streaming runs outlive their response when the client disconnects
    app.state.background_runs = set()

    def new_session(sink: Optional[QueueSink] = None) -> RunSession:
        return RunSession(
            app.state.settings,
            reasoning_loop_factory(app.state.settings),
            connection_factory=connection_factory,
            sink=sink,
        )

    @app.get("/health")
    async def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/agent")
    async def run_agent(body: AgentRequest) -> JSONResponse:
        logger.info("Received objective: %s (tools: %s)", body.objective, sorted(body.categories()))
        try:
            session = new_session()
            result = await session.run(body.objective, body.categories())
        except ToolConnectionError as exc:
            return JSONResponse({"error": str(exc)}, status_code=503)
        except Exception:
            logger.exception("Agent request failed.")
            return JSONResponse({"error": GENERIC_ERROR_MESSAGE}, status_code=500)
        return JSONResponse({"result": result})

    @app.post("/api/agent/stream")
    async def stream_agent(body: AgentRequest, request: Request) -> Response:
        logger.info("Received streaming objective: %s (tools: %s)", body.objective, sorted(body.categories()))
        sink = QueueSink()
        try:
            session = new_session(sink)
        except Exception:
            logger.exception("Could not start streaming run.")
            return JSONResponse({"error": GENERIC_ERROR_MESSAGE}, status_code=500)

        task = asyncio.create_task(_drive(session, body))
        request.app.state.background_runs.add(task)
        task.add_done_callback(request.app.state.background_runs.discard)

        return StreamingResponse(
            sse_stream(sink),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )

    return app


async def _drive(session: RunSession, body: AgentRequest) -> None:
    try:
        await session.run(body.objective, body.categories())
    except Exception as exc:
        # Already logged by the session and sent to the client as the terminal error record
        logger.debug("Streaming run ended with %s.", type(exc).__name__)


def main() -> None:
    """Serve the bridge with uvicorn (``mcp-agent-bridge`` console script)."""
    import os

    import uvicorn

    setup_logging()
    uvicorn.run(
        create_app(),
        host=os.getenv("BRIDGE_HOST", "127.0.0.1"),
        port=int(os.getenv("BRIDGE_PORT", "8000")),
    )
