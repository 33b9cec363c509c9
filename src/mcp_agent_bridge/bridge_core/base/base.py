"""Core abstractions for the collaborators a run depends on."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Sequence, TypeVar

from ..logger import get_logger
from ..tools.models import ToolDescriptor

if TYPE_CHECKING:
    from ..tools.execution import ToolInvoker

logger = get_logger(__name__)

T = TypeVar("T")


class ToolProvider(ABC):
    """A remote service exposing a fixed set of callable tools."""

    name: str

    @abstractmethod
    async def connect(self) -> None:
        """Open the transport and initialize the session."""

    @abstractmethod
    async def list_tools(self) -> List[ToolDescriptor]:
        """Describe the tools the provider offers."""

    @abstractmethod
    async def call(self, tool_name: str, payload: Dict[str, Any]) -> Any:
        """Call a tool and return its result."""

    @abstractmethod
    async def close(self) -> None:
        """Release the transport. Must be safe to call more than once."""


class ReasoningLoop(ABC):
    """Abstract base class for the component that decides which tool to call next.

    Implementations receive one ToolInvoker per available tool and return the
    final answer for the objective.
    """

    def __init__(self, max_retries: int = 3, base_retry_delay: float = 1.0):
        self.max_retries = max_retries
        self.base_retry_delay = base_retry_delay

    @abstractmethod
    async def run(self, tools: Sequence["ToolInvoker"], objective: str) -> str:
        """Work on the objective with the given tools and return the final answer."""

    async def _execute_with_retry(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """
        Executes a model call with retry logic.

        Args:
            func: The asynchronous function to execute.
            *args: Positional arguments for the function.
            **kwargs: Keyword arguments for the function.

        Returns:
            The result of the function call.

        Raises:
            Exception: The last encountered exception if all retries fail.
        """
        delay = self.base_retry_delay
        for attempt in range(self.max_retries + 1):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                if attempt == self.max_retries:
                    raise

                logger.warning("Model API error (retry %d/%d): %s. Waiting %ss...", attempt + 1, self.max_retries, e, delay)
                await asyncio.sleep(delay)
                delay *= 2  # Exponential backoff

        msg = f"Failed to get response after {self.max_retries} retries."
        logger.error(msg)
        raise TimeoutError(msg)
