from typing import Any, Dict, Iterable, List, Optional, Sequence, cast

from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion

from mcp_agent_bridge.bridge_core import ReasoningLoop, ReasoningLoopError, ToolInvoker
from mcp_agent_bridge.bridge_core.logger import get_logger
from .adapter import OpenAIToolAdapter

logger = get_logger(__name__)

DEFAULT_SYS_INSTRUCTION = (
    "Answer the user's request as well as you can using the available tools. "
    "Call one tool at a time and read its result before deciding the next step. "
    "If a tool result already answers the request, stop calling tools and give the final answer. "
    "Do not repeat a tool call whose result is sufficient."
)


class OpenAIReasoningLoop(ReasoningLoop):
    """
    Reasoning loop on OpenAI's function calling.

    The model picks tools, the invokers execute them one after the other, and the
    observations go back to the model until it answers without calling a tool.
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        model_name: str,
        sys_instruction: str = DEFAULT_SYS_INSTRUCTION,
        temp: float = 0.0,
        max_tokens: int = 3000,
        max_iterations: int = 10,
        max_retries: int = 3,
        base_retry_delay: float = 1.0,
    ):
        """
        Initializes the OpenAI reasoning loop.

        Args:
            client: The initialized AsyncOpenAI client.
            model_name: The identifier for the OpenAI model to use.
            sys_instruction: A system-level instruction for the model.
            temp: The temperature for text generation.
            max_tokens: The maximum number of tokens to generate per response.
            max_iterations: The maximum number of model turns before giving up.
            max_retries: Retries for a failing model request.
            base_retry_delay: Initial delay between retries in seconds.
        """
        super().__init__(max_retries=max_retries, base_retry_delay=base_retry_delay)
        self.client = client
        self.model = model_name
        self.sys_instruction = sys_instruction
        self.temperature = temp
        self.max_tokens = max_tokens
        self.max_iterations = max_iterations

    async def run(self, tools: Sequence[ToolInvoker], objective: str) -> str:
        """
        Works on the objective until the model gives a final answer.

        Args:
            tools: The invokers available in this run.
            objective: The user's request.

        Returns:
            The model's final answer.

        Raises:
            ReasoningLoopError: If no final answer is produced within ``max_iterations``.
        """
        messages: List[Dict[str, Any]] = [
            {"role": "system", "content": self.sys_instruction},
            {"role": "user", "content": objective},
        ]
        # OpenAI rejects an empty tools list
        tool_params = OpenAIToolAdapter.to_tool_params(tools) or None
        by_name = {tool.name: tool for tool in tools}

        for iteration in range(self.max_iterations):
            response = await self._execute_with_retry(self._complete, messages, tool_params)
            if not response.choices:
                raise ReasoningLoopError("Model returned no choices.")

            tool_calls = OpenAIToolAdapter.get_tool_calls(response)
            if not tool_calls:
                logger.info("Final answer after %d iteration(s).", iteration + 1)
                return response.choices[0].message.content or ""

            logger.info("Iteration %d/%d: %d tool call(s).", iteration + 1, self.max_iterations, len(tool_calls))
            messages.append(OpenAIToolAdapter.assistant_message(response))

            for tool_call in tool_calls:
                tool = by_name.get(tool_call.function.name)
                if tool is None:
                    observation = f"Error: Tool '{tool_call.function.name}' is not available."
                    logger.warning(observation)
                else:
                    observation = await tool.invoke(tool_call.function.arguments)
                messages.append(OpenAIToolAdapter.tool_message(tool_call.id, observation))

        msg = f"No final answer after {self.max_iterations} iterations."
        logger.error(msg)
        raise ReasoningLoopError(msg)

    async def _complete(self, messages: List[Dict[str, Any]], tools: Optional[List[Any]]) -> ChatCompletion:
        kwargs: Dict[str, Any] = {}
        if tools:
            kwargs["tools"] = tools
        return await self.client.chat.completions.create(
            model=self.model,
            messages=cast(Iterable[Any], messages),
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            **kwargs,
        )
