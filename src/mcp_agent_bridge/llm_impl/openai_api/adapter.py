from typing import Any, Dict, List, Sequence

from openai.types.chat import ChatCompletion, ChatCompletionToolParam

from mcp_agent_bridge.bridge_core import ToolInvoker


class OpenAIToolAdapter:
    """Converts between ToolInvokers and the OpenAI function-calling wire format."""

    @staticmethod
    def to_tool_params(tools: Sequence[ToolInvoker]) -> List[ChatCompletionToolParam]:
        """Describe invokers as OpenAI function tools.

        Args:
            tools: The invokers of the run.

        Returns:
            One function tool definition per invoker.
        """
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.parameters,
                },
            }
            for tool in tools
        ]

    @staticmethod
    def get_tool_calls(response: ChatCompletion) -> List[Any]:
        """Extract function tool calls from a chat completion response.

        Args:
            response: The chat completion response from OpenAI.

        Returns:
            The function tool calls, empty when the model answered directly.
        """
        if not response.choices:
            return []
        tool_calls = response.choices[0].message.tool_calls or []
        return [tc for tc in tool_calls if tc.type == "function"]

    @staticmethod
    def assistant_message(response: ChatCompletion) -> Dict[str, Any]:
        """The assistant turn of a response, ready to be appended to the history."""
        return response.choices[0].message.model_dump(exclude_none=True)

    @staticmethod
    def tool_message(call_id: str, observation: str) -> Dict[str, Any]:
        """Build a tool response message for the OpenAI API."""
        return {"role": "tool", "tool_call_id": call_id, "content": observation}
