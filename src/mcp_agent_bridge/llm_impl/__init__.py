"""Concrete reasoning loop implementations."""

from .openai_api import DEFAULT_SYS_INSTRUCTION, OpenAIReasoningLoop, OpenAIToolAdapter

__all__ = ["DEFAULT_SYS_INSTRUCTION", "OpenAIReasoningLoop", "OpenAIToolAdapter"]
