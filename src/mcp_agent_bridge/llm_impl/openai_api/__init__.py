from .core import OpenAIReasoningLoop, DEFAULT_SYS_INSTRUCTION
from .adapter import OpenAIToolAdapter

__all__ = ["OpenAIReasoningLoop", "OpenAIToolAdapter", "DEFAULT_SYS_INSTRUCTION"]
