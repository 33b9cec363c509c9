"""Re-export the collaborator interfaces a run is built from."""

from .base import ToolProvider, ReasoningLoop

__all__ = [
    "ToolProvider",
    "ReasoningLoop",
]
