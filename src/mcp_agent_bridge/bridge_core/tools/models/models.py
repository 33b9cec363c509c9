"""Data models shared by the normalizer, the invoker and the event log."""

import time
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ToolDescriptor(BaseModel):
    """
    Identity and documentation of a remote tool as reported by its provider.

    Attributes:
        name: The unique name of the tool.
        description: What the tool does, as declared by the provider.
        raw_schema: The provider's JSON schema for the tool input, untouched.
        provider: Name of the provider that owns the tool.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    raw_schema: Optional[Any] = None
    provider: str = ""


class NormalizedCall(BaseModel):
    """The validated argument object actually sent to a remote tool."""

    model_config = ConfigDict(frozen=True)

    tool_name: str
    payload: Dict[str, Any] = Field(default_factory=dict)


def now_ms() -> int:
    """Current wall-clock time in milliseconds."""
    return int(time.time() * 1000)


class ToolEvent(BaseModel):
    """
    One record per dispatched tool call, written before the remote call completes.

    Attributes:
        tool: Name of the tool that was called.
        action: Short label of what the call does (``navigate``, ``echo``...).
        details: The primary argument of the call, if any.
        timestamp: Milliseconds since the epoch.
    """

    model_config = ConfigDict(frozen=True)

    tool: str
    action: str
    details: Optional[str] = None
    timestamp: int = Field(default_factory=now_ms)


class StreamRecord(BaseModel):
    """A unit of the streaming response: zero or more events, then one completion or error."""

    model_config = ConfigDict(frozen=True)

    type: Literal["event", "completion", "error"]
    data: Union[ToolEvent, str]

    @property
    def is_terminal(self) -> bool:
        return self.type != "event"
