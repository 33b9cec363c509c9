"""Pure input normalizers.

A normalizer turns whatever the model emitted for a tool (a plain string, a JSON
string, a dict) into the payload the tool actually accepts. It never raises: the
outcome is a ``Normalization`` that holds either the call or the error.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence

from ...exceptions import InputShapeError
from ..models import NormalizedCall
from ...logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Normalization:
    """Tagged outcome of a normalizer: exactly one of ``call`` and ``error`` is set."""

    call: Optional[NormalizedCall] = None
    error: Optional[InputShapeError] = None
    details: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.call is not None

    def unwrap(self) -> NormalizedCall:
        """Return the call or raise the captured InputShapeError."""
        if self.call is None:
            raise self.error or InputShapeError("<unknown>", "unknown")
        return self.call

    @classmethod
    def success(cls, tool_name: str, payload: Dict[str, Any], details: Optional[str] = None) -> "Normalization":
        return cls(call=NormalizedCall(tool_name=tool_name, payload=payload), details=details)

    @classmethod
    def failure(cls, tool_name: str, raw_input: Any, message: Optional[str] = None) -> "Normalization":
        error = InputShapeError(tool_name, type(raw_input).__name__, message)
        logger.warning("Rejected input for '%s': %s", tool_name, error)
        return cls(error=error)


Normalizer = Callable[[str, Any], Normalization]


def _try_parse_object(text: str) -> Optional[Dict[str, Any]]:
    try:
        parsed = json.loads(text)
    except (ValueError, RecursionError):
        return None
    return parsed if isinstance(parsed, dict) else None


def single_field(field: str, parse_json: bool = True) -> Normalizer:
    """Normalizer for tools built around one required string field.

    A string is used as a JSON object only when it decodes to one whose ``field``
    is a string. Any other string, including JSON with a non-string ``field``,
    becomes ``{field: string}``, so string input is never rejected.

    Args:
        field: Name of the primary field (``url``, ``message``...).
        parse_json: Try to read a string as a JSON object before wrapping it.

    Returns:
        The normalizer.
    """

    def normalize(tool_name: str, raw_input: Any) -> Normalization:
        if isinstance(raw_input, str):
            if parse_json:
                parsed = _try_parse_object(raw_input)
                if parsed is not None and isinstance(parsed.get(field), str):
                    return Normalization.success(tool_name, parsed, parsed[field])
            # Not a matching JSON object: the whole string is the primary field
            logger.debug("Wrapping plain string input for '%s' as '%s'.", tool_name, field)
            return Normalization.success(tool_name, {field: raw_input}, raw_input)

        if isinstance(raw_input, Mapping) and isinstance(raw_input.get(field), str):
            return Normalization.success(tool_name, dict(raw_input), raw_input[field])

        return Normalization.failure(tool_name, raw_input)

    normalize.__name__ = f"single_field_{field}"
    return normalize


def no_argument() -> Normalizer:
    """Normalizer for tools that take no input; whatever the caller sent is ignored."""

    def normalize(tool_name: str, raw_input: Any) -> Normalization:
        if raw_input not in (None, "", {}):
            logger.debug("Ignoring input for no-argument tool '%s'.", tool_name)
        return Normalization.success(tool_name, {})

    normalize.__name__ = "no_argument"
    return normalize


def pass_through(required: Sequence[str] = ()) -> Normalizer:
    """Normalizer for multi-field tools: objects (or JSON object strings) go through as they are.

    Args:
        required: Keys the payload must contain.

    Returns:
        The normalizer.
    """
    required = tuple(required)

    def normalize(tool_name: str, raw_input: Any) -> Normalization:
        if raw_input is None or raw_input == "":
            payload: Optional[Dict[str, Any]] = {}
        elif isinstance(raw_input, str):
            payload = _try_parse_object(raw_input)
        elif isinstance(raw_input, Mapping):
            payload = dict(raw_input)
        else:
            payload = None

        if payload is None:
            return Normalization.failure(tool_name, raw_input)

        missing = [key for key in required if key not in payload]
        if missing:
            return Normalization.failure(
                tool_name, raw_input, f"Tool '{tool_name}' is missing required fields: {', '.join(missing)}"
            )

        details = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str) if payload else None
        return Normalization.success(tool_name, payload, details)

    normalize.__name__ = "pass_through"
    return normalize
