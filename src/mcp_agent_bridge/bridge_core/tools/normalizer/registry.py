"""Registry mapping tool names to their input normalizers."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ...exceptions import ToolNotFoundError, ToolRegistrationError
from ...logger import get_logger
from ..models import ToolDescriptor
from ..schema import SchemaValidator
from .rules import Normalization, Normalizer, no_argument, pass_through, single_field

logger = get_logger(__name__)


@dataclass(frozen=True)
class NormalizerEntry:
    """A normalizer together with the action label used in tool events."""

    normalizer: Normalizer
    action: str


class NormalizerRegistry:
    """
    A central registry of per-tool normalization rules.

    Tools without an explicit entry get a rule derived from their declared input
    schema, so new tools work without touching dispatch code.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self.entries: Dict[str, NormalizerEntry] = {}

    def register(self, tool_name: str, normalizer: Normalizer, action: Optional[str] = None) -> None:
        """Register a normalizer for a tool.

        Args:
            tool_name: Name of the tool as reported by its provider.
            normalizer: The normalizer to apply to the tool's input.
            action: Label for tool events. Defaults to the tool name.

        Raises:
            ToolRegistrationError: If the tool already has a normalizer.
        """
        if tool_name in self.entries:
            msg = f"Normalizer for tool '{tool_name}' is already registered."
            logger.error(msg)
            raise ToolRegistrationError(msg)

        self.entries[tool_name] = NormalizerEntry(normalizer=normalizer, action=action or tool_name)
        logger.debug("Registered normalizer '%s' for tool '%s'.", normalizer.__name__, tool_name)

    def unregister(self, tool_name: str) -> None:
        """Remove a tool's normalizer.

        Raises:
            ToolNotFoundError: If the tool has no registered normalizer.
        """
        if tool_name not in self.entries:
            raise ToolNotFoundError(f"No normalizer registered for tool '{tool_name}'.")
        del self.entries[tool_name]

    def resolve(self, descriptor: ToolDescriptor) -> NormalizerEntry:
        """Return the registered entry for a tool, or one derived from its schema.

        Args:
            descriptor: The tool to resolve.

        Returns:
            The normalizer entry to use.
        """
        entry = self.entries.get(descriptor.name)
        if entry is not None:
            return entry
        return NormalizerEntry(normalizer=self.infer_from_schema(descriptor.raw_schema), action=descriptor.name)

    def normalize(self, descriptor: ToolDescriptor, raw_input: Any) -> Normalization:
        """Normalize ``raw_input`` for the given tool."""
        return self.resolve(descriptor).normalizer(descriptor.name, raw_input)

    @staticmethod
    def infer_from_schema(schema: Any) -> Normalizer:
        """Pick a normalizer from a tool's declared input schema.

        Args:
            schema: The raw JSON schema, possibly None.

        Returns:
            ``no_argument`` for schemas without properties, ``single_field`` when one
            string field carries the input, ``pass_through`` otherwise.
        """
        if not isinstance(schema, dict):
            return pass_through()

        if not SchemaValidator.properties(schema) and not SchemaValidator.required(schema):
            return no_argument()

        primary = SchemaValidator.primary_string_field(schema)
        if primary is not None:
            return single_field(primary)

        return pass_through(required=SchemaValidator.required(schema))


def default_registry() -> NormalizerRegistry:
    """Registry with the rules for the echo server and the Stagehand browser tools."""
    registry = NormalizerRegistry()
    registry.register("echo_tool", single_field("message"), action="echo")
    registry.register("stagehand_navigate", single_field("url"), action="navigate")
    registry.register("stagehand_observe", single_field("instruction"), action="observe")
    # act also takes optional "variables"; a JSON object string keeps them
    registry.register("stagehand_act", single_field("action"), action="act")
    registry.register("stagehand_extract", no_argument(), action="extract")
    registry.register("screenshot", no_argument(), action="screenshot")
    return registry
