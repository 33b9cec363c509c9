from typing import Any, Dict, List, Optional, Set

import jsonref  # type: ignore

from ...exceptions import ToolRegistrationError
from ...logger import get_logger

logger = get_logger(__name__)


class SchemaValidator:
    """
    Helper class for inspecting and sanitizing the JSON schemas remote tools declare.
    """

    @staticmethod
    def assert_no_recursive_refs(schema: Dict[str, Any]) -> None:
        """
        Checks if the schema contains recursive references by traversing the graph.

        Args:
            schema: The JSON schema to check.

        Raises:
            ToolRegistrationError: If a recursive reference is found.
        """
        defs = schema.get("$defs", {}) or schema.get("definitions", {})

        def check(node: Any, path: Set[str]) -> None:
            if isinstance(node, dict):
                if "$ref" in node:
                    ref = node["$ref"]
                    if ref in path:
                        msg = f"Recursive structure detected: {ref}. Recursive tool inputs are not supported."
                        logger.error(msg)
                        raise ToolRegistrationError(msg)

                    # e.g. #/$defs/MyModel
                    if ref.startswith("#"):
                        parts = ref.split("/")
                        if len(parts) >= 3 and parts[-1] in defs:
                            check(defs[parts[-1]], path | {ref})
                    return

                for v in node.values():
                    check(v, path)
            elif isinstance(node, list):
                for item in node:
                    check(item, path)

        check(schema, set())

    @staticmethod
    def resolve_refs(schema: Any) -> Any:
        """Inline local ``$ref`` pointers so the schema is self-contained.

        Args:
            schema: The raw schema as reported by the provider.

        Returns:
            A plain dict without ``$ref`` entries, or the input if it is not a dict.
        """
        if not isinstance(schema, dict):
            return schema
        SchemaValidator.assert_no_recursive_refs(schema)
        # proxies=False ensures we get a plain dict back, not JsonRef objects
        return jsonref.replace_refs(schema, proxies=False)

    @staticmethod
    def sanitize_schema(schema: Any) -> Any:
        """
        Cleans up the schema for better compatibility with LLM providers.
        Removes $defs, $schema, $id, title.
        Simplifies Optional fields (anyOf with null).
        Enforces additionalProperties: false for objects that do not declare it.

        Args:
            schema: The JSON schema to sanitize.

        Returns:
            The sanitized schema.
        """
        if not isinstance(schema, dict):
            return schema

        new_schema = schema.copy()

        for key in ["$defs", "$schema", "$id", "title", "definitions"]:
            new_schema.pop(key, None)

        # Optional[X] arrives as anyOf [X, null]
        if "anyOf" in new_schema:
            non_null = [x for x in new_schema["anyOf"] if isinstance(x, dict) and x.get("type") != "null"]
            if len(non_null) == 1:
                merged = non_null[0].copy()
                if "description" in new_schema:
                    merged["description"] = new_schema["description"]
                return SchemaValidator.sanitize_schema(merged)

        if new_schema.get("type") == "object" and "additionalProperties" not in new_schema:
            new_schema["additionalProperties"] = False

        for key, value in new_schema.items():
            if key == "properties" and isinstance(value, dict):
                # Property names are user data, only their schemas are sanitized
                new_schema[key] = {name: SchemaValidator.sanitize_schema(prop) for name, prop in value.items()}
            elif isinstance(value, dict):
                new_schema[key] = SchemaValidator.sanitize_schema(value)
            elif isinstance(value, list):
                new_schema[key] = [
                    SchemaValidator.sanitize_schema(item) if isinstance(item, dict) else item for item in value
                ]

        return new_schema

    @staticmethod
    def to_parameters(schema: Any) -> Dict[str, Any]:
        """Turn a provider's raw input schema into a function-calling parameters object.

        Args:
            schema: The raw schema, possibly None.

        Returns:
            An object schema, ``{"type": "object", "properties": {}}`` when nothing is declared.
        """
        if not isinstance(schema, dict) or not schema:
            return {"type": "object", "properties": {}}
        parameters = SchemaValidator.sanitize_schema(SchemaValidator.resolve_refs(schema))
        parameters.setdefault("type", "object")
        parameters.setdefault("properties", {})
        return parameters

    @staticmethod
    def properties(schema: Any) -> Dict[str, Any]:
        """Declared properties of an object schema (empty for anything else)."""
        if not isinstance(schema, dict):
            return {}
        props = schema.get("properties")
        return props if isinstance(props, dict) else {}

    @staticmethod
    def required(schema: Any) -> List[str]:
        """Required property names of an object schema."""
        if not isinstance(schema, dict):
            return []
        required = schema.get("required")
        return [r for r in required if isinstance(r, str)] if isinstance(required, list) else []

    @staticmethod
    def primary_string_field(schema: Any) -> Optional[str]:
        """The single string field a tool is built around, if there is exactly one.

        A schema qualifies when exactly one required property is a string, or,
        without required properties, when its only property is a string.

        Args:
            schema: The raw schema.

        Returns:
            The field name or None.
        """
        props = SchemaValidator.properties(schema)
        required = SchemaValidator.required(schema)

        def is_string(name: str) -> bool:
            prop = props.get(name)
            return isinstance(prop, dict) and prop.get("type") == "string"

        if required:
            if len(required) == 1 and is_string(required[0]):
                return required[0]
            return None
        if len(props) == 1:
            (name,) = props
            return name if is_string(name) else None
        return None
