"""Example value synthesis: produces one representative value per schema node."""

import logging
from typing import Any

from api_test_runner.models import SchemaDocument, ref_name

logger = logging.getLogger(__name__)

MAX_DEPTH = 10
ELLIPSIS = "..."

FORMAT_EXAMPLES = {
    "date-time": "2025-08-02T16:56:40.491Z",
    "date": "2025-08-02",
    "email": "user@example.com",
    "uuid": "123e4567-e89b-12d3-a456-426614174000",
}


def generate_example(schema: Any, document: SchemaDocument | None = None, depth: int = 0) -> Any:
    """Return a value that looks like an instance of ``schema``.

    Never raises. Beyond ``MAX_DEPTH`` nested levels the literal ``"..."`` is
    returned, which keeps self-referential ``$ref`` chains finite.
    """
    if depth > MAX_DEPTH:
        return ELLIPSIS
    if not isinstance(schema, dict):
        return "example"

    if "$ref" in schema:
        return _resolve_ref(str(schema["$ref"]), document, depth)

    if "example" in schema:
        return schema["example"]
    if "default" in schema:
        return schema["default"]

    enum = schema.get("enum")
    schema_type = _single_type(schema.get("type"))
    if schema_type == "string":
        fmt = schema.get("format")
        if isinstance(fmt, str) and fmt in FORMAT_EXAMPLES:
            return FORMAT_EXAMPLES[fmt]
        if isinstance(enum, list) and enum:
            return enum[0]
        return "string"
    if schema_type in ("integer", "number"):
        return 0
    if schema_type == "boolean":
        return True
    if schema_type == "array":
        if "items" not in schema:
            return []
        return [generate_example(schema["items"], document, depth + 1)]
    if schema_type == "object":
        return _object_example(schema, document, depth)

    if isinstance(enum, list) and enum:
        return enum[0]
    return "example"


def _single_type(value: Any) -> Any:
    # OpenAPI 3.1 allows ["string", "null"]
    if isinstance(value, list):
        return next((v for v in value if v != "null"), None)
    return value


def _resolve_ref(ref: str, document: SchemaDocument | None, depth: int) -> Any:
    target = document.resolve_ref(ref) if document is not None else None
    if target is None:
        logger.debug("Unresolved reference %s", ref)
        return f"{{{ref_name(ref)}}}"
    return generate_example(target, document, depth + 1)


def _object_example(schema: dict, document: SchemaDocument | None, depth: int) -> Any:
    properties = schema.get("properties")
    if isinstance(properties, dict) and properties:
        return {
            name: generate_example(prop, document, depth + 1)
            for name, prop in properties.items()
        }

    additional = schema.get("additionalProperties")
    if not additional:
        return {}
    value = generate_example(additional if isinstance(additional, dict) else {}, document, depth + 1)
    return additional_properties_example(value)


def additional_properties_example(value: Any) -> dict:
    """Wrap a synthesized map value into a plausible-looking map instance."""
    if isinstance(value, list):
        return {"items": value, "data": value, "list": value}
    if isinstance(value, dict):
        return {"item1": value, "item2": value, "data": value}
    is_number = isinstance(value, (int, float)) and not isinstance(value, bool)
    return {
        "id": 1 if is_number else "example",
        "name": "example" if isinstance(value, str) else "Example Name",
        "value": value,
        "enabled": isinstance(value, bool),
    }
