"""Request body generation from an operation's body schema.

A body schema that only declares ``additionalProperties`` says almost
nothing about the expected payload. ``generate_request_body`` hands such
schemas to a pluggable strategy that may propose named schemas to use
instead; ``guess_body_schemas`` matches schema names against the endpoint,
``no_guess`` disables the behaviour.
"""

import re
from typing import Any, Callable

from api_test_runner.generator.example import generate_example
from api_test_runner.models import SchemaDocument, TestCase

BodyStrategy = Callable[[dict, SchemaDocument, TestCase], list[dict]]

METHOD_KEYWORDS = {
    "POST": ("create", "add", "new"),
    "PUT": ("update", "modify", "edit"),
    "DELETE": ("delete", "remove"),
}

FALLBACK_CANDIDATES = 3


def no_guess(schema: dict, document: SchemaDocument, case: TestCase) -> list[dict]:
    return []


def guess_body_schemas(schema: dict, document: SchemaDocument, case: TestCase) -> list[dict]:
    """Propose named schemas for a generic body, most detailed first.

    Names are matched against keywords from the path and test name, then
    against verbs implied by the HTTP method; failing both, the most
    detailed schemas in the document are offered.
    """
    detailed = {
        name: s for name, s in document.schemas.items()
        if isinstance(s, dict) and isinstance(s.get("properties"), dict) and s["properties"]
    }

    keywords = [k for k in re.split(r"[/\-_]", case.path.lower()) if len(k) > 2]
    keywords += [k for k in re.split(r"[\s\-_]", case.name.lower()) if len(k) > 2]
    candidates = _matching(detailed, keywords)

    if not candidates and case.method:
        method_keywords = [case.method.lower(), *METHOD_KEYWORDS.get(case.method, ())]
        candidates = _matching(detailed, method_keywords)

    if not candidates:
        by_size = sorted(detailed.values(), key=lambda s: len(s["properties"]), reverse=True)
        candidates = by_size[:FALLBACK_CANDIDATES]

    return sorted(candidates, key=lambda s: len(s["properties"]), reverse=True)


def _matching(schemas: dict[str, dict], keywords: list[str]) -> list[dict]:
    return [s for name, s in schemas.items() if any(k in name.lower() for k in keywords)]


def is_generic_object(schema: dict) -> bool:
    return (
        schema.get("type") == "object"
        and bool(schema.get("additionalProperties"))
        and not schema.get("properties")
        and "$ref" not in schema
    )


def generate_request_body(
    case: TestCase,
    document: SchemaDocument,
    strategy: BodyStrategy = guess_body_schemas,
) -> Any:
    """Synthesize a whole request body for ``case``, or None if it has none."""
    schema = case.request_body
    if not isinstance(schema, dict):
        return None
    if is_generic_object(schema):
        candidates = strategy(schema, document, case)
        if candidates:
            return generate_example(candidates[0], document, 0)
    return generate_example(schema, document, 0)
