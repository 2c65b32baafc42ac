"""OpenAPI / Swagger document parser.

Parses OpenAPI 3.x and Swagger 2.0 documents into a ``SchemaDocument`` and
walks it into ``TestCase`` models. The two versions are not translated into
each other; consumers look schemas up in one merged map.
"""

import json
import logging
import re
from typing import Any

from api_test_runner.errors import ParseError
from api_test_runner.generator.example import generate_example
from api_test_runner.models import Parameter, SchemaDocument, SchemaInfo, TestCase

logger = logging.getLogger(__name__)

SUPPORTED_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH")

PATH_VARIABLE_RE = re.compile(r"\{([^}]+)\}")

# Swagger 2.0 keeps these on the parameter itself rather than under "schema".
SWAGGER_PARAM_SCHEMA_KEYS = ("type", "format", "enum", "default", "items", "example", "minimum", "maximum", "pattern")


def _load_json(text: str) -> dict:
    try:
        doc = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise ParseError(f"Failed to parse OpenAPI schema: {e}") from e
    if not isinstance(doc, dict):
        raise ParseError("Failed to parse OpenAPI schema: top level is not an object")
    return doc


# Documents are only JSON-checked; the helpers below coerce loosely typed
# values before they reach the models.


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _optional_text(value: Any) -> str | None:
    return None if value is None else str(value)


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _location(param: dict) -> str:
    location = param.get("in")
    return location if isinstance(location, str) else "query"


def _type_name(value: Any, default: str) -> str:
    """Schema ``type`` as one name; OpenAPI 3.1 lists take the first non-null entry."""
    if isinstance(value, list):
        names = [v for v in value if isinstance(v, str)]
        non_null = [v for v in names if v != "null"]
        return (non_null or names or [default])[0]
    if value is None:
        return default
    return str(value)


def parse_schema(text: str) -> SchemaDocument:
    """Parse raw schema text into a SchemaDocument. Raises ParseError."""
    doc = _load_json(text)
    info = doc.get("info") if isinstance(doc.get("info"), dict) else {}

    schemas: dict[str, dict] = {}
    definitions = doc.get("definitions")
    if isinstance(definitions, dict):
        schemas.update(definitions)
    components = doc.get("components")
    if isinstance(components, dict) and isinstance(components.get("schemas"), dict):
        schemas.update(components["schemas"])

    paths = doc.get("paths") if isinstance(doc.get("paths"), dict) else {}
    is_swagger = "swagger" in doc and "openapi" not in doc

    return SchemaDocument(
        version="swagger" if is_swagger else "openapi",
        spec_version=str(doc.get("swagger" if is_swagger else "openapi", "")),
        title=_text(info.get("title")),
        info_version=_text(info.get("version")),
        description=_optional_text(info.get("description")),
        paths={p: m for p, m in paths.items() if isinstance(m, dict)},
        schemas=schemas,
        raw=doc,
    )


def get_schema_info(text: str) -> SchemaInfo:
    """Summarize a schema: title, version and path/method counts."""
    doc = _load_json(text)
    info = doc.get("info") if isinstance(doc.get("info"), dict) else {}
    paths = doc.get("paths") if isinstance(doc.get("paths"), dict) else {}
    return SchemaInfo(
        title=_text(info.get("title")) or "Unknown API",
        version=_text(info.get("version")) or "Unknown",
        description=_optional_text(info.get("description")),
        path_count=len(paths),
        method_count=sum(len(m) for m in paths.values() if isinstance(m, dict)),
    )


def extract_path_variables(path: str) -> list[str]:
    """Distinct ``{name}`` tokens of a path template, left to right."""
    return list(dict.fromkeys(PATH_VARIABLE_RE.findall(path)))


def extract_test_cases(document: SchemaDocument) -> list[TestCase]:
    """Build one TestCase per path x supported method."""
    cases = []
    for path, methods in document.paths.items():
        shared_params = methods.get("parameters") if isinstance(methods.get("parameters"), list) else []
        for method, operation in methods.items():
            if method.upper() not in SUPPORTED_METHODS or not isinstance(operation, dict):
                continue
            cases.append(_build_case(path, method.upper(), operation, shared_params, document))

    logger.debug("Extracted %d test cases", len(cases))
    return cases


def _build_case(path: str, method: str, operation: dict, shared_params: list, document: SchemaDocument) -> TestCase:
    raw_params = _merge_parameters(shared_params, _as_list(operation.get("parameters")))
    body_schema = _request_body_schema(operation, raw_params)

    return TestCase(
        path=path,
        method=method,
        name=f"{method} {path}",
        description=_text(operation.get("summary")) or _text(operation.get("description")) or f"Test {method} {path}",
        parameters=_parse_parameters(raw_params),
        path_variables=extract_path_variables(path),
        body_variables=extract_body_variables(body_schema, document) if body_schema else {},
        request_body=body_schema,
        content_type=_detect_content_type(operation.get("requestBody")),
        expected_status=expected_status(operation.get("responses")),
        tags=[t for t in _as_list(operation.get("tags")) if isinstance(t, str)],
    )


def _merge_parameters(shared: list, own: list) -> list[dict]:
    merged: dict[tuple, dict] = {}
    for p in [*shared, *own]:
        if isinstance(p, dict) and "name" in p:
            merged[(_text(p["name"]), _location(p))] = p
    return list(merged.values())


def _parse_parameters(params: list[dict]) -> list[Parameter]:
    result = []
    for p in params:
        location = _location(p)
        schema = p.get("schema") if isinstance(p.get("schema"), dict) else {}
        if not schema and location != "body":
            schema = {k: p[k] for k in SWAGGER_PARAM_SCHEMA_KEYS if k in p}

        result.append(
            Parameter(
                name=_text(p["name"]),
                location=location,
                required=p.get("required") is True,
                param_type=_type_name(schema.get("type"), "object" if location == "body" else "string"),
                description=_text(p.get("description")),
                example=_parameter_example(p),
                schema=schema,
            )
        )
    return result


def _parameter_example(param: dict) -> Any:
    if "example" in param:
        return param["example"]
    examples = param.get("examples")
    if isinstance(examples, dict):
        for entry in examples.values():
            if isinstance(entry, dict) and "value" in entry:
                return entry["value"]
            break
    return None


def _request_body_schema(operation: dict, params: list[dict]) -> dict | None:
    """First media type schema (OpenAPI 3) or the ``in: body`` schema (Swagger 2)."""
    body = operation.get("requestBody")
    if isinstance(body, dict) and isinstance(body.get("content"), dict):
        for media in body["content"].values():
            if isinstance(media, dict) and isinstance(media.get("schema"), dict):
                return media["schema"]
            break
    for p in params:
        if p.get("in") == "body" and isinstance(p.get("schema"), dict):
            return p["schema"]
    return None


def _detect_content_type(body: dict | None) -> str:
    if not isinstance(body, dict) or not isinstance(body.get("content"), dict):
        return "application/json"
    for content_type in body["content"]:
        return content_type
    return "application/json"


def extract_body_variables(schema: dict, document: SchemaDocument) -> dict[str, Any]:
    """One synthesized value per declared property of an object body schema.

    A schema with only ``additionalProperties`` has no named variables.
    """
    if "$ref" in schema:
        resolved = document.resolve_ref(str(schema["$ref"]))
        properties = resolved.get("properties") if isinstance(resolved, dict) else None
    else:
        properties = schema.get("properties")
    if not isinstance(properties, dict):
        return {}
    return {name: generate_example(prop, document, 0) for name, prop in properties.items()}


def expected_status(responses: Any) -> int:
    """First 2xx status, else the first declared status, else 200."""
    if not isinstance(responses, dict) or not responses:
        return 200
    codes = [str(code) for code in responses]
    for code in codes:
        if code.startswith("2") and code.isdigit():
            return int(code)
    return int(codes[0]) if codes[0].isdigit() else 200
