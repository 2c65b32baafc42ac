"""Request construction: turns a TestCase plus resolved values into an HttpRequest."""

import json
import re
from typing import Any
from urllib.parse import quote, urlsplit

from pydantic import BaseModel, Field

from api_test_runner.generator.body import BodyStrategy, generate_request_body, guess_body_schemas
from api_test_runner.models import HttpRequest, TestCase
from api_test_runner.runner.combinations import Combination
from api_test_runner.runner.context import ExecutionContext
from api_test_runner.runner.variables import resolve_body_variables, resolve_path_variables, resolve_query_parameters

BODY_METHODS = ("POST", "PUT", "PATCH")

PATH_TOKEN_RE = re.compile(r"\{([^}]+)\}")


class ResolvedValues(BaseModel):
    """Flattened values for one execution, reusable across HTTP methods."""

    path: dict[str, str] = Field(default_factory=dict)
    query: dict[str, str] = Field(default_factory=dict)
    body: Any = None
    combination: dict[str, Any] = Field(default_factory=dict)


def split_base_url(base_url: str) -> tuple[str, str]:
    """Split a base URL into ``scheme://host[:port]`` and a path prefix."""
    parts = urlsplit(base_url)
    if not parts.scheme or not parts.netloc:
        return base_url.rstrip("/"), ""
    return f"{parts.scheme}://{parts.netloc}", parts.path.rstrip("/")


def substitute_path(template: str, values: dict[str, str]) -> str:
    """Replace ``{name}`` tokens; tokens without a value stay literal."""
    return PATH_TOKEN_RE.sub(lambda m: values.get(m.group(1), m.group(0)), template)


def build_query_string(params: dict[str, str]) -> str:
    return "&".join(f"{quote(str(k), safe='')}={quote(str(v), safe='')}" for k, v in params.items())


def resolve_body(
    case: TestCase,
    context: ExecutionContext,
    combination: dict[str, Any] | None = None,
    strategy: BodyStrategy = guess_body_schemas,
) -> Any:
    """Body from the case's named variables, else synthesized from its schema."""
    if case.body_variables:
        return resolve_body_variables(case, context.pools, combination)
    if case.request_body and context.document is not None and context.settings.use_schema_examples:
        return generate_request_body(case, context.document, strategy)
    return None


def resolve_values(
    case: TestCase,
    context: ExecutionContext,
    combination: Combination | None = None,
    path_values: dict[str, str] | None = None,
    body_values: dict[str, Any] | None = None,
    query_values: dict[str, Any] | None = None,
    strategy: BodyStrategy = guess_body_schemas,
) -> ResolvedValues:
    """Resolve path, query and body values for one execution.

    Explicit ``path_values`` / ``body_values`` replace the pools' answer for
    the names they carry, the way a single run from an editor does.
    """
    combination = combination or Combination()
    path = resolve_path_variables(
        case, context.pools, combination.path, context.settings.use_random_values
    )
    for name, value in (path_values or {}).items():
        if name in path and value not in (None, ""):
            path[name] = str(value)

    body = resolve_body(case, context, combination.body, strategy)
    if body_values and isinstance(body, dict):
        body.update({k: v for k, v in body_values.items() if k in case.body_variables})

    return ResolvedValues(
        path=path,
        query=resolve_query_parameters(case, context.pools, query_values),
        body=body,
        combination={**combination.body, **path},
    )


def build_request(method: str, case: TestCase, values: ResolvedValues, context: ExecutionContext) -> HttpRequest:
    """Assemble the request description for ``method`` against ``case.path``."""
    settings = context.settings
    base, prefix = split_base_url(settings.base_url)

    final_path = substitute_path(case.path, values.path)
    if not final_path.startswith("/"):
        final_path = f"/{final_path}"

    headers = settings.effective_headers()
    body = None
    if method in BODY_METHODS:
        if values.body is not None:
            body = json.dumps(values.body, separators=(",", ":"))
        headers["Content-Length"] = str(len(body.encode("utf-8")) if body else 0)
        if body is not None and not any(k.lower() == "content-type" for k in headers):
            headers["Content-Type"] = case.content_type

    return HttpRequest(
        method=method,
        base=base,
        path=f"{prefix}{final_path}" or "/",
        query=build_query_string(values.query),
        headers=headers,
        body=body,
        timeout=settings.timeout,
    )
