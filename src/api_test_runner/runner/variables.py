"""Variable value resolution across the three pool layers.

For every variable the first non-empty value wins, in this order:

1. the per-TestCase override (keyed by ``TestCase.key``)
2. the value picked by the current combination, if any
3. the first non-empty value in the shared pool
4. the TestCase's schema-derived default
"""

import json
import secrets
import string
from typing import Any

from api_test_runner.models import Parameter, TestCase, VariableLayer, VariablePools, is_empty

RANDOM_TOKEN_LENGTH = 8
RANDOM_ALPHABET = string.ascii_letters + string.digits


def random_token(length: int = RANDOM_TOKEN_LENGTH) -> str:
    return "".join(secrets.choice(RANDOM_ALPHABET) for _ in range(length))


def _pick(layer: VariableLayer, key: str, name: str, combination: dict | None, default: Any) -> Any:
    override = layer.override_for(key, name)
    if not is_empty(override):
        return override
    if combination and name in combination:
        return combination[name]
    shared = layer.shared_values(name)
    if shared:
        return shared[0]
    return default


def resolve_path_variables(
    case: TestCase,
    pools: VariablePools,
    combination: dict[str, Any] | None = None,
    use_random_values: bool = False,
) -> dict[str, str]:
    """Resolve every path variable of ``case``.

    An empty value is kept as-is and substituted literally unless
    ``use_random_values`` is set, in which case a random token is used.
    """
    resolved = {}
    for name in case.path_variables:
        value = _pick(pools.path, case.key, name, combination, "")
        value = "" if value is None else str(value)
        if not value and use_random_values:
            value = random_token()
        resolved[name] = value
    return resolved


def resolve_body_variables(
    case: TestCase,
    pools: VariablePools,
    combination: dict[str, Any] | None = None,
) -> dict[str, Any]:
    return {
        name: _pick(pools.body, case.key, name, combination, default)
        for name, default in case.body_variables.items()
    }


def query_default(param: Parameter) -> Any:
    if param.example is not None:
        return param.example
    for key in ("example", "default"):
        if key in param.param_schema:
            return param.param_schema[key]
    return ""


def format_query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ",".join(format_query_value(v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value)
    return str(value)


def resolve_query_parameters(
    case: TestCase,
    pools: VariablePools,
    explicit: dict[str, Any] | None = None,
) -> dict[str, str]:
    """Resolve declared query parameters, then apply explicit values.

    Optional parameters that resolve to nothing are left out; explicit
    values that are empty are ignored.
    """
    params: dict[str, str] = {}
    for param in case.query_parameters():
        value = _pick(pools.query, case.key, param.name, None, query_default(param))
        if is_empty(value) and not param.required:
            continue
        params[param.name] = "" if value is None else format_query_value(value)

    for name, value in (explicit or {}).items():
        if not is_empty(value):
            params[name] = format_query_value(value)
    return params
