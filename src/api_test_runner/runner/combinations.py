"""Cartesian expansion of multi-valued shared variables."""

from typing import Any

from pydantic import BaseModel, Field

from api_test_runner.models import TestCase, VariableLayer, VariablePools


class Combination(BaseModel):
    """One concrete assignment for the multi-valued variables of a TestCase."""

    path: dict[str, Any] = Field(default_factory=dict)
    body: dict[str, Any] = Field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {**self.body, **self.path}


def expand_variable(names: list[str], layer: VariableLayer) -> list[dict[str, Any]]:
    """Depth-first product over the names holding more than one shared value.

    Names keep their given order; single-valued names are left to the
    resolver. Returns ``[]`` when no name is multi-valued.
    """
    axes = [(name, layer.shared_values(name)) for name in names]
    axes = [(name, values) for name, values in axes if len(values) > 1]
    if not axes:
        return []

    combinations: list[dict[str, Any]] = []

    def _walk(current: dict[str, Any], index: int) -> None:
        if index == len(axes):
            combinations.append(dict(current))
            return
        name, values = axes[index]
        for value in values:
            current[name] = value
            _walk(current, index + 1)

    _walk({}, 0)
    return combinations


def expand_combinations(case: TestCase, pools: VariablePools) -> list[Combination]:
    """Every path combination paired with every body combination.

    Always returns at least one entry: ``max(1, |path|) * max(1, |body|)``.
    """
    path_combos = expand_variable(case.path_variables, pools.path) or [{}]
    body_combos = expand_variable(list(case.body_variables), pools.body) or [{}]
    return [Combination(path=p, body=b) for p in path_combos for b in body_combos]
