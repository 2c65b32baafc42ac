"""Result list helpers: JSON round-trip, views and summaries."""

from pathlib import Path

from pydantic import TypeAdapter

from api_test_runner.models import TestResult

_RESULTS = TypeAdapter(list[TestResult])


def dump_results(results: list[TestResult], indent: int | None = 2) -> str:
    return _RESULTS.dump_json(results, indent=indent).decode("utf-8")


def load_results(text: str | bytes) -> list[TestResult]:
    return _RESULTS.validate_json(text)


def save_results(results: list[TestResult], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_results(results), encoding="utf-8")


def latest_first(results: list[TestResult]) -> list[TestResult]:
    """Most recent results first; the input list is left untouched."""
    return sorted(results, key=lambda r: r.timestamp, reverse=True)


def summarize(results: list[TestResult]) -> dict[str, int]:
    passed = sum(1 for r in results if r.success)
    errors = sum(1 for r in results if r.error)
    return {
        "total": len(results),
        "passed": passed,
        "failed": len(results) - passed,
        "errors": errors,
    }
