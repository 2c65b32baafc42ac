"""Turns a raw HTTP exchange into a TestResult."""

import json
from typing import Any

from api_test_runner.models import HttpRequest, HttpResponse, TestCaseRef, TestResult


def is_success(status: int) -> bool:
    return 200 <= status < 300


def parse_body(text: str) -> Any:
    """XML stays text, JSON is decoded, anything else is returned as-is."""
    if not text:
        return ""
    stripped = text.strip()
    if stripped.startswith("<?xml") or stripped.startswith("<"):
        return text
    try:
        return json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return text


def classify_response(
    ref: TestCaseRef,
    request: HttpRequest,
    response: HttpResponse,
    elapsed_ms: float,
    combination: dict[str, Any],
    actual_body: Any = None,
) -> TestResult:
    return TestResult(
        test_case=ref,
        success=is_success(response.status),
        status=response.status,
        response_time=elapsed_ms,
        response=parse_body(response.body),
        response_headers=response.headers,
        size=len(response.body.encode("utf-8")),
        combination=combination,
        actual_body=actual_body,
        request_path=request.path,
        request_query=request.query,
        request_url=request.url,
    )


def failed_result(
    ref: TestCaseRef,
    error: str,
    elapsed_ms: float,
    combination: dict[str, Any],
    request: HttpRequest | None = None,
    actual_body: Any = None,
) -> TestResult:
    """Result for an execution that never produced a response."""
    return TestResult(
        test_case=ref,
        success=False,
        status=0,
        response_time=elapsed_ms,
        error=error or "Unknown error",
        combination=combination,
        actual_body=actual_body,
        request_path=request.path if request else None,
        request_query=request.query if request else None,
        request_url=request.url if request else None,
    )
