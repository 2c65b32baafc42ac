"""Raw endpoint list parser.

Accepts plain text with one endpoint per line, either ``[METHOD] /path`` or
a bare ``/path``. Bare paths produce TestCases without a method, to be
exercised with every verb by ``TestRunner.run_all_methods``.
"""

import re

from api_test_runner.models import TestCase
from api_test_runner.parser.swagger import extract_path_variables

METHOD_LINE_RE = re.compile(r"^\[([A-Za-z]+)\]\s+(/\S*)$")
BARE_LINE_RE = re.compile(r"^(/\S*)$")


def parse_endpoints(text: str) -> list[TestCase]:
    """Parse endpoint lines into TestCases; unrecognized lines are skipped."""
    cases = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        case = _parse_line(line)
        if case is not None:
            cases.append(case)
    return cases


def _parse_line(line: str) -> TestCase | None:
    match = METHOD_LINE_RE.match(line)
    if match:
        method, path = match.group(1).upper(), match.group(2)
        return TestCase(
            path=path,
            method=method,
            name=f"{method} {path}",
            description=f"Test {method} {path}",
            path_variables=extract_path_variables(path),
        )

    match = BARE_LINE_RE.match(line)
    if match:
        path = match.group(1)
        return TestCase(
            path=path,
            name=path,
            description=f"Test all methods on {path}",
            path_variables=extract_path_variables(path),
        )
    return None
