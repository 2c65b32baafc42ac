"""Structural checks for schema documents.

Problems are reported, not raised; callers decide whether to proceed.
"""

import json

from api_test_runner.models import ValidationReport


def validate_info(doc: dict) -> list[str]:
    errors = []
    if not doc.get("openapi") and not doc.get("swagger"):
        errors.append("Missing 'openapi' or 'swagger' version field")

    info = doc.get("info")
    if not info:
        errors.append("Missing 'info' section")
    elif not isinstance(info, dict):
        errors.append("Invalid 'info' section")
    else:
        if not info.get("title"):
            errors.append("Missing 'info.title'")
        if not info.get("version"):
            errors.append("Missing 'info.version'")
    return errors


def validate_paths(doc: dict) -> list[str]:
    paths = doc.get("paths")
    if not paths or not isinstance(paths, dict):
        return ["Missing or empty 'paths' section"]

    errors = []
    for path, methods in paths.items():
        if not isinstance(methods, dict):
            errors.append(f"Invalid path definition for '{path}'")
            continue
        for method, operation in methods.items():
            if method == "parameters" and isinstance(operation, list):
                continue
            if not isinstance(operation, dict):
                errors.append(f"Invalid operation definition for {method.upper()} {path}")
    return errors


def validate_schema(text: str) -> ValidationReport:
    """Run all structural checks on raw schema text."""
    try:
        doc = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        return ValidationReport(valid=False, errors=[f"Invalid JSON: {e}"])
    if not isinstance(doc, dict):
        return ValidationReport(valid=False, errors=["Invalid JSON: top level is not an object"])

    errors = []
    errors.extend(validate_info(doc))
    errors.extend(validate_paths(doc))
    return ValidationReport(valid=not errors, errors=errors)
