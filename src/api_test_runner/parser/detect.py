"""Auto-detect the kind of API document and normalize it to text."""

import json
from pathlib import Path

import yaml


def _load_mapping(text: str) -> dict | None:
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError:
            return None
    return data if isinstance(data, dict) else None


def detect_format(text: str) -> str:
    """Detect whether text is a schema document or a raw endpoint list.

    Returns: 'schema' or 'endpoints'.
    """
    data = _load_mapping(text)
    if data is not None and ("openapi" in data or "swagger" in data or "paths" in data):
        return "schema"
    return "endpoints"


def load_document(file_path: Path, fmt: str = "auto") -> tuple[str, str]:
    """Read a document and return ``(format, text)``.

    YAML schemas are converted to JSON text so they can go through the
    JSON-only schema parser.
    """
    text = file_path.read_text(encoding="utf-8")
    if fmt == "auto":
        fmt = detect_format(text)

    if fmt == "schema":
        try:
            json.loads(text)
        except (json.JSONDecodeError, ValueError):
            data = _load_mapping(text)
            if data is not None:
                text = json.dumps(data, default=str)
    return fmt, text
