"""Run settings and variable pools, loaded from YAML and the environment."""

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from api_test_runner.errors import ConfigurationError
from api_test_runner.models import VariablePools

DEFAULT_BASE_URL = "http://localhost:8080"

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8,application/signed-exchange;v=b3;q=0.7",
    "Accept-Language": "fr-FR,fr;q=0.9,en-US;q=0.8,en;q=0.7",
    "Accept-Encoding": "gzip, deflate, br, zstd",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-User": "?1",
    "Sec-Fetch-Dest": "document",
    "Connection": "keep-alive",
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/138.0.0.0 Safari/537.36",
    "sec-ch-ua": '"Not)A;Brand";v="8", "Chromium";v="138", "Google Chrome";v="138"',
    "sec-ch-ua-mobile": "?0",
    "sec-ch-ua-platform": '"Windows"',
}


def _default_base_url() -> str:
    return os.getenv("API_BASE_URL", DEFAULT_BASE_URL)


class RunSettings(BaseModel):
    """Options accepted by the test runner.

    ``headers``, when non-empty, replaces ``DEFAULT_HEADERS`` entirely.
    ``timeout`` is handed to the transport; the runner does not enforce it.
    """

    base_url: str = Field(default_factory=_default_base_url)
    headers: dict[str, str] = Field(default_factory=dict)
    delay_between_requests: int = 0  # ms
    timeout: int = 30000  # ms
    workers: int = 1
    use_random_values: bool = False
    allow_delete_in_all_methods: bool = False
    use_schema_examples: bool = True

    def effective_headers(self) -> dict[str, str]:
        return dict(self.headers) if self.headers else dict(DEFAULT_HEADERS)


class RunConfig(BaseModel):
    settings: RunSettings = Field(default_factory=RunSettings)
    variables: VariablePools = Field(default_factory=VariablePools)


def load_config(path: Path | None) -> RunConfig:
    """Load a YAML run configuration; a missing path yields the defaults.

    Expected layout::

        settings:
          base_url: https://api.example.com
          delay_between_requests: 100
        variables:
          path:
            shared: {id: ["1", "2"]}
            overrides: {"GET-/users/{id}": {id: "42"}}
    """
    if path is None:
        return RunConfig()
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot read config {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config {path} must be a mapping")
    try:
        return RunConfig(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid config {path}: {e}") from e


def parse_header_lines(lines: tuple[str, ...] | list[str]) -> dict[str, str]:
    """Turn ``"Name: value"`` strings into a header dict."""
    headers = {}
    for line in lines:
        name, sep, value = line.partition(":")
        if not sep or not name.strip():
            raise ConfigurationError(f"Malformed header {line!r}, expected 'Name: value'")
        headers[name.strip()] = value.strip()
    return headers
