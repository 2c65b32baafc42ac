"""Exceptions raised by api-test-runner."""


class ApiTestRunnerError(Exception):
    """Base exception for all api-test-runner errors."""

    pass


class ParseError(ApiTestRunnerError):
    """Raised when a schema document is not valid JSON."""

    pass


class TransportError(ApiTestRunnerError):
    """Raised by a transport when a request cannot be completed."""

    def __init__(self, url: str, message: str = "") -> None:
        self.url = url
        super().__init__(message or f"Request to {url} failed")


class ConfigurationError(ApiTestRunnerError):
    """Raised for unreadable or malformed run configuration."""

    pass
