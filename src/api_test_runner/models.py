"""Unified data models for parsed API documents and test runs.

Both the schema parser and the raw endpoint parser convert their input
into these models; the runner consumes them and produces ``TestResult``s.
"""

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

ANY_METHOD = "ANY"


class Parameter(BaseModel):
    """A single operation parameter (path, query, body, header or cookie)."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    location: str  # path / query / body / header / cookie
    required: bool = False
    param_type: str = "string"
    description: str = ""
    example: Any = None
    param_schema: dict = Field(default_factory=dict, alias="schema")


class SchemaDocument(BaseModel):
    """Version-agnostic view of a parsed OpenAPI 3.x / Swagger 2.0 document."""

    model_config = ConfigDict(frozen=True)

    version: Literal["openapi", "swagger"] = "openapi"
    spec_version: str = ""
    title: str = ""
    info_version: str = ""
    description: str | None = None
    paths: dict[str, dict] = Field(default_factory=dict)
    schemas: dict[str, dict] = Field(default_factory=dict)
    raw: dict = Field(default_factory=dict)

    def resolve_ref(self, ref: str) -> dict | None:
        """Look up a ``$ref`` by its final path segment."""
        return self.schemas.get(ref_name(ref))


def ref_name(ref: str) -> str:
    return ref.rsplit("/", 1)[-1]


class SchemaInfo(BaseModel):
    title: str
    version: str
    description: str | None = None
    path_count: int
    method_count: int


class ValidationReport(BaseModel):
    """Non-fatal outcome of a structural schema check."""

    valid: bool
    errors: list[str] = Field(default_factory=list)


class TestCaseRef(BaseModel):
    """Identity snapshot of a TestCase, stored on each result."""

    __test__ = False
    model_config = ConfigDict(frozen=True)

    path: str
    method: str | None = None
    name: str
    expected_status: int = 200

    @property
    def key(self) -> str:
        return case_key(self.method, self.path)


class TestResult(BaseModel):
    """Outcome of one concrete execution."""

    __test__ = False
    model_config = ConfigDict(frozen=True)

    test_case: TestCaseRef
    success: bool
    status: int
    response_time: float  # ms
    response: Any = None
    response_headers: dict[str, str] = Field(default_factory=dict)
    size: int = 0
    error: str | None = None
    combination: dict[str, Any] = Field(default_factory=dict)
    actual_body: Any = None
    request_path: str | None = None
    request_query: str | None = None
    request_url: str | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class TestCase(BaseModel):
    """One HTTP operation under test.

    ``method`` is None for raw endpoint lines without a declared verb; such
    cases are meant for ``TestRunner.run_all_methods``.
    """

    __test__ = False
    model_config = ConfigDict(frozen=True)

    path: str
    method: str | None = None
    name: str
    description: str = ""
    parameters: list[Parameter] = Field(default_factory=list)
    path_variables: list[str] = Field(default_factory=list)
    body_variables: dict[str, Any] = Field(default_factory=dict)
    request_body: dict | None = None
    content_type: str = "application/json"
    expected_status: int = 200
    tags: list[str] = Field(default_factory=list)
    results: list[TestResult] = Field(default_factory=list)

    @property
    def key(self) -> str:
        return case_key(self.method, self.path)

    def ref(self) -> TestCaseRef:
        return TestCaseRef(
            path=self.path,
            method=self.method,
            name=self.name,
            expected_status=self.expected_status,
        )

    def query_parameters(self) -> list[Parameter]:
        return [p for p in self.parameters if p.location.lower() == "query"]


def case_key(method: str | None, path: str) -> str:
    return f"{method or ANY_METHOD}-{path}"


# -- variable pools -----------------------------------------------------------


class VariableLayer(BaseModel):
    """Shared values (many per name) and per-TestCase overrides (one per name)."""

    shared: dict[str, list[Any]] = Field(default_factory=dict)
    overrides: dict[str, dict[str, Any]] = Field(default_factory=dict)

    @field_validator("shared", mode="before")
    @classmethod
    def _wrap_scalars(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {k: v if isinstance(v, list) else [v] for k, v in value.items()}
        return value

    def override_for(self, key: str, name: str) -> Any:
        return self.overrides.get(key, {}).get(name)

    def shared_values(self, name: str) -> list[Any]:
        return [v for v in self.shared.get(name, []) if not is_empty(v)]


class VariablePools(BaseModel):
    path: VariableLayer = Field(default_factory=VariableLayer)
    body: VariableLayer = Field(default_factory=VariableLayer)
    query: VariableLayer = Field(default_factory=VariableLayer)


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


# -- transport boundary -------------------------------------------------------


class HttpRequest(BaseModel):
    """Request description handed to the transport."""

    method: str
    base: str  # scheme://host[:port]
    path: str
    query: str = ""
    headers: dict[str, str] = Field(default_factory=dict)
    body: str | None = None
    timeout: int | None = None  # ms

    @property
    def url(self) -> str:
        url = f"{self.base}{self.path}"
        return f"{url}?{self.query}" if self.query else url


class HttpResponse(BaseModel):
    status: int
    headers: dict[str, str] = Field(default_factory=dict)
    body: str = ""

