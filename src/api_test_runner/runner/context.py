"""Explicit execution context handed to every runner call."""

from pydantic import BaseModel, Field

from api_test_runner.config import RunConfig, RunSettings
from api_test_runner.models import SchemaDocument, VariablePools


class ExecutionContext(BaseModel):
    """Settings, variable pools and the loaded document for one run.

    The runner only reads from the context.
    """

    settings: RunSettings = Field(default_factory=RunSettings)
    document: SchemaDocument | None = None
    pools: VariablePools = Field(default_factory=VariablePools)

    @classmethod
    def from_config(cls, config: RunConfig, document: SchemaDocument | None = None) -> "ExecutionContext":
        return cls(settings=config.settings, document=document, pools=config.variables)
