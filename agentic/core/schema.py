"""
Parameter Schemas

A small validation seam between the guard and whatever library describes
a tool's parameters. The guard only needs validate(value) -> SchemaResult;
pydantic backs the default implementation.
"""

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, TypeAdapter, ValidationError


@dataclass
class SchemaViolation:
    """One offending field."""

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


@dataclass
class SchemaResult:
    """Outcome of a schema validation."""

    success: bool
    data: Any = None
    violations: list[SchemaViolation] = field(default_factory=list)


@runtime_checkable
class ValidationSchema(Protocol):
    """Anything that can validate tool parameters."""

    def validate(self, value: Any) -> SchemaResult: ...


class PydanticSchema:
    """
    ValidationSchema backed by a pydantic TypeAdapter.

    Accepts any type pydantic understands (BaseModel subclasses, TypedDicts,
    dataclasses). Validated models are dumped back to dicts so tools always
    receive plain mappings; unknown keys are dropped.
    """

    def __init__(self, model: Any):
        self.model = model
        self._adapter = TypeAdapter(model)

    def validate(self, value: Any) -> SchemaResult:
        try:
            data = self._adapter.validate_python(value)
        except ValidationError as e:
            violations = [
                SchemaViolation(
                    path=".".join(str(part) for part in err["loc"]),
                    message=err["msg"],
                )
                for err in e.errors()
            ]
            return SchemaResult(success=False, violations=violations)

        if isinstance(data, BaseModel):
            data = data.model_dump()
        return SchemaResult(success=True, data=data)

    def __repr__(self) -> str:
        return f"PydanticSchema({getattr(self.model, '__name__', self.model)!r})"


def as_schema(schema: Any) -> ValidationSchema:
    """Wrap a type in PydanticSchema unless it already validates."""
    if isinstance(schema, ValidationSchema) and not isinstance(schema, type):
        return schema
    return PydanticSchema(schema)
