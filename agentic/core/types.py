"""
Core Types and Data Structures

Defines the fundamental types shared by the registry, guard, sandbox and
context tracker. Definitions are immutable once registered; counters are the
only mutable state and live behind the registry.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# Free-form bag passed to every tool call. Conventional keys:
# working_directory, storage, logger, conversation_state, sandbox.
ToolContext = dict[str, Any]

ToolFunction = Callable[..., Awaitable[Any] | Any]


class ToolCost(str, Enum):
    """Cost hint for tool execution."""

    CHEAP = "cheap"
    MODERATE = "moderate"
    EXPENSIVE = "expensive"


class ToolExample(BaseModel):
    """Example usage of a tool, shown to the model."""

    scenario: str
    params: Any = None
    expected_result: str

    model_config = ConfigDict(frozen=True)


@dataclass(frozen=True)
class ToolDefinition:
    """
    Complete definition of a tool.

    Contains everything needed for:
    - the LLM to understand and call the tool (name, description, parameters)
    - the registry to validate and run it (execute, schema)
    - ranking and display (category, cost, examples)
    """

    name: str
    description: str
    parameters: dict[str, Any]  # JSON Schema: {"type": "object", "properties": ..., "required": ...}
    execute: ToolFunction  # (params, context) -> result

    category: str | None = None
    cost: ToolCost | None = None
    examples: list[ToolExample] | None = None

    # Capability schema used by the guard for parameter validation
    schema: Any = None

    def _input_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {
            "type": "object",
            "properties": self.parameters.get("properties", {}),
        }
        if self.parameters.get("required") is not None:
            schema["required"] = self.parameters["required"]
        return schema

    def to_openai_format(self) -> dict[str, Any]:
        """Convert to OpenAI function calling format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self._input_schema(),
            },
        }

    def to_anthropic_format(self) -> dict[str, Any]:
        """Convert to Anthropic tool format."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self._input_schema(),
        }

    def to_dict(self) -> dict[str, Any]:
        """Export the definition without its execute callable."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
            "category": self.category,
            "cost": self.cost.value if isinstance(self.cost, ToolCost) else self.cost,
            "examples": (
                [e.model_dump() if isinstance(e, BaseModel) else e for e in self.examples]
                if self.examples
                else None
            ),
        }


@dataclass
class UsageStats:
    """Raw per-tool counters. Durations are in milliseconds."""

    calls: int = 0
    failures: int = 0
    total_duration: float = 0.0

    @property
    def success_rate(self) -> float:
        if self.calls == 0:
            return 0.0
        return (self.calls - self.failures) / self.calls

    @property
    def average_duration(self) -> float | None:
        if self.calls == 0:
            return None
        return self.total_duration / self.calls

    def reset(self) -> None:
        self.calls = 0
        self.failures = 0
        self.total_duration = 0.0

    def snapshot(self) -> "ToolUsageStats":
        return ToolUsageStats(
            calls=self.calls,
            failures=self.failures,
            success_rate=self.success_rate,
            average_duration=self.average_duration,
        )


class ToolUsageStats(BaseModel):
    """Usage statistics for a tool, computed from live counters."""

    calls: int
    failures: int
    success_rate: float = Field(ge=0.0, le=1.0)
    average_duration: float | None = None

    model_config = ConfigDict(frozen=True)


@dataclass
class BatchCallError:
    """Marker placed in a batch result slot whose call failed."""

    name: str
    error: str
    exception: Exception | None = field(default=None, repr=False)


# ============================================================
# Context tracking
# ============================================================

ContextPriority = Literal["high", "medium", "low"]


class DynamicContentItem(BaseModel):
    """A piece of content injected into a conversation."""

    content: str
    title: str | None = None
    weight: float | None = None
    id: str | None = None
    category: str | None = None
    source: str | None = None
    priority: ContextPriority | None = None
    timestamp: datetime | None = None


class TrackedContextItem(DynamicContentItem):
    """Context item with tracking metadata."""

    id: str
    hash: str
    position: int
    injected_at: datetime = Field(default_factory=datetime.now)
