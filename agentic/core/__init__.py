"""
Core Module

Contains the shared types and the exception hierarchy used by every other
module in the package.
"""

from agentic.core.exceptions import (
    AgenticError,
    ConcurrencyLimitError,
    ExecutionCancelledError,
    OutputSizeExceededError,
    SandboxError,
    ToolArgumentsError,
    ToolError,
    ToolNotAllowedError,
    ToolNotFoundError,
    ToolRegistrationError,
    ToolTimeoutError,
    ToolValidationError,
)
from agentic.core.schema import (
    PydanticSchema,
    SchemaResult,
    SchemaViolation,
    ValidationSchema,
    as_schema,
)
from agentic.core.types import (
    BatchCallError,
    ContextPriority,
    DynamicContentItem,
    ToolContext,
    ToolCost,
    ToolDefinition,
    ToolExample,
    ToolUsageStats,
    TrackedContextItem,
    UsageStats,
)

__all__ = [
    # Exceptions
    "AgenticError",
    "ConcurrencyLimitError",
    "ExecutionCancelledError",
    "OutputSizeExceededError",
    "SandboxError",
    "ToolArgumentsError",
    "ToolError",
    "ToolNotAllowedError",
    "ToolNotFoundError",
    "ToolRegistrationError",
    "ToolTimeoutError",
    "ToolValidationError",
    # Schemas
    "PydanticSchema",
    "SchemaResult",
    "SchemaViolation",
    "ValidationSchema",
    "as_schema",
    # Types
    "BatchCallError",
    "ContextPriority",
    "DynamicContentItem",
    "ToolContext",
    "ToolCost",
    "ToolDefinition",
    "ToolExample",
    "ToolUsageStats",
    "TrackedContextItem",
    "UsageStats",
]
