"""
Exception Hierarchy

Defines all exceptions raised by the tool orchestration core.

Design decisions:
- All exceptions inherit from AgenticError for easy catching
- Exceptions carry structured context, not just messages
- Error codes enable programmatic handling
- Errors raised by a tool itself are never wrapped in these types
"""

from typing import Any


class AgenticError(Exception):
    """
    Base exception for all agentic errors.

    Provides structured error information including:
    - Human-readable message
    - Machine-readable error code
    - Additional context for debugging
    """

    error_code: str = "AGENTIC_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.error_code
        self.context = context or {}
        self.__cause__ = cause

    def to_dict(self) -> dict[str, Any]:
        """Serialize exception for logs and API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "context": self.context,
        }


# ============================================================
# Registry Errors
# ============================================================


class ToolError(AgenticError):
    """Base error for tool-related issues."""

    error_code = "TOOL_ERROR"

    def __init__(self, message: str, *, tool_name: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.tool_name = tool_name


class ToolRegistrationError(ToolError):
    """Tool definition is malformed."""

    error_code = "TOOL_REGISTRATION_ERROR"


class ToolNotFoundError(ToolError):
    """Requested tool does not exist."""

    error_code = "TOOL_NOT_FOUND"


# ============================================================
# Policy / Validation Errors
# ============================================================


class ToolNotAllowedError(ToolError):
    """Tool blocked by the deny list or missing from the allow list."""

    error_code = "TOOL_NOT_ALLOWED"


class ToolValidationError(ToolError):
    """Tool parameters failed schema validation."""

    error_code = "TOOL_VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        *,
        violations: list[str] | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.violations = violations or []


class ToolArgumentsError(ToolValidationError):
    """Untrusted JSON arguments could not be parsed or were rejected."""

    error_code = "TOOL_ARGUMENTS_ERROR"


# ============================================================
# Sandbox Errors
# ============================================================


class SandboxError(ToolError):
    """Base error for sandbox resource limits."""

    error_code = "SANDBOX_ERROR"


class ConcurrencyLimitError(SandboxError):
    """Too many executions in flight."""

    error_code = "CONCURRENCY_LIMIT_EXCEEDED"

    def __init__(self, message: str, *, active_count: int, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.active_count = active_count


class ToolTimeoutError(SandboxError):
    """Tool did not settle before its deadline."""

    error_code = "TOOL_TIMEOUT"

    def __init__(self, message: str, *, timeout_ms: int, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.timeout_ms = timeout_ms


class OutputSizeExceededError(SandboxError):
    """Tool result is larger than the configured limit."""

    error_code = "OUTPUT_SIZE_EXCEEDED"

    def __init__(self, message: str, *, size: int, max_size: int, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.size = size
        self.max_size = max_size


class ExecutionCancelledError(SandboxError):
    """Execution was cancelled before the tool settled."""

    error_code = "EXECUTION_CANCELLED"

    def __init__(self, message: str, *, execution_id: str, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.execution_id = execution_id
