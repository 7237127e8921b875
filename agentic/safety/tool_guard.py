"""
Tool Guard

Policy gate in front of tool execution.

Features:
- Allow/deny list membership checks
- Schema-based parameter validation
- Safe parsing of untrusted JSON tool arguments, rejecting
  prototype-pollution payloads
- Event callbacks for security monitoring
"""

import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from agentic.config.settings import ToolSecurityConfig
from agentic.core.exceptions import ToolNotAllowedError, ToolValidationError
from agentic.core.schema import as_schema
from agentic.core.types import ToolDefinition
from agentic.observability.events import emit_event
from agentic.observability.logging import StructuredLogger, get_logger

T = TypeVar("T")

DANGEROUS_KEYS = frozenset({"__proto__", "constructor", "prototype"})

# Nesting beyond this depth is not scanned; keeps hostile payloads from
# driving unbounded recursion.
MAX_SCAN_DEPTH = 10


@dataclass
class ToolValidationResult(Generic[T]):
    """Result of parameter validation or argument parsing."""

    success: bool
    data: T | None = None
    error: str | None = None
    violations: list[str] | None = None


@dataclass
class ToolGuardEvents:
    """Optional callbacks fired on security events."""

    on_validation_failed: Callable[[str, str], Any] | None = None
    on_execution_blocked: Callable[[str, str], Any] | None = None
    on_prototype_pollution: Callable[[str], Any] | None = None


def has_prototype_pollution(value: Any, depth: int = 0) -> bool:
    """Look for dangerous keys in nested dicts and lists."""
    if depth > MAX_SCAN_DEPTH:
        return False

    if isinstance(value, dict):
        for key, item in value.items():
            if key in DANGEROUS_KEYS:
                return True
            if isinstance(item, (dict, list)) and has_prototype_pollution(item, depth + 1):
                return True
    elif isinstance(value, list):
        for item in value:
            if isinstance(item, (dict, list)) and has_prototype_pollution(item, depth + 1):
                return True

    return False


class ToolGuard:
    """
    Security validation for tool execution.

    Usage:
        guard = ToolGuard(ToolSecurityConfig(denied_tools=["shell"]))

        result = guard.validate_params("read_file", {"path": "/tmp/x"}, ReadFileParams)
        if guard.is_tool_allowed("read_file"):
            ...
    """

    def __init__(
        self,
        config: ToolSecurityConfig | None = None,
        logger: StructuredLogger | None = None,
        events: ToolGuardEvents | None = None,
    ):
        self._config = (config or ToolSecurityConfig()).model_copy(deep=True)
        self._logger = (logger or get_logger()).child("ToolGuard")
        self._events = events or ToolGuardEvents()

    def validate_params(
        self,
        tool_name: str,
        params: Any,
        schema: Any,
    ) -> ToolValidationResult[Any]:
        """
        Validate tool parameters against a schema.

        Args:
            tool_name: Tool being called
            params: Raw parameters
            schema: A ValidationSchema or a type pydantic can validate

        Returns:
            Result holding the validated (possibly coerced) params, or the
            per-field violations
        """
        if not self._config.enabled or not self._config.validate_params:
            return ToolValidationResult(success=True, data=params)

        outcome = as_schema(schema).validate(params)
        if outcome.success:
            return ToolValidationResult(success=True, data=outcome.data)

        violations = [str(v) for v in outcome.violations]
        joined = "; ".join(violations)

        self._logger.warning(
            f'Tool validation failed for "{tool_name}"',
            violations=violations,
        )
        emit_event(
            self._logger,
            self._events.on_validation_failed,
            tool_name,
            f"Schema validation failed: {joined}",
        )

        return ToolValidationResult(
            success=False,
            error=f"Parameter validation failed: {joined}",
            violations=violations,
        )

    def parse_tool_arguments(
        self,
        tool_name: str,
        json_string: str,
    ) -> ToolValidationResult[dict[str, Any]]:
        """Safely parse JSON tool arguments coming from a model."""
        if not self._config.enabled:
            return ToolValidationResult(success=True, data=json.loads(json_string))

        try:
            parsed = json.loads(json_string)
        except (TypeError, ValueError, RecursionError) as e:
            self._logger.warning(
                f'JSON parsing failed for tool "{tool_name}"',
                error=str(e),
            )
            emit_event(
                self._logger,
                self._events.on_validation_failed,
                tool_name,
                f"JSON parsing failed: {e}",
            )
            return ToolValidationResult(
                success=False,
                error="Invalid JSON in tool arguments",
            )

        if not isinstance(parsed, dict):
            return ToolValidationResult(
                success=False,
                error="Tool arguments must be a JSON object",
            )

        if has_prototype_pollution(parsed):
            self._logger.error(f'Prototype pollution attempt detected for tool "{tool_name}"')
            emit_event(self._logger, self._events.on_prototype_pollution, tool_name)
            return ToolValidationResult(
                success=False,
                error="Invalid tool arguments: potentially malicious content detected",
            )

        return ToolValidationResult(success=True, data=parsed)

    def is_tool_allowed(self, tool_name: str) -> bool:
        """Check if a tool may execute. Deny list wins over allow list."""
        if not self._config.enabled:
            return True

        if tool_name in self._config.denied_tools:
            self._logger.warning(f'Tool "{tool_name}" blocked by deny list')
            emit_event(
                self._logger,
                self._events.on_execution_blocked,
                tool_name,
                "Tool is in deny list",
            )
            return False

        allowed = self._config.allowed_tools
        if allowed is not None and tool_name not in allowed:
            self._logger.warning(f'Tool "{tool_name}" not in allow list')
            emit_event(
                self._logger,
                self._events.on_execution_blocked,
                tool_name,
                "Tool is not in allow list",
            )
            return False

        return True

    def enforce(self, tool: ToolDefinition, params: Any) -> Any:
        """
        Apply the allow/deny policy and the tool's schema.

        Returns the params the tool should run with; raises
        ToolNotAllowedError or ToolValidationError otherwise.
        """
        if not self.is_tool_allowed(tool.name):
            raise ToolNotAllowedError(
                f'Tool "{tool.name}" is not allowed',
                tool_name=tool.name,
            )

        if tool.schema is None:
            return params

        validation = self.validate_params(tool.name, params, tool.schema)
        if not validation.success:
            raise ToolValidationError(
                validation.error or "Parameter validation failed",
                tool_name=tool.name,
                violations=validation.violations,
            )
        return validation.data

    @property
    def config(self) -> ToolSecurityConfig:
        """Copy of the current configuration."""
        return self._config.model_copy(deep=True)

    def update_config(self, **changes: Any) -> None:
        """Replace configuration fields."""
        self._config = self._config.merged(**changes)

    def deny_tool(self, tool_name: str) -> None:
        """Add a tool to the deny list."""
        if tool_name not in self._config.denied_tools:
            self._config.denied_tools.append(tool_name)

    def allow_tool(self, tool_name: str) -> None:
        """Remove a tool from the deny list."""
        if tool_name in self._config.denied_tools:
            self._config.denied_tools.remove(tool_name)

    def is_enabled(self) -> bool:
        return self._config.enabled

    def set_enabled(self, enabled: bool) -> None:
        self._config = self._config.merged(enabled=enabled)
