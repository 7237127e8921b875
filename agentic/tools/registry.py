"""
Tool Registry

Schema-driven registration, discovery and execution of tools.

Design decisions:
- Name is the only identity; re-registering a name replaces the tool and
  starts its statistics over
- Definitions are shape-checked with pydantic on registration
- Guard and sandbox are optional collaborators attached after construction
- Errors raised by a tool reach the caller unchanged; the registry only
  counts them
"""

import asyncio
import inspect
import json
import time
import typing
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import TYPE_CHECKING, Any, Literal, get_type_hints

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from agentic.core.exceptions import (
    ToolArgumentsError,
    ToolNotFoundError,
    ToolRegistrationError,
)
from agentic.core.types import (
    BatchCallError,
    ToolContext,
    ToolCost,
    ToolDefinition,
    ToolExample,
    ToolUsageStats,
    UsageStats,
)
from agentic.observability.logging import StructuredLogger, get_logger
from agentic.tools.sandbox import call_tool

if TYPE_CHECKING:
    from agentic.safety.tool_guard import ToolGuard
    from agentic.tools.sandbox import ToolSandbox


# ============================================================
# Registration shape
# ============================================================


class _ParametersShape(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["object"]
    properties: dict[str, Any] = Field(default_factory=dict)
    required: list[str] | None = None


class _ToolShape(BaseModel):
    model_config = ConfigDict(extra="allow", arbitrary_types_allowed=True)

    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    parameters: _ParametersShape
    execute: Callable[..., Any]
    category: str | None = None
    cost: ToolCost | None = None
    examples: list[ToolExample] | None = None


def _check_shape(tool: ToolDefinition) -> None:
    try:
        _ToolShape.model_validate(
            {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.parameters,
                "execute": tool.execute,
                "category": tool.category,
                "cost": tool.cost,
                "examples": tool.examples,
            }
        )
    except ValidationError as e:
        violations = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ToolRegistrationError(
            f'Invalid tool definition for "{tool.name}": {violations}',
            tool_name=tool.name,
            cause=e,
        ) from e


# ============================================================
# Function → tool
# ============================================================


def _type_to_schema(python_type: Any) -> dict[str, Any]:
    """Convert a Python type hint to a JSON Schema fragment."""
    origin = typing.get_origin(python_type)
    args = typing.get_args(python_type)

    # Optional[X] / X | None
    if args and type(None) in args:
        non_none = [a for a in args if a is not type(None)]
        if len(non_none) == 1:
            return _type_to_schema(non_none[0])

    if origin is list:
        item_type = args[0] if args else str
        return {"type": "array", "items": _type_to_schema(item_type)}

    if origin is dict:
        return {"type": "object"}

    if origin is Literal:
        return {"type": "string", "enum": [str(a) for a in args]}

    type_map = {
        str: {"type": "string"},
        int: {"type": "number"},
        float: {"type": "number"},
        bool: {"type": "boolean"},
        list: {"type": "array"},
        dict: {"type": "object"},
    }

    return dict(type_map.get(python_type, {"type": "string"}))


def _extract_schema_from_function(func: Callable) -> dict[str, Any]:
    """
    Build a parameters schema from a function signature.

    A parameter named ``context`` is reserved for the execution context and
    left out of the schema.
    """
    sig = inspect.signature(func)
    hints = get_type_hints(func) if hasattr(func, "__annotations__") else {}

    properties = {}
    required = []

    for param_name, param in sig.parameters.items():
        if param_name in ("self", "cls", "context"):
            continue
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue

        prop = _type_to_schema(hints.get(param_name, str))
        prop.setdefault("description", param_name.replace("_", " "))
        if param.default is not inspect.Parameter.empty:
            prop["default"] = param.default
        else:
            required.append(param_name)
        properties[param_name] = prop

    return {
        "type": "object",
        "properties": properties,
        "required": required,
    }


def _adapt_function(func: Callable) -> Callable[..., Any]:
    """Turn f(**params[, context]) into execute(params, context)."""
    wants_context = "context" in inspect.signature(func).parameters

    async def execute(params: Mapping[str, Any], context: ToolContext | None = None) -> Any:
        kwargs = dict(params or {})
        if wants_context:
            kwargs["context"] = context
        result = func(**kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result

    execute.__name__ = getattr(func, "__name__", "execute")
    execute.__doc__ = func.__doc__
    return execute


def function_to_tool(
    func: Callable,
    name: str | None = None,
    description: str | None = None,
    category: str | None = None,
    cost: ToolCost | str | None = None,
    examples: list[ToolExample] | None = None,
    schema: Any = None,
) -> ToolDefinition:
    """Build a ToolDefinition from a plain or async function."""
    tool_name = name or func.__name__
    doc = inspect.getdoc(func)
    tool_desc = description or (doc.split("\n")[0] if doc else f"Execute {tool_name}")

    return ToolDefinition(
        name=tool_name,
        description=tool_desc,
        parameters=_extract_schema_from_function(func),
        execute=_adapt_function(func),
        category=category,
        cost=ToolCost(cost) if cost is not None else None,
        examples=examples,
        schema=schema,
    )


def tool(
    name: str | None = None,
    description: str | None = None,
    category: str | None = None,
    cost: ToolCost | str | None = None,
    schema: Any = None,
) -> Callable:
    """
    Decorator attaching a ToolDefinition to a function.

    Usage:
        @tool(name="search", category="web")
        async def search(query: str, limit: int = 5) -> list[str]:
            '''Search the web.'''
            ...

        registry.register(search.tool_definition)
    """

    def decorator(func: Callable) -> Callable:
        func.tool_definition = function_to_tool(
            func,
            name=name,
            description=description,
            category=category,
            cost=cost,
            schema=schema,
        )
        return func

    return decorator


# ============================================================
# Registry
# ============================================================


class ToolRegistry:
    """
    Central registry for tools.

    Provides:
    - Tool registration and discovery
    - Guarded, optionally sandboxed execution
    - Per-tool usage statistics
    - Export in OpenAI and Anthropic formats
    """

    def __init__(
        self,
        context: ToolContext | None = None,
        logger: StructuredLogger | None = None,
    ):
        self._tools: dict[str, ToolDefinition] = {}
        self._usage_stats: dict[str, UsageStats] = {}
        self._context: ToolContext = dict(context or {})
        self._logger = (logger or get_logger()).child("ToolRegistry")

        self._guard: "ToolGuard | None" = None
        self._sandbox: "ToolSandbox | None" = None

        self._logger.debug("Created ToolRegistry")

    # ---- collaborators -------------------------------------------------

    def with_security(self, guard: "ToolGuard") -> "ToolRegistry":
        """Attach a guard; returns self for chaining."""
        self._guard = guard
        self._logger.debug("Security guard configured")
        return self

    def with_sandbox(self, sandbox: "ToolSandbox") -> "ToolRegistry":
        """Attach a sandbox; returns self for chaining."""
        self._sandbox = sandbox
        self._logger.debug("Sandbox configured")
        return self

    @property
    def security_guard(self) -> "ToolGuard | None":
        return self._guard

    @property
    def sandbox(self) -> "ToolSandbox | None":
        return self._sandbox

    # ---- registration --------------------------------------------------

    def register(self, definition: ToolDefinition) -> None:
        """
        Register a tool definition.

        Raises:
            ToolRegistrationError: if the definition is malformed
        """
        _check_shape(definition)

        if definition.name in self._tools:
            self._logger.warning(f'Tool "{definition.name}" already registered, overwriting')

        self._tools[definition.name] = definition
        self._usage_stats[definition.name] = UsageStats()

        self._logger.debug(
            "Registered tool",
            name=definition.name,
            category=definition.category,
        )

    def register_all(self, definitions: Iterable[ToolDefinition]) -> None:
        """Register several tools at once."""
        definitions = list(definitions)
        self._logger.debug("Registering multiple tools", count=len(definitions))
        for definition in definitions:
            self.register(definition)

    def register_function(self, func: Callable, **kwargs: Any) -> ToolDefinition:
        """
        Register a function as a tool.

        Alternative to using the @tool decorator.
        """
        definition = getattr(func, "tool_definition", None) or function_to_tool(func, **kwargs)
        self.register(definition)
        return definition

    def unregister(self, name: str) -> bool:
        """Unregister a tool."""
        if name not in self._tools:
            return False

        del self._tools[name]
        self._usage_stats.pop(name, None)
        self._logger.debug("Unregistered tool", name=name)
        return True

    def clear(self) -> None:
        """Remove every tool and its statistics."""
        self._logger.debug("Clearing all tools")
        self._tools.clear()
        self._usage_stats.clear()

    # ---- lookup --------------------------------------------------------

    def get(self, name: str) -> ToolDefinition | None:
        """Get a tool by name."""
        return self._tools.get(name)

    def get_all(self) -> list[ToolDefinition]:
        """Get all registered tools in registration order."""
        return list(self._tools.values())

    def get_by_category(self, category: str) -> list[ToolDefinition]:
        return [t for t in self._tools.values() if t.category == category]

    def get_categories(self) -> list[str]:
        """Sorted unique categories."""
        return sorted({t.category for t in self._tools.values() if t.category})

    def get_definitions(self) -> list[dict[str, Any]]:
        """Tool definitions without their execute callables."""
        return [t.to_dict() for t in self._tools.values()]

    def has(self, name: str) -> bool:
        return name in self._tools

    def count(self) -> int:
        return len(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(list(self._tools.values()))

    # ---- execution -----------------------------------------------------

    async def execute(self, name: str, params: Any = None) -> Any:
        """
        Execute a tool by name.

        Runs the guard (if attached), then the tool, through the sandbox if
        one is attached.

        Raises:
            ToolNotFoundError: unknown tool
            ToolNotAllowedError / ToolValidationError: guard rejection
            SandboxError subclasses: resource limits
            Any exception raised by the tool itself, unchanged
        """
        definition = self._tools.get(name)
        if definition is None:
            raise ToolNotFoundError(f'Tool "{name}" not found', tool_name=name)

        params = {} if params is None else params
        self._logger.debug("Executing tool", name=name)

        stats = self._usage_stats[name]
        stats.calls += 1
        start_time = time.perf_counter()

        try:
            if self._guard is not None:
                params = self._guard.enforce(definition, params)

            if self._sandbox is not None:
                result = await self._sandbox.execute(definition, params, dict(self._context))
            else:
                result = await call_tool(definition, params, dict(self._context))
        except asyncio.CancelledError:
            stats.failures += 1
            self._logger.warning("Tool execution cancelled by caller", name=name)
            raise
        except Exception as e:
            stats.failures += 1
            self._logger.error("Tool execution failed", error=e, name=name)
            raise
        finally:
            stats.total_duration += (time.perf_counter() - start_time) * 1000

        self._logger.debug(
            "Tool execution succeeded",
            name=name,
            duration_ms=(time.perf_counter() - start_time) * 1000,
        )
        return result

    async def execute_from_json(self, name: str, json_string: str) -> Any:
        """
        Parse untrusted JSON arguments and execute.

        With a guard attached the arguments are screened for
        prototype-pollution keys; without one they are parsed as-is.
        """
        if self._guard is None:
            return await self.execute(name, json.loads(json_string))

        parsed = self._guard.parse_tool_arguments(name, json_string)
        if not parsed.success:
            raise ToolArgumentsError(
                parsed.error or "Invalid tool arguments",
                tool_name=name,
            )
        return await self.execute(name, parsed.data)

    async def execute_batch(
        self,
        calls: Iterable[tuple[str, Any] | Mapping[str, Any]],
    ) -> list[Any]:
        """
        Execute calls one after another, in order.

        A failing call does not stop the batch; its slot holds a
        BatchCallError instead of a result.
        """
        calls = list(calls)
        self._logger.debug("Executing batch", count=len(calls))

        results: list[Any] = []
        for call in calls:
            if isinstance(call, Mapping):
                name, params = call["name"], call.get("params")
            else:
                name, params = call

            try:
                results.append(await self.execute(name, params))
            except Exception as e:
                results.append(BatchCallError(name=name, error=str(e), exception=e))

        return results

    # ---- export --------------------------------------------------------

    def to_openai_format(self) -> list[dict[str, Any]]:
        """Export tools in OpenAI function calling format."""
        return [t.to_openai_format() for t in self._tools.values()]

    def to_anthropic_format(self) -> list[dict[str, Any]]:
        """Export tools in Anthropic tool format."""
        return [t.to_anthropic_format() for t in self._tools.values()]

    def get_schemas_for_llm(self, format: str = "openai") -> list[dict[str, Any]]:
        """Get tool schemas in an LLM-specific format ("openai" or "anthropic")."""
        if format == "openai":
            return self.to_openai_format()
        elif format == "anthropic":
            return self.to_anthropic_format()
        else:
            raise ValueError(f"Unknown format: {format}")

    # ---- statistics ----------------------------------------------------

    def get_usage_stats(self) -> dict[str, ToolUsageStats]:
        """Fresh statistics for every registered tool."""
        return {name: stats.snapshot() for name, stats in self._usage_stats.items()}

    def get_most_used(self, limit: int = 5) -> list[ToolDefinition]:
        """Tools ordered by call count, ties in registration order."""
        ranked = sorted(
            self._usage_stats.items(),
            key=lambda item: item[1].calls,
            reverse=True,
        )
        return [self._tools[name] for name, _ in ranked[:limit] if name in self._tools]

    def reset_stats(self) -> None:
        """Zero every tool's counters."""
        self._logger.debug("Resetting usage statistics")
        for stats in self._usage_stats.values():
            stats.reset()

    # ---- context -------------------------------------------------------

    def update_context(self, **values: Any) -> None:
        """Shallow-merge values into the execution context."""
        self._context = {**self._context, **values}
        self._logger.debug("Updated context", keys=list(values))

    @property
    def context(self) -> ToolContext:
        """Copy of the execution context."""
        return dict(self._context)
