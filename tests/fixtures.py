"""
Test Fixtures

Helpers shared by the test modules.
"""

import asyncio
from typing import Any, Callable

from agentic.core.types import ToolDefinition


def make_tool(
    name: str,
    execute: Callable[..., Any] | None = None,
    **kwargs: Any,
) -> ToolDefinition:
    """Build a minimal valid tool; by default echoes params["input"]."""

    async def default_execute(params, context=None):
        return {"result": params.get("input")}

    return ToolDefinition(
        name=name,
        description=kwargs.pop("description", f"Test tool {name}"),
        parameters=kwargs.pop(
            "parameters",
            {
                "type": "object",
                "properties": {
                    "input": {"type": "string", "description": "Input value"},
                },
            },
        ),
        execute=execute or default_execute,
        **kwargs,
    )


def slow_execute(seconds: float, value: Any = None) -> Callable[..., Any]:
    """Execute function that sleeps before returning value."""

    async def execute(params, context=None):
        await asyncio.sleep(seconds)
        return value

    return execute


class EventRecorder:
    """Collects event callback invocations by name."""

    def __init__(self):
        self.calls: dict[str, list[tuple]] = {}

    def __getattr__(self, name: str) -> Callable[..., None]:
        if name.startswith("_"):
            raise AttributeError(name)

        def record(*args: Any) -> None:
            self.calls.setdefault(name, []).append(args)

        return record

    def of(self, name: str) -> list[tuple]:
        return self.calls.get(name, [])
