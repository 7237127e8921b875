"""
Tool System Module

Schema-driven tool registry and resource-bounded sandboxed execution.
"""

from agentic.tools.registry import ToolRegistry, function_to_tool, tool
from agentic.tools.sandbox import (
    CancellationToken,
    SandboxInfo,
    SandboxOptions,
    ToolSandbox,
    ToolSandboxEvents,
    call_tool,
    create_secure_tool,
    estimate_size,
)

__all__ = [
    # Registry
    "ToolRegistry",
    "function_to_tool",
    "tool",
    # Sandbox
    "CancellationToken",
    "SandboxInfo",
    "SandboxOptions",
    "ToolSandbox",
    "ToolSandboxEvents",
    "call_tool",
    "create_secure_tool",
    "estimate_size",
]
