"""
Agentic — Tool Orchestration Primitives for AI Agent Workflows

In-process building blocks for agent runtimes:
- Tools: schema-described registry with usage accounting and provider export
- Safety: allow/deny policy, parameter validation, safe argument parsing
- Sandbox: timeout, concurrency and output-size limits with cancellation
- Context: deduplicating tracker for injected conversation context
"""

from agentic.context import ContextManager, ContextStats
from agentic.core.exceptions import AgenticError
from agentic.core.types import ToolDefinition, ToolUsageStats
from agentic.safety import ToolGuard
from agentic.tools import ToolRegistry, ToolSandbox, create_secure_tool, tool

__version__ = "0.1.0"

__all__ = [
    "AgenticError",
    "ContextManager",
    "ContextStats",
    "ToolDefinition",
    "ToolGuard",
    "ToolRegistry",
    "ToolSandbox",
    "ToolUsageStats",
    "create_secure_tool",
    "tool",
]
