"""
Safety Module

Policy and validation gate applied before a tool runs.
"""

from agentic.safety.tool_guard import (
    DANGEROUS_KEYS,
    MAX_SCAN_DEPTH,
    ToolGuard,
    ToolGuardEvents,
    ToolValidationResult,
    has_prototype_pollution,
)

__all__ = [
    "DANGEROUS_KEYS",
    "MAX_SCAN_DEPTH",
    "ToolGuard",
    "ToolGuardEvents",
    "ToolValidationResult",
    "has_prototype_pollution",
]
