"""
Configuration Module

Security configuration for the guard and sandbox, plus optional
environment-driven settings.
"""

from agentic.config.settings import (
    DEFAULT_MAX_CONCURRENT_CALLS,
    DEFAULT_MAX_EXECUTION_TIME_MS,
    DEFAULT_MAX_OUTPUT_SIZE,
    LoggingSettings,
    Settings,
    ToolSecurityConfig,
    ToolSecuritySettings,
    get_settings,
)

__all__ = [
    "DEFAULT_MAX_CONCURRENT_CALLS",
    "DEFAULT_MAX_EXECUTION_TIME_MS",
    "DEFAULT_MAX_OUTPUT_SIZE",
    "LoggingSettings",
    "Settings",
    "ToolSecurityConfig",
    "ToolSecuritySettings",
    "get_settings",
]
