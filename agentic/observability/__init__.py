"""
Observability Module

Structured logging shared by every component.
"""

from agentic.observability.events import emit_event
from agentic.observability.logging import (
    LIBRARY_NAME,
    SILENT_LOGGER,
    BufferHandler,
    ConsoleHandler,
    LogHandler,
    LogLevel,
    LogRecord,
    StructuredLogger,
    configure_from_settings,
    configure_logging,
    get_logger,
    reset_logging,
)

__all__ = [
    "LIBRARY_NAME",
    "SILENT_LOGGER",
    "BufferHandler",
    "ConsoleHandler",
    "LogHandler",
    "LogLevel",
    "LogRecord",
    "StructuredLogger",
    "configure_from_settings",
    "configure_logging",
    "emit_event",
    "get_logger",
    "reset_logging",
]
