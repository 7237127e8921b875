"""
Structured Logging

JSON-structured logging with context propagation.

Design decisions:
- Structured JSON output
- Log level filtering
- Context enrichment
- Silent by default: the package logs nothing until an application calls
  configure_logging() or hands a logger to a component
- Handler failures never reach the caller
"""

import contextvars
import json
import sys
import traceback
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any, TextIO

from agentic.config.settings import LoggingSettings

LIBRARY_NAME = "agentic"


class LogLevel(IntEnum):
    """Log levels matching Python's logging module."""

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50


@dataclass
class LogRecord:
    """A structured log record."""

    level: LogLevel
    message: str
    timestamp: datetime = field(default_factory=datetime.now)

    logger_name: str = LIBRARY_NAME

    # Structured data
    data: dict[str, Any] = field(default_factory=dict)

    # Error info
    error: str | None = None
    error_type: str | None = None
    stack_trace: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        result = {
            "timestamp": self.timestamp.isoformat(),
            "level": LogLevel(self.level).name,
            "logger": self.logger_name,
            "message": self.message,
        }

        if self.data:
            result["data"] = self.data

        if self.error:
            result["error"] = {
                "message": self.error,
                "type": self.error_type,
                "stack_trace": self.stack_trace,
            }

        return result

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), default=str)


class LogHandler:
    """Base class for log handlers."""

    def __init__(self, level: LogLevel = LogLevel.DEBUG):
        self.level = level

    def should_handle(self, level: LogLevel) -> bool:
        """Check if this handler should process a log at this level."""
        return level >= self.level

    def handle(self, record: LogRecord) -> None:
        """Handle a log record."""
        pass


class ConsoleHandler(LogHandler):
    """Outputs logs to console."""

    def __init__(
        self,
        level: LogLevel = LogLevel.DEBUG,
        stream: TextIO | None = None,
        json_output: bool = True,
    ):
        super().__init__(level)
        self.stream = stream or sys.stderr
        self.json_output = json_output

    def handle(self, record: LogRecord) -> None:
        if not self.should_handle(record.level):
            return

        if self.json_output:
            output = record.to_json()
        else:
            output = (
                f"[{record.timestamp.strftime('%Y-%m-%d %H:%M:%S')}] "
                f"{LogLevel(record.level).name:8s} [{record.logger_name}] {record.message}"
            )
            if record.data:
                output += f" | {record.data}"
            if record.error:
                output += f" | ERROR: {record.error}"

        print(output, file=self.stream)


class BufferHandler(LogHandler):
    """Buffers logs in memory for testing."""

    def __init__(self, level: LogLevel = LogLevel.DEBUG, max_records: int = 1000):
        super().__init__(level)
        self.records: list[LogRecord] = []
        self._max_records = max_records

    def handle(self, record: LogRecord) -> None:
        if not self.should_handle(record.level):
            return

        self.records.append(record)

        if len(self.records) > self._max_records:
            self.records = self.records[-self._max_records :]

    def messages(self, level: LogLevel | None = None) -> list[str]:
        return [r.message for r in self.records if level is None or r.level == level]

    def clear(self) -> None:
        self.records.clear()


# Context variables for log enrichment
_log_context: contextvars.ContextVar[dict[str, Any]] = contextvars.ContextVar(
    "log_context", default={}
)


class StructuredLogger:
    """
    Main structured logging interface.

    Features:
    - JSON structured output
    - Context propagation
    - Multiple handlers
    - Level filtering
    - Component children sharing the parent's handlers
    """

    def __init__(
        self,
        name: str = LIBRARY_NAME,
        level: LogLevel = LogLevel.INFO,
        handlers: list[LogHandler] | None = None,
    ):
        self.name = name
        self.level = level
        self.handlers = handlers if handlers is not None else [ConsoleHandler()]

    def child(self, *components: str) -> "StructuredLogger":
        """Logger for a sub-component, e.g. agentic:ToolGuard."""
        return StructuredLogger(
            name=":".join([self.name, *components]),
            level=self.level,
            handlers=self.handlers,
        )

    def _log(
        self,
        level: LogLevel,
        message: str,
        data: dict[str, Any] | None = None,
        error: BaseException | None = None,
        **extra: Any,
    ) -> None:
        """Internal log method."""
        if level < self.level or not self.handlers:
            return

        record = LogRecord(
            level=level,
            message=message,
            logger_name=self.name,
            data={**_log_context.get(), **(data or {}), **extra},
        )

        if error:
            record.error = str(error)
            record.error_type = type(error).__name__
            record.stack_trace = "".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            )

        for handler in self.handlers:
            try:
                handler.handle(record)
            except Exception:
                pass  # Don't let logging errors affect main flow

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log at DEBUG level."""
        self._log(LogLevel.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """Log at INFO level."""
        self._log(LogLevel.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log at WARNING level."""
        self._log(LogLevel.WARNING, message, **kwargs)

    def error(self, message: str, error: BaseException | None = None, **kwargs: Any) -> None:
        """Log at ERROR level."""
        self._log(LogLevel.ERROR, message, error=error, **kwargs)

    @staticmethod
    @contextmanager
    def context(**kwargs: Any):
        """
        Context manager for adding context to logs.

        Usage:
            with logger.context(execution_id="exec-1-1700000000000"):
                logger.info("Running tool")
        """
        current = _log_context.get()
        token = _log_context.set({**current, **kwargs})

        try:
            yield
        finally:
            _log_context.reset(token)


SILENT_LOGGER = StructuredLogger(name=LIBRARY_NAME, handlers=[])

_default_logger: StructuredLogger = SILENT_LOGGER


def get_logger(*components: str) -> StructuredLogger:
    """Get the package logger, or a child of it for the given component."""
    if components:
        return _default_logger.child(*components)
    return _default_logger


def configure_logging(
    level: LogLevel = LogLevel.INFO,
    json_output: bool = True,
    stream: TextIO | None = None,
    handlers: list[LogHandler] | None = None,
) -> StructuredLogger:
    """
    Turn on package logging.

    Components built afterwards log through the configured handlers.
    """
    global _default_logger
    _default_logger = StructuredLogger(
        name=LIBRARY_NAME,
        level=level,
        handlers=handlers if handlers is not None else [
            ConsoleHandler(stream=stream, json_output=json_output)
        ],
    )
    return _default_logger


def configure_from_settings(settings: LoggingSettings) -> StructuredLogger:
    """Apply LoggingSettings; disabled settings restore the silent logger."""
    global _default_logger
    if not settings.enabled:
        _default_logger = SILENT_LOGGER
        return _default_logger
    return configure_logging(
        level=LogLevel[settings.level],
        json_output=settings.format == "json",
    )


def reset_logging() -> None:
    """Restore the silent default logger."""
    global _default_logger
    _default_logger = SILENT_LOGGER
