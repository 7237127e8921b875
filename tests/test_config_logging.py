"""
Tests for Configuration and Logging
"""

import asyncio
import io
import json

import pytest
from pydantic import ValidationError

from agentic.config import (
    LoggingSettings,
    Settings,
    ToolSecurityConfig,
    ToolSecuritySettings,
    get_settings,
)
from agentic.core.exceptions import ToolTimeoutError
from agentic.observability import (
    BufferHandler,
    LogLevel,
    StructuredLogger,
    configure_from_settings,
    configure_logging,
    emit_event,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _restore_logging():
    yield
    reset_logging()


class TestToolSecurityConfig:
    """Tests for ToolSecurityConfig."""

    def test_defaults(self):
        """Test default limits."""
        config = ToolSecurityConfig()

        assert config.enabled
        assert config.validate_params
        assert not config.sandbox_execution
        assert config.max_execution_time == 30_000
        assert config.max_concurrent_calls == 10
        assert config.max_output_size == 1024 * 1024
        assert config.denied_tools == []
        assert config.allowed_tools is None

    @pytest.mark.parametrize(
        "field,value",
        [("max_execution_time", 0), ("max_concurrent_calls", 0), ("max_output_size", -1)],
    )
    def test_rejects_invalid_limits(self, field, value):
        """Test that non-positive limits are rejected."""
        with pytest.raises(ValidationError):
            ToolSecurityConfig(**{field: value})

    def test_merged_validates(self):
        """Test that merged copies are validated and independent."""
        config = ToolSecurityConfig()

        merged = config.merged(max_concurrent_calls=3)

        assert merged.max_concurrent_calls == 3
        assert config.max_concurrent_calls == 10
        with pytest.raises(ValidationError):
            config.merged(max_concurrent_calls=0)


class TestSettings:
    """Tests for environment-driven settings."""

    def test_tool_settings_from_env(self, monkeypatch):
        """Test that AGENTIC_TOOLS_* variables override defaults."""
        monkeypatch.setenv("AGENTIC_TOOLS_MAX_CONCURRENT_CALLS", "4")
        monkeypatch.setenv("AGENTIC_TOOLS_DENIED_TOOLS", '["shell"]')

        config = ToolSecuritySettings().to_config()

        assert isinstance(config, ToolSecurityConfig)
        assert config.max_concurrent_calls == 4
        assert config.denied_tools == ["shell"]
        assert config.sandbox_execution

    def test_logging_settings_from_env(self, monkeypatch):
        """Test that AGENTIC_LOG_* variables override defaults."""
        monkeypatch.setenv("AGENTIC_LOG_ENABLED", "true")
        monkeypatch.setenv("AGENTIC_LOG_LEVEL", "DEBUG")

        settings = LoggingSettings()

        assert settings.enabled
        assert settings.level == "DEBUG"

    def test_get_settings_cached(self):
        """Test that settings are loaded once."""
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
            assert isinstance(get_settings(), Settings)
        finally:
            get_settings.cache_clear()


class TestStructuredLogger:
    """Tests for the structured logger."""

    def test_level_filtering(self):
        """Test that records below the logger level are dropped."""
        buffer = BufferHandler()
        logger = StructuredLogger(level=LogLevel.WARNING, handlers=[buffer])

        logger.info("hidden")
        logger.warning("shown", tool_name="x")

        assert buffer.messages() == ["shown"]
        assert buffer.records[0].data == {"tool_name": "x"}

    def test_child_names(self):
        """Test component logger naming."""
        buffer = BufferHandler()
        logger = StructuredLogger(name="agentic", handlers=[buffer])

        logger.child("ToolSandbox").info("hi")

        assert buffer.records[0].logger_name == "agentic:ToolSandbox"

    def test_context_enrichment(self):
        """Test that context values are attached to records."""
        buffer = BufferHandler()
        logger = StructuredLogger(handlers=[buffer])

        with logger.context(execution_id="exec-1-0"):
            logger.info("inside")
        logger.info("outside")

        assert buffer.records[0].data == {"execution_id": "exec-1-0"}
        assert buffer.records[1].data == {}

    def test_error_details(self):
        """Test that errors are serialized into the record."""
        buffer = BufferHandler()
        logger = StructuredLogger(handlers=[buffer])

        logger.error("failed", error=ToolTimeoutError("too slow", timeout_ms=5))

        record = buffer.records[0].to_dict()
        assert record["level"] == "ERROR"
        assert record["error"]["type"] == "ToolTimeoutError"
        assert record["error"]["message"] == "too slow"

    def test_console_json_output(self):
        """Test JSON console output."""
        stream = io.StringIO()
        logger = configure_logging(level=LogLevel.DEBUG, stream=stream)

        logger.debug("hello", count=2)

        line = json.loads(stream.getvalue())
        assert line["message"] == "hello"
        assert line["logger"] == "agentic"
        assert line["data"] == {"count": 2}

    def test_console_text_output(self):
        """Test plain text console output."""
        stream = io.StringIO()
        configure_logging(json_output=False, stream=stream)

        get_logger("ToolGuard").warning("blocked")

        assert "WARNING" in stream.getvalue()
        assert "[agentic:ToolGuard] blocked" in stream.getvalue()

    def test_handler_failure_swallowed(self):
        """Test that a broken handler never raises into the caller."""

        class Broken(BufferHandler):
            def handle(self, record):
                raise OSError("disk full")

        StructuredLogger(handlers=[Broken()]).error("still fine")


class TestPackageLogging:
    """Tests for package-level logging switches."""

    def test_silent_by_default(self):
        """Test that the package logger has no handlers until configured."""
        assert get_logger().handlers == []
        assert get_logger("ToolRegistry").name == "agentic:ToolRegistry"

    def test_configure_with_handlers(self):
        """Test routing package logs to custom handlers."""
        buffer = BufferHandler()
        configure_logging(handlers=[buffer])

        get_logger("ContextManager").info("tracked")

        assert buffer.messages() == ["tracked"]

    def test_configure_from_settings(self):
        """Test applying logging settings."""
        assert configure_from_settings(LoggingSettings(enabled=False)).handlers == []

        logger = configure_from_settings(LoggingSettings(enabled=True, level="ERROR", format="text"))

        assert logger.level == LogLevel.ERROR
        assert not logger.handlers[0].json_output


class TestEmitEvent:
    """Tests for event dispatch."""

    def test_calls_callback(self):
        """Test that callbacks receive their arguments."""
        received = []

        emit_event(get_logger(), lambda *args: received.append(args), "tool", 3)

        assert received == [("tool", 3)]

    def test_none_callback(self):
        """Test that a missing callback is a no-op."""
        emit_event(get_logger(), None, "tool")

    def test_callback_failure_logged(self):
        """Test that callback errors are logged and swallowed."""
        buffer = BufferHandler()
        logger = StructuredLogger(handlers=[buffer])

        def explode(*args):
            raise ValueError("bad callback")

        emit_event(logger, explode, "tool")

        assert buffer.messages(LogLevel.WARNING) == ["Event callback failed"]
        assert buffer.records[0].data["callback"] == "explode"

    @pytest.mark.asyncio
    async def test_async_callback_scheduled(self):
        """Test that coroutine callbacks run on the event loop."""
        received = []

        async def on_event(*args):
            received.append(args)

        emit_event(get_logger(), on_event, "tool", 3)
        await asyncio.sleep(0.01)

        assert received == [("tool", 3)]

    @pytest.mark.asyncio
    async def test_async_callback_failure_logged(self):
        """Test that errors from coroutine callbacks are logged."""
        buffer = BufferHandler()
        logger = StructuredLogger(handlers=[buffer])

        async def explode(*args):
            raise ValueError("bad callback")

        emit_event(logger, explode, "tool")
        await asyncio.sleep(0.01)

        assert buffer.messages(LogLevel.WARNING) == ["Event callback failed"]
        assert buffer.records[0].data["error"] == "bad callback"

    def test_async_callback_without_loop(self):
        """Test that coroutine callbacks are dropped cleanly outside a loop."""
        buffer = BufferHandler()
        logger = StructuredLogger(handlers=[buffer])
        received = []

        async def on_event(*args):
            received.append(args)

        emit_event(logger, on_event, "tool")

        assert received == []
        assert buffer.messages(LogLevel.WARNING) == [
            "Async event callback dropped, no running event loop"
        ]
