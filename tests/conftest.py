"""
Test Configuration

Shared fixtures and test utilities.
"""

import pytest

from agentic.observability.logging import BufferHandler, LogLevel, StructuredLogger
from tests.fixtures import EventRecorder


@pytest.fixture
def log_buffer():
    """In-memory log handler."""
    return BufferHandler()


@pytest.fixture
def logger(log_buffer):
    """Logger writing to the in-memory buffer."""
    return StructuredLogger(name="test", level=LogLevel.DEBUG, handlers=[log_buffer])


@pytest.fixture
def recorder():
    """Event callback recorder."""
    return EventRecorder()


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "slow: Slow tests")
