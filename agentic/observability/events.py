"""
Event Dispatch

Security and sandbox notifications are a side channel: anything a callback
raises is logged and dropped.

Design decisions:
- Plain callbacks run synchronously, before the guard or sandbox continues
- Async callbacks are scheduled on the running loop and not awaited
- With no running loop an async callback is discarded with a warning
"""

import asyncio
import inspect
from collections.abc import Callable
from typing import Any

from agentic.observability.logging import StructuredLogger

# Scheduled callbacks, referenced until they finish
_pending: set[asyncio.Future] = set()


def _callback_name(callback: Callable[..., Any]) -> str:
    return getattr(callback, "__name__", repr(callback))


def _schedule(logger: StructuredLogger, name: str, awaitable: Any) -> None:
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        if inspect.iscoroutine(awaitable):
            awaitable.close()
        logger.warning("Async event callback dropped, no running event loop", callback=name)
        return

    future = asyncio.ensure_future(awaitable, loop=loop)
    _pending.add(future)

    def done(fut: asyncio.Future) -> None:
        _pending.discard(fut)
        if fut.cancelled():
            return
        error = fut.exception()
        if error is not None:
            logger.warning("Event callback failed", callback=name, error=str(error))

    future.add_done_callback(done)


def emit_event(
    logger: StructuredLogger,
    callback: Callable[..., Any] | None,
    *args: Any,
) -> None:
    """Fire an event callback; failures are logged, never raised."""
    if callback is None:
        return
    try:
        result = callback(*args)
    except Exception as e:
        logger.warning(
            "Event callback failed",
            callback=_callback_name(callback),
            error=str(e),
        )
        return

    if inspect.isawaitable(result):
        _schedule(logger, _callback_name(callback), result)
