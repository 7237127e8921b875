"""
Tool Sandbox

Resource-bounded execution of a single tool call.

Design decisions:
- Timeout, cancellation and completion race; the first one wins and the
  losers are cancelled
- Concurrency is a ceiling on in-flight calls, not a queue: extra calls
  fail immediately
- Output size is checked after completion and oversized results are dropped
- Cancellation is cooperative: the tool sees a CancellationToken in its
  context and its task is cancelled, but a tool that ignores both keeps
  running in the background
- This is not process isolation; a tool still has access to everything
  the interpreter has
"""

import asyncio
import inspect
import json
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from agentic.config.settings import ToolSecurityConfig
from agentic.core.exceptions import (
    ConcurrencyLimitError,
    ExecutionCancelledError,
    OutputSizeExceededError,
    ToolTimeoutError,
)
from agentic.core.types import ToolContext, ToolDefinition
from agentic.observability.events import emit_event
from agentic.observability.logging import StructuredLogger, get_logger

if TYPE_CHECKING:
    from agentic.safety.tool_guard import ToolGuard


class CancellationToken:
    """
    One-shot cancellation signal shared by the sandbox and a running tool.

    Tools may poll is_cancelled or await wait() to stop early.
    """

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> bool:
        """Signal cancellation. Returns False if already cancelled."""
        if self._event.is_set():
            return False
        self._event.set()
        return True

    async def wait(self) -> None:
        await self._event.wait()


@dataclass(frozen=True)
class SandboxInfo:
    """Restrictions visible to a tool under context["sandbox"]."""

    allowed_operations: frozenset[str]
    max_output_size: int
    execution_id: str
    cancellation: CancellationToken


BeforeHook = Callable[[ToolDefinition, Any], Awaitable[None] | None]
AfterHook = Callable[[ToolDefinition, Any, BaseException | None], Awaitable[None] | None]


@dataclass
class SandboxOptions:
    """Per-call overrides."""

    max_execution_time: int | None = None  # ms
    max_output_size: int | None = None  # bytes
    allowed_operations: list[str] | None = None
    on_before_execution: BeforeHook | None = None
    on_after_execution: AfterHook | None = None


@dataclass
class ToolSandboxEvents:
    """Optional callbacks fired on sandbox events."""

    on_concurrency_exceeded: Callable[[str, int], Any] | None = None
    on_timeout: Callable[[str, int], Any] | None = None
    on_output_size_exceeded: Callable[[str, int, int], Any] | None = None
    on_cancelled: Callable[[str], Any] | None = None


def _accepts_context(func: Callable) -> bool:
    try:
        params = list(inspect.signature(func).parameters.values())
    except (TypeError, ValueError):
        return True

    positional = 0
    for param in params:
        if param.kind == inspect.Parameter.VAR_POSITIONAL:
            return True
        if param.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            positional += 1
    return positional >= 2


async def call_tool(tool: ToolDefinition, params: Any, context: ToolContext) -> Any:
    """
    Invoke a tool's execute callable.

    Coroutine functions are awaited; plain functions run in a worker thread.
    Callables taking a single argument receive only the params.
    """
    func = tool.execute
    args = (params, context) if _accepts_context(func) else (params,)

    if inspect.iscoroutinefunction(func) or inspect.iscoroutinefunction(
        getattr(func, "__call__", None)
    ):
        return await func(*args)

    result = await asyncio.to_thread(func, *args)
    if inspect.isawaitable(result):
        result = await result
    return result


def estimate_size(value: Any) -> int:
    """
    Rough byte size of a tool result.

    Strings count 2 bytes per character, numbers 8, booleans 4, binary data
    its length; anything else is measured through its JSON form. Values that
    cannot be serialized count as 0.
    """
    if value is None:
        return 0
    if isinstance(value, str):
        return len(value) * 2
    if isinstance(value, bool):
        return 4
    if isinstance(value, (int, float)):
        return 8
    if isinstance(value, (bytes, bytearray)):
        return len(value)
    if isinstance(value, memoryview):
        return value.nbytes
    if isinstance(value, BaseModel):
        return len(value.model_dump_json()) * 2
    try:
        return len(json.dumps(value, ensure_ascii=False)) * 2
    except (TypeError, ValueError, RecursionError):
        return 0


async def _run_hook(hook: Callable[..., Any] | None, *args: Any) -> None:
    if hook is None:
        return
    result = hook(*args)
    if inspect.isawaitable(result):
        await result


def _consume_outcome(task: asyncio.Future) -> None:
    # Retrieve the result of an abandoned task so asyncio does not report
    # "exception was never retrieved".
    if not task.cancelled():
        task.exception()


class ToolSandbox:
    """
    Capability-based sandboxing for tool execution.

    Features:
    - Execution timeout enforcement
    - Concurrent execution limits
    - Output size limits
    - Pre/post execution hooks
    - Cancellation support

    Usage:
        sandbox = ToolSandbox(ToolSecurityConfig(max_execution_time=5000, max_concurrent_calls=5))
        result = await sandbox.execute(tool, params, context)
    """

    def __init__(
        self,
        config: ToolSecurityConfig | None = None,
        logger: StructuredLogger | None = None,
        events: ToolSandboxEvents | None = None,
    ):
        if config is None:
            config = ToolSecurityConfig(sandbox_execution=True)
        self._config = config.model_copy(deep=True)
        self._logger = (logger or get_logger()).child("ToolSandbox")
        self._events = events or ToolSandboxEvents()

        self._active_executions: dict[str, CancellationToken] = {}
        self._execution_count = 0

    async def execute(
        self,
        tool: ToolDefinition,
        params: Any,
        base_context: ToolContext | None = None,
        options: SandboxOptions | None = None,
    ) -> Any:
        """
        Execute a tool with sandbox restrictions.

        Args:
            tool: Tool to run
            params: Already-validated parameters
            base_context: Context to extend with sandbox info
            options: Per-call limits and hooks

        Returns:
            The tool's result

        Raises:
            ConcurrencyLimitError, ToolTimeoutError, ExecutionCancelledError,
            OutputSizeExceededError, or whatever the tool itself raised
        """
        options = options or SandboxOptions()
        base_context = base_context if base_context is not None else {}

        if not self.is_enabled():
            return await call_tool(tool, params, base_context)

        active_count = len(self._active_executions)
        if active_count >= self._config.max_concurrent_calls:
            self._logger.warning(
                "Max concurrent executions reached",
                tool_name=tool.name,
                active_count=active_count,
                limit=self._config.max_concurrent_calls,
            )
            emit_event(self._logger, self._events.on_concurrency_exceeded, tool.name, active_count)
            raise ConcurrencyLimitError(
                "Too many concurrent tool executions",
                tool_name=tool.name,
                active_count=active_count,
            )

        self._execution_count += 1
        execution_id = f"exec-{self._execution_count}-{int(time.time() * 1000)}"
        token = CancellationToken()
        self._active_executions[execution_id] = token

        max_output_size = options.max_output_size or self._config.max_output_size
        timeout_ms = options.max_execution_time or self._config.max_execution_time
        context = {
            **base_context,
            "sandbox": SandboxInfo(
                allowed_operations=frozenset(options.allowed_operations or []),
                max_output_size=max_output_size,
                execution_id=execution_id,
                cancellation=token,
            ),
        }

        try:
            with self._logger.context(execution_id=execution_id, tool_name=tool.name):
                result = await self._run(
                    tool, params, context, options, token, timeout_ms, max_output_size
                )
        except (asyncio.CancelledError, Exception) as e:
            # Includes cancellation of the awaiting caller
            await _run_hook(options.on_after_execution, tool, None, e)
            raise
        else:
            await _run_hook(options.on_after_execution, tool, result, None)
            return result
        finally:
            self._active_executions.pop(execution_id, None)

    async def _run(
        self,
        tool: ToolDefinition,
        params: Any,
        context: ToolContext,
        options: SandboxOptions,
        token: CancellationToken,
        timeout_ms: int,
        max_output_size: int,
    ) -> Any:
        execution_id = context["sandbox"].execution_id

        await _run_hook(options.on_before_execution, tool, params)

        if token.is_cancelled:
            raise ExecutionCancelledError(
                "Tool execution was cancelled",
                tool_name=tool.name,
                execution_id=execution_id,
            )

        result = await self._execute_with_timeout(
            call_tool(tool, params, context),
            timeout_ms=timeout_ms,
            token=token,
            tool_name=tool.name,
            execution_id=execution_id,
        )

        output_size = estimate_size(result)
        if output_size > max_output_size:
            self._logger.warning(
                "Tool output exceeded max size",
                tool_name=tool.name,
                output_size=output_size,
                max_size=max_output_size,
            )
            emit_event(
                self._logger,
                self._events.on_output_size_exceeded,
                tool.name,
                output_size,
                max_output_size,
            )
            raise OutputSizeExceededError(
                "Tool output exceeded maximum size limit",
                tool_name=tool.name,
                size=output_size,
                max_size=max_output_size,
            )
        return result

    async def _execute_with_timeout(
        self,
        coro: Awaitable[Any],
        timeout_ms: int,
        token: CancellationToken,
        tool_name: str,
        execution_id: str,
    ) -> Any:
        task = asyncio.ensure_future(coro)
        cancel_waiter = asyncio.ensure_future(token.wait())

        try:
            done, _ = await asyncio.wait(
                {task, cancel_waiter},
                timeout=timeout_ms / 1000,
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            # Caller went away; take the tool down with it
            task.cancel()
            raise
        finally:
            cancel_waiter.cancel()

        if cancel_waiter in done:
            self._abandon(task)
            raise ExecutionCancelledError(
                "Tool execution was cancelled",
                tool_name=tool_name,
                execution_id=execution_id,
            )

        if task in done:
            return task.result()

        self._abandon(task)
        self._logger.warning(
            "Tool execution timed out",
            tool_name=tool_name,
            timeout_ms=timeout_ms,
        )
        emit_event(self._logger, self._events.on_timeout, tool_name, timeout_ms)
        raise ToolTimeoutError(
            f"Tool execution timed out after {timeout_ms}ms",
            tool_name=tool_name,
            timeout_ms=timeout_ms,
        )

    @staticmethod
    def _abandon(task: asyncio.Future) -> None:
        task.cancel()
        task.add_done_callback(_consume_outcome)

    def cancel(self, execution_id: str) -> bool:
        """Cancel a specific execution. Returns False if it is not active."""
        token = self._active_executions.pop(execution_id, None)
        if token is None:
            return False

        token.cancel()
        self._logger.info("Execution cancelled", execution_id=execution_id)
        emit_event(self._logger, self._events.on_cancelled, execution_id)
        return True

    def cancel_all(self) -> None:
        """
        Cancel every active execution.

        Bookkeeping is cleared immediately; the cancelled calls unwind on
        their own schedule.
        """
        executions = list(self._active_executions.items())
        self._active_executions.clear()

        for execution_id, token in executions:
            token.cancel()
            self._logger.info("Execution cancelled", execution_id=execution_id)
            emit_event(self._logger, self._events.on_cancelled, execution_id)

    @property
    def active_count(self) -> int:
        return len(self._active_executions)

    @property
    def active_execution_ids(self) -> list[str]:
        return list(self._active_executions)

    def is_enabled(self) -> bool:
        return self._config.enabled and self._config.sandbox_execution

    @property
    def config(self) -> ToolSecurityConfig:
        """Copy of the current configuration."""
        return self._config.model_copy(deep=True)

    def update_config(self, **changes: Any) -> None:
        """Replace configuration fields."""
        self._config = self._config.merged(**changes)


def create_secure_tool(
    tool: ToolDefinition,
    sandbox: ToolSandbox,
    guard: "ToolGuard",
) -> ToolDefinition:
    """
    Wrap a tool so every call goes through the guard and the sandbox.

    The returned definition keeps the original's metadata; only execute
    changes.
    """

    async def secure_execute(params: Any, context: ToolContext | None = None) -> Any:
        params = guard.enforce(tool, params)
        return await sandbox.execute(tool, params, context or {})

    return replace(tool, execute=secure_execute)
