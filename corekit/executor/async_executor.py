"""Asynchronous executor.

Runs a task through the plugin pipeline:

    on_before -> on_exec -> task -> on_success | on_error -> on_finally

Hooks and tasks may be plain callables or return awaitables. Hooks of one
phase run strictly one after another, in registration order.
"""

from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, TypeVar, Union

from corekit.executor.base import BaseExecutor
from corekit.executor.errors import EXECUTOR_ASYNC_ERROR, ExecutorError
from corekit.executor.hooks import (
    run_error_hook_async,
    run_plugins_hook_async,
    run_plugins_hooks_async,
)
from corekit.executor.models import ExecutionContext
from corekit.executor.plugin import ExecutorPlugin

R = TypeVar("R")

AsyncTask = Callable[[ExecutionContext[Any]], Union[Awaitable[R], R]]


class AsyncExecutor(BaseExecutor[ExecutorPlugin]):
    """Executor whose hooks and tasks may suspend.

    Usage:
        executor = AsyncExecutor()
        executor.use(LoggingPlugin())

        result = await executor.exec({"url": "/users"}, fetch_users)
        outcome = await executor.exec_no_error({"url": "/users"}, fetch_users)
    """

    async def exec(self, data_or_task: Any, task: AsyncTask[R] | None = None) -> R:
        """Execute ``task`` with ``data_or_task`` as parameters.

        ``exec(task)`` is also accepted, with empty parameters.

        Returns:
            The task result, possibly rewritten by ``on_success`` hooks or
            recovered by an ``on_error`` hook.

        Raises:
            ExecutorError: If the run fails and no hook recovered it. Errors
                that are not ExecutorError are wrapped, the original is
                available as ``cause``.
            TypeError: If the task is not callable.
        """
        parameters, actual_task = self._split_args(data_or_task, task)
        context = self.create_context(parameters)
        return await self._run(context, actual_task)

    async def exec_no_error(
        self, data_or_task: Any, task: AsyncTask[R] | None = None
    ) -> R | ExecutorError:
        """Like ``exec`` but returns the failure instead of raising it."""
        try:
            return await self.exec(data_or_task, task)
        except ExecutorError as error:
            return error
        except Exception as error:
            return ExecutorError(EXECUTOR_ASYNC_ERROR, error)

    async def _run(self, context: ExecutionContext[Any], task: AsyncTask[R]) -> R:
        self.logger.debug("Async run started with %d plugin(s)", len(self.plugins))
        try:
            return await self._handler(context, task)
        except Exception as error:
            return await self._handle_error(context, error)
        finally:
            await self._handle_finally(context)

    async def _handler(self, context: ExecutionContext[Any], task: AsyncTask[R]) -> R:
        before_result = await run_plugins_hooks_async(
            self.plugins, self.config.before_hooks, context
        )
        if before_result is not None:
            context.parameters = before_result

        await self._run_exec(context, task)

        await run_plugins_hooks_async(self.plugins, self.config.after_hooks, context)

        return context.return_value

    async def _run_exec(self, context: ExecutionContext[Any], task: AsyncTask[R]) -> None:
        await run_plugins_hook_async(self.plugins, self.config.exec_hook, context, task)

        runtimes = context.hooks_runtimes
        if not runtimes.times:
            result = task(context)
        elif callable(runtimes.return_value):
            # An on_exec hook handed back a replacement task
            result = runtimes.return_value(context)
        else:
            result = runtimes.return_value

        if inspect.isawaitable(result):
            result = await result

        context.return_value = result

    async def _handle_error(self, context: ExecutionContext[Any], error: Exception) -> Any:
        context.error = error

        if await run_error_hook_async(self.plugins, self.config.error_hook, context):
            self.logger.debug("Run recovered by %s", context.hooks_runtimes.plugin_name)
            return context.return_value

        final_error = context.error
        if isinstance(final_error, ExecutorError):
            raise final_error

        wrapped = ExecutorError(EXECUTOR_ASYNC_ERROR, final_error)
        context.error = wrapped
        raise wrapped from final_error

    async def _handle_finally(self, context: ExecutionContext[Any]) -> None:
        context.hooks_runtimes.continue_on_error = True
        try:
            await run_plugins_hook_async(self.plugins, self.config.finally_hook, context)
        finally:
            context.reset()
            self.logger.debug("Async run finished")
