"""Synchronous executor.

Same pipeline as ``AsyncExecutor`` but every hook and the task must
complete without suspending. A hook or task that returns an awaitable
fails the run with a TypeError.
"""

from __future__ import annotations

import inspect
from typing import Any, Callable, TypeVar

from corekit.executor.base import BaseExecutor
from corekit.executor.errors import EXECUTOR_SYNC_ERROR, ExecutorError
from corekit.executor.hooks import run_error_hook, run_plugins_hook, run_plugins_hooks
from corekit.executor.models import ExecutionContext
from corekit.executor.plugin import ExecutorPlugin

R = TypeVar("R")

SyncTask = Callable[[ExecutionContext[Any]], R]


class SyncExecutor(BaseExecutor[ExecutorPlugin]):
    """Executor for synchronous hooks and tasks."""

    def exec(self, data_or_task: Any, task: SyncTask[R] | None = None) -> R:
        """Execute ``task`` synchronously.

        Raises:
            ExecutorError: If the run fails and no hook recovered it.
            TypeError: If the task is not callable.
        """
        parameters, actual_task = self._split_args(data_or_task, task)
        context = self.create_context(parameters)
        return self._run(context, actual_task)

    def exec_no_error(self, data_or_task: Any, task: SyncTask[R] | None = None) -> R | ExecutorError:
        """Like ``exec`` but returns the failure instead of raising it."""
        try:
            return self.exec(data_or_task, task)
        except ExecutorError as error:
            return error
        except Exception as error:
            return ExecutorError(EXECUTOR_SYNC_ERROR, error)

    def _run(self, context: ExecutionContext[Any], task: SyncTask[R]) -> R:
        self.logger.debug("Sync run started with %d plugin(s)", len(self.plugins))
        try:
            return self._handler(context, task)
        except Exception as error:
            return self._handle_error(context, error)
        finally:
            self._handle_finally(context)

    def _handler(self, context: ExecutionContext[Any], task: SyncTask[R]) -> R:
        before_result = run_plugins_hooks(self.plugins, self.config.before_hooks, context)
        if before_result is not None:
            context.parameters = before_result

        self._run_exec(context, task)

        run_plugins_hooks(self.plugins, self.config.after_hooks, context)

        return context.return_value

    def _run_exec(self, context: ExecutionContext[Any], task: SyncTask[R]) -> None:
        run_plugins_hook(self.plugins, self.config.exec_hook, context, task)

        runtimes = context.hooks_runtimes
        if not runtimes.times:
            result = task(context)
        elif callable(runtimes.return_value):
            result = runtimes.return_value(context)
        else:
            result = runtimes.return_value

        if inspect.isawaitable(result):
            if inspect.iscoroutine(result):
                result.close()
            raise TypeError("Task returned an awaitable; use AsyncExecutor for async tasks")

        context.return_value = result

    def _handle_error(self, context: ExecutionContext[Any], error: Exception) -> Any:
        context.error = error

        if run_error_hook(self.plugins, self.config.error_hook, context):
            self.logger.debug("Run recovered by %s", context.hooks_runtimes.plugin_name)
            return context.return_value

        final_error = context.error
        if isinstance(final_error, ExecutorError):
            raise final_error

        wrapped = ExecutorError(EXECUTOR_SYNC_ERROR, final_error)
        context.error = wrapped
        raise wrapped from final_error

    def _handle_finally(self, context: ExecutionContext[Any]) -> None:
        context.hooks_runtimes.continue_on_error = True
        try:
            run_plugins_hook(self.plugins, self.config.finally_hook, context)
        finally:
            context.reset()
            self.logger.debug("Sync run finished")
