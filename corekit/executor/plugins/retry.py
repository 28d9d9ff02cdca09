"""Retry plugin: re-runs the task through a RetryPool."""

from __future__ import annotations

import inspect
from typing import Any, Callable

from corekit.executor.errors import RETRY_ERROR_ID, ExecutorError
from corekit.executor.models import ExecutionContext
from corekit.executor.plugin import ExecutorPlugin
from corekit.managers.retry_pool import RetryOptions, RetryPool


class RetryPlugin(ExecutorPlugin):
    """Retries the task of every run on an AsyncExecutor.

    The ``on_exec`` hook hands back a replacement task that drives the
    original through ``RetryPool.retry``. When retries are exhausted the
    RETRY_ERROR ExecutorError is raised and flows through ``on_error``.
    """

    only_one = True

    def __init__(
        self,
        options: RetryOptions | dict[str, Any] | None = None,
        retry_pool: RetryPool | None = None,
        plugin_name: str | None = None,
    ) -> None:
        """Initialize the plugin.

        Args:
            options: Retry options; partial mappings are normalized.
            retry_pool: Pool to use. Defaults to one named after the plugin.
            plugin_name: Name for deduplication. Defaults to "RetryPlugin".
        """
        self.plugin_name = plugin_name or "RetryPlugin"
        self.retry_pool = retry_pool or RetryPool(self.plugin_name)
        self.options = self.retry_pool.normalize_options(options)

    def on_exec(
        self,
        context: ExecutionContext[Any],
        task: Callable[[ExecutionContext[Any]], Any],
    ) -> Callable[[ExecutionContext[Any]], Any]:
        async def retriable(ctx: ExecutionContext[Any]) -> Any:
            async def attempt() -> Any:
                result = task(ctx)
                if inspect.isawaitable(result):
                    result = await result
                return result

            outcome = await self.retry_pool.retry(attempt, self.options)
            if isinstance(outcome, ExecutorError) and outcome.id == RETRY_ERROR_ID:
                raise outcome
            return outcome

        return retriable
