"""Executor layer: plugin-hook pipeline around arbitrary work.

This module provides:
- SyncExecutor / AsyncExecutor: run a task through the plugin lifecycle
- ExecutorPlugin: base class for plugins
- ExecutionContext / HookRuntimes: per-run state seen by hooks
- ExecutorConfig: hook names used for each phase
- ExecutorError: tagged failure value

Lifecycle of one run:

    on_before -> on_exec -> task -> on_success | on_error -> on_finally

Example usage:
    from corekit.executor import AsyncExecutor, ExecutorPlugin

    class AuthPlugin(ExecutorPlugin):
        def on_before(self, context):
            context.parameters["headers"] = {"Authorization": "Bearer ..."}

    executor = AsyncExecutor()
    executor.use(AuthPlugin())

    result = await executor.exec({"url": "/users"}, fetch)
"""

from corekit.executor.errors import (
    ABORT_ERROR_ID,
    EXECUTOR_ASYNC_ERROR,
    EXECUTOR_SYNC_ERROR,
    RETRY_ERROR_ID,
    ExecutorError,
)

from corekit.executor.models import (
    ExecutionContext,
    ExecutorConfig,
    HookName,
    HookRuntimes,
)

from corekit.executor.plugin import ExecutorPlugin

from corekit.executor.base import BaseExecutor
from corekit.executor.sync_executor import SyncExecutor
from corekit.executor.async_executor import AsyncExecutor

__all__ = [
    # Errors
    "ABORT_ERROR_ID",
    "EXECUTOR_ASYNC_ERROR",
    "EXECUTOR_SYNC_ERROR",
    "RETRY_ERROR_ID",
    "ExecutorError",
    # Models
    "ExecutionContext",
    "ExecutorConfig",
    "HookName",
    "HookRuntimes",
    # Plugins
    "ExecutorPlugin",
    # Executors
    "AsyncExecutor",
    "BaseExecutor",
    "SyncExecutor",
]
