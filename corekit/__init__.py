"""corekit: task-execution core.

Plugin-hook executors, a retry pool, cancellation token composition and
LIFO resource cleanup. Import order matters: managers depend on executor
errors, and the built-in plugins depend on both.
"""

from corekit.executor import (
    AsyncExecutor,
    ExecutionContext,
    ExecutorConfig,
    ExecutorError,
    ExecutorPlugin,
    HookName,
    HookRuntimes,
    SyncExecutor,
)
from corekit.managers import (
    AbortError,
    AbortManager,
    AutoCleanup,
    CancellationSource,
    CancellationToken,
    ComposedToken,
    Finalizer,
    RetryOptions,
    RetryPool,
    any_token,
    is_abort_error,
    timeout_token,
)
from corekit.executor.plugins import AbortPlugin, RetryPlugin

__version__ = "0.1.0"

__all__ = [
    "AbortError",
    "AbortManager",
    "AbortPlugin",
    "AsyncExecutor",
    "AutoCleanup",
    "CancellationSource",
    "CancellationToken",
    "ComposedToken",
    "ExecutionContext",
    "ExecutorConfig",
    "ExecutorError",
    "ExecutorPlugin",
    "Finalizer",
    "HookName",
    "HookRuntimes",
    "RetryOptions",
    "RetryPlugin",
    "RetryPool",
    "SyncExecutor",
    "any_token",
    "is_abort_error",
    "timeout_token",
]
