"""Managers used by long-running operations.

- RetryPool: bounded retry with fixed or exponential backoff
- CancellationToken / any_token / timeout_token: cooperative cancellation
- AbortManager: cancellation tokens keyed by operation id
- AutoCleanup / Finalizer: LIFO cleanup bound to one computation
"""

from corekit.managers.abort_error import AbortError, is_abort_error

from corekit.managers.auto_cleanup import AutoCleanup, Finalizer, FinalizerState

from corekit.managers.cancellation import (
    MAX_TIMEOUT_MS,
    CancellationSource,
    CancellationToken,
    ComposedToken,
    any_token,
    timeout_token,
)

from corekit.managers.retry_pool import (
    SAFE_MAX_RETRIES,
    RetryOptions,
    RetryPool,
)

from corekit.managers.abort_manager import AbortManager

__all__ = [
    # Errors
    "AbortError",
    "is_abort_error",
    # Cleanup
    "AutoCleanup",
    "Finalizer",
    "FinalizerState",
    # Cancellation
    "MAX_TIMEOUT_MS",
    "CancellationSource",
    "CancellationToken",
    "ComposedToken",
    "any_token",
    "timeout_token",
    # Retry
    "SAFE_MAX_RETRIES",
    "RetryOptions",
    "RetryPool",
    # Abort
    "AbortManager",
]
