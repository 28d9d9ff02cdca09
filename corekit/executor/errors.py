"""Executor error types.

ExecutorError is the tagged failure value shared by the executors, the
retry pool and the abort layer. Callers that prefer result objects receive
it from ``exec_no_error`` and ``RetryPool.retry`` instead of catching.
"""

from __future__ import annotations

from typing import Any

# Error ids
EXECUTOR_SYNC_ERROR = "UNKNOWN_SYNC_ERROR"
EXECUTOR_ASYNC_ERROR = "UNKNOWN_ASYNC_ERROR"
RETRY_ERROR_ID = "RETRY_ERROR"
ABORT_ERROR_ID = "ABORT_ERROR"


class ExecutorError(Exception):
    """Raised (or returned) when an execution fails.

    Args:
        id: Stable identifier of the failure kind.
        cause: Underlying exception or message.
    """

    def __init__(self, id: str, cause: Any = None):
        if isinstance(cause, BaseException):
            message = str(cause)
        elif isinstance(cause, str):
            message = cause
        else:
            message = ""

        super().__init__(message or id)
        self.id = id
        self.message = message or id
        self.cause = cause if cause != message else None

        if isinstance(cause, BaseException):
            self.__cause__ = cause

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, message={self.message!r})"

    def with_cause(self, cause: BaseException) -> ExecutorError:
        """Chain ``cause`` to an error built from a composed message."""
        self.cause = cause
        self.__cause__ = cause
        return self
