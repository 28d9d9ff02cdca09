"""Cancellation-flavoured executor errors."""

from __future__ import annotations

import asyncio

from corekit.executor.errors import ABORT_ERROR_ID, ExecutorError


class AbortError(ExecutorError):
    """Raised when an operation is cancelled or times out.

    Attributes:
        abort_id: Id of the cancelled operation, when known.
        timeout: Timeout in milliseconds that triggered the cancellation.
    """

    def __init__(
        self,
        message: str = "The operation was aborted",
        abort_id: str | None = None,
        timeout: float | None = None,
    ):
        super().__init__(ABORT_ERROR_ID, message)
        self.abort_id = abort_id
        self.timeout = timeout


def is_abort_error(error: object) -> bool:
    """Check whether ``error`` signals a cancelled operation."""
    if isinstance(error, AbortError):
        return True

    if isinstance(error, ExecutorError) and error.id == ABORT_ERROR_ID:
        return True

    return isinstance(error, asyncio.CancelledError)
