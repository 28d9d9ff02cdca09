"""Retry engine for asynchronous operations.

RetryPool re-invokes a zero-argument async callable until it succeeds or
the retry budget runs out, waiting between attempts with either a fixed
delay or exponential backoff.

The pool is stateless: one instance can serve any number of concurrent
retries.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from corekit.executor.errors import RETRY_ERROR_ID, ExecutorError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Ceiling that keeps a misconfigured caller from looping for ever
SAFE_MAX_RETRIES = 16
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_MS = 1000


def always_retry(error: BaseException) -> bool:
    return True


class RetryOptions(BaseModel):
    """Normalized retry configuration.

    ``max_retries`` is the number of retries after the first attempt and
    is clamped into [1, SAFE_MAX_RETRIES] on construction.
    """

    model_config = ConfigDict(frozen=True)

    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: float = Field(default=DEFAULT_RETRY_DELAY_MS, ge=0)  # milliseconds
    use_exponential_backoff: bool = False
    should_retry: Callable[[BaseException], bool] = always_retry

    @field_validator("max_retries", mode="before")
    @classmethod
    def _clamp_max_retries(cls, value: Any) -> int:
        if value is None:
            value = DEFAULT_MAX_RETRIES
        return min(max(1, int(value)), SAFE_MAX_RETRIES)


class RetryPool:
    """Applies retry logic to async callables.

    Usage:
        pool = RetryPool("APIPool")
        options = pool.normalize_options({"max_retries": 5, "use_exponential_backoff": True})

        result = await pool.retry(lambda: client.get("/users"), options)
        if isinstance(result, ExecutorError):
            ...
    """

    def __init__(self, pool_name: str = "RetryPool", logger: logging.Logger | None = None):
        """Initialize the pool.

        Args:
            pool_name: Name used in log messages.
            logger: Optional logger; defaults to this module's logger.
        """
        self.pool_name = pool_name
        self.logger = logger or logging.getLogger(__name__)

    def normalize_options(self, options: RetryOptions | dict[str, Any] | None = None) -> RetryOptions:
        """Apply defaults and clamp ``max_retries``.

        Args:
            options: Partial options as a mapping, or already-built options.

        Returns:
            Complete RetryOptions.
        """
        if isinstance(options, RetryOptions):
            return options

        provided = {k: v for k, v in (options or {}).items() if v is not None}
        return RetryOptions(**provided)

    def compute_delay(self, attempt: int, options: RetryOptions) -> float:
        """Delay in milliseconds before retry number ``attempt`` (0-based)."""
        if options.use_exponential_backoff:
            return options.retry_delay * (2 ** attempt)
        return options.retry_delay

    async def delay(self, attempt: int, options: RetryOptions) -> None:
        """Sleep for the delay that precedes retry number ``attempt``."""
        await asyncio.sleep(self.compute_delay(attempt, options) / 1000)

    def should_retry(self, error: BaseException, retry_count: int, options: RetryOptions) -> bool:
        """Whether a failed attempt with ``retry_count`` retries left may be retried."""
        return retry_count > 0 and options.should_retry(error)

    async def retry(
        self,
        fn: Callable[[], Awaitable[T]],
        options: RetryOptions,
        retry_count: int | None = None,
    ) -> T | ExecutorError:
        """Run ``fn`` until it succeeds or retries are exhausted.

        ``fn`` is attempted once and then up to ``retry_count`` more times
        (``options.max_retries`` by default). The backoff attempt number is
        ``max_retries - retry_count``, so the first retry waits
        ``retry_delay * 2**0``.

        Returns:
            The value of the first successful attempt, or an ExecutorError
            with id RETRY_ERROR chained to the last failure.
        """
        remaining = options.max_retries if retry_count is None else retry_count

        while True:
            try:
                return await fn()
            except Exception as error:
                if not self.should_retry(error, remaining, options):
                    self.logger.warning(
                        "%s: giving up after %d retries: %s",
                        self.pool_name,
                        options.max_retries - remaining,
                        error,
                    )
                    return ExecutorError(
                        RETRY_ERROR_ID,
                        f"All {options.max_retries} attempts failed: {error}",
                    ).with_cause(error)

                attempt = options.max_retries - remaining
                self.logger.debug(
                    "%s: attempt failed (%s), retry %d in %gms",
                    self.pool_name,
                    error,
                    attempt + 1,
                    self.compute_delay(attempt, options),
                )
                await self.delay(attempt, options)
                remaining -= 1
