"""Deterministic cleanup tied to one computation.

AutoCleanup runs a factory with a Finalizer. Cleanups registered on the
finalizer run exactly once, last-registered first, when the computation
settles, whether it returned, raised, or raised before producing an
awaitable. A cleanup registered once settling has begun (including from
inside another cleanup) runs immediately.

Usage:
    async def fetch(finalizer):
        session = open_session()
        finalizer(session.close)
        return await session.get("/users")

    users = await AutoCleanup.run(fetch)
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, TypeVar, Union

from corekit.executor.errors import EXECUTOR_ASYNC_ERROR, ExecutorError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Cleanup = Callable[[], Any]


class FinalizerState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SETTLING = "settling"
    SETTLED = "settled"


class Finalizer:
    """Collects cleanups for one computation.

    Callable directly; ``add`` and ``add_cleanup`` are aliases. Cleanups
    are synchronous callables; non-callables are ignored. A cleanup that
    raises is logged and does not affect the computation's outcome.
    """

    def __init__(self) -> None:
        self._cleanups: list[Cleanup] = []
        self.state = FinalizerState.PENDING

    @property
    def settled(self) -> bool:
        return self.state in (FinalizerState.SETTLING, FinalizerState.SETTLED)

    def __call__(self, cleanup: Cleanup) -> None:
        if not callable(cleanup):
            return
        if self.settled:
            self._invoke(cleanup)
            return
        self._cleanups.append(cleanup)

    add = __call__
    add_cleanup = __call__

    def __len__(self) -> int:
        return len(self._cleanups)

    def _start(self) -> None:
        self.state = FinalizerState.RUNNING

    def _settle(self) -> None:
        if self.settled:
            return
        self.state = FinalizerState.SETTLING
        while self._cleanups:
            self._invoke(self._cleanups.pop())
        self.state = FinalizerState.SETTLED

    @staticmethod
    def _invoke(cleanup: Cleanup) -> None:
        try:
            cleanup()
        except Exception:
            logger.debug("Cleanup %r failed", cleanup, exc_info=True)


class AutoCleanup:
    """Entry points that bind a Finalizer to a computation's lifetime."""

    @staticmethod
    async def run(factory: Callable[[Finalizer], Union[Awaitable[T], T]]) -> T:
        """Run ``factory(finalizer)`` and settle its cleanups.

        Returns:
            The factory's (awaited) value.

        Raises:
            Exception: Whatever the factory raised, unchanged.
        """
        finalizer = Finalizer()
        finalizer._start()
        try:
            result = factory(finalizer)
            if inspect.isawaitable(result):
                result = await result
            return result
        finally:
            finalizer._settle()

    @staticmethod
    def run_sync(factory: Callable[[Finalizer], T]) -> T:
        """Synchronous ``run`` for factories that never suspend.

        Raises:
            TypeError: If the factory returns an awaitable.
        """
        finalizer = Finalizer()
        finalizer._start()
        try:
            result = factory(finalizer)
            if inspect.isawaitable(result):
                if inspect.iscoroutine(result):
                    result.close()
                raise TypeError("Factory returned an awaitable; use AutoCleanup.run")
            return result
        finally:
            finalizer._settle()

    @staticmethod
    async def from_executor(
        executor: Callable[[Callable[..., None], Callable[[Any], None], Finalizer], Any],
    ) -> Any:
        """Settle manually through ``resolve``/``reject`` callbacks.

        ``executor(resolve, reject, finalizer)`` is called at once. Only
        the first settlement counts. An exception raised by ``executor``
        rejects the computation.
        """
        loop = asyncio.get_running_loop()
        outcome: asyncio.Future[Any] = loop.create_future()
        finalizer = Finalizer()

        def resolve(value: Any = None) -> None:
            if not outcome.done():
                outcome.set_result(value)

        def reject(reason: Any) -> None:
            if outcome.done():
                return
            if not isinstance(reason, BaseException):
                reason = ExecutorError(EXECUTOR_ASYNC_ERROR, reason)
            outcome.set_exception(reason)

        finalizer._start()
        try:
            try:
                executor(resolve, reject, finalizer)
            except Exception as error:
                reject(error)

            return await outcome
        finally:
            finalizer._settle()
