"""Cancellation tokens.

This module provides:
- CancellationToken: read-only "is cancelled" state plus a reason
- CancellationSource: the owner side that fires a token
- ComposedToken: a token derived from other sources, with ``clear()``
- any_token: cancelled as soon as any of its inputs is
- timeout_token: cancels itself after a delay

Cancellation is cooperative: firing a token only notifies listeners.
Tasks observe the token (``cancelled``, ``raise_if_cancelled``, ``wait``)
and abort their own work.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import math
import threading
from typing import Any, Callable, Iterable

from corekit.managers.abort_error import AbortError

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]

# Largest delay a timer accepts (2**31 - 1 ms, about 24.8 days)
MAX_TIMEOUT_MS = 2_147_483_647


class CancellationToken:
    """Observable cancellation state.

    A token fires at most once; listeners receive the cancellation reason.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._cancelled = False
        self._reason: Any = None
        self._listeners: list[Listener] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> Any:
        return self._reason

    def add_listener(self, listener: Listener) -> bool:
        """Attach ``listener``.

        Returns:
            False if the token already fired; the listener is not attached
            and will not be called.
        """
        with self._lock:
            if self._cancelled:
                return False
            self._listeners.append(listener)
            return True

    def remove_listener(self, listener: Listener) -> None:
        with self._lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

    def raise_if_cancelled(self) -> None:
        """Raise the cancellation reason if the token has fired."""
        if not self._cancelled:
            return
        if isinstance(self._reason, BaseException):
            raise self._reason
        raise AbortError(str(self._reason) if self._reason is not None else "The operation was aborted")

    async def wait(self) -> Any:
        """Wait until the token fires and return the reason."""
        loop = asyncio.get_running_loop()
        fired: asyncio.Future[Any] = loop.create_future()

        def _resolve(reason: Any) -> None:
            if not fired.done():
                fired.set_result(reason)

        def _on_cancel(reason: Any) -> None:
            loop.call_soon_threadsafe(_resolve, reason)

        if not self.add_listener(_on_cancel):
            return self._reason

        try:
            return await fired
        finally:
            self.remove_listener(_on_cancel)

    def _fire(self, reason: Any) -> bool:
        with self._lock:
            if self._cancelled:
                return False
            self._cancelled = True
            self._reason = reason
            listeners, self._listeners = self._listeners, []

        for listener in listeners:
            try:
                listener(reason)
            except Exception:
                logger.warning("Cancellation listener %r failed", listener, exc_info=True)
        return True

    def __repr__(self) -> str:
        return f"<{type(self).__name__} cancelled={self._cancelled}>"


class CancellationSource:
    """Owner of a CancellationToken."""

    def __init__(self) -> None:
        self.token = CancellationToken()

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled

    def cancel(self, reason: Any = None) -> bool:
        """Fire the token.

        Args:
            reason: Cancellation reason; defaults to an AbortError.

        Returns:
            False if the token had already fired.
        """
        if reason is None:
            reason = AbortError()
        return self.token._fire(reason)


class ComposedToken(CancellationToken):
    """Token derived from other tokens or timers.

    ``clear()`` detaches everything the token registered on its inputs
    without changing their state. It is idempotent and safe after firing.
    """

    def __init__(self) -> None:
        super().__init__()
        self._detachers: list[Callable[[], None]] = []

    def _on_clear(self, detacher: Callable[[], None]) -> None:
        with self._lock:
            self._detachers.append(detacher)

    def clear(self) -> None:
        with self._lock:
            detachers, self._detachers = self._detachers, []
        for detach in detachers:
            detach()


def any_token(tokens: Iterable[CancellationToken | None]) -> ComposedToken:
    """Combine tokens into one that fires when any input fires.

    ``None`` entries are ignored. With no usable inputs the result is a
    token that never fires. If an input has already fired, the result is
    returned already cancelled with that input's reason; otherwise it
    listens on every input, takes the reason of the first to fire
    unchanged, and detaches from the rest.
    """
    live = [token for token in tokens if token is not None]
    combined = ComposedToken()

    for token in live:
        if token.cancelled:
            combined._fire(token.reason)
            return combined

    def _on_any(reason: Any) -> None:
        combined._fire(reason)
        combined.clear()

    for token in live:
        if not token.add_listener(_on_any):
            # Fired while we were attaching
            _on_any(token.reason)
            break
        combined._on_clear(functools.partial(token.remove_listener, _on_any))

    return combined


def _clamp_timeout(timeout_ms: float) -> float:
    if not isinstance(timeout_ms, (int, float)) or math.isnan(timeout_ms) or timeout_ms < 0:
        return 0
    return min(timeout_ms, MAX_TIMEOUT_MS)


def timeout_token(timeout_ms: float) -> ComposedToken:
    """Token that cancels itself with an AbortError after ``timeout_ms``.

    Scheduled on the running event loop when there is one, otherwise on a
    daemon thread timer. ``clear()`` cancels the pending timer.
    """
    delay_ms = _clamp_timeout(timeout_ms)
    token = ComposedToken()

    def _expire() -> None:
        token._fire(AbortError(f"The operation timed out after {delay_ms}ms", timeout=delay_ms))

    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None

    if loop is not None:
        handle = loop.call_later(delay_ms / 1000, _expire)
        token._on_clear(handle.cancel)
    else:
        timer = threading.Timer(delay_ms / 1000, _expire)
        timer.daemon = True
        timer.start()
        token._on_clear(timer.cancel)

    return token
