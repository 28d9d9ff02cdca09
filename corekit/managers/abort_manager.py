"""Keyed pool of cancellable operations.

AbortManager hands out a cancellation token per operation id, so an
operation can later be cancelled by id (or all at once) from anywhere.

Operation configs are plain dicts. Recognised keys:
- ``abort_id``: id of the operation; generated when missing
- ``abort_timeout``: milliseconds after which the token fires on its own
- ``on_aborted``: callback receiving the config when aborted by the manager
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, MutableMapping, TypeVar, Union

from corekit.managers.abort_error import AbortError
from corekit.managers.auto_cleanup import AutoCleanup, Finalizer
from corekit.managers.cancellation import (
    CancellationSource,
    CancellationToken,
    ComposedToken,
    any_token,
    timeout_token,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

AbortConfig = MutableMapping[str, Any]


@dataclass
class _Operation:
    source: CancellationSource
    token: CancellationToken
    config: AbortConfig
    composed: ComposedToken | None = None

    def release(self) -> None:
        if self.composed is not None:
            self.composed.clear()


class AbortManager:
    """Registers, cancels and releases operations by id."""

    def __init__(self, pool_name: str = "AbortManager") -> None:
        self.pool_name = pool_name
        self._counter = 0
        self._operations: dict[str, _Operation] = {}

    def __len__(self) -> int:
        return len(self._operations)

    def __contains__(self, abort_id: object) -> bool:
        return abort_id in self._operations

    def generate_abort_id(self, config: AbortConfig | None = None) -> str:
        """Return the config's ``abort_id`` or a fresh ``<pool_name>-<n>`` id."""
        if config and config.get("abort_id"):
            return str(config["abort_id"])
        self._counter += 1
        return f"{self.pool_name}-{self._counter}"

    def register(self, config: AbortConfig | None = None) -> tuple[str, CancellationToken]:
        """Register an operation.

        The id is written back into ``config`` so later lookups by config
        resolve to the same operation.

        Returns:
            Tuple of (abort_id, token).

        Raises:
            ValueError: If an operation with the same id is registered.
        """
        if config is None:
            config = {}

        abort_id = self.generate_abort_id(config)
        if abort_id in self._operations:
            raise ValueError(
                f'Operation with ID "{abort_id}" is already registered in {self.pool_name}'
            )
        config["abort_id"] = abort_id

        source = CancellationSource()
        operation = _Operation(source=source, token=source.token, config=config)

        timeout = config.get("abort_timeout")
        if timeout is not None and timeout > 0:
            timer = timeout_token(timeout)
            combined = any_token([source.token, timer])
            # Releasing the operation also stops its timer
            combined._on_clear(timer.clear)

            operation.token = combined
            operation.composed = combined

        self._operations[abort_id] = operation
        logger.debug("%s: registered %s", self.pool_name, abort_id)
        return abort_id, operation.token

    def _key(self, config_or_id: AbortConfig | str) -> str | None:
        if isinstance(config_or_id, str):
            return config_or_id
        return config_or_id.get("abort_id")

    def get_token(self, abort_id: str) -> CancellationToken | None:
        operation = self._operations.get(abort_id)
        return operation.token if operation else None

    def cleanup(self, config_or_id: AbortConfig | str) -> None:
        """Forget an operation without cancelling it."""
        key = self._key(config_or_id)
        operation = self._operations.pop(key, None) if key else None
        if operation is not None:
            operation.release()

    def abort(self, config_or_id: AbortConfig | str) -> bool:
        """Cancel an operation and release it.

        Returns:
            False if no such operation is registered.
        """
        key = self._key(config_or_id)
        operation = self._operations.get(key) if key else None
        if operation is None:
            return False

        operation.source.cancel(AbortError("The operation was aborted", key))
        self.cleanup(key)
        logger.debug("%s: aborted %s", self.pool_name, key)

        on_aborted = operation.config.get("on_aborted")
        if callable(on_aborted):
            try:
                on_aborted({**operation.config, "on_aborted": None})
            except Exception:
                logger.warning("%s: on_aborted callback for %s failed", self.pool_name, key, exc_info=True)

        return True

    def abort_all(self) -> None:
        """Cancel every registered operation."""
        operations, self._operations = self._operations, {}

        for key, operation in operations.items():
            operation.source.cancel(AbortError("All operations were aborted", key))
            operation.release()

    async def auto_cleanup(
        self,
        factory: Callable[[str, CancellationToken], Union[Awaitable[T], T]],
        config: AbortConfig | None = None,
    ) -> T:
        """Run ``factory(abort_id, token)`` and release the operation when it settles."""
        abort_id, token = self.register(config)

        def _bound(finalizer: Finalizer) -> Union[Awaitable[T], T]:
            finalizer(lambda: self.cleanup(abort_id))
            return factory(abort_id, token)

        return await AutoCleanup.run(_bound)
