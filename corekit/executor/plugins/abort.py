"""Abort plugin: gives every run a cancellation token.

``on_before`` registers the run with an AbortManager and injects the
token as ``parameters["token"]``. Tasks observe it cooperatively. The
run's operation is released on success or failure, and cancellation
failures are normalized to AbortError.
"""

from __future__ import annotations

import logging
from collections.abc import MutableMapping
from typing import Any, Callable

from corekit.executor.models import ExecutionContext
from corekit.executor.plugin import ExecutorPlugin
from corekit.managers.abort_error import AbortError, is_abort_error
from corekit.managers.abort_manager import AbortConfig, AbortManager
from corekit.managers.cancellation import CancellationToken

ConfigExtractor = Callable[[Any], AbortConfig]


def _parameters_as_config(parameters: Any) -> AbortConfig:
    return parameters


class AbortPlugin(ExecutorPlugin):
    """Cancellation support for executor runs.

    Usage:
        plugin = AbortPlugin(timeout=5000)
        executor.use(plugin)

        task = asyncio.create_task(executor.exec({"abort_id": "search"}, search))
        plugin.abort("search")
    """

    only_one = True

    def __init__(
        self,
        timeout: float | None = None,
        get_config: ConfigExtractor | None = None,
        abort_manager: AbortManager | None = None,
        plugin_name: str | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the plugin.

        Args:
            timeout: Default ``abort_timeout`` in milliseconds for runs that
                do not set one.
            get_config: Extracts the abort config from the run parameters.
                Defaults to using the parameters dict itself.
            abort_manager: Manager holding the run tokens.
            plugin_name: Name for deduplication. Defaults to "AbortPlugin".
            logger: Optional logger.
        """
        self.plugin_name = plugin_name or "AbortPlugin"
        self.timeout = timeout
        self.get_config = get_config or _parameters_as_config
        self.abort_manager = abort_manager or AbortManager(self.plugin_name)
        self.logger = logger or logging.getLogger(__name__)

    @staticmethod
    def is_abort_error(error: object) -> bool:
        return is_abort_error(error)

    def on_before(self, context: ExecutionContext[Any]) -> None:
        """Register the run and inject its token.

        Raises:
            TypeError: If the parameters, or the config extracted from them,
                are not a mutable mapping.
        """
        if not isinstance(context.parameters, MutableMapping):
            raise TypeError(
                f"{self.plugin_name} requires mapping parameters, "
                f"got {type(context.parameters).__name__}"
            )

        config = self.get_config(context.parameters)
        if not isinstance(config, MutableMapping):
            raise TypeError(f"{self.plugin_name} get_config must return a mutable mapping")

        if self.timeout is not None and config.get("abort_timeout") is None:
            config["abort_timeout"] = self.timeout

        # A new run with the same id supersedes the one in flight
        self.abort_manager.abort(config)

        _, token = self.abort_manager.register(config)
        context.parameters["token"] = token

    def on_success(self, context: ExecutionContext[Any]) -> None:
        self._release(context)

    def on_error(self, context: ExecutionContext[Any]) -> AbortError | None:
        token = self._run_token(context)
        self._release(context)

        if not self.is_abort_error(context.error):
            return None

        abort_id = self._abort_id(context)
        reason = token.reason if token is not None and token.cancelled else None
        self.logger.debug("Run %s was aborted: %s", abort_id, reason or context.error)

        if isinstance(reason, AbortError):
            return reason
        if isinstance(context.error, AbortError):
            return context.error
        return AbortError(str(reason or context.error or "The operation was aborted"), abort_id)

    def on_finally(self, context: ExecutionContext[Any]) -> None:
        # Covers runs interrupted by BaseException, which skip on_error
        self._release(context)

    def abort(self, config_or_id: AbortConfig | str) -> bool:
        return self.abort_manager.abort(config_or_id)

    def abort_all(self) -> None:
        self.abort_manager.abort_all()

    @staticmethod
    def _run_token(context: ExecutionContext[Any]) -> CancellationToken | None:
        if not isinstance(context.parameters, MutableMapping):
            return None
        return context.parameters.get("token")

    def _abort_id(self, context: ExecutionContext[Any]) -> str | None:
        if not isinstance(context.parameters, MutableMapping):
            return None
        config = self.get_config(context.parameters)
        return config.get("abort_id") if isinstance(config, MutableMapping) else None

    def _release(self, context: ExecutionContext[Any]) -> None:
        # Only release our own registration; a newer run may reuse the id
        token = self._run_token(context)
        if token is None:
            return
        abort_id = self._abort_id(context)
        if abort_id and self.abort_manager.get_token(abort_id) is token:
            self.abort_manager.cleanup(abort_id)
