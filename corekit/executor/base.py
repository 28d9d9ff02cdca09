"""Shared executor plumbing: plugin registration and phase configuration."""

from __future__ import annotations

import logging
from typing import Any, Callable, Generic, TypeVar

from corekit.executor.models import ExecutionContext, ExecutorConfig
from corekit.executor.plugin import ExecutorPlugin


PluginT = TypeVar("PluginT", bound=ExecutorPlugin)


class BaseExecutor(Generic[PluginT]):
    """Holds the plugin list and resolves hook names for each phase.

    The plugin list is expected to be configured before concurrent
    ``exec`` calls begin; ``use`` is not synchronized.
    """

    def __init__(
        self,
        config: ExecutorConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            config: Hook names per phase. Defaults to the standard phases.
            logger: Logger for registration warnings and run tracing.
        """
        self.config = config or ExecutorConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.plugins: list[PluginT] = []

    def use(self, plugin: PluginT) -> None:
        """Register a plugin.

        A plugin whose name is already registered is skipped (with a
        warning) when either it or the registered one is ``only_one``.

        Raises:
            TypeError: If ``plugin`` is not an ExecutorPlugin.
        """
        if not isinstance(plugin, ExecutorPlugin):
            raise TypeError(f"Plugin must be an ExecutorPlugin, got {type(plugin).__name__}")

        if self._is_duplicate(plugin):
            self.logger.warning(
                "Plugin %s is already used, skipped", plugin.plugin_name or "Unknown"
            )
            return

        self.plugins.append(plugin)

    def _is_duplicate(self, plugin: PluginT) -> bool:
        for registered in self.plugins:
            if registered is plugin and plugin.only_one:
                return True
            same_name = bool(plugin.plugin_name) and registered.plugin_name == plugin.plugin_name
            if same_name and (plugin.only_one or registered.only_one):
                return True
        return False

    def create_context(self, parameters: Any) -> ExecutionContext[Any]:
        return ExecutionContext(parameters=parameters)

    @staticmethod
    def _split_args(
        data_or_task: Any,
        task: Callable[..., Any] | None,
    ) -> tuple[Any, Callable[..., Any]]:
        """Support both ``exec(task)`` and ``exec(parameters, task)``."""
        if task is None:
            actual_task, parameters = data_or_task, {}
        else:
            actual_task, parameters = task, data_or_task

        if not callable(actual_task):
            raise TypeError("Task must be callable")

        return parameters, actual_task
