"""Executor plugin contract.

Plugins observe and steer a run by implementing any of the lifecycle
hooks named in ``HookName``. Hooks receive the ``ExecutionContext`` and may
return nothing, a value, or an awaitable (``AsyncExecutor`` only).

Plugins that take part in custom phases (see ``ExecutorConfig``) list the
extra hook names in ``custom_hooks``; anything else is never dispatched.
"""

from __future__ import annotations

from typing import Any, Callable

from corekit.executor.models import DEFAULT_HOOK_NAMES, ExecutionContext

HookCallable = Callable[..., Any]


class ExecutorPlugin:
    """Base class for executor plugins.

    Attributes:
        plugin_name: Used for deduplication and logging. Defaults to the
            class name.
        only_one: Reject registration of a second plugin with the same name.
        custom_hooks: Extra hook names this plugin implements.
    """

    plugin_name: str = ""
    only_one: bool = False
    custom_hooks: tuple[str, ...] = ()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if not cls.__dict__.get("plugin_name"):
            cls.plugin_name = cls.__name__

    def enabled(self, hook_name: str, context: ExecutionContext[Any]) -> bool:
        """Whether ``hook_name`` should run on this plugin for ``context``."""
        return True

    def get_hook(self, hook_name: str) -> HookCallable | None:
        """Look up the callable implementing ``hook_name``, if any."""
        if hook_name not in DEFAULT_HOOK_NAMES and hook_name not in self.custom_hooks:
            return None

        hook = getattr(self, hook_name, None)
        return hook if callable(hook) else None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} plugin_name={self.plugin_name!r}>"
