"""Plugin hook runners.

Each runner walks the registered plugins in order and invokes one hook
phase, honouring the chain-control flags in ``HookRuntimes``. The sync
runners reject hooks that return awaitables; the async runners await each
hook before starting the next one.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Iterable, Sequence

from corekit.executor.models import ExecutionContext, HookRuntimes
from corekit.executor.plugin import ExecutorPlugin, HookCallable

logger = logging.getLogger(__name__)


def resolve_hook(
    plugin: ExecutorPlugin,
    hook_name: str,
    context: ExecutionContext[Any],
) -> HookCallable | None:
    """Return the hook to call, or None if the plugin should be skipped."""
    hook = plugin.get_hook(hook_name)
    if hook is None:
        return None
    if not plugin.enabled(hook_name, context):
        return None
    return hook


def _mark_running(runtimes: HookRuntimes, plugin: ExecutorPlugin, index: int) -> None:
    runtimes.plugin_name = plugin.plugin_name
    runtimes.plugin_index = index
    runtimes.times += 1


def _ensure_sync(result: Any, plugin: ExecutorPlugin, hook_name: str) -> Any:
    if inspect.isawaitable(result):
        if inspect.iscoroutine(result):
            result.close()
        raise TypeError(
            f"Hook {plugin.plugin_name}.{hook_name} returned an awaitable; "
            "use AsyncExecutor for asynchronous hooks"
        )
    return result


def _record_return(runtimes: HookRuntimes, result: Any) -> bool:
    """Store a hook's return value. Returns True if the phase should stop."""
    runtimes.return_value = result
    return runtimes.return_break_chain


def _apply_error_result(context: ExecutionContext[Any], result: Any) -> bool:
    """Record one error hook's result. Returns True if the phase should stop.

    ``return_value`` always reflects the hook that just ran, so a recovery
    is judged by the hook that set ``return_break_chain``.
    """
    runtimes = context.hooks_runtimes
    runtimes.return_value = result
    if isinstance(result, Exception):
        context.error = result
    elif result is not None:
        context.return_value = result
    return runtimes.return_break_chain


def _hook_failed(context: ExecutionContext[Any], hook_name: str, error: Exception) -> None:
    runtimes = context.hooks_runtimes
    logger.debug(
        "Hook %s.%s raised %r, superseding %r",
        runtimes.plugin_name,
        hook_name,
        error,
        context.error,
    )
    context.error = error
    runtimes.return_break_chain = False


def _recovered(runtimes: HookRuntimes) -> bool:
    # Only meaningful right after the hook that stopped the error phase
    return runtimes.return_break_chain and not isinstance(runtimes.return_value, Exception)


def normalize_hook_names(hook_names: str | Iterable[str]) -> list[str]:
    if isinstance(hook_names, str):
        return [hook_names]
    return list(hook_names)


# --- Synchronous runners ---


def run_plugins_hook(
    plugins: Sequence[ExecutorPlugin],
    hook_name: str,
    context: ExecutionContext[Any],
    *args: Any,
) -> Any:
    """Run one hook phase synchronously.

    Returns:
        The last non-None value returned by a hook, or None.
    """
    runtimes = context.hooks_runtimes
    runtimes.reset(hook_name)
    return_value = None

    for index, plugin in enumerate(plugins):
        hook = resolve_hook(plugin, hook_name, context)
        if hook is None:
            continue
        if runtimes.break_chain:
            break

        _mark_running(runtimes, plugin, index)

        try:
            result = _ensure_sync(hook(context, *args), plugin, hook_name)
        except Exception:
            if runtimes.continue_on_error:
                logger.warning(
                    "Ignoring failure in %s.%s", plugin.plugin_name, hook_name, exc_info=True
                )
                continue
            raise

        if result is not None:
            return_value = result
            if _record_return(runtimes, result):
                break

    return return_value


def run_plugins_hooks(
    plugins: Sequence[ExecutorPlugin],
    hook_names: str | Iterable[str],
    context: ExecutionContext[Any],
    *args: Any,
) -> Any:
    """Run several hook phases in order, stopping on ``break_chain``."""
    last_return = None

    for hook_name in normalize_hook_names(hook_names):
        result = run_plugins_hook(plugins, hook_name, context, *args)
        if result is not None:
            last_return = result
        if context.hooks_runtimes.break_chain:
            break

    return last_return


def run_error_hook(
    plugins: Sequence[ExecutorPlugin],
    hook_name: str,
    context: ExecutionContext[Any],
) -> bool:
    """Run the error phase best-effort.

    A hook that raises supersedes ``context.error`` and the remaining
    hooks still run. A returned exception replaces ``context.error``; any
    other returned value is written to ``context.return_value``.

    Returns:
        True if a hook recovered the run via ``return_break_chain``.
    """
    runtimes = context.hooks_runtimes
    runtimes.reset(hook_name)

    for index, plugin in enumerate(plugins):
        hook = resolve_hook(plugin, hook_name, context)
        if hook is None:
            continue
        if runtimes.break_chain:
            break

        _mark_running(runtimes, plugin, index)

        try:
            result = _ensure_sync(hook(context), plugin, hook_name)
        except Exception as error:
            _hook_failed(context, hook_name, error)
            continue

        if _apply_error_result(context, result):
            break

    return _recovered(runtimes)


# --- Asynchronous runners ---


async def run_plugins_hook_async(
    plugins: Sequence[ExecutorPlugin],
    hook_name: str,
    context: ExecutionContext[Any],
    *args: Any,
) -> Any:
    """Run one hook phase, awaiting each hook before the next."""
    runtimes = context.hooks_runtimes
    runtimes.reset(hook_name)
    return_value = None

    for index, plugin in enumerate(plugins):
        hook = resolve_hook(plugin, hook_name, context)
        if hook is None:
            continue
        if runtimes.break_chain:
            break

        _mark_running(runtimes, plugin, index)

        try:
            result = hook(context, *args)
            if inspect.isawaitable(result):
                result = await result
        except Exception:
            if runtimes.continue_on_error:
                logger.warning(
                    "Ignoring failure in %s.%s", plugin.plugin_name, hook_name, exc_info=True
                )
                continue
            raise

        if result is not None:
            return_value = result
            if _record_return(runtimes, result):
                break

    return return_value


async def run_plugins_hooks_async(
    plugins: Sequence[ExecutorPlugin],
    hook_names: str | Iterable[str],
    context: ExecutionContext[Any],
    *args: Any,
) -> Any:
    """Async counterpart of ``run_plugins_hooks``."""
    last_return = None

    for hook_name in normalize_hook_names(hook_names):
        result = await run_plugins_hook_async(plugins, hook_name, context, *args)
        if result is not None:
            last_return = result
        if context.hooks_runtimes.break_chain:
            break

    return last_return


async def run_error_hook_async(
    plugins: Sequence[ExecutorPlugin],
    hook_name: str,
    context: ExecutionContext[Any],
) -> bool:
    """Async counterpart of ``run_error_hook``."""
    runtimes = context.hooks_runtimes
    runtimes.reset(hook_name)

    for index, plugin in enumerate(plugins):
        hook = resolve_hook(plugin, hook_name, context)
        if hook is None:
            continue
        if runtimes.break_chain:
            break

        _mark_running(runtimes, plugin, index)

        try:
            result = hook(context)
            if inspect.isawaitable(result):
                result = await result
        except Exception as error:
            _hook_failed(context, hook_name, error)
            continue

        if _apply_error_result(context, result):
            break

    return _recovered(runtimes)
