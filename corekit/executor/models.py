"""Executor layer models.

This module defines the per-run structures shared by the executors:
- HookName: Well-known lifecycle phase names
- HookRuntimes: Per-run scratch state used for chain control
- ExecutionContext: Parameters, result and error of a single run
- ExecutorConfig: Which hook names make up each phase
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

Params = TypeVar("Params")


class HookName(str, Enum):
    """Lifecycle phases a plugin may implement."""

    ON_BEFORE = "on_before"
    ON_EXEC = "on_exec"
    ON_SUCCESS = "on_success"
    ON_ERROR = "on_error"
    ON_FINALLY = "on_finally"


DEFAULT_HOOK_NAMES: frozenset[str] = frozenset(h.value for h in HookName)


@dataclass
class HookRuntimes:
    """Scratch state for the hook phase currently running.

    Reset at the start of every phase, so nothing set here outlives the
    phase that set it except ``extras``, which plugins use to signal each
    other within one run.
    """

    plugin_name: str = ""
    hook_name: str = ""
    plugin_index: int | None = None
    times: int = 0
    return_value: Any = None
    break_chain: bool = False
    return_break_chain: bool = False
    continue_on_error: bool = False
    extras: dict[str, Any] = field(default_factory=dict)

    def reset(self, hook_name: str = "") -> None:
        """Clear phase state before running ``hook_name``."""
        self.plugin_name = ""
        self.hook_name = hook_name
        self.plugin_index = None
        self.times = 0
        self.return_value = None
        self.break_chain = False
        self.return_break_chain = False


@dataclass
class ExecutionContext(Generic[Params]):
    """State of one ``exec`` call, owned by that call only."""

    parameters: Params
    return_value: Any = None
    error: Exception | None = None
    hooks_runtimes: HookRuntimes = field(default_factory=HookRuntimes)

    def reset(self) -> None:
        """Discard per-run state once the run has settled."""
        self.hooks_runtimes = HookRuntimes()


class ExecutorConfig(BaseModel):
    """Hook names used for each phase of a run."""

    model_config = ConfigDict(frozen=True)

    before_hooks: list[str] = Field(default_factory=lambda: [HookName.ON_BEFORE.value])
    after_hooks: list[str] = Field(default_factory=lambda: [HookName.ON_SUCCESS.value])
    exec_hook: str = HookName.ON_EXEC.value
    error_hook: str = HookName.ON_ERROR.value
    finally_hook: str = HookName.ON_FINALLY.value

    @field_validator("before_hooks", "after_hooks", mode="before")
    @classmethod
    def _as_list(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = [value]
        return [v.value if isinstance(v, HookName) else v for v in value]

    @field_validator("exec_hook", "error_hook", "finally_hook", mode="before")
    @classmethod
    def _enum_value(cls, value: Any) -> Any:
        if isinstance(value, HookName):
            return value.value
        return value

    def hook_names(self) -> set[str]:
        """All hook names this configuration dispatches."""
        return {
            *self.before_hooks,
            *self.after_hooks,
            self.exec_hook,
            self.error_hook,
            self.finally_hook,
        }
