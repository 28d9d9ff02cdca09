"""Tests for executor models, errors and the plugin contract."""

from __future__ import annotations

import asyncio

import pytest
from pydantic import ValidationError

from corekit.executor import (
    ABORT_ERROR_ID,
    ExecutionContext,
    ExecutorConfig,
    ExecutorError,
    ExecutorPlugin,
    HookName,
    HookRuntimes,
)
from corekit.managers import AbortError, is_abort_error


class TestExecutorError:
    """Tests for ExecutorError."""

    def test_exception_cause(self):
        """Test the message comes from the cause and is chained."""
        cause = ValueError("bad input")
        error = ExecutorError("SOME_ERROR", cause)

        assert error.id == "SOME_ERROR"
        assert error.message == "bad input"
        assert error.cause is cause
        assert error.__cause__ is cause

    def test_string_cause(self):
        """Test a string cause becomes the message."""
        error = ExecutorError("SOME_ERROR", "went wrong")

        assert error.message == "went wrong"
        assert str(error) == "went wrong"

    def test_no_cause_uses_id(self):
        """Test the id doubles as the message without a cause."""
        error = ExecutorError("SOME_ERROR")

        assert error.message == "SOME_ERROR"
        assert error.cause is None


class TestAbortError:
    """Tests for AbortError and is_abort_error."""

    def test_fields(self):
        """Test AbortError is an ExecutorError with the abort id."""
        error = AbortError("timed out", abort_id="op", timeout=50)

        assert isinstance(error, ExecutorError)
        assert error.id == ABORT_ERROR_ID
        assert error.message == "timed out"
        assert error.abort_id == "op"
        assert error.timeout == 50

    @pytest.mark.parametrize(
        "error, expected",
        [
            (AbortError(), True),
            (ExecutorError(ABORT_ERROR_ID, "cancelled"), True),
            (asyncio.CancelledError(), True),
            (ExecutorError("OTHER"), False),
            (ValueError("x"), False),
            (None, False),
        ],
    )
    def test_is_abort_error(self, error, expected):
        """Test which values count as abort errors."""
        assert is_abort_error(error) is expected


class TestHookRuntimes:
    """Tests for HookRuntimes."""

    def test_reset_keeps_cross_phase_state(self):
        """Test reset clears phase state but keeps continue_on_error and extras."""
        runtimes = HookRuntimes(
            plugin_name="p",
            times=2,
            return_value="x",
            break_chain=True,
            return_break_chain=True,
            continue_on_error=True,
        )
        runtimes.extras["seen"] = True

        runtimes.reset(HookName.ON_SUCCESS.value)

        assert runtimes.hook_name == "on_success"
        assert runtimes.plugin_name == ""
        assert runtimes.times == 0
        assert runtimes.return_value is None
        assert runtimes.break_chain is False
        assert runtimes.return_break_chain is False
        assert runtimes.continue_on_error is True
        assert runtimes.extras == {"seen": True}

    def test_context_reset_replaces_runtimes(self):
        """Test ExecutionContext.reset discards the per-run runtimes."""
        context = ExecutionContext(parameters={"a": 1})
        context.hooks_runtimes.extras["k"] = "v"

        context.reset()

        assert context.hooks_runtimes.extras == {}
        assert context.parameters == {"a": 1}


class TestExecutorConfig:
    """Tests for ExecutorConfig."""

    def test_defaults(self):
        """Test the standard phase names."""
        config = ExecutorConfig()

        assert config.before_hooks == ["on_before"]
        assert config.after_hooks == ["on_success"]
        assert config.hook_names() == {
            "on_before",
            "on_exec",
            "on_success",
            "on_error",
            "on_finally",
        }

    def test_single_name_and_enum_members(self):
        """Test a single name or HookName members normalize to str lists."""
        config = ExecutorConfig(
            before_hooks="on_validate",
            after_hooks=[HookName.ON_SUCCESS, "on_audit"],
            error_hook=HookName.ON_ERROR,
        )

        assert config.before_hooks == ["on_validate"]
        assert config.after_hooks == ["on_success", "on_audit"]
        assert config.error_hook == "on_error"

    def test_frozen(self):
        """Test configs cannot be mutated."""
        config = ExecutorConfig()

        with pytest.raises(ValidationError):
            config.exec_hook = "other"


class TestExecutorPlugin:
    """Tests for the plugin contract."""

    def test_plugin_name_defaults_to_class_name(self):
        """Test subclasses get their class name as plugin_name."""

        class CachePlugin(ExecutorPlugin):
            pass

        class NamedPlugin(ExecutorPlugin):
            plugin_name = "custom"

        assert CachePlugin().plugin_name == "CachePlugin"
        assert NamedPlugin().plugin_name == "custom"

    def test_get_hook_only_dispatches_known_names(self):
        """Test undeclared custom hooks are not dispatched."""

        class ValidatingPlugin(ExecutorPlugin):
            def on_before(self, context):
                return None

            def on_validate(self, context):
                return None

            def helper(self, context):
                return None

        plugin = ValidatingPlugin()

        assert plugin.get_hook("on_before") is not None
        assert plugin.get_hook("on_success") is None
        assert plugin.get_hook("on_validate") is None
        assert plugin.get_hook("helper") is None

    def test_custom_hooks_are_dispatched(self):
        """Test names listed in custom_hooks are dispatched."""

        class ValidatingPlugin(ExecutorPlugin):
            custom_hooks = ("on_validate",)

            def on_validate(self, context):
                return None

        assert ValidatingPlugin().get_hook("on_validate") is not None
