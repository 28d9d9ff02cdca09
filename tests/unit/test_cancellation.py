"""Tests for cancellation tokens, any_token and timeout_token."""

from __future__ import annotations

import asyncio
import logging
import time

import pytest

from corekit.managers import (
    AbortError,
    CancellationSource,
    ComposedToken,
    any_token,
    timeout_token,
)


@pytest.fixture
def sources() -> list[CancellationSource]:
    """Create three independent cancellation sources."""
    return [CancellationSource() for _ in range(3)]


class TestCancellationSource:
    """Tests for the basic token."""

    def test_cancel_sets_state_and_default_reason(self):
        """Test cancel() fires the token with an AbortError by default."""
        source = CancellationSource()

        assert source.cancel() is True
        assert source.token.cancelled is True
        assert isinstance(source.token.reason, AbortError)

    def test_cancel_is_one_shot(self):
        """Test a token cannot fire twice."""
        source = CancellationSource()
        source.cancel("first")

        assert source.cancel("second") is False
        assert source.token.reason == "first"

    def test_listeners_receive_reason(self):
        """Test listeners are called with the reason."""
        source = CancellationSource()
        received: list[object] = []
        source.token.add_listener(received.append)

        source.cancel("stop")

        assert received == ["stop"]

    def test_add_listener_after_fire_returns_false(self):
        """Test listeners are not attached to a fired token."""
        source = CancellationSource()
        source.cancel()

        assert source.token.add_listener(lambda reason: None) is False

    def test_failing_listener_does_not_block_others(self, caplog):
        """Test a raising listener is logged and the rest still run."""
        source = CancellationSource()
        received: list[object] = []

        def broken(reason):
            raise RuntimeError("listener failed")

        source.token.add_listener(broken)
        source.token.add_listener(received.append)

        with caplog.at_level(logging.WARNING):
            source.cancel("x")

        assert received == ["x"]
        assert "listener" in caplog.text

    def test_raise_if_cancelled(self):
        """Test raise_if_cancelled raises the original reason."""
        source = CancellationSource()
        source.token.raise_if_cancelled()

        reason = AbortError("gone", "op-1")
        source.cancel(reason)

        with pytest.raises(AbortError) as exc_info:
            source.token.raise_if_cancelled()

        assert exc_info.value is reason

    @pytest.mark.asyncio
    async def test_wait_resolves_on_cancel(self):
        """Test wait() returns the reason once the token fires."""
        source = CancellationSource()
        waiter = asyncio.create_task(source.token.wait())
        await asyncio.sleep(0)

        source.cancel("stop")

        assert await asyncio.wait_for(waiter, timeout=1) == "stop"

    @pytest.mark.asyncio
    async def test_wait_on_fired_token_returns_immediately(self):
        """Test wait() on an already cancelled token does not block."""
        source = CancellationSource()
        source.cancel("done")

        assert await asyncio.wait_for(source.token.wait(), timeout=1) == "done"


class TestAnyToken:
    """Tests for token composition."""

    def test_fires_when_any_input_fires(self, sources):
        """Test firing one input cancels the composed token."""
        combined = any_token([s.token for s in sources])

        assert combined.cancelled is False
        sources[1].cancel("second")

        assert combined.cancelled is True
        assert combined.reason == "second"

    def test_later_fires_do_not_change_reason(self, sources):
        """Test the first reason sticks and later fires do not raise."""
        combined = any_token([s.token for s in sources])
        root_cause = AbortError("root cause")

        sources[0].cancel(root_cause)
        sources[2].cancel("later")

        assert combined.reason is root_cause

    def test_none_entries_are_ignored(self, sources):
        """Test None entries are filtered out."""
        combined = any_token([None, sources[0].token, None, sources[1].token])

        sources[1].cancel()

        assert combined.cancelled is True

    @pytest.mark.parametrize("tokens", [[], [None, None]])
    def test_no_usable_inputs_never_fires(self, tokens):
        """Test an empty composition yields a live, never-cancelled token."""
        combined = any_token(tokens)

        assert isinstance(combined, ComposedToken)
        assert combined.cancelled is False
        combined.clear()

    def test_already_cancelled_input(self, sources):
        """Test an input that already fired cancels the result at once."""
        sources[2].cancel("early")

        combined = any_token([s.token for s in sources])

        assert combined.cancelled is True
        assert combined.reason == "early"

    def test_clear_detaches_from_inputs(self, sources):
        """Test inputs firing after clear() no longer affect the result."""
        combined = any_token([s.token for s in sources])

        combined.clear()
        sources[0].cancel()

        assert combined.cancelled is False
        assert sources[0].token.cancelled is True

    def test_clear_is_idempotent_and_safe_after_fire(self, sources):
        """Test clear() may be called repeatedly, before or after firing."""
        combined = any_token([s.token for s in sources])

        combined.clear()
        combined.clear()
        sources[0].cancel()
        combined.clear()

    def test_clear_does_not_alter_inputs(self, sources):
        """Test clear() leaves the input tokens untouched."""
        combined = any_token([s.token for s in sources])
        combined.clear()

        assert not any(s.token.cancelled for s in sources)

    def test_listeners_detached_after_fire(self, sources):
        """Test the composed token stops listening once it fired."""
        combined = any_token([s.token for s in sources])
        sources[0].cancel()

        assert sources[1].token._listeners == []
        assert sources[2].token._listeners == []
        assert combined.cancelled is True

    def test_composed_tokens_nest(self, sources):
        """Test a composed token can be an input to another composition."""
        inner = any_token([sources[0].token, sources[1].token])
        outer = any_token([inner, sources[2].token])

        sources[0].cancel("deep")

        assert outer.reason == "deep"


class TestTimeoutToken:
    """Tests for timeout tokens."""

    @pytest.mark.asyncio
    async def test_fires_after_timeout(self):
        """Test the token fires with a timeout AbortError."""
        token = timeout_token(20)

        assert token.cancelled is False
        await asyncio.sleep(0.1)

        assert token.cancelled is True
        assert isinstance(token.reason, AbortError)
        assert token.reason.timeout == 20

    @pytest.mark.asyncio
    async def test_clear_prevents_timeout(self):
        """Test clear() cancels the pending timer."""
        token = timeout_token(20)
        token.clear()
        token.clear()

        await asyncio.sleep(0.1)

        assert token.cancelled is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad", [-5, float("nan")])
    async def test_invalid_timeout_fires_immediately(self, bad):
        """Test negative and NaN timeouts are treated as zero."""
        token = timeout_token(bad)
        await asyncio.sleep(0.05)

        assert token.cancelled is True
        assert token.reason.timeout == 0

    @pytest.mark.asyncio
    async def test_huge_timeout_is_clamped(self):
        """Test an oversized timeout is accepted and can be cleared."""
        token = timeout_token(10**15)

        assert token.cancelled is False
        token.clear()

    def test_without_event_loop_uses_thread_timer(self):
        """Test timeout tokens work outside asyncio."""
        token = timeout_token(10)

        deadline = time.monotonic() + 2
        while not token.cancelled and time.monotonic() < deadline:
            time.sleep(0.01)

        assert token.cancelled is True

    @pytest.mark.asyncio
    async def test_combines_with_manual_source(self):
        """Test a manual cancel wins over a pending timeout."""
        source = CancellationSource()
        timer = timeout_token(5000)
        combined = any_token([source.token, timer])

        source.cancel("manual")

        assert combined.reason == "manual"
        timer.clear()

    @pytest.mark.asyncio
    async def test_timeout_propagates_through_composition(self):
        """Test the timeout reason reaches the composed token unchanged."""
        source = CancellationSource()
        timer = timeout_token(10)
        combined = any_token([source.token, timer])

        await asyncio.sleep(0.1)

        assert combined.reason is timer.reason
