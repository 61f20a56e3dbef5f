"""Tests for the per-question countdown timer."""

import asyncio

import pytest

from cognigen.timer import QuestionTimer


@pytest.fixture
def timeouts():
    return []


@pytest.fixture
def timer(timeouts):
    """Fixture providing a timer driven by manual ticks."""
    return QuestionTimer(on_timeout=timeouts.append, tick_interval=None)


class TestArm:
    """Tests for arming the timer."""

    def test_arm_sets_remaining(self, timer):
        """Test that arming starts from the full limit."""
        generation = timer.arm(5)

        assert timer.remaining == 5
        assert timer.running
        assert generation == timer.generation

    def test_rearm_bumps_generation(self, timer):
        """Test that every arm supersedes the previous countdown."""
        first = timer.arm(5)
        timer.tick()
        second = timer.arm(5)

        assert second > first
        assert timer.remaining == 5

    def test_arm_rejects_non_positive_limit(self, timer):
        """Test that a zero limit is invalid."""
        with pytest.raises(ValueError):
            timer.arm(0)

    def test_arm_held(self, timer):
        """Test that a held arm applies no ticks."""
        timer.arm(5, held=True)

        assert timer.held
        assert not timer.running
        assert timer.tick() is False
        assert timer.remaining == 5


class TestTick:
    """Tests for tick delivery."""

    def test_tick_decrements(self, timer):
        """Test that each tick removes one second."""
        timer.arm(3)

        assert timer.tick()
        assert timer.remaining == 2

    def test_timeout_fires_once(self, timer, timeouts):
        """Test that the timeout is edge-triggered."""
        generation = timer.arm(2)

        for _ in range(5):
            timer.tick()

        assert timeouts == [generation]
        assert timer.timed_out
        assert timer.remaining == 0

    def test_stale_tick_discarded(self, timer):
        """Test that a tick for an old generation is ignored."""
        old = timer.arm(5)
        timer.arm(5)

        assert timer.tick(old) is False
        assert timer.remaining == 5

    def test_tick_reports_remaining(self):
        """Test that on_tick receives the remaining seconds."""
        seen = []
        timer = QuestionTimer(
            on_timeout=lambda generation: None,
            on_tick=seen.append,
            tick_interval=None,
        )
        timer.arm(3)

        for _ in range(3):
            timer.tick()

        assert seen == [2, 1, 0]


class TestCancelAndRelease:
    """Tests for cancel and release."""

    def test_cancel_stops_timeout(self, timer, timeouts):
        """Test that a cancelled countdown never times out."""
        generation = timer.arm(1)
        timer.cancel()

        assert timer.tick() is False
        assert timer.tick(generation) is False
        assert timeouts == []

    def test_held_arm_waits_for_release(self, timer, timeouts):
        """Test that a countdown armed held only runs once released."""
        timer.arm(2, held=True)

        assert timer.held
        assert timer.tick() is False
        assert timer.remaining == 2

        timer.release()
        timer.tick()
        timer.tick()

        assert timer.remaining == 0
        assert len(timeouts) == 1

    def test_cancel_clears_hold(self, timer):
        """Test that a cancelled held countdown cannot be released."""
        timer.arm(5, held=True)
        timer.cancel()
        timer.release()

        assert not timer.running
        assert timer.tick() is False

    def test_release_without_hold_is_noop(self, timer):
        """Test that release only affects held timers."""
        generation = timer.arm(5)

        timer.release()

        assert timer.generation == generation


class TestBackgroundTicks:
    """Tests for the asyncio tick loop."""

    @pytest.mark.asyncio
    async def test_runs_to_timeout(self, timeouts):
        """Test that the background task counts down and stops."""
        timer = QuestionTimer(on_timeout=timeouts.append, tick_interval=0.01)
        generation = timer.arm(3)

        await asyncio.sleep(0.2)

        assert timeouts == [generation]
        assert timer.remaining == 0
        assert not timer.running

    @pytest.mark.asyncio
    async def test_cancel_stops_background_task(self, timeouts):
        """Test that cancel prevents any further wake-ups."""
        timer = QuestionTimer(on_timeout=timeouts.append, tick_interval=0.01)
        timer.arm(3)
        timer.cancel()

        await asyncio.sleep(0.1)

        assert timeouts == []
        assert timer.remaining == 3
