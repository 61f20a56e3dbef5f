"""Per-question countdown timer.

The timer counts down in whole seconds, driven by an asyncio task that wakes
once per tick interval. Every arm or cancel increments a generation
counter; a tick tagged with an older generation is discarded, so a wake-up
scheduled for a superseded question can never touch the current one.

Timeout is edge-triggered: the callback fires once when the count reaches
zero and never again for the same arm, however many more ticks arrive.
"""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

TimeoutCallback = Callable[[int], None]
TickCallback = Callable[[int], None]


class QuestionTimer:
    """Cancelable, restartable countdown for the question on screen."""

    def __init__(
        self,
        on_timeout: TimeoutCallback,
        on_tick: Optional[TickCallback] = None,
        tick_interval: Optional[float] = 1.0,
    ):
        """
        Initialize the timer.

        Args:
            on_timeout: Called with the current generation when the count
                reaches zero
            on_tick: Called with the remaining seconds after every applied tick
            tick_interval: Seconds between wake-ups. None disables the
                background task; ticks are then delivered by calling tick()
        """
        self._on_timeout = on_timeout
        self._on_tick = on_tick
        self._tick_interval = tick_interval
        self._generation = 0
        self._remaining = 0
        self._armed = False
        self._held = False
        self._timed_out = False
        self._task: Optional[asyncio.Task] = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def timed_out(self) -> bool:
        return self._timed_out

    @property
    def running(self) -> bool:
        """Whether ticks are currently being applied."""
        return self._armed and not self._held

    @property
    def held(self) -> bool:
        return self._armed and self._held

    def arm(self, limit_seconds: int, held: bool = False) -> int:
        """Start a fresh countdown, superseding any previous one.

        Args:
            limit_seconds: Seconds until timeout
            held: Arm without running; release() starts the countdown

        Returns:
            Generation of the new countdown
        """
        if limit_seconds <= 0:
            raise ValueError("limit_seconds must be positive")
        self._stop_wakeups()
        self._generation += 1
        self._remaining = limit_seconds
        self._armed = True
        self._held = held
        self._timed_out = False
        if not held:
            self._schedule()
        return self._generation

    def cancel(self) -> None:
        """Stop ticks and timeout delivery for the current countdown."""
        self._stop_wakeups()
        self._generation += 1
        self._armed = False
        self._held = False

    def release(self) -> None:
        """Resume a held countdown."""
        if not self.held:
            return
        self._held = False
        self._schedule()

    def tick(self, generation: Optional[int] = None) -> bool:
        """Apply one elapsed second.

        Args:
            generation: Generation the tick was scheduled for. None means the
                current one.

        Returns:
            True if the tick was applied
        """
        if generation is not None and generation != self._generation:
            logger.debug(
                f"Discarding stale tick for generation {generation} "
                f"(current {self._generation})"
            )
            return False
        if not self.running:
            return False

        if self._remaining > 0:
            self._remaining -= 1
        if self._on_tick:
            self._on_tick(self._remaining)

        if self._remaining == 0:
            self._armed = False
            if not self._timed_out:
                self._timed_out = True
                self._on_timeout(self._generation)
        return True

    def _schedule(self) -> None:
        if self._tick_interval is None:
            return
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(self._generation))

    def _stop_wakeups(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self, generation: int) -> None:
        while True:
            await asyncio.sleep(self._tick_interval)
            if not self.tick(generation):
                return
