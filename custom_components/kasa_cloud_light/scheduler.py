"""Auto-cycle scheduler for Kasa Cloud Light.

Fires a color shuffle at a fixed period, counting down in fixed ticks so
the remaining time in the current period can be shown and preserved across
a pause.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from .const import DEFAULT_CYCLE_PERIOD_MS, REMAINING_NOTIFY_MS, TICK_MS
from .exceptions import KasaCloudError
from .models import AutoCycleState

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

_LOGGER = logging.getLogger(__name__)


class AutoCycleScheduler:
    """Cancellable periodic shuffle with pause/resume.

    State machine::

        stopped --start--> running --pause--> paused --resume--> running
        running|paused --stop--> stopped

    Once stop() or pause() returns, no tick runs and no queued shuffle
    starts. Listeners are notified on every transition, every fired cycle
    and each time the countdown crosses a whole second.

    All methods must be called from the event loop that runs the ticks.
    """

    def __init__(
        self,
        shuffle: Callable[[], Awaitable[None]],
        period_ms: int = DEFAULT_CYCLE_PERIOD_MS,
        tick_ms: int = TICK_MS,
    ) -> None:
        """Initialize the scheduler.

        Args:
            shuffle: Coroutine function issuing one random color command.
            period_ms: Time between two shuffles.
            tick_ms: Countdown granularity.

        """
        self._shuffle = shuffle
        self._tick_ms = tick_ms
        self._validate_period(period_ms)
        self._period_ms = period_ms
        self._remaining_ms = period_ms
        self._state = AutoCycleState.STOPPED
        self._tick_task: asyncio.Task[None] | None = None
        self._shuffle_tasks: set[asyncio.Task[None]] = set()
        self._generation = 0
        self._listeners: list[Callable[[], None]] = []

    @property
    def state(self) -> AutoCycleState:
        """Return the current scheduler state."""
        return self._state

    @property
    def active(self) -> bool:
        """Return True while the cycle is running."""
        return self._state is AutoCycleState.RUNNING

    @property
    def period_ms(self) -> int:
        """Return the cycle period in milliseconds."""
        return self._period_ms

    @property
    def remaining_ms(self) -> int:
        """Return the time left in the current period in milliseconds."""
        return self._remaining_ms

    def register_listener(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a callback for state changes and fired cycles.

        Returns:
            A function to unregister the callback.

        """
        self._listeners.append(callback)

        def unregister() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unregister

    def start(self, period_ms: int | None = None) -> None:
        """Fire one shuffle now and start counting down."""
        if self._state is not AutoCycleState.STOPPED:
            _LOGGER.debug("Auto-cycle already %s, ignoring start", self._state)
            return

        if period_ms is not None:
            self._validate_period(period_ms)
            self._period_ms = period_ms

        _LOGGER.info("Starting auto-cycle every %d ms", self._period_ms)
        self._state = AutoCycleState.RUNNING
        self._remaining_ms = self._period_ms
        self._fire()
        self._start_ticking()
        self._notify()

    def pause(self) -> None:
        """Halt the countdown, keeping the remaining time."""
        if self._state is not AutoCycleState.RUNNING:
            _LOGGER.debug("Auto-cycle is %s, ignoring pause", self._state)
            return

        self._cancel_ticking()
        self._drop_pending_shuffles()
        self._state = AutoCycleState.PAUSED
        _LOGGER.info("Paused auto-cycle with %d ms remaining", self._remaining_ms)
        self._notify()

    def resume(self) -> None:
        """Continue the countdown from where it was paused."""
        if self._state is not AutoCycleState.PAUSED:
            _LOGGER.debug("Auto-cycle is %s, ignoring resume", self._state)
            return

        self._state = AutoCycleState.RUNNING
        self._start_ticking()
        _LOGGER.info("Resumed auto-cycle with %d ms remaining", self._remaining_ms)
        self._notify()

    def stop(self) -> None:
        """Cancel the countdown and reset it to a full period."""
        if self._state is AutoCycleState.STOPPED:
            return

        self._cancel_ticking()
        self._drop_pending_shuffles()
        self._state = AutoCycleState.STOPPED
        self._remaining_ms = self._period_ms
        _LOGGER.info("Stopped auto-cycle")
        self._notify()

    def set_period(self, period_ms: int) -> None:
        """Change the period.

        While running, a changed period fires a shuffle immediately and
        restarts the countdown at the new period.
        """
        self._validate_period(period_ms)
        if period_ms == self._period_ms:
            return

        _LOGGER.info(
            "Changing auto-cycle period from %d ms to %d ms",
            self._period_ms,
            period_ms,
        )
        self._period_ms = period_ms
        self._remaining_ms = period_ms

        if self._state is AutoCycleState.RUNNING:
            self._cancel_ticking()
            self._fire()
            self._start_ticking()

        self._notify()

    def _validate_period(self, period_ms: int) -> None:
        if period_ms < self._tick_ms:
            error_msg = f"Period must be at least {self._tick_ms} ms, got {period_ms}"
            raise ValueError(error_msg)

    def _tick(self) -> None:
        """Advance the countdown by one tick, firing when it reaches zero."""
        if self._state is not AutoCycleState.RUNNING:
            return

        before = self._remaining_ms
        self._remaining_ms -= self._tick_ms
        if self._remaining_ms <= 0:
            self._fire()
            self._remaining_ms = self._period_ms
            self._notify()
        elif self._remaining_ms // REMAINING_NOTIFY_MS < before // REMAINING_NOTIFY_MS:
            # Countdown crossed a whole second
            self._notify()

    async def _async_run(self) -> None:
        while True:
            await asyncio.sleep(self._tick_ms / 1000)
            self._tick()

    def _start_ticking(self) -> None:
        self._tick_task = asyncio.create_task(self._async_run())

    def _cancel_ticking(self) -> None:
        if self._tick_task is not None:
            self._tick_task.cancel()
            self._tick_task = None

    def _drop_pending_shuffles(self) -> None:
        """Keep shuffles fired so far from starting; ones in flight finish."""
        self._generation += 1

    def _fire(self) -> None:
        task = asyncio.create_task(self._async_shuffle(self._generation))
        self._shuffle_tasks.add(task)
        task.add_done_callback(self._shuffle_tasks.discard)

    async def _async_shuffle(self, generation: int) -> None:
        if generation != self._generation:
            _LOGGER.debug("Auto-cycle was stopped or paused, skipping shuffle")
            return
        try:
            await self._shuffle()
        except KasaCloudError as err:
            _LOGGER.warning("Auto-cycle shuffle failed: %s", err)

    def _notify(self) -> None:
        for callback in self._listeners:
            try:
                callback()
            except Exception:
                _LOGGER.exception("Error in auto-cycle listener")
