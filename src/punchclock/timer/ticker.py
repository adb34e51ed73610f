"""Periodic display refresh for a running timer.

Each tick recomputes the elapsed time from the clock instead of counting
ticks, so a delayed or throttled loop never drifts.
"""

import asyncio
import logging
from typing import Callable

from punchclock.timer.controller import TimerController
from punchclock.timer.session import TimerSession

logger = logging.getLogger(__name__)

# Receives the elapsed seconds to display
TickCallback = Callable[[int], None]


class DisplayTicker:
    """Repeating asyncio task that reports elapsed time while running.

    Example:
        ticker = DisplayTicker(controller, on_tick=render)
        ticker.attach()       # runs only while the session is running
        ...
        await ticker.aclose()
    """

    def __init__(
        self,
        controller: TimerController,
        on_tick: TickCallback,
        interval: float = 1.0,
    ) -> None:
        """Initialize the ticker.

        Args:
            controller: Controller whose session is displayed.
            on_tick: Called with the elapsed seconds on every tick.
            interval: Seconds between ticks.
        """
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._controller = controller
        self._on_tick = on_tick
        self._interval = interval
        self._task: asyncio.Task | None = None
        self._attached = False

    @property
    def is_active(self) -> bool:
        """Check if the repeating task is running."""
        return self._task is not None and not self._task.done()

    def attach(self) -> None:
        """Follow the controller: tick while running, stop otherwise.

        Must be called from within a running event loop.
        """
        if not self._attached:
            self._controller.add_listener(self._on_session_change)
            self._attached = True
        self._on_session_change(self._controller.session)

    def detach(self) -> None:
        """Stop following the controller and cancel ticking."""
        if self._attached:
            self._controller.remove_listener(self._on_session_change)
            self._attached = False
        self.cancel()

    def _on_session_change(self, session: TimerSession) -> None:
        if session.is_running and not self._controller.is_saving:
            self.start()
        else:
            self.cancel()
            self.refresh()

    def start(self) -> None:
        """Start ticking if not already."""
        if self.is_active:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug(f"Display ticker started ({self._interval}s)")

    def refresh(self) -> None:
        """Recompute and report the elapsed time now.

        Call this when the display regains the foreground, since periodic
        ticks may have been delayed while it was in the background.
        """
        self._on_tick(self._controller.elapsed_seconds())

    def cancel(self) -> None:
        """Cancel the repeating task."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
            logger.debug("Display ticker cancelled")
        self._task = None

    async def aclose(self) -> None:
        """Detach and wait for the repeating task to finish."""
        task = self._task
        self.detach()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _run(self) -> None:
        while True:
            self.refresh()
            await asyncio.sleep(self._interval)
