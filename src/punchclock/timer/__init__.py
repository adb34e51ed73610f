"""Timer state machine for the in-progress session.

This package provides:
- The TimerSession value and its lifecycle states
- The TimerController that starts, pauses, continues and stops it
- A scratch file mirror for restart recovery
- A display ticker that refreshes elapsed time while running

Example:
    from punchclock.timer import SessionScratch, TimerController

    controller = TimerController(manager, scratch=SessionScratch(path))
    controller.restore()
    controller.start("Write report")
    entry = await controller.stop()
"""

from punchclock.timer.controller import TimerController
from punchclock.timer.scratch import SessionScratch
from punchclock.timer.session import SessionStatus, TimerSession
from punchclock.timer.ticker import DisplayTicker

__all__ = [
    # Controller
    "TimerController",
    # Types
    "TimerSession",
    "SessionStatus",
    # Scratch mirror
    "SessionScratch",
    # Display
    "DisplayTicker",
]
