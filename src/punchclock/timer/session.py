"""Type definitions for the in-progress timer session."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class SessionStatus(str, Enum):
    """Lifecycle state of the timer session.

    Attributes:
        IDLE: Nothing is being tracked; draft fields may be edited.
        RUNNING: A segment is being timed.
        PAUSED: Tracking is suspended; time is not accruing.
    """

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


class TimerSession(BaseModel):
    """The session currently being tracked.

    Attributes:
        status: Current lifecycle state.
        task: Draft task label.
        description: Draft description.
        started_at: When start() was called; becomes the entry start time.
        segment_start: Start of the current running segment.
        accumulated_seconds: Seconds from segments before the current one.
    """

    status: SessionStatus = Field(default=SessionStatus.IDLE, description="Lifecycle state")
    task: str = Field(default="", description="Draft task label")
    description: str = Field(default="", description="Draft description")
    started_at: datetime | None = Field(default=None, description="Original start time")
    segment_start: datetime | None = Field(default=None, description="Current segment start")
    accumulated_seconds: int = Field(default=0, ge=0, description="Seconds from prior segments")

    @property
    def is_idle(self) -> bool:
        return self.status == SessionStatus.IDLE

    @property
    def is_running(self) -> bool:
        return self.status == SessionStatus.RUNNING

    @property
    def is_paused(self) -> bool:
        return self.status == SessionStatus.PAUSED

    def elapsed_seconds(self, now: datetime) -> int:
        """Tracked seconds as of ``now``.

        The current segment is measured from ``segment_start``, so the
        result is right even after the process was suspended or restarted.
        """
        if self.is_running and self.segment_start is not None:
            segment = int((now - self.segment_start).total_seconds())
            return self.accumulated_seconds + max(0, segment)
        return self.accumulated_seconds
