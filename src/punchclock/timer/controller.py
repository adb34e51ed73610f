"""Timer state machine.

The TimerController owns the single in-progress TimerSession and moves it
through idle -> running -> paused -> running ... -> idle. Finished sessions
are handed to the EntryListManager; the session is mirrored to a scratch
file after every change so it can be recovered after a restart.
"""

import logging
from datetime import datetime, timezone
from typing import Callable

from punchclock.entries.manager import EntryListManager
from punchclock.entries.types import TimeEntry, parse_entry
from punchclock.errors import (
    InvalidTransitionError,
    PersistenceUnavailable,
    TrackerError,
    ValidationError,
)
from punchclock.timer.scratch import SessionScratch
from punchclock.timer.session import SessionStatus, TimerSession

logger = logging.getLogger(__name__)

# Type aliases for callbacks
Clock = Callable[[], datetime]
SessionListener = Callable[[TimerSession], None]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TimerController:
    """Start, pause, continue and stop the tracked session.

    Example:
        controller = TimerController(manager, scratch=SessionScratch(path))
        controller.restore()
        controller.start("Write report")
        controller.pause()
        controller.resume()
        entry = await controller.stop()
    """

    def __init__(
        self,
        entries: EntryListManager,
        scratch: SessionScratch | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the controller.

        Args:
            entries: Manager that persists finished entries.
            scratch: Optional mirror used for crash and restart recovery.
            clock: Source of the current time (defaults to UTC now).
        """
        self._entries = entries
        self._scratch = scratch
        self._clock = clock or _utc_now
        self._session = TimerSession()
        self._saving = False
        self._listeners: list[SessionListener] = []

    @property
    def session(self) -> TimerSession:
        """Get a snapshot of the current session."""
        return self._session.model_copy()

    @property
    def status(self) -> SessionStatus:
        """Get the current lifecycle state."""
        return self._session.status

    @property
    def is_saving(self) -> bool:
        """Whether a stop is waiting on persistence."""
        return self._saving

    def now(self) -> datetime:
        """Get the current time from the clock."""
        return self._clock()

    def elapsed_seconds(self, now: datetime | None = None) -> int:
        """Tracked seconds of the current session."""
        return self._session.elapsed_seconds(now or self.now())

    # ----- Listeners -----
    def add_listener(self, fn: SessionListener) -> None:
        """Call fn with a session snapshot after every change."""
        self._listeners.append(fn)

    def remove_listener(self, fn: SessionListener) -> None:
        """Stop notifying fn; unknown listeners are ignored."""
        if fn in self._listeners:
            self._listeners.remove(fn)

    def _emit(self) -> None:
        snapshot = self.session
        for fn in list(self._listeners):
            fn(snapshot)

    # ----- State changes -----
    def _commit(self, session: TimerSession) -> None:
        """Adopt a new session value, mirror it and notify listeners."""
        self._session = session
        if self._scratch is not None:
            self._scratch.save(session)
        self._emit()

    def _require(self, *allowed: SessionStatus, action: str) -> None:
        if self._saving:
            raise InvalidTransitionError(f"Cannot {action} while the session is being saved")
        if self._session.status not in allowed:
            raise InvalidTransitionError(
                f"Cannot {action} while {self._session.status.value}"
            )

    def _fold(self, now: datetime) -> TimerSession:
        """Close the running segment into the accumulated total."""
        return self._session.model_copy(
            update={
                "status": SessionStatus.PAUSED,
                "segment_start": None,
                "accumulated_seconds": self._session.elapsed_seconds(now),
            }
        )

    def set_draft(self, task: str, description: str = "") -> None:
        """Edit the draft task and description before starting."""
        self._require(SessionStatus.IDLE, action="edit the draft")
        self._commit(self._session.model_copy(update={"task": task, "description": description}))

    def start(self, task: str, description: str = "") -> None:
        """Begin tracking a new session.

        Raises:
            ValidationError: If the task is blank.
            InvalidTransitionError: If a session is already in progress.
        """
        self._require(SessionStatus.IDLE, action="start")
        task = task.strip()
        if not task:
            raise ValidationError("Task must not be blank")

        now = self.now()
        self._commit(
            TimerSession(
                status=SessionStatus.RUNNING,
                task=task,
                description=description,
                started_at=now,
                segment_start=now,
                accumulated_seconds=0,
            )
        )
        logger.info(f"Started timer for '{task}'")

    def pause(self) -> None:
        """Suspend the running session."""
        self._require(SessionStatus.RUNNING, action="pause")
        self._commit(self._fold(self.now()))
        logger.info(f"Paused '{self._session.task}' at {self._session.accumulated_seconds}s")

    def resume(self) -> None:
        """Continue a paused session with a new segment."""
        self._require(SessionStatus.PAUSED, action="continue")
        self._commit(
            self._session.model_copy(
                update={"status": SessionStatus.RUNNING, "segment_start": self.now()}
            )
        )
        logger.info(f"Continued '{self._session.task}'")

    async def stop(self) -> TimeEntry | None:
        """Finish the session and persist it as a time entry.

        The session is reset only after the entry has been saved. If saving
        fails the session stays (paused, with its time folded in) and the
        error propagates so the caller can retry.

        With a scratch mirror, the mirror lock is held until the entry is
        saved and the mirror cleared. A session that another process has
        already stopped is dropped instead of being saved twice.

        Returns:
            The stored entry, or None if a stop was already in progress or
            the session was already stopped elsewhere.

        Raises:
            InvalidTransitionError: If no session is in progress.
            TrackerError: If the entry is invalid or cannot be persisted.
        """
        if self._saving:
            logger.warning("Stop already in progress; ignoring repeated stop")
            return None
        self._require(SessionStatus.RUNNING, SessionStatus.PAUSED, action="stop")

        if self._scratch is None:
            return await self._finish()

        with self._scratch.locked():
            mirrored = self._scratch.load()
            if mirrored is None or mirrored.started_at != self._session.started_at:
                logger.warning(f"Session '{self._session.task}' was already stopped elsewhere")
                self._session = TimerSession()
                self._emit()
                return None
            return await self._finish()

    async def _finish(self) -> TimeEntry:
        """Fold, persist and reset the current session."""
        now = self.now()
        if self._session.is_running:
            self._commit(self._fold(now))

        session = self._session
        entry = parse_entry(
            {
                "task": session.task,
                "description": session.description or None,
                "start_time": session.started_at,
                "end_time": now,
                "duration": session.accumulated_seconds,
            }
        )

        self._saving = True
        self._emit()
        try:
            stored = await self._entries.add(entry)
        except TrackerError as e:
            self._saving = False
            logger.warning(f"Could not save '{session.task}', session kept for retry: {e}")
            self._emit()
            raise
        self._saving = False

        self._session = TimerSession()
        if self._scratch is not None:
            try:
                self._scratch.clear()
            except PersistenceUnavailable as e:
                logger.error(f"Entry {stored.id} was saved but the session mirror remains: {e}")
        self._emit()
        logger.info(f"Stopped '{stored.task}' after {stored.duration}s")
        return stored

    def restore(self) -> bool:
        """Adopt the session mirrored by a previous process.

        Elapsed time is recomputed from the segment start, so time that
        passed while the process was gone is counted for a running session.

        Returns:
            True if a session was restored.
        """
        if self._scratch is None:
            return False
        session = self._scratch.load()
        if session is None:
            return False

        if not session.is_idle and session.started_at is None:
            logger.warning("Discarding mirrored session without a start time")
            self._scratch.clear()
            return False
        if session.is_running and session.segment_start is None:
            session = session.model_copy(update={"status": SessionStatus.PAUSED})

        self._session = session
        self._emit()
        logger.debug(f"Restored {session.status.value} session for '{session.task}'")
        return True
