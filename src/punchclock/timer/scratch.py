"""JSON file mirror of the in-progress session.

The scratch file lets a session survive a restart: it is written on every
session change and removed once the finished entry has been saved.
"""

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from filelock import FileLock

from punchclock.errors import PersistenceUnavailable
from punchclock.timer.session import TimerSession

logger = logging.getLogger(__name__)


class SessionScratch:
    """Single-slot file store for a TimerSession.

    Example:
        scratch = SessionScratch("/path/to/session.json")
        scratch.save(session)
        restored = scratch.load()
    """

    def __init__(self, path: str | Path) -> None:
        """Initialize the scratch store.

        Args:
            path: Path to the JSON mirror file.
        """
        self._path = Path(path)
        self._lock = FileLock(str(self._path.with_suffix(".lock")))

    @property
    def path(self) -> Path:
        """Get the mirror file path."""
        return self._path

    @contextmanager
    def locked(self) -> Iterator[None]:
        """Hold the mirror lock across several steps.

        The lock is reentrant for this instance, so load, save and clear
        may be called inside the block. Other processes wait until it exits.
        """
        with self._lock:
            yield

    def load(self) -> TimerSession | None:
        """Read the mirrored session, if any.

        An unreadable or corrupt mirror is logged and treated as absent.
        """
        with self._lock:
            if not self._path.exists():
                return None
            try:
                content = self._path.read_text(encoding="utf-8")
                if not content.strip():
                    return None
                return TimerSession.model_validate(json.loads(content))
            except (OSError, ValueError) as e:
                logger.warning(f"Ignoring unreadable session mirror {self._path}: {e}")
                return None

    def save(self, session: TimerSession) -> None:
        """Write the session to the mirror.

        Raises:
            PersistenceUnavailable: If the file cannot be written.
        """
        with self._lock:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                self._path.write_text(session.model_dump_json(indent=2), encoding="utf-8")
            except OSError as e:
                raise PersistenceUnavailable(f"Cannot write session mirror {self._path}: {e}") from e
        logger.debug(f"Mirrored {session.status.value} session to {self._path}")

    def clear(self) -> None:
        """Remove the mirror."""
        with self._lock:
            try:
                self._path.unlink(missing_ok=True)
            except OSError as e:
                raise PersistenceUnavailable(f"Cannot clear session mirror {self._path}: {e}") from e
        logger.debug(f"Cleared session mirror {self._path}")
