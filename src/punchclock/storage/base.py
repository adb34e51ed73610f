"""Base storage adapter interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from punchclock.entries.types import TimeEntry


class StorageAdapter(ABC):
    """Abstract base class for time entry storage.

    Implementations share one contract so the entry list manager can run
    against either a local file or a remote API. Update and delete are keyed
    by entry id and must be safe to repeat.
    """

    @abstractmethod
    async def list(self) -> list[TimeEntry]:
        """Return every stored entry."""
        ...

    @abstractmethod
    async def create(self, entry: TimeEntry) -> TimeEntry:
        """Persist a new entry.

        Args:
            entry: Entry to store. The backend may assign its id.

        Returns:
            The entry as stored.
        """
        ...

    @abstractmethod
    async def update(self, entry_id: str, entry: TimeEntry) -> TimeEntry:
        """Replace an existing entry.

        Args:
            entry_id: Id of the entry to replace
            entry: New field values

        Returns:
            The entry as stored.

        Raises:
            NotFoundError: If no entry has this id.
        """
        ...

    @abstractmethod
    async def delete(self, entry_id: str) -> None:
        """Delete an entry.

        Args:
            entry_id: Id of the entry to delete

        Raises:
            NotFoundError: If no entry has this id.
        """
        ...
