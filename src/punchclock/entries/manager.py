"""In-memory working set of time entries.

The EntryListManager keeps a list of entries synchronized with a storage
adapter. The in-memory list only changes after the adapter call succeeds,
so mutations are applied in the order their persistence calls resolve.
"""

from __future__ import annotations

import inspect
import logging
import uuid
from typing import TYPE_CHECKING, Awaitable, Callable, Union

from punchclock.entries.types import TimeEntry
from punchclock.errors import NotFoundError, TrackerError

if TYPE_CHECKING:
    from punchclock.storage.base import StorageAdapter

logger = logging.getLogger(__name__)

# Confirmation callback for deletions; may be sync or async
ConfirmCallback = Callable[[TimeEntry], Union[bool, Awaitable[bool]]]


class EntryListManager:
    """Holds the saved entries and applies edits through storage.

    Example:
        manager = EntryListManager(LocalStorage(path))
        await manager.load()
        await manager.add(entry)
        await manager.remove(entry.id, confirm=lambda e: True)
    """

    def __init__(self, storage: StorageAdapter) -> None:
        """Initialize the manager.

        Args:
            storage: Adapter used for every persistence call.
        """
        self._storage = storage
        self._entries: list[TimeEntry] = []
        self._pending: set[str] = set()
        self.last_error: TrackerError | None = None

    @property
    def storage(self) -> StorageAdapter:
        """Get the storage adapter."""
        return self._storage

    @property
    def entries(self) -> list[TimeEntry]:
        """Get a copy of the working set."""
        return list(self._entries)

    @property
    def pending(self) -> frozenset[str]:
        """Ids with an update or delete in flight."""
        return frozenset(self._pending)

    def get(self, entry_id: str) -> TimeEntry | None:
        """Look up an entry by id."""
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    async def load(self) -> list[TimeEntry]:
        """Replace the working set with the stored entries.

        Storage failures leave an empty list; the error is logged and kept
        in ``last_error`` for the caller to show.
        """
        try:
            self._entries = await self._storage.list()
            self.last_error = None
        except TrackerError as e:
            logger.warning(f"Could not load entries, starting empty: {e}")
            self._entries = []
            self.last_error = e
        return self.entries

    async def add(self, entry: TimeEntry) -> TimeEntry:
        """Persist a new entry and append it.

        Args:
            entry: Entry to add; an id is generated if missing.

        Returns:
            The entry as stored.
        """
        if entry.id is None:
            entry = entry.model_copy(update={"id": str(uuid.uuid4())})

        stored = await self._storage.create(entry)
        self._entries.append(stored)
        logger.info(f"Added entry {stored.id} for '{stored.task}' ({stored.duration}s)")
        return stored

    async def update(self, entry: TimeEntry) -> TimeEntry | None:
        """Persist changes to an entry and replace it in memory.

        Returns:
            The stored entry, or None if an update for this id was already
            in flight.

        Raises:
            NotFoundError: If the entry has no id or storage does not know it.
        """
        if entry.id is None:
            raise NotFoundError("<unsaved>")
        if entry.id in self._pending:
            logger.warning(f"Ignoring update of {entry.id}: another change is in flight")
            return None

        self._pending.add(entry.id)
        try:
            stored = await self._storage.update(entry.id, entry)
        finally:
            self._pending.discard(entry.id)

        for i, existing in enumerate(self._entries):
            if existing.id == stored.id:
                self._entries[i] = stored
                break
        logger.info(f"Updated entry {stored.id}")
        return stored

    async def remove(self, entry_id: str, confirm: ConfirmCallback) -> bool:
        """Delete an entry after the caller confirms.

        Args:
            entry_id: Id of the entry to delete.
            confirm: Called with the entry before the irreversible call;
                a falsy answer cancels the deletion.

        Returns:
            True if the entry was deleted, False if cancelled or already
            being deleted.

        Raises:
            NotFoundError: If the id is not in the working set or storage.
        """
        entry = self.get(entry_id)
        if entry is None:
            raise NotFoundError(entry_id)
        if entry_id in self._pending:
            logger.warning(f"Ignoring delete of {entry_id}: another change is in flight")
            return False

        self._pending.add(entry_id)
        try:
            answer = confirm(entry)
            if inspect.isawaitable(answer):
                answer = await answer
            if not answer:
                logger.debug(f"Deletion of {entry_id} cancelled")
                return False
            await self._storage.delete(entry_id)
        finally:
            self._pending.discard(entry_id)

        self._entries = [e for e in self._entries if e.id != entry_id]
        logger.info(f"Removed entry {entry_id}")
        return True
