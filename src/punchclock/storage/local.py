"""JSON file persistence for time entries.

This module keeps all entries in a single named slot, a JSON file,
with file locking for concurrent access safety.
"""

from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path
from typing import Any

from filelock import FileLock
from pydantic import BaseModel, Field

from punchclock.entries.types import TimeEntry
from punchclock.errors import NotFoundError, PersistenceUnavailable, ValidationError
from punchclock.storage.base import StorageAdapter

logger = logging.getLogger(__name__)

# Storage format version for future migrations
STORAGE_VERSION = 1


class EntriesFileData(BaseModel):
    """Root structure of the entries file.

    Attributes:
        version: Storage format version.
        entries: List of stored entries.
    """

    version: int = Field(default=STORAGE_VERSION, description="Storage format version")
    entries: list[TimeEntry] = Field(default_factory=list, description="Stored entries")


class LocalStorage(StorageAdapter):
    """JSON file-based storage for time entries.

    Every call reads or rewrites the whole file under a file lock. Failures
    are limited to disk and serialization errors, which surface as
    PersistenceUnavailable.

    Example:
        storage = LocalStorage("/path/to/entries.json")
        entries = await storage.list()
    """

    def __init__(self, path: str | Path) -> None:
        """Initialize the local storage.

        Args:
            path: Path to the JSON storage file.
        """
        self._path = Path(path)
        self._lock_path = self._path.with_suffix(".lock")
        self._lock = FileLock(str(self._lock_path))

    @property
    def path(self) -> Path:
        """Get the storage file path."""
        return self._path

    def _read_data(self) -> EntriesFileData:
        """Read and parse the storage file.

        A missing or empty file reads as no entries.

        Raises:
            PersistenceUnavailable: If the file cannot be read or decoded.
        """
        try:
            if not self._path.exists():
                return EntriesFileData()
            content = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceUnavailable(f"Cannot read {self._path}: {e}") from e

        if not content.strip():
            return EntriesFileData()

        try:
            data = json.loads(content)
            # A bare array is the legacy single-slot format
            if isinstance(data, list):
                data = self._migrate_data({"entries": data}, 0)
            else:
                version = data.get("version", 1)
                if version != STORAGE_VERSION:
                    data = self._migrate_data(data, version)
            return EntriesFileData.model_validate(data)
        except (ValueError, AttributeError) as e:
            raise PersistenceUnavailable(f"Corrupt entries file {self._path}: {e}") from e

    def _write_data(self, data: EntriesFileData) -> None:
        """Write storage data to file.

        Args:
            data: Data to write.

        Raises:
            PersistenceUnavailable: If the file cannot be written.
        """
        json_data = {
            "version": data.version,
            "entries": [entry.to_record() for entry in data.entries],
        }
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            content = json.dumps(json_data, indent=2)
            self._path.write_text(content, encoding="utf-8")
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceUnavailable(f"Cannot write {self._path}: {e}") from e

    def _migrate_data(self, data: dict[str, Any], from_version: int) -> dict[str, Any]:
        """Migrate data from an older version.

        Args:
            data: Raw data from file.
            from_version: Version of the stored data.

        Returns:
            Migrated data at current version.
        """
        logger.info(f"Migrating entries file from version {from_version} to {STORAGE_VERSION}")
        data["version"] = STORAGE_VERSION
        return data

    async def list(self) -> list[TimeEntry]:
        """Load all entries from storage."""
        with self._lock:
            data = self._read_data()
            logger.debug(f"Loaded {len(data.entries)} entries from {self._path}")
            return data.entries

    async def create(self, entry: TimeEntry) -> TimeEntry:
        """Add a new entry to storage.

        Raises:
            ValidationError: If an entry with the same id already exists.
        """
        if entry.id is None:
            entry = entry.model_copy(update={"id": str(uuid.uuid4())})

        with self._lock:
            data = self._read_data()

            for existing in data.entries:
                if existing.id == entry.id:
                    raise ValidationError(f"Entry with id '{entry.id}' already exists")

            data.entries.append(entry)
            self._write_data(data)
            logger.info(f"Added entry: {entry.task} ({entry.id})")
            return entry

    async def update(self, entry_id: str, entry: TimeEntry) -> TimeEntry:
        """Replace an existing entry, keeping its id."""
        stored = entry.model_copy(update={"id": entry_id})

        with self._lock:
            data = self._read_data()

            for i, existing in enumerate(data.entries):
                if existing.id == entry_id:
                    data.entries[i] = stored
                    self._write_data(data)
                    logger.info(f"Updated entry: {stored.task} ({entry_id})")
                    return stored

        raise NotFoundError(entry_id)

    async def delete(self, entry_id: str) -> None:
        """Remove an entry from storage."""
        with self._lock:
            data = self._read_data()
            original_count = len(data.entries)

            data.entries = [e for e in data.entries if e.id != entry_id]

            if len(data.entries) == original_count:
                raise NotFoundError(entry_id)

            self._write_data(data)
            logger.info(f"Removed entry: {entry_id}")
