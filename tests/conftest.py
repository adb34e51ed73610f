"""Shared fixtures for punchclock tests."""

from datetime import datetime, timedelta, timezone

import pytest

from punchclock.entries import EntryListManager, TimeEntry
from punchclock.storage import LocalStorage

T0 = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock for deterministic timing."""

    def __init__(self, start: datetime = T0) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> datetime:
        self.current = self.current + timedelta(seconds=seconds)
        return self.current

    def set(self, offset_seconds: float) -> datetime:
        """Jump to T0 plus an offset."""
        self.current = T0 + timedelta(seconds=offset_seconds)
        return self.current


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def local_storage(tmp_path) -> LocalStorage:
    return LocalStorage(tmp_path / "entries.json")


@pytest.fixture
def manager(local_storage) -> EntryListManager:
    return EntryListManager(local_storage)


@pytest.fixture
def make_entry():
    """Factory for valid entries starting at T0."""

    def _make(
        task: str = "Write report",
        description: str | None = "Quarterly numbers",
        start_offset: int = 0,
        span: int = 3600,
        duration: int | None = None,
        entry_id: str | None = None,
    ) -> TimeEntry:
        start = T0 + timedelta(seconds=start_offset)
        return TimeEntry(
            id=entry_id,
            task=task,
            description=description,
            start_time=start,
            end_time=start + timedelta(seconds=span),
            duration=span if duration is None else duration,
        )

    return _make
