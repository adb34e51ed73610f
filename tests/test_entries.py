"""Tests for the time entry model and the entry list manager."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from conftest import T0
from punchclock.entries import EntryListManager, TimeEntry, parse_entry, revise_entry
from punchclock.errors import NotFoundError, PersistenceUnavailable, ValidationError
from punchclock.storage.base import StorageAdapter


class _BrokenStorage(StorageAdapter):
    """Storage that is never reachable."""

    async def list(self):
        raise PersistenceUnavailable("offline")

    async def create(self, entry):
        raise PersistenceUnavailable("offline")

    async def update(self, entry_id, entry):
        raise PersistenceUnavailable("offline")

    async def delete(self, entry_id):
        raise PersistenceUnavailable("offline")


class TestTimeEntry:
    """Validation of persisted entries."""

    def test_parse_wire_names(self) -> None:
        entry = parse_entry({
            "task": "Review",
            "startTime": "2026-03-02T09:00:00Z",
            "endTime": "2026-03-02T10:00:00Z",
            "duration": 1800,
        })

        assert entry.start_time == T0
        assert entry.duration == 1800
        assert entry.description is None

    def test_payload_uses_iso_wire_names(self, make_entry) -> None:
        payload = make_entry(entry_id="abc").to_payload()

        assert "id" not in payload
        assert payload["startTime"].startswith("2026-03-02T09:00:00")
        assert payload["endTime"].startswith("2026-03-02T10:00:00")
        assert payload["duration"] == 3600

    def test_end_before_start_rejected(self) -> None:
        with pytest.raises(ValidationError):
            parse_entry({
                "task": "A",
                "start_time": T0,
                "end_time": T0 - timedelta(seconds=1),
                "duration": 0,
            })

    def test_duration_longer_than_span_rejected(self) -> None:
        with pytest.raises(ValidationError):
            parse_entry({
                "task": "A",
                "start_time": T0,
                "end_time": T0 + timedelta(seconds=60),
                "duration": 61,
            })

    def test_shorter_duration_kept_as_given(self) -> None:
        """Paused time makes duration shorter than the span; it is not recomputed."""
        entry = parse_entry({
            "task": "A",
            "start_time": T0,
            "end_time": T0 + timedelta(hours=2),
            "duration": 225,
        })
        assert entry.duration == 225

    def test_blank_task_rejected(self) -> None:
        with pytest.raises(ValidationError):
            parse_entry({"task": " ", "start_time": T0, "end_time": T0, "duration": 0})

    def test_fractional_duration_not_coerced(self) -> None:
        with pytest.raises(ValidationError):
            parse_entry({"task": "A", "start_time": T0, "end_time": T0 + timedelta(hours=1), "duration": 12.5})

    def test_naive_timestamps_taken_as_utc(self) -> None:
        entry = parse_entry({
            "task": "A",
            "start_time": datetime(2026, 3, 2, 9, 0, 0),
            "end_time": datetime(2026, 3, 2, 9, 1, 0),
            "duration": 60,
        })
        assert entry.start_time.tzinfo == timezone.utc

    def test_integer_id_becomes_string(self) -> None:
        entry = parse_entry({"id": 7, "task": "A", "start_time": T0, "end_time": T0, "duration": 0})
        assert entry.id == "7"

    def test_revise_revalidates(self, make_entry) -> None:
        entry = make_entry(entry_id="abc")

        revised = revise_entry(entry, task="  Renamed ", description=None)
        assert revised.task == "Renamed"
        assert revised.id == "abc"
        assert revised.duration == entry.duration

        with pytest.raises(ValidationError):
            revise_entry(entry, task="")


class TestEntryListManager:
    """Working set kept in sync with storage."""

    @pytest.mark.asyncio
    async def test_add_then_load_round_trips(self, manager, make_entry) -> None:
        entry = make_entry(span=7200, duration=225)

        added = await manager.add(entry)
        assert added.id is not None

        fresh = EntryListManager(manager.storage)
        loaded = await fresh.load()

        assert loaded == [added]
        assert loaded[0].duration == 225
        assert loaded[0].start_time == entry.start_time
        assert loaded[0].end_time == entry.end_time
        assert loaded[0].description == entry.description

    @pytest.mark.asyncio
    async def test_add_keeps_existing_id(self, manager, make_entry) -> None:
        added = await manager.add(make_entry(entry_id="fixed"))
        assert added.id == "fixed"
        assert manager.get("fixed") == added

    @pytest.mark.asyncio
    async def test_remove_then_load_absent(self, manager, make_entry) -> None:
        keep = await manager.add(make_entry(task="Keep"))
        drop = await manager.add(make_entry(task="Drop", start_offset=7200))

        assert await manager.remove(drop.id, confirm=lambda e: True)
        assert manager.entries == [keep]

        loaded = await EntryListManager(manager.storage).load()
        assert [e.id for e in loaded] == [keep.id]

    @pytest.mark.asyncio
    async def test_remove_unknown_id(self, manager, make_entry) -> None:
        await manager.add(make_entry())
        before = manager.entries
        asked = []

        with pytest.raises(NotFoundError):
            await manager.remove("missing", confirm=asked.append)

        assert asked == []
        assert manager.entries == before
        assert await EntryListManager(manager.storage).load() == before

    @pytest.mark.asyncio
    async def test_declined_confirmation_keeps_entry(self, manager, make_entry) -> None:
        entry = await manager.add(make_entry())
        asked = []

        def confirm(e: TimeEntry) -> bool:
            asked.append(e.id)
            return False

        assert await manager.remove(entry.id, confirm) is False
        assert asked == [entry.id]
        assert manager.get(entry.id) is not None
        assert len(await manager.storage.list()) == 1

    @pytest.mark.asyncio
    async def test_async_confirmation(self, manager, make_entry) -> None:
        entry = await manager.add(make_entry())

        async def confirm(e: TimeEntry) -> bool:
            return True

        assert await manager.remove(entry.id, confirm)
        assert manager.entries == []

    @pytest.mark.asyncio
    async def test_remove_during_open_confirmation_is_ignored(self, manager, make_entry) -> None:
        """A second delete while the first prompt is open does nothing."""
        entry = await manager.add(make_entry())
        gate = asyncio.Event()
        asked = []

        async def confirm(e: TimeEntry) -> bool:
            asked.append(e.id)
            await gate.wait()
            return True

        first = asyncio.create_task(manager.remove(entry.id, confirm))
        await asyncio.sleep(0)
        assert entry.id in manager.pending

        second = asyncio.create_task(manager.remove(entry.id, confirm))
        await asyncio.sleep(0)
        gate.set()

        assert await asyncio.gather(first, second) == [True, False]
        assert asked == [entry.id]
        assert manager.entries == []
        assert manager.pending == frozenset()

    @pytest.mark.asyncio
    async def test_declined_confirmation_releases_entry(self, manager, make_entry) -> None:
        entry = await manager.add(make_entry())

        assert await manager.remove(entry.id, lambda e: False) is False
        assert manager.pending == frozenset()
        assert await manager.remove(entry.id, lambda e: True) is True

    @pytest.mark.asyncio
    async def test_update_replaces_by_id(self, manager, make_entry) -> None:
        entry = await manager.add(make_entry())

        updated = await manager.update(revise_entry(entry, task="Edited"))

        assert updated.task == "Edited"
        assert manager.entries == [updated]
        assert (await manager.storage.list())[0].task == "Edited"

    @pytest.mark.asyncio
    async def test_update_unknown_id(self, manager, make_entry) -> None:
        with pytest.raises(NotFoundError):
            await manager.update(make_entry(entry_id="ghost"))
        assert manager.entries == []

    @pytest.mark.asyncio
    async def test_update_in_flight_is_not_repeated(self, manager, make_entry, monkeypatch) -> None:
        entry = await manager.add(make_entry())
        gate = asyncio.Event()
        real_update = manager.storage.update

        async def slow_update(entry_id, value):
            await gate.wait()
            return await real_update(entry_id, value)

        monkeypatch.setattr(manager.storage, "update", slow_update)

        first = asyncio.create_task(manager.update(revise_entry(entry, task="First")))
        await asyncio.sleep(0)
        assert entry.id in manager.pending

        assert await manager.update(revise_entry(entry, task="Second")) is None

        gate.set()
        assert (await first).task == "First"
        assert manager.pending == frozenset()

    @pytest.mark.asyncio
    async def test_load_failure_degrades_to_empty(self) -> None:
        manager = EntryListManager(_BrokenStorage())

        assert await manager.load() == []
        assert isinstance(manager.last_error, PersistenceUnavailable)

    @pytest.mark.asyncio
    async def test_add_failure_leaves_list_unchanged(self, make_entry) -> None:
        manager = EntryListManager(_BrokenStorage())

        with pytest.raises(PersistenceUnavailable):
            await manager.add(make_entry())
        assert manager.entries == []
