"""Time entries: the persisted record type and the in-memory list manager."""

from punchclock.entries.types import TimeEntry, parse_entry, revise_entry
from punchclock.entries.manager import EntryListManager

__all__ = ["TimeEntry", "parse_entry", "revise_entry", "EntryListManager"]
