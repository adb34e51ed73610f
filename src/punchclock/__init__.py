"""Punchclock - a personal time tracker with pausable timers and reports."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("punchclock")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from punchclock.entries import EntryListManager, TimeEntry
from punchclock.storage import LocalStorage, RemoteStorage, StorageAdapter
from punchclock.timer import SessionScratch, TimerController

__all__ = [
    "EntryListManager",
    "TimeEntry",
    "StorageAdapter",
    "LocalStorage",
    "RemoteStorage",
    "TimerController",
    "SessionScratch",
]
