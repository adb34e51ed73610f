"""Exception hierarchy for punchclock.

All errors raised by the storage adapters, the timer controller and the
entry list manager derive from TrackerError so the presentation layer can
report them uniformly.
"""


class TrackerError(Exception):
    """Base class for punchclock errors."""
    pass


class ValidationError(TrackerError, ValueError):
    """Raised when an entry or session draft is malformed or impossible."""
    pass


class NotFoundError(TrackerError):
    """Raised when an update or delete targets an unknown entry id."""

    def __init__(self, entry_id: str) -> None:
        super().__init__(f"Entry not found: {entry_id}")
        self.entry_id = entry_id


class PersistenceUnavailable(TrackerError):
    """Raised when the storage backend cannot be reached or written."""
    pass


class InvalidTransitionError(TrackerError):
    """Raised when a timer action is not valid in the current state."""
    pass
