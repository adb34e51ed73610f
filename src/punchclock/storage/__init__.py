"""Storage adapters for time entries.

Two interchangeable backends share the StorageAdapter contract:
a local JSON file and a remote HTTP API.

Example:
    from punchclock.config import settings
    from punchclock.storage import create_storage

    storage = create_storage(settings)
    entries = await storage.list()
"""

from punchclock.config import Settings
from punchclock.storage.base import StorageAdapter
from punchclock.storage.local import LocalStorage
from punchclock.storage.remote import RemoteStorage


def create_storage(settings: Settings) -> StorageAdapter:
    """Build the storage adapter selected by configuration.

    Args:
        settings: Application settings.

    Returns:
        A LocalStorage or RemoteStorage instance.

    Raises:
        ValueError: If the remote backend is selected without an API URL.
    """
    if settings.backend == "remote":
        if not settings.api_url:
            raise ValueError("Remote backend selected but PUNCHCLOCK_API_URL is not set")
        return RemoteStorage(
            settings.api_url,
            api_token=settings.api_token,
            timeout=settings.request_timeout,
        )
    return LocalStorage(settings.get_entries_path())


__all__ = ["StorageAdapter", "LocalStorage", "RemoteStorage", "create_storage"]
