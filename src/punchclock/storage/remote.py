"""HTTP persistence for time entries.

Talks to a CRUD API exposing ``/entries`` and ``/entries/{id}``.
Each call is a separate network round trip.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from punchclock.entries.types import TimeEntry
from punchclock.errors import NotFoundError, PersistenceUnavailable
from punchclock.storage.base import StorageAdapter

logger = logging.getLogger(__name__)


class RemoteStorage(StorageAdapter):
    """Storage adapter backed by the time entries HTTP API.

    Example:
        storage = RemoteStorage("http://localhost:3000/api")
        entry = await storage.create(entry)
    """

    def __init__(
        self,
        base_url: str,
        api_token: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the remote storage.

        Args:
            base_url: API root; ``/entries`` is appended.
            api_token: Optional bearer token.
            timeout: Request timeout in seconds.
            transport: Custom httpx transport (used by tests).
        """
        self._base_url = base_url.rstrip("/")
        self._api_token = api_token
        self._timeout = timeout
        self._transport = transport

    @property
    def base_url(self) -> str:
        """Get the API root URL."""
        return self._base_url

    def _get_headers(self) -> dict[str, str]:
        """Get headers for API requests."""
        headers = {"Accept": "application/json"}
        if self._api_token:
            headers["Authorization"] = f"Bearer {self._api_token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
        entry_id: str | None = None,
    ) -> Any:
        """Send one request and decode the JSON reply.

        Raises:
            NotFoundError: On a 404 for an entry-specific call.
            PersistenceUnavailable: On any other HTTP or connection failure.
        """
        url = f"{self._base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.request(
                    method,
                    url,
                    json=payload,
                    headers=self._get_headers(),
                )
                response.raise_for_status()
                if not response.content:
                    return None
                return response.json()

        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404 and entry_id is not None:
                raise NotFoundError(entry_id) from e
            raise PersistenceUnavailable(
                f"HTTP {e.response.status_code} from {method} {url}: {e.response.text[:200]}"
            ) from e
        except httpx.RequestError as e:
            raise PersistenceUnavailable(f"Connection error on {method} {url}: {e}") from e
        except ValueError as e:
            raise PersistenceUnavailable(f"Invalid JSON from {method} {url}: {e}") from e

    def _to_entry(self, data: Any, method: str) -> TimeEntry:
        """Decode an entry from a reply body."""
        try:
            return TimeEntry.model_validate(data)
        except ValueError as e:
            raise PersistenceUnavailable(f"Malformed entry in {method} reply: {e}") from e

    async def list(self) -> list[TimeEntry]:
        """Fetch all entries."""
        data = await self._request("GET", "/entries")
        if not isinstance(data, list):
            raise PersistenceUnavailable("Expected a list of entries from GET /entries")
        entries = [self._to_entry(item, "GET") for item in data]
        logger.debug(f"Fetched {len(entries)} entries from {self._base_url}")
        return entries

    async def create(self, entry: TimeEntry) -> TimeEntry:
        """Create an entry; the backend assigns its id."""
        data = await self._request("POST", "/entries", payload=entry.to_payload())
        created = self._to_entry(data, "POST")
        logger.info(f"Created remote entry: {created.task} ({created.id})")
        return created

    async def update(self, entry_id: str, entry: TimeEntry) -> TimeEntry:
        """Replace an entry by id."""
        data = await self._request(
            "PUT", f"/entries/{entry_id}", payload=entry.to_payload(), entry_id=entry_id
        )
        updated = self._to_entry(data, "PUT")
        logger.info(f"Updated remote entry: {updated.task} ({entry_id})")
        return updated

    async def delete(self, entry_id: str) -> None:
        """Delete an entry by id."""
        await self._request("DELETE", f"/entries/{entry_id}", entry_id=entry_id)
        logger.info(f"Deleted remote entry: {entry_id}")
