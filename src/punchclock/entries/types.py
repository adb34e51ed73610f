"""Type definitions for time entries.

This module defines the Pydantic model for a persisted time entry and the
helpers that build entries from untrusted data.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from punchclock.errors import ValidationError


class TimeEntry(BaseModel):
    """A completed, persisted work session.

    Timestamps travel as ISO-8601 under the camelCase wire names used by the
    entries API (``startTime``/``endTime``). The duration is stored as given
    and is never recomputed from the timestamps, since paused time makes it
    shorter than the wall-clock span.

    Attributes:
        id: Entry identifier, unset until the entry is created.
        task: Short task label.
        description: Optional free text.
        start_time: When the session was started.
        end_time: When the session was stopped.
        duration: Tracked seconds, excluding pauses.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str | None = Field(default=None, description="Entry identifier")
    task: str = Field(..., description="Short task label")
    description: str | None = Field(default=None, description="Optional free text")
    start_time: datetime = Field(..., alias="startTime", description="Session start")
    end_time: datetime = Field(..., alias="endTime", description="Session end")
    duration: int = Field(..., ge=0, strict=True, description="Tracked seconds")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        # Backends may hand out integer keys
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("task")
    @classmethod
    def _check_task(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("task must not be blank")
        return value

    @field_validator("start_time", "end_time")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def _check_span(self) -> "TimeEntry":
        if self.end_time < self.start_time:
            raise ValueError("endTime must not be before startTime")
        if self.duration > self.span_seconds:
            raise ValueError(
                f"duration {self.duration}s exceeds the {self.span_seconds}s between start and end"
            )
        return self

    @property
    def span_seconds(self) -> int:
        """Whole seconds between start and end."""
        return int((self.end_time - self.start_time).total_seconds())

    def to_payload(self) -> dict[str, Any]:
        """Request body for create/update calls (no id)."""
        return self.model_dump(mode="json", by_alias=True, exclude={"id"})

    def to_record(self) -> dict[str, Any]:
        """Serialized form including the id, as kept in local storage."""
        return self.model_dump(mode="json", by_alias=True)


def parse_entry(data: dict[str, Any]) -> TimeEntry:
    """Build a TimeEntry from raw data.

    Args:
        data: Field values, by attribute or wire name.

    Returns:
        The validated entry.

    Raises:
        ValidationError: If the data does not describe a possible entry.
    """
    try:
        return TimeEntry.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(_describe(e)) from e


def revise_entry(entry: TimeEntry, **changes: Any) -> TimeEntry:
    """Return a re-validated copy of an entry with some fields replaced."""
    data = entry.model_dump()
    data.update(changes)
    return parse_entry(data)


def _describe(error: PydanticValidationError) -> str:
    parts = []
    for item in error.errors():
        loc = ".".join(str(p) for p in item.get("loc", ()))
        msg = item.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts) or "invalid time entry"
