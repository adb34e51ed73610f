"""Configuration management for punchclock."""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Punchclock data directory
PUNCHCLOCK_DIR = Path.home() / ".punchclock"
PUNCHCLOCK_ENV_FILE = PUNCHCLOCK_DIR / ".env"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PUNCHCLOCK_",
        # Later files override earlier ones
        env_file=(str(PUNCHCLOCK_ENV_FILE), ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage backend
    backend: Literal["local", "remote"] = Field(
        default="local",
        description="Where entries are persisted: 'local' JSON file or 'remote' HTTP API",
    )
    data_dir: Path | None = Field(
        default=None,
        description="Directory for local data files (default: ~/.punchclock)",
    )
    entries_path: Path | None = Field(
        default=None,
        description="Path of the local entries file (default: <data_dir>/entries.json)",
    )
    session_path: Path | None = Field(
        default=None,
        description="Path of the in-progress session mirror (default: <data_dir>/session.json)",
    )

    # Remote API
    api_url: str = Field(
        default="",
        description="Base URL of the time entries API (e.g., http://localhost:3000/api)",
    )
    api_token: str = Field(
        default="",
        description="Optional bearer token for the time entries API",
    )
    request_timeout: float = Field(
        default=30.0,
        description="Timeout in seconds for remote API requests",
    )

    # Display
    tick_interval: float = Field(
        default=1.0,
        description="Seconds between display refreshes while the timer runs",
    )
    hourly_rate: float = Field(
        default=0.0,
        description="Default hourly rate used by the stats command",
    )

    def get_data_dir(self) -> Path:
        """Get the data directory, using default if not set."""
        if self.data_dir:
            return self.data_dir
        return PUNCHCLOCK_DIR

    def get_entries_path(self) -> Path:
        """Get the entries file path, using default if not set."""
        if self.entries_path:
            return self.entries_path
        return self.get_data_dir() / "entries.json"

    def get_session_path(self) -> Path:
        """Get the session mirror path, using default if not set."""
        if self.session_path:
            return self.session_path
        return self.get_data_dir() / "session.json"


# Global settings instance
settings = Settings()
