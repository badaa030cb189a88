"""
Application configuration for the Infinity Todo API.

Values come from the environment (prefix ``TODO_``) or a local ``.env`` file.
Install-location detection for the database file lives here so the store
only ever receives an already resolved path.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DATABASE_FILENAME = "todo.db"


class AppSettings(BaseSettings):
    """Runtime settings for the API listener and the task store."""

    model_config = SettingsConfigDict(
        env_prefix="TODO_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    database_path: Path | None = None
    host: str = "127.0.0.1"
    # 0 = let the OS pick a free port; a bare PORT is honoured too
    port: int = Field(default=0, validation_alias=AliasChoices("TODO_PORT", "PORT"))
    debug: bool = False
    log_level: str | None = None
    log_json: bool = False
    cors_origins: list[str] = ["*"]

    # Set by the desktop host to tell us where the install lives
    portable_executable_dir: Path | None = Field(
        default=None, validation_alias="PORTABLE_EXECUTABLE_DIR"
    )
    user_data_path: Path | None = Field(
        default=None, validation_alias="USER_DATA_PATH"
    )


@lru_cache
def get_settings() -> AppSettings:
    """Return the process-wide settings (cached)."""
    return AppSettings()


def resolve_database_path(settings: AppSettings) -> Path:
    """
    Work out where the SQLite file lives.

    Precedence:
    1. explicit ``TODO_DATABASE_PATH``
    2. next to a portable executable (``PORTABLE_EXECUTABLE_DIR``)
    3. the host's per-user data folder (``USER_DATA_PATH``)
    4. the current working directory
    """
    if settings.database_path is not None:
        return settings.database_path.expanduser()

    for folder in (settings.portable_executable_dir, settings.user_data_path):
        if folder is not None:
            return folder.expanduser() / DATABASE_FILENAME

    return Path.cwd() / DATABASE_FILENAME
