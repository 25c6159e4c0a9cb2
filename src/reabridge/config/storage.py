"""Location of the SQLite database holding mapping entries and pending listings.

``DATABASE_URI`` wins outright. Otherwise the database file lives in
``REABRIDGE_DATA_DIR``, or in ``$XDG_DATA_HOME/reabridge`` when that is unset.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "reabridge"
DEFAULT_DB_FILENAME: Final[str] = "reabridge.db"
DATA_DIR_ENV: Final[str] = "REABRIDGE_DATA_DIR"
DATABASE_URI_ENV: Final[str] = "DATABASE_URI"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def database_path(self) -> Path:
        """Path of the bridge database; the data directory is created on first use."""
        data_dir = self.resolve_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir / self.database_filename

    def database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.database_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    """SQLAlchemy URL shared by the mapping table and the pending set."""

    uri: str


def _default_data_dir() -> Path:
    xdg_data_home = os.getenv("XDG_DATA_HOME")
    base = Path(xdg_data_home) if xdg_data_home else Path.home() / ".local" / "share"
    return base / APP_DIR_NAME


def get_storage_config() -> StorageConfig:
    env_dir = os.getenv(DATA_DIR_ENV)
    return StorageConfig(data_dir=Path(env_dir) if env_dir else _default_data_dir())


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    env_uri = os.getenv(DATABASE_URI_ENV)
    if env_uri:
        return DatabaseConfig(uri=env_uri)
    return DatabaseConfig(uri=(storage or get_storage_config()).database_uri())
