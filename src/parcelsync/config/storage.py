"""Where parcelsync keeps its files: the SQLite database and the HTTP response cache."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

DATA_DIR_ENV: Final[str] = "PARCELSYNC_DATA_DIR"
DATABASE_URI_ENV: Final[str] = "DATABASE_URI"
DEFAULT_DB_FILENAME: Final[str] = "parcelsync.db"
HTTP_CACHE_FILENAME: Final[str] = "http_cache.db"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Every file parcelsync writes lives directly under ``data_dir``."""

    data_dir: Path

    @property
    def root(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def file(self, filename: str, *, create_dir: bool = True) -> Path:
        root = self.root
        if create_dir:
            root.mkdir(parents=True, exist_ok=True)
        return root / filename

    def http_cache_path(self, *, create_dir: bool = True) -> Path:
        return self.file(HTTP_CACHE_FILENAME, create_dir=create_dir)

    def sqlite_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.file(DEFAULT_DB_FILENAME)}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def default_data_dir() -> Path:
    xdg_data_home = os.getenv("XDG_DATA_HOME")
    base = Path(xdg_data_home) if xdg_data_home else Path.home() / ".local" / "share"
    return base / "parcelsync"


def get_storage_config() -> StorageConfig:
    configured = os.getenv(DATA_DIR_ENV)
    return StorageConfig(data_dir=Path(configured) if configured else default_data_dir())


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """``DATABASE_URI`` wins; otherwise a SQLite file in the data directory."""

    uri = os.getenv(DATABASE_URI_ENV)
    if not uri:
        uri = (storage or get_storage_config()).sqlite_uri()
    return DatabaseConfig(uri=uri)
