"""Location of the local state database."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "budgetsync"
STATE_DB_FILENAME: Final[str] = "state.db"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str

    @classmethod
    def in_data_dir(cls, data_dir: Path) -> DatabaseConfig:
        """SQLite database file inside ``data_dir``, creating the directory if needed."""

        data_dir.mkdir(parents=True, exist_ok=True)
        return cls(uri=f"sqlite+pysqlite:///{data_dir / STATE_DB_FILENAME}")


def state_data_dir() -> Path:
    """``BUDGETSYNC_DATA_DIR`` if set, else ``budgetsync`` under the XDG data home."""

    override = os.getenv("BUDGETSYNC_DATA_DIR")
    if override:
        return Path(override).expanduser().resolve()
    xdg_data_home = os.getenv("XDG_DATA_HOME")
    base = Path(xdg_data_home) if xdg_data_home else Path.home() / ".local" / "share"
    return (base / APP_DIR_NAME).expanduser().resolve()


def get_database_config() -> DatabaseConfig:
    uri = os.getenv("DATABASE_URI")
    if uri:
        return DatabaseConfig(uri=uri)
    return DatabaseConfig.in_data_dir(state_data_dir())
