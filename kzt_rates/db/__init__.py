"""Helpers for locating the SQLite observation log."""

from __future__ import annotations

from pathlib import Path
from typing import Final
from urllib.parse import quote

__all__ = ["DEFAULT_SQLITE_DB_PATH", "DEFAULT_DB_URL", "sqlite_url"]

# Resolved against the working directory of the running process.
DEFAULT_SQLITE_DB_PATH: Final[Path] = Path("exr.db")


def sqlite_url(path: str | Path) -> str:
    """Return the SQLAlchemy URL for a SQLite file at ``path``."""

    return f"sqlite:///{quote(Path(path).as_posix(), safe='/:')}"


DEFAULT_DB_URL: Final[str] = sqlite_url(DEFAULT_SQLITE_DB_PATH)
