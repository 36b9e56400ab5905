"""Utility functions for loom runtime paths and helpers."""

import os
from datetime import datetime
from pathlib import Path

DATA_DIR_NAME = ".loom"
DATABASE_FILE_NAME = "loom.db"


def ensure_dir(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_path() -> Path:
    """
    Get the runtime data directory.

    Priority:
    1. `LOOM_DATA_DIR` env override
    2. `~/.loom`
    """
    env_path = str(os.environ.get("LOOM_DATA_DIR") or "").strip()
    if env_path:
        return ensure_dir(Path(env_path).expanduser())
    return ensure_dir(Path.home() / DATA_DIR_NAME)


def get_database_path(path: str | None = None) -> Path:
    """
    Resolve the SQLite database file.

    Args:
        path: Optional explicit file path. Defaults to <data dir>/data/loom.db.

    Returns:
        Expanded path whose parent directory exists.
    """
    if path:
        db_path = Path(path).expanduser()
        ensure_dir(db_path.parent)
        return db_path
    return ensure_dir(get_data_path() / "data") / DATABASE_FILE_NAME


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 instant; a trailing ``Z`` means UTC. Offsets are required."""
    text = str(value or "").strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        raise ValueError(f"timestamp {value!r} has no timezone offset")
    return parsed
