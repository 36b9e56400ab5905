"""SQLite pragma tuning for the single-connection record store."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Any

_VALID_JOURNAL_MODES = {"DELETE", "TRUNCATE", "PERSIST", "MEMORY", "WAL", "OFF"}
_VALID_SYNCHRONOUS = {"OFF", "NORMAL", "FULL", "EXTRA"}
_VALID_TEMP_STORE = {"DEFAULT", "FILE", "MEMORY"}


@dataclass(slots=True)
class SQLiteTuningOptions:
    """Defaults for an append-heavy telemetry workload."""

    busy_timeout_ms: int = 5000
    journal_mode: str = "WAL"
    synchronous: str = "NORMAL"
    temp_store: str = "MEMORY"
    wal_autocheckpoint_pages: int = 1000
    cache_size_kib: int = 16384


def apply_sqlite_tuning(
    conn: sqlite3.Connection,
    *,
    options: SQLiteTuningOptions | None = None,
) -> dict[str, Any]:
    """Apply tuning pragmas and return the values SQLite actually accepted."""

    tuning = options or SQLiteTuningOptions()
    applied: dict[str, Any] = {}

    busy_timeout_ms = max(0, int(tuning.busy_timeout_ms))
    conn.execute(f"PRAGMA busy_timeout = {busy_timeout_ms}")
    applied["busy_timeout_ms"] = busy_timeout_ms

    journal_mode = _normalize_value(tuning.journal_mode, valid=_VALID_JOURNAL_MODES, fallback="WAL")
    row = conn.execute(f"PRAGMA journal_mode = {journal_mode}").fetchone()
    # In-memory databases always report "memory" regardless of the request.
    applied["journal_mode"] = str(row[0]).upper() if row and row[0] is not None else journal_mode

    synchronous = _normalize_value(tuning.synchronous, valid=_VALID_SYNCHRONOUS, fallback="NORMAL")
    conn.execute(f"PRAGMA synchronous = {synchronous}")
    applied["synchronous"] = synchronous

    temp_store = _normalize_value(tuning.temp_store, valid=_VALID_TEMP_STORE, fallback="MEMORY")
    conn.execute(f"PRAGMA temp_store = {temp_store}")
    applied["temp_store"] = temp_store

    wal_autocheckpoint = max(0, int(tuning.wal_autocheckpoint_pages))
    if applied["journal_mode"] == "WAL":
        conn.execute(f"PRAGMA wal_autocheckpoint = {wal_autocheckpoint}")
    applied["wal_autocheckpoint_pages"] = wal_autocheckpoint

    # Negative cache_size is interpreted by SQLite as KiB rather than pages.
    cache_size_kib = max(0, int(tuning.cache_size_kib))
    if cache_size_kib:
        conn.execute(f"PRAGMA cache_size = -{cache_size_kib}")
    applied["cache_size_kib"] = cache_size_kib

    return applied


def _normalize_value(value: object, *, valid: set[str], fallback: str) -> str:
    text = str(value or "").strip().upper()
    if text in valid:
        return text
    return fallback
