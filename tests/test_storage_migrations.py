import sqlite3

import pytest

from loom.datatypes import REGISTRY_VERSION
from loom.errors import IncompatibleSchemaError
from loom.storage.sqlite_records import SQLiteRecordStore


def test_record_store_sets_user_version(tmp_path) -> None:  # type: ignore[no-untyped-def]
    db_path = tmp_path / "loom.db"
    store = SQLiteRecordStore(db_path)
    try:
        conn = sqlite3.connect(str(db_path))
        cur = conn.cursor()
        cur.execute("PRAGMA user_version")
        version = int(cur.fetchone()[0])
        conn.close()
        assert version == SQLiteRecordStore.SCHEMA_VERSION == REGISTRY_VERSION
        assert store.schema_version() == REGISTRY_VERSION
    finally:
        store.close()


def test_record_store_creates_registered_tables(tmp_path) -> None:  # type: ignore[no-untyped-def]
    db_path = tmp_path / "loom.db"
    store = SQLiteRecordStore(db_path)
    store.close()

    conn = sqlite3.connect(str(db_path))
    cur = conn.cursor()
    cur.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
    tables = {str(row[0]) for row in cur.fetchall()}
    conn.close()
    for name in (
        "accelerometer_data",
        "gps_data",
        "todo_data",
        "users",
        "devices",
        "note_references",
        "retention_config",
        "sync_priority_config",
    ):
        assert name in tables


def test_record_store_rejects_newer_schema_version(tmp_path) -> None:  # type: ignore[no-untyped-def]
    db_path = tmp_path / "future.db"
    conn = sqlite3.connect(str(db_path))
    conn.execute(f"PRAGMA user_version = {REGISTRY_VERSION + 1}")
    conn.commit()
    conn.close()

    with pytest.raises(IncompatibleSchemaError):
        SQLiteRecordStore(db_path)


def test_record_store_rejects_drifted_table_shape(tmp_path) -> None:  # type: ignore[no-untyped-def]
    db_path = tmp_path / "drift.db"
    conn = sqlite3.connect(str(db_path))
    cur = conn.cursor()
    cur.execute(
        """
        CREATE TABLE gps_data (
          timestamp TIMESTAMP NOT NULL,
          device_id TEXT NOT NULL,
          latitude REAL NOT NULL,
          longitude REAL NOT NULL,
          PRIMARY KEY (device_id, timestamp)
        )
        """
    )
    conn.commit()
    conn.close()

    with pytest.raises(IncompatibleSchemaError) as excinfo:
        SQLiteRecordStore(db_path)
    assert excinfo.value.table == "gps_data"
    assert any("missing column altitude" in diff for diff in excinfo.value.differences)

    conn2 = sqlite3.connect(str(db_path))
    cur2 = conn2.cursor()
    cur2.execute("PRAGMA table_info(gps_data)")
    columns = {str(row[1]) for row in cur2.fetchall()}
    conn2.close()
    assert "altitude" not in columns


def test_record_store_opens_only_requested_kinds(tmp_path) -> None:  # type: ignore[no-untyped-def]
    db_path = tmp_path / "partial.db"
    store = SQLiteRecordStore(db_path, kinds=["gps"], create_indexes=False)
    try:
        assert store.table_exists("gps_data") is True
        assert store.table_exists("accelerometer_data") is False
        store.ensure_table("accelerometer")
        assert store.table_exists("accelerometer_data") is True
    finally:
        store.close()
