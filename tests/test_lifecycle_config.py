from datetime import UTC, datetime, timedelta

import pytest

from loom.datatypes import CompressionAlgorithm, RetentionConfig, SyncPriority, SyncPriorityConfig
from loom.errors import QueryError
from loom.storage.lifecycle import LifecycleConfigStore
from loom.storage.sqlite_records import SQLiteRecordStore

T0 = datetime(2024, 5, 1, tzinfo=UTC)


def _retention(table: str, *, days: int | None = 30, at: datetime = T0) -> RetentionConfig:
    return RetentionConfig(
        table_name=table,
        compression_enabled=True,
        compression_algorithm=CompressionAlgorithm.ZSTD,
        retention_days=days,
        created_at=at,
        updated_at=at,
    )


def test_set_retention_upserts_one_row_per_table(tmp_path) -> None:  # type: ignore[no-untyped-def]
    store = SQLiteRecordStore(tmp_path / "loom.db")
    try:
        lifecycle = LifecycleConfigStore(store)
        lifecycle.set_retention(_retention("gps_data", days=30))
        later = T0 + timedelta(days=2)
        stored = lifecycle.set_retention(_retention("gps_data", days=90, at=later))

        assert store.count("retention_config") == 1
        assert stored.retention_days == 90
        assert stored.created_at == T0
        assert stored.updated_at == later

        fetched = lifecycle.get_retention("gps_data")
        assert fetched is not None
        assert fetched.compression_algorithm is CompressionAlgorithm.ZSTD
        assert fetched.created_at == T0
    finally:
        store.close()


def test_plain_insert_of_duplicate_policy_fails(tmp_path) -> None:  # type: ignore[no-untyped-def]
    store = SQLiteRecordStore(tmp_path / "loom.db")
    try:
        store.insert(_retention("gps_data"))
        with pytest.raises(QueryError):
            store.insert(_retention("gps_data", days=1))
    finally:
        store.close()


def test_absent_policy_reads_as_none(tmp_path) -> None:  # type: ignore[no-untyped-def]
    store = SQLiteRecordStore(tmp_path / "loom.db")
    try:
        lifecycle = LifecycleConfigStore(store)
        assert lifecycle.get_retention("heart_rate_data") is None
        assert lifecycle.get_sync_priority("heart_rate_data") is None
        assert lifecycle.list_retention() == []
        assert lifecycle.delete_retention("heart_rate_data") is False
    finally:
        store.close()


def test_sync_priorities_list_in_tier_order(tmp_path) -> None:  # type: ignore[no-untyped-def]
    store = SQLiteRecordStore(tmp_path / "loom.db")
    try:
        lifecycle = LifecycleConfigStore(store)
        for table, tier in (
            ("camera_data", SyncPriority.BACKGROUND),
            ("heart_rate_data", SyncPriority.CRITICAL),
            ("gps_data", SyncPriority.MEDIUM),
            ("notes", SyncPriority.HIGH),
        ):
            lifecycle.set_sync_priority(
                SyncPriorityConfig(table_name=table, priority=tier, created_at=T0, updated_at=T0)
            )
        ordered = [cfg.table_name for cfg in lifecycle.list_sync_priorities()]
        assert ordered == ["heart_rate_data", "notes", "gps_data", "camera_data"]

        replaced = lifecycle.set_sync_priority(
            SyncPriorityConfig(
                table_name="gps_data",
                priority=SyncPriority.LOW,
                batch_size=50,
                created_at=T0 + timedelta(days=1),
                updated_at=T0 + timedelta(days=1),
            )
        )
        assert replaced.priority is SyncPriority.LOW
        assert replaced.batch_size == 50
        assert replaced.retry_count == 3
        assert replaced.created_at == T0
        assert store.count("sync_priority_config") == 4

        assert lifecycle.delete_sync_priority("gps_data") is True
        assert lifecycle.get_sync_priority("gps_data") is None
    finally:
        store.close()


def test_retention_plan_reports_cutoffs(tmp_path) -> None:  # type: ignore[no-untyped-def]
    store = SQLiteRecordStore(tmp_path / "loom.db")
    try:
        lifecycle = LifecycleConfigStore(store)
        lifecycle.set_retention(
            RetentionConfig(
                table_name="accelerometer_data",
                retention_days=14,
                downsample_after_days=2,
                downsample_ratio=5,
                created_at=T0,
                updated_at=T0,
            )
        )
        lifecycle.set_retention(_retention("legacy_table", days=None))

        now = datetime(2024, 6, 1, tzinfo=UTC)
        plan = lifecycle.retention_plan(now)
        accel = plan["accelerometer_data"]
        assert accel["delete_before"] == now - timedelta(days=14)
        assert accel["downsample_before"] == now - timedelta(days=2)
        assert accel["downsample_ratio"] == 5
        assert accel["compression"] is None
        assert accel["known_table"] is True

        legacy = plan["legacy_table"]
        assert legacy["delete_before"] is None
        assert legacy["compression"] == CompressionAlgorithm.ZSTD
        assert legacy["known_table"] is False
    finally:
        store.close()


def test_delete_before_applies_a_policy_cutoff(tmp_path) -> None:  # type: ignore[no-untyped-def]
    from loom.datatypes import TemperatureData

    store = SQLiteRecordStore(tmp_path / "loom.db")
    try:
        now = datetime(2024, 6, 1, tzinfo=UTC)
        for days_ago in (1, 10, 40):
            store.insert(TemperatureData(timestamp=now - timedelta(days=days_ago), device_id="d", celsius=21.5))
        lifecycle = LifecycleConfigStore(store)
        policy = lifecycle.set_retention(_retention("temperature_data", days=30))
        cutoff = policy.retention_cutoff(now)
        assert cutoff is not None
        assert store.delete_before("temperature", cutoff) == 1
        assert store.count("temperature") == 2
    finally:
        store.close()
