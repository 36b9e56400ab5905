"""Lifecycle policy store: retention/compression and sync-priority rows."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from loguru import logger

from loom.datatypes.config import RetentionConfig, SyncPriorityConfig
from loom.datatypes.registry import get_kind
from loom.errors import QueryError
from loom.storage.sqlite_records import SQLiteRecordStore


class LifecycleConfigStore:
    """
    Serves per-table aging policy to an external scheduler and sync component.

    At most one row per ``table_name`` exists for each policy kind: writes
    upsert on the table name and keep the original ``created_at``. A missing
    policy means unlimited retention, no compression, and no sync tier.
    """

    def __init__(self, store: SQLiteRecordStore) -> None:
        self.store = store
        self.store.ensure_table("retention_config")
        self.store.ensure_table("sync_priority_config")

    def set_retention(self, config: RetentionConfig) -> RetentionConfig:
        self.store.upsert(config, keep_existing=("created_at",))
        logger.debug(f"retention policy stored for {config.table_name}")
        return self.get_retention(config.table_name) or config

    def get_retention(self, table_name: str) -> RetentionConfig | None:
        return self.store.get("retention_config", str(table_name))  # type: ignore[return-value]

    def list_retention(self) -> list[RetentionConfig]:
        rows = self.store.list_records("retention_config", limit=10000)
        return sorted(rows, key=lambda cfg: cfg.table_name)  # type: ignore[attr-defined]

    def delete_retention(self, table_name: str) -> bool:
        return self.store.delete("retention_config", str(table_name)) > 0

    def set_sync_priority(self, config: SyncPriorityConfig) -> SyncPriorityConfig:
        self.store.upsert(config, keep_existing=("created_at",))
        logger.debug(f"sync priority {config.priority} stored for {config.table_name}")
        return self.get_sync_priority(config.table_name) or config

    def get_sync_priority(self, table_name: str) -> SyncPriorityConfig | None:
        return self.store.get("sync_priority_config", str(table_name))  # type: ignore[return-value]

    def list_sync_priorities(self) -> list[SyncPriorityConfig]:
        """Policies ordered from the most to the least urgent tier."""
        rows = self.store.list_records("sync_priority_config", limit=10000)
        return sorted(rows, key=lambda cfg: (cfg.priority.rank, cfg.table_name))  # type: ignore[attr-defined]

    def delete_sync_priority(self, table_name: str) -> bool:
        return self.store.delete("sync_priority_config", str(table_name)) > 0

    def retention_plan(self, now: datetime | None = None) -> dict[str, dict[str, Any]]:
        """Cutoffs per table for whoever enforces retention and downsampling."""
        current = now or datetime.now(UTC)
        plan: dict[str, dict[str, Any]] = {}
        for config in self.list_retention():
            plan[config.table_name] = {
                "delete_before": config.retention_cutoff(current),
                "downsample_before": config.downsample_cutoff(current),
                "downsample_ratio": config.downsample_ratio,
                "compression": config.compression_algorithm if config.compression_enabled else None,
                "convert_to_text": config.convert_to_text,
                "min_required_space_mb": config.min_required_space_mb,
                "known_table": _is_registered_table(config.table_name),
            }
        return plan


def _is_registered_table(table_name: str) -> bool:
    try:
        get_kind(table_name)
    except QueryError:
        return False
    return True
