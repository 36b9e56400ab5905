"""Per-table lifecycle policies: retention/compression and sync priority."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import ClassVar

from pydantic import Field

from loom.datatypes.types import CompressionAlgorithm, Int32, Metadata, Record, SyncPriority, Timestamp


def default_compression_algorithm() -> CompressionAlgorithm:
    return CompressionAlgorithm.NONE


def default_batch_size() -> int:
    return 1000


def default_retry_count() -> int:
    return 3


class RetentionConfig(Record):
    """
    Aging policy for one table.

    Rows older than ``retention_days`` may be deleted, rows older than
    ``downsample_after_days`` may be thinned to one in ``downsample_ratio``.
    Enforcement belongs to an external scheduler; these helpers only answer
    questions about the policy.
    """

    kind: ClassVar[str] = "retention_config"

    table_name: str
    compression_enabled: bool = False
    compression_algorithm: CompressionAlgorithm = Field(default_factory=default_compression_algorithm)
    retention_days: Int32 | None = None
    downsample_after_days: Int32 | None = None
    downsample_ratio: Int32 | None = None
    convert_to_text: bool = False
    min_required_space_mb: Int32 | None = None
    created_at: Timestamp
    updated_at: Timestamp
    metadata: Metadata | None = None

    def retention_cutoff(self, now: datetime) -> datetime | None:
        """Rows strictly older than the returned instant are expired."""
        return _cutoff(self.retention_days, now)

    def downsample_cutoff(self, now: datetime) -> datetime | None:
        if not self.downsample_ratio or self.downsample_ratio <= 1:
            return None
        return _cutoff(self.downsample_after_days, now)

    def keeps_sample(self, index: int) -> bool:
        """Whether the ``index``-th row of a downsampled run survives."""
        ratio = self.downsample_ratio or 1
        if ratio <= 1:
            return True
        return index % ratio == 0

    def under_space_pressure(self, free_space_mb: float) -> bool:
        if self.min_required_space_mb is None:
            return False
        return free_space_mb < self.min_required_space_mb


class SyncPriorityConfig(Record):
    kind: ClassVar[str] = "sync_priority_config"

    table_name: str
    priority: SyncPriority
    batch_size: Int32 = Field(default_factory=default_batch_size)
    max_delay_seconds: Int32 | None = None
    retry_count: Int32 = Field(default_factory=default_retry_count)
    created_at: Timestamp
    updated_at: Timestamp
    metadata: Metadata | None = None


def _cutoff(days: int | None, now: datetime) -> datetime | None:
    if days is None or days <= 0:
        return None
    return now - timedelta(days=days)
