"""Configuration schema using Pydantic."""

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from loom.storage.sqlite_tuning import SQLiteTuningOptions
from loom.utils.helpers import get_database_path


class StorageConfig(BaseModel):
    """SQLite record store configuration."""
    path: str = ""  # Database file; empty means <data dir>/data/loom.db
    create_indexes: bool = True  # (device_id, timestamp) index on every observation table
    kinds: list[str] = Field(default_factory=list)  # Kinds created on open; empty means all
    busy_timeout_ms: int = 5000
    journal_mode: str = "WAL"
    synchronous: str = "NORMAL"
    temp_store: str = "MEMORY"
    wal_autocheckpoint_pages: int = 1000
    cache_size_kib: int = 16384

    def tuning_options(self) -> SQLiteTuningOptions:
        return SQLiteTuningOptions(
            busy_timeout_ms=self.busy_timeout_ms,
            journal_mode=self.journal_mode,
            synchronous=self.synchronous,
            temp_store=self.temp_store,
            wal_autocheckpoint_pages=self.wal_autocheckpoint_pages,
            cache_size_kib=self.cache_size_kib,
        )


class LoggingConfig(BaseModel):
    """Log output configuration."""
    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR


class DiscoveryConfig(BaseModel):
    """Peer discovery beacon settings; the beacon itself runs outside loom."""
    enabled: bool = True
    service_type: str = "_loom-app._tcp.local."
    service_name: str = "Loom App"
    port: int = 8080


class ReportingConfig(BaseModel):
    """Defaults for the recent-events report."""
    window_hours: int = 24
    kinds: list[str] = Field(default_factory=list)  # Observation kinds to include; empty means all


class Config(BaseSettings):
    """Root configuration for loom."""
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    reporting: ReportingConfig = Field(default_factory=ReportingConfig)

    @property
    def database_path(self) -> Path:
        """Get the resolved database file path."""
        return get_database_path(self.storage.path or None)

    model_config = SettingsConfigDict(
        env_prefix="LOOM_",
        env_nested_delimiter="__",
        extra="ignore",
    )
