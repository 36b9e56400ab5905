"""SQLite persistence for records, lifecycle policy, and devices."""

from loom.storage.devices import DeviceRegistry
from loom.storage.lifecycle import LifecycleConfigStore
from loom.storage.sqlite_records import SQLiteRecordStore, StoreClosedError, Transaction
from loom.storage.sqlite_tuning import SQLiteTuningOptions, apply_sqlite_tuning

__all__ = [
    "DeviceRegistry",
    "LifecycleConfigStore",
    "SQLiteRecordStore",
    "SQLiteTuningOptions",
    "StoreClosedError",
    "Transaction",
    "apply_sqlite_tuning",
]
