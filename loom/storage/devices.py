"""Device pairing, heartbeats, and capability profiles."""

from __future__ import annotations

from datetime import UTC, datetime

from loguru import logger

from loom.datatypes.device import Device, DeviceCapabilities
from loom.errors import QueryError
from loom.storage.sqlite_records import SQLiteRecordStore


class DeviceRegistry:
    """Thin facade over the ``devices`` table."""

    def __init__(self, store: SQLiteRecordStore) -> None:
        self.store = store
        self.store.ensure_table("devices")

    def pair(self, device: Device) -> Device:
        """Register a new device; pairing an existing ``device_id`` raises QueryError."""
        if self.get(device.device_id) is not None:
            raise QueryError(f"device {device.device_id} is already paired")
        self.store.insert(device)
        logger.info(f"paired device {device.device_id} ({device.device_type}) for user {device.user_id}")
        return device

    def get(self, device_id: str) -> Device | None:
        return self.store.get("devices", str(device_id))  # type: ignore[return-value]

    def list_for_user(self, user_id: str) -> list[Device]:
        return self.store.list_records("devices", filters={"user_id": str(user_id)})  # type: ignore[return-value]

    def heartbeat(
        self,
        device_id: str,
        *,
        seen_at: datetime | None = None,
        capabilities: DeviceCapabilities | None = None,
    ) -> Device:
        """
        Record that ``device_id`` was seen.

        ``last_seen`` and ``updated_at`` never move backwards, so a late
        heartbeat without capabilities leaves the row untouched. A new
        capability profile replaces the stored one whole. Joins the caller's
        transaction when one is open.
        """
        seen = seen_at or datetime.now(UTC)
        with self.store.atomic():
            current = self.get(device_id)
            if current is None:
                raise QueryError(f"device {device_id} is not paired")
            changes: dict[str, object] = {}
            if current.last_seen is None or seen > current.last_seen:
                changes["last_seen"] = seen
            else:
                logger.warning(
                    f"heartbeat for {device_id} at {seen.isoformat()} is older than "
                    f"last_seen {current.last_seen.isoformat()}, keeping last_seen"
                )
            if capabilities is not None:
                changes["capabilities"] = capabilities
            if not changes:
                return current
            changes["updated_at"] = max(current.updated_at or seen, seen)
            updated = self.store.update("devices", str(device_id), **changes)
        return updated  # type: ignore[return-value]

    def remove(self, device_id: str) -> bool:
        removed = self.store.delete("devices", str(device_id)) > 0
        if removed:
            logger.info(f"removed device {device_id}")
        return removed
