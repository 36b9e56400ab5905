"""Cross-device summary of recent observations."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from typing import Any

from loguru import logger
from pydantic_core import to_jsonable_python

from loom.datatypes.registry import WILDCARD_DEVICE, get_kind, observation_kinds
from loom.errors import QueryError
from loom.storage.sqlite_records import SQLiteRecordStore

REPORT_VERSION = "1.0"


def recent_events(
    store: SQLiteRecordStore,
    *,
    hours: int = 24,
    now: datetime | None = None,
    kinds: Iterable[str] | None = None,
) -> dict[str, Any]:
    """
    Every device's observations from the last ``hours`` hours.

    Returns ``{timestamp, timeRange{start,end}, sensorData{<kind>: [...]},
    metadata{version, dataPoints}}`` with records in wire form, oldest first.
    """
    if hours <= 0:
        raise ValueError(f"hours must be positive, got {hours}")
    end = now or datetime.now(UTC)
    start = end - timedelta(hours=hours)
    selected = [get_kind(name) for name in kinds] if kinds else list(observation_kinds())

    sensor_data: dict[str, list[dict[str, Any]]] = {}
    data_points = 0
    for kind in selected:
        if not kind.is_observation:
            raise QueryError(f"{kind.name} is not a device time series")
        records = store.query(kind, WILDCARD_DEVICE, start, end, order="asc")
        sensor_data[kind.name] = [record.to_wire_dict() for record in records]
        data_points += len(records)

    logger.debug(f"recent events: {data_points} points across {len(selected)} kinds in {hours}h")
    return {
        "timestamp": to_jsonable_python(end),
        "timeRange": {
            "start": to_jsonable_python(start),
            "end": to_jsonable_python(end),
        },
        "sensorData": sensor_data,
        "metadata": {
            "version": REPORT_VERSION,
            "dataPoints": data_points,
        },
    }
