import json
import types
from datetime import UTC, datetime, timedelta, timezone
from enum import StrEnum
from typing import Annotated, Any, Union, get_args, get_origin

import pytest
from pydantic import BaseModel

from loom.datatypes import (
    AccelerometerData,
    BatteryData,
    CameraData,
    CameraType,
    ColumnStorage,
    CompressionAlgorithm,
    Device,
    DeviceCapabilities,
    FieldState,
    GPSData,
    HeartRateData,
    Note,
    NotePriority,
    OAuthAccount,
    ProximityData,
    RecordKind,
    RetentionConfig,
    ScreenDetails,
    Session,
    SyncPriority,
    SyncPriorityConfig,
    WifiData,
    WifiNetwork,
    all_kinds,
    default_batch_size,
    default_compression_algorithm,
    default_note_priority,
    default_retry_count,
    field_state,
    get_kind,
    marshal,
    observation_kinds,
    unmarshal,
)
from loom.errors import QueryError, SchemaError
from loom.storage.sqlite_records import SQLiteRecordStore

T0 = datetime(2024, 5, 1, 12, 30, 15, 123456, tzinfo=UTC)


def _capabilities() -> DeviceCapabilities:
    flags = {name: False for name in DeviceCapabilities.model_fields if name.startswith("has_")}
    flags["has_gps"] = True
    return DeviceCapabilities(
        **flags,
        screen_details=ScreenDetails(width=1080, height=2400, density=2.75, refresh_rate=120),
    )


def test_accelerometer_round_trip_preserves_values() -> None:
    record = AccelerometerData(timestamp=T0, device_id="phone-1", x=0.25, y=-9.5, z=1.0)
    restored = unmarshal(AccelerometerData, marshal(record))
    assert restored == record
    assert restored.timestamp == T0
    assert restored.timestamp.microsecond == 123456


def test_absent_optional_is_omitted_from_wire() -> None:
    record = GPSData(timestamp=T0, device_id="phone-1", latitude=52.52, longitude=13.405)
    payload = json.loads(record.to_wire())
    assert "altitude" not in payload
    assert "accuracy" not in payload
    assert payload["latitude"] == 52.52
    restored = GPSData.from_wire(record.to_wire())
    assert restored.altitude is None
    assert field_state(restored, "altitude") is FieldState.ABSENT


def test_explicit_null_is_distinct_from_absent() -> None:
    record = GPSData(timestamp=T0, device_id="phone-1", latitude=1.0, longitude=2.0, altitude=None)
    assert record.field_state("altitude") is FieldState.NULL
    payload = json.loads(record.to_wire())
    assert "altitude" in payload
    assert payload["altitude"] is None
    restored = GPSData.from_wire(record.to_wire())
    assert restored.field_state("altitude") is FieldState.NULL
    assert restored.field_state("speed") is FieldState.ABSENT


def test_present_value_state() -> None:
    record = GPSData(timestamp=T0, device_id="d", latitude=1.0, longitude=2.0, altitude=34.5)
    assert record.field_state("altitude") is FieldState.VALUE
    with pytest.raises(KeyError):
        record.field_state("no_such_field")


def test_float64_coordinates_keep_full_precision() -> None:
    record = GPSData(timestamp=T0, device_id="d", latitude=37.42199912345678, longitude=-122.08400012345678)
    restored = GPSData.from_wire(record.to_wire())
    assert restored.latitude == 37.42199912345678
    assert restored.longitude == -122.08400012345678


def test_float32_values_are_single_precision() -> None:
    record = AccelerometerData(timestamp=T0, device_id="d", x=0.1, y=0.2, z=0.3)
    assert record.x != 0.1
    assert abs(record.x - 0.1) < 1e-7
    assert AccelerometerData.from_wire(record.to_wire()).x == record.x


def test_int32_range_is_enforced() -> None:
    with pytest.raises(SchemaError):
        HeartRateData.from_wire_dict(
            {"timestamp": T0.isoformat(), "device_id": "d", "bpm": 2**31}
        )


def test_empty_list_is_distinct_from_absent() -> None:
    empty = HeartRateData(timestamp=T0, device_id="d", bpm=60, rr_intervals=[])
    absent = HeartRateData(timestamp=T0, device_id="d", bpm=60)
    assert json.loads(empty.to_wire())["rr_intervals"] == []
    assert "rr_intervals" not in json.loads(absent.to_wire())
    assert HeartRateData.from_wire(empty.to_wire()).rr_intervals == []


def test_enums_use_screaming_snake_case_on_the_wire() -> None:
    record = CameraData(timestamp=T0, device_id="d", camera_type=CameraType.BACK_MAIN)
    assert json.loads(record.to_wire())["camera_type"] == "BACK_MAIN"


def test_unknown_enum_value_is_schema_error() -> None:
    text = json.dumps({"timestamp": "2024-05-01T00:00:00Z", "device_id": "d", "camera_type": "SIDEWAYS"})
    with pytest.raises(SchemaError):
        CameraData.from_wire(text)


def test_type_mismatch_is_schema_error() -> None:
    text = json.dumps({"timestamp": "2024-05-01T00:00:00Z", "device_id": "d", "x": "fast", "y": 0, "z": 0})
    with pytest.raises(SchemaError):
        unmarshal(AccelerometerData, text)


def test_missing_required_field_is_schema_error() -> None:
    text = json.dumps({"timestamp": "2024-05-01T00:00:00Z", "device_id": "d", "x": 1.0, "y": 2.0})
    with pytest.raises(SchemaError):
        AccelerometerData.from_wire(text)


def test_malformed_json_is_schema_error() -> None:
    with pytest.raises(SchemaError):
        AccelerometerData.from_wire("{not json")


def test_unknown_field_is_rejected() -> None:
    text = json.dumps(
        {"timestamp": "2024-05-01T00:00:00Z", "device_id": "d", "x": 1, "y": 2, "z": 3, "w": 4}
    )
    with pytest.raises(SchemaError):
        AccelerometerData.from_wire(text)


def test_naive_timestamp_is_rejected() -> None:
    text = json.dumps({"timestamp": "2024-05-01T00:00:00", "device_id": "d", "x": 1, "y": 2, "z": 3})
    with pytest.raises(SchemaError):
        AccelerometerData.from_wire(text)


def test_non_utc_offset_is_kept_as_the_same_instant() -> None:
    local = datetime(2024, 5, 1, 14, 30, tzinfo=timezone(timedelta(hours=2)))
    record = AccelerometerData(timestamp=local, device_id="d", x=0, y=0, z=0)
    restored = AccelerometerData.from_wire(record.to_wire())
    assert restored.timestamp == datetime(2024, 5, 1, 12, 30, tzinfo=UTC)


def test_from_wire_dict_requires_an_object() -> None:
    with pytest.raises(SchemaError):
        AccelerometerData.from_wire_dict(["not", "an", "object"])


def test_defaults_are_filled_by_pure_functions() -> None:
    assert default_note_priority() is NotePriority.MEDIUM
    assert default_compression_algorithm() is CompressionAlgorithm.NONE
    assert default_batch_size() == 1000
    assert default_retry_count() == 3

    note = Note.from_wire(
        json.dumps(
            {
                "id": "n1",
                "user_id": "u1",
                "timestamp": "2024-05-01T00:00:00Z",
                "content": "buy milk",
                "created_at": "2024-05-01T00:00:00Z",
                "updated_at": "2024-05-01T00:00:00Z",
            }
        )
    )
    assert note.priority is NotePriority.MEDIUM

    retention = RetentionConfig(table_name="gps_data", created_at=T0, updated_at=T0)
    assert retention.compression_enabled is False
    assert retention.convert_to_text is False
    assert retention.compression_algorithm is CompressionAlgorithm.NONE

    sync = SyncPriorityConfig(table_name="gps_data", priority=SyncPriority.HIGH, created_at=T0, updated_at=T0)
    assert sync.batch_size == 1000
    assert sync.retry_count == 3


def test_nested_records_round_trip() -> None:
    record = WifiData(
        timestamp=T0,
        device_id="d",
        connected=True,
        ssid="home",
        nearby_networks=[WifiNetwork(ssid="home", rssi=-40), WifiNetwork(ssid="cafe")],
    )
    payload = json.loads(record.to_wire())
    assert payload["nearby_networks"][1] == {"ssid": "cafe"}
    restored = WifiData.from_wire(record.to_wire())
    assert restored.nearby_networks is not None
    assert restored.nearby_networks[0].rssi == -40
    assert restored.nearby_networks[1].field_state("rssi") is FieldState.ABSENT


def test_device_seen_times_default_to_created_at() -> None:
    device = Device(
        device_id="phone-1",
        user_id="u1",
        device_type="PHONE",
        os_type="android",
        os_version="14",
        app_version="1.0.0",
        available_sensors=["gps"],
        capabilities=_capabilities(),
        created_at=T0,
    )
    assert device.last_seen == T0
    assert device.updated_at == T0
    restored = Device.from_wire(device.to_wire())
    assert restored.capabilities.screen_details.refresh_rate == 120
    assert restored.capabilities.has_gps is True


def test_field_schema_describes_columns() -> None:
    columns = {col.name: col for col in GPSData.field_schema()}
    assert columns["timestamp"].storage is ColumnStorage.TIMESTAMP
    assert columns["timestamp"].nullable is False
    assert columns["latitude"].storage is ColumnStorage.REAL
    assert columns["altitude"].nullable is True
    assert columns["satellites"].storage is ColumnStorage.INTEGER
    assert columns["provider"].storage is ColumnStorage.TEXT
    assert columns["metadata"].storage is ColumnStorage.JSON

    camera = {col.name: col for col in CameraData.field_schema()}
    assert camera["camera_type"].storage is ColumnStorage.ENUM
    assert camera["objects"].storage is ColumnStorage.JSON
    assert camera["objects"].nullable is True


def test_registry_resolves_kind_and_table_names() -> None:
    assert get_kind("gps").table_name == "gps_data"
    assert get_kind("gps_data").name == "gps"
    assert get_kind(GPSData).name == "gps"
    assert get_kind("devices").key_columns == ("device_id",)
    assert get_kind("note_reference").surrogate_key is True
    with pytest.raises(QueryError):
        get_kind("teleporter_data")


def test_sync_priority_rank_orders_tiers() -> None:
    ranks = [tier.rank for tier in SyncPriority]
    assert ranks == sorted(ranks)
    assert SyncPriority.CRITICAL.rank < SyncPriority.BACKGROUND.rank


def test_retention_helpers() -> None:
    now = datetime(2024, 6, 1, tzinfo=UTC)
    policy = RetentionConfig(
        table_name="accelerometer_data",
        retention_days=30,
        downsample_after_days=7,
        downsample_ratio=10,
        min_required_space_mb=500,
        created_at=now,
        updated_at=now,
    )
    assert policy.retention_cutoff(now) == now - timedelta(days=30)
    assert policy.downsample_cutoff(now) == now - timedelta(days=7)
    assert policy.keeps_sample(0) is True
    assert policy.keeps_sample(5) is False
    assert policy.keeps_sample(20) is True
    assert policy.under_space_pressure(100.0) is True
    assert policy.under_space_pressure(900.0) is False

    unlimited = RetentionConfig(table_name="gps_data", created_at=now, updated_at=now)
    assert unlimited.retention_cutoff(now) is None
    assert unlimited.downsample_cutoff(now) is None
    assert unlimited.keeps_sample(3) is True
    assert unlimited.under_space_pressure(0.0) is False


@pytest.mark.parametrize(
    ("model", "payload"),
    [
        (AccelerometerData, {"x": "0.5", "y": 0.0, "z": 0.0}),
        (ProximityData, {"distance": 1.0, "near": "yes"}),
        (BatteryData, {"percentage": 50, "charging": 1}),
        (BatteryData, {"percentage": 50.0, "charging": True}),
        (BatteryData, {"percentage": "50", "charging": True}),
    ],
)
def test_wire_types_are_not_coerced(model, payload) -> None:  # type: ignore[no-untyped-def]
    text = json.dumps({"timestamp": "2024-05-01T00:00:00Z", "device_id": "d", **payload})
    with pytest.raises(SchemaError):
        unmarshal(model, text)


def test_integers_are_accepted_for_float_fields() -> None:
    text = json.dumps({"timestamp": "2024-05-01T00:00:00Z", "device_id": "d", "x": 1, "y": 0, "z": -2})
    assert unmarshal(AccelerometerData, text).z == -2.0


def _sample(annotation: Any) -> Any:
    origin = get_origin(annotation)
    if origin is Annotated:
        return _sample(get_args(annotation)[0])
    if origin in (Union, types.UnionType):
        return _sample(next(arg for arg in get_args(annotation) if arg is not type(None)))
    if origin is list:
        return [_sample(get_args(annotation)[0])]
    if origin is dict or annotation is Any:
        return {"source": "sample", "count": 2}
    if issubclass(annotation, StrEnum):
        return list(annotation)[-1]
    if issubclass(annotation, bool):
        return True
    if issubclass(annotation, int):
        return 7
    if issubclass(annotation, float):
        return 1.5
    if issubclass(annotation, str):
        return "sample"
    if issubclass(annotation, datetime):
        return T0
    if issubclass(annotation, BaseModel):
        return _full(annotation)
    raise AssertionError(f"no sample for {annotation!r}")


def _full(model: Any) -> Any:
    return model(**{name: _sample(info.annotation) for name, info in model.model_fields.items()})


def _minimal(model: Any) -> Any:
    return model(
        **{name: _sample(info.annotation) for name, info in model.model_fields.items() if info.is_required()}
    )


def _kind_id(kind: RecordKind) -> str:
    return kind.name


@pytest.mark.parametrize("kind", all_kinds(), ids=_kind_id)
def test_every_kind_round_trips_sparse_and_full(kind: RecordKind) -> None:
    for record in (_minimal(kind.model), _full(kind.model)):
        restored = unmarshal(kind.model, marshal(record))
        assert restored == record
        for name in kind.model.model_fields:
            assert restored.field_state(name) is record.field_state(name)

    full = _full(kind.model)
    assert all(full.field_state(name) is FieldState.VALUE for name in kind.model.model_fields)


def test_session_and_oauth_expiry() -> None:
    now = datetime(2024, 6, 1, tzinfo=UTC)
    session = Session(id="s1", user_id="u1", token="t", expires_at=now, created_at=T0)
    assert session.is_expired(now) is True
    assert session.is_expired(now - timedelta(seconds=1)) is False

    account = OAuthAccount(
        id="o1",
        user_id="u1",
        provider="github",
        provider_user_id="42",
        access_token="a",
        created_at=T0,
        updated_at=T0,
    )
    assert account.is_expired(now) is False
    expiring = account.model_copy(update={"expires_at": now + timedelta(hours=1)})
    assert expiring.is_expired(now) is False
    assert expiring.is_expired(now + timedelta(hours=2)) is True


@pytest.mark.parametrize("kind", observation_kinds(), ids=_kind_id)
def test_every_observation_kind_survives_storage(kind: RecordKind, tmp_path) -> None:  # type: ignore[no-untyped-def]
    sparse = _minimal(kind.model).model_copy(update={"device_id": "sparse"})
    full = _full(kind.model)
    store = SQLiteRecordStore(tmp_path / "loom.db", kinds=[kind.name])
    try:
        store.insert_many([sparse, full])
        found = {record.device_id: record for record in store.query(kind, "*", T0, T0)}
        assert found == {"sparse": sparse, "sample": full}
        for name in kind.model.optional_fields():
            assert found["sparse"].field_state(name) is FieldState.ABSENT
            assert found["sample"].field_state(name) is FieldState.VALUE
    finally:
        store.close()
