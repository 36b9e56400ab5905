"""Record kinds and their JSON marshaling."""

from loom.datatypes.config import (
    RetentionConfig,
    SyncPriorityConfig,
    default_batch_size,
    default_compression_algorithm,
    default_retry_count,
)
from loom.datatypes.device import Device, DeviceCapabilities, ScreenDetails
from loom.datatypes.note import KnownEntity, Note, NoteReference, default_note_priority
from loom.datatypes.registry import (
    REGISTRY_VERSION,
    WILDCARD_DEVICE,
    RecordKind,
    all_kinds,
    get_kind,
    kind_for,
    kind_for_model,
    observation_kinds,
    table_name_for,
)
from loom.datatypes.sensor import (
    AccelerometerData,
    AppUsageData,
    AudioLevelData,
    BatteryData,
    BloodOxygenData,
    CallLogData,
    CameraData,
    ECGData,
    GPSData,
    GyroscopeData,
    HeartRateData,
    HumidityData,
    LightData,
    MagnetometerData,
    NetworkData,
    NotificationData,
    PressureData,
    ProximityData,
    ScreenStateData,
    SensorRecord,
    StepCountData,
    StressData,
    TemperatureData,
    TodoData,
    WifiData,
    WifiNetwork,
)
from loom.datatypes.types import (
    CallDirection,
    CameraType,
    ColumnSpec,
    ColumnStorage,
    CompressionAlgorithm,
    ConnectionType,
    DeviceType,
    EntityType,
    FieldState,
    NotePriority,
    Record,
    SyncPriority,
    field_state,
    marshal,
    unmarshal,
)
from loom.datatypes.user import OAuthAccount, Session, User

__all__ = [
    "AccelerometerData",
    "AppUsageData",
    "AudioLevelData",
    "BatteryData",
    "BloodOxygenData",
    "CallDirection",
    "CallLogData",
    "CameraData",
    "CameraType",
    "ColumnSpec",
    "ColumnStorage",
    "CompressionAlgorithm",
    "ConnectionType",
    "Device",
    "DeviceCapabilities",
    "DeviceType",
    "ECGData",
    "EntityType",
    "FieldState",
    "GPSData",
    "GyroscopeData",
    "HeartRateData",
    "HumidityData",
    "KnownEntity",
    "LightData",
    "MagnetometerData",
    "NetworkData",
    "Note",
    "NotePriority",
    "NoteReference",
    "NotificationData",
    "OAuthAccount",
    "PressureData",
    "ProximityData",
    "REGISTRY_VERSION",
    "Record",
    "RecordKind",
    "RetentionConfig",
    "ScreenDetails",
    "ScreenStateData",
    "SensorRecord",
    "Session",
    "StepCountData",
    "StressData",
    "SyncPriority",
    "SyncPriorityConfig",
    "TemperatureData",
    "TodoData",
    "User",
    "WILDCARD_DEVICE",
    "WifiData",
    "WifiNetwork",
    "all_kinds",
    "default_batch_size",
    "default_compression_algorithm",
    "default_note_priority",
    "default_retry_count",
    "field_state",
    "get_kind",
    "kind_for",
    "kind_for_model",
    "marshal",
    "observation_kinds",
    "table_name_for",
    "unmarshal",
]
