"""Observation records captured by device sensors and event sources."""

from __future__ import annotations

from typing import Any, ClassVar

from loom.datatypes.types import (
    CallDirection,
    CameraType,
    ConnectionType,
    Float32,
    Float64,
    Int32,
    Metadata,
    NotePriority,
    Record,
    Timestamp,
)


class SensorRecord(Record):
    """Common header of every observation: when, from which device, extras."""

    timestamp: Timestamp
    device_id: str


# Motion sensors
class AccelerometerData(SensorRecord):
    kind: ClassVar[str] = "accelerometer"

    x: Float32
    y: Float32
    z: Float32
    accuracy: Float32 | None = None
    metadata: Metadata | None = None


class GyroscopeData(SensorRecord):
    kind: ClassVar[str] = "gyroscope"

    x: Float32
    y: Float32
    z: Float32
    accuracy: Float32 | None = None
    metadata: Metadata | None = None


class MagnetometerData(SensorRecord):
    kind: ClassVar[str] = "magnetometer"

    x: Float32
    y: Float32
    z: Float32
    accuracy: Float32 | None = None
    metadata: Metadata | None = None


# Location
class GPSData(SensorRecord):
    kind: ClassVar[str] = "gps"

    latitude: Float64
    longitude: Float64
    altitude: Float64 | None = None
    accuracy: Float32 | None = None
    speed: Float32 | None = None
    bearing: Float32 | None = None
    satellites: Int32 | None = None
    provider: str | None = None
    metadata: Metadata | None = None


# Health
class HeartRateData(SensorRecord):
    kind: ClassVar[str] = "heart_rate"

    bpm: Int32
    confidence: Float32 | None = None
    rr_intervals: list[Float32] | None = None
    metadata: Metadata | None = None


class ECGData(SensorRecord):
    kind: ClassVar[str] = "ecg"

    voltage: list[Float32]
    time: list[Float32]
    rhythm_classification: str | None = None
    heart_rate: Float32 | None = None
    metadata: Metadata | None = None


class BloodOxygenData(SensorRecord):
    kind: ClassVar[str] = "blood_oxygen"

    spo2: Int32
    confidence: Float32 | None = None
    raw_values: list[Float32] | None = None
    metadata: Metadata | None = None


class StressData(SensorRecord):
    kind: ClassVar[str] = "stress"

    stress_score: Int32
    stress_level: str | None = None
    hrv: Float32 | None = None
    metadata: Metadata | None = None


# Environment
class ProximityData(SensorRecord):
    kind: ClassVar[str] = "proximity"

    distance: Float32
    near: bool
    metadata: Metadata | None = None


class LightData(SensorRecord):
    kind: ClassVar[str] = "light"

    lux: Float32
    metadata: Metadata | None = None


class PressureData(SensorRecord):
    kind: ClassVar[str] = "pressure"

    hectopascals: Float32
    metadata: Metadata | None = None


class TemperatureData(SensorRecord):
    kind: ClassVar[str] = "temperature"

    celsius: Float32
    metadata: Metadata | None = None


class HumidityData(SensorRecord):
    kind: ClassVar[str] = "humidity"

    percentage: Float32
    metadata: Metadata | None = None


# Activity and audio
class StepCountData(SensorRecord):
    kind: ClassVar[str] = "step_count"

    steps: Int32
    activity_type: str | None = None
    confidence: Float32 | None = None
    metadata: Metadata | None = None


class AudioLevelData(SensorRecord):
    kind: ClassVar[str] = "audio_level"

    db: Float32
    peak_db: Float32 | None = None
    volume: Float32 | None = None
    metadata: Metadata | None = None


# System state
class BatteryData(SensorRecord):
    kind: ClassVar[str] = "battery"

    percentage: Int32
    charging: bool
    power_source: str | None = None
    temperature: Int32 | None = None
    voltage: Int32 | None = None
    current: Int32 | None = None
    metadata: Metadata | None = None


class NetworkData(SensorRecord):
    kind: ClassVar[str] = "network"

    connection_type: ConnectionType
    state: str | None = None
    strength: Int32 | None = None
    carrier: str | None = None
    roaming: bool | None = None
    cellular_technology: str | None = None
    is_metered: bool | None = None
    dns_servers: list[str] | None = None
    gateway: str | None = None
    metadata: Metadata | None = None


class ScreenStateData(SensorRecord):
    kind: ClassVar[str] = "screen_state"

    screen_on: bool
    brightness: Int32 | None = None
    orientation: str | None = None
    metadata: Metadata | None = None


class CameraData(SensorRecord):
    kind: ClassVar[str] = "camera"

    camera_type: CameraType
    light_level: Int32 | None = None
    scene_type: str | None = None
    objects: Any = None
    face_detection: Any = None
    focus_distance: Float32 | None = None
    flash_state: str | None = None
    zoom_level: Float32 | None = None
    capture_mode: str | None = None
    metadata: Metadata | None = None


# Device usage and personal events
class NotificationData(SensorRecord):
    kind: ClassVar[str] = "notification"

    app_package: str
    title: str | None = None
    text: str | None = None
    category: str | None = None
    priority: Int32 | None = None
    is_ongoing: bool | None = None
    dismissed: bool | None = None
    metadata: Metadata | None = None


class AppUsageData(SensorRecord):
    kind: ClassVar[str] = "app_usage"

    package_name: str
    app_name: str | None = None
    foreground_ms: Int32
    launch_count: Int32 | None = None
    category: str | None = None
    metadata: Metadata | None = None


class WifiNetwork(Record):
    """One entry of a wifi scan."""

    ssid: str
    bssid: str | None = None
    rssi: Int32 | None = None
    frequency_mhz: Int32 | None = None


class WifiData(SensorRecord):
    kind: ClassVar[str] = "wifi"

    connected: bool
    ssid: str | None = None
    bssid: str | None = None
    rssi: Int32 | None = None
    frequency_mhz: Int32 | None = None
    link_speed_mbps: Int32 | None = None
    nearby_networks: list[WifiNetwork] | None = None
    metadata: Metadata | None = None


class CallLogData(SensorRecord):
    kind: ClassVar[str] = "call_log"

    direction: CallDirection
    duration_seconds: Int32
    number_hash: str | None = None
    contact_name: str | None = None
    metadata: Metadata | None = None


class TodoData(SensorRecord):
    kind: ClassVar[str] = "todo"

    title: str
    completed: bool
    due_at: Timestamp | None = None
    priority: NotePriority | None = None
    tags: list[str] | None = None
    metadata: Metadata | None = None


SENSOR_MODELS: tuple[type[SensorRecord], ...] = (
    AccelerometerData,
    GyroscopeData,
    MagnetometerData,
    GPSData,
    HeartRateData,
    ECGData,
    BloodOxygenData,
    StressData,
    ProximityData,
    LightData,
    PressureData,
    TemperatureData,
    HumidityData,
    StepCountData,
    AudioLevelData,
    BatteryData,
    NetworkData,
    ScreenStateData,
    CameraData,
    NotificationData,
    AppUsageData,
    WifiData,
    CallLogData,
    TodoData,
)
