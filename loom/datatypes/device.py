"""Device entity and its capability profile."""

from __future__ import annotations

from typing import ClassVar

from pydantic import model_validator

from loom.datatypes.types import DeviceType, Float32, Int32, Record, Timestamp


class ScreenDetails(Record):
    width: Int32
    height: Int32
    density: Float32
    refresh_rate: Int32


class DeviceCapabilities(Record):
    """Fixed sensor-presence flags plus screen geometry, replaced as a whole."""

    has_camera: bool
    has_microphone: bool
    has_gps: bool
    has_accelerometer: bool
    has_gyroscope: bool
    has_magnetometer: bool
    has_proximity: bool
    has_light: bool
    has_pressure: bool
    has_temperature: bool
    has_humidity: bool
    has_step_counter: bool
    has_heart_rate: bool
    has_ecg: bool
    has_blood_oxygen: bool
    has_stress: bool
    has_compass: bool
    screen_details: ScreenDetails


class Device(Record):
    kind: ClassVar[str] = "device"

    device_id: str
    user_id: str
    device_type: DeviceType
    os_type: str
    os_version: str
    app_version: str
    available_sensors: list[str]
    capabilities: DeviceCapabilities
    created_at: Timestamp
    last_seen: Timestamp | None = None
    updated_at: Timestamp | None = None

    @model_validator(mode="after")
    def _default_seen_times(self) -> Device:
        # First pairing: last_seen/updated_at start at created_at.
        if self.last_seen is None:
            self.last_seen = self.created_at
        if self.updated_at is None:
            self.updated_at = self.created_at
        return self
