"""Shared enums, numeric field types, and the record base model."""

from __future__ import annotations

import json
import struct
import types
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from functools import cache
from typing import Annotated, Any, ClassVar, Union, get_args, get_origin

from pydantic import AfterValidator, BaseModel, ConfigDict, ValidationError
from pydantic_core import to_jsonable_python

from loom.errors import SchemaError

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1


class DeviceType(StrEnum):
    UNKNOWN = "UNKNOWN"
    HEADPHONE = "HEADPHONE"
    SPEAKER = "SPEAKER"
    CAR = "CAR"
    KEYBOARD = "KEYBOARD"
    MOUSE = "MOUSE"
    GAMEPAD = "GAMEPAD"
    WATCH = "WATCH"
    PHONE = "PHONE"
    TABLET = "TABLET"
    DESKTOP = "DESKTOP"


class CameraType(StrEnum):
    UNKNOWN = "UNKNOWN"
    FRONT = "FRONT"
    BACK_MAIN = "BACK_MAIN"
    BACK_WIDE = "BACK_WIDE"
    BACK_TELEPHOTO = "BACK_TELEPHOTO"


class ConnectionType(StrEnum):
    UNKNOWN = "UNKNOWN"
    NONE = "NONE"
    WIFI = "WIFI"
    CELLULAR_2G = "CELLULAR_2G"
    CELLULAR_3G = "CELLULAR_3G"
    CELLULAR_4G = "CELLULAR_4G"
    CELLULAR_5G = "CELLULAR_5G"
    ETHERNET = "ETHERNET"
    VPN = "VPN"


class EntityType(StrEnum):
    FACE = "FACE"
    OBJECT = "OBJECT"
    POSE = "POSE"
    AUDIO = "AUDIO"


class NotePriority(StrEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class SyncPriority(StrEnum):
    """Sync tiers, most urgent first."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    BACKGROUND = "BACKGROUND"

    @property
    def rank(self) -> int:
        """0 for CRITICAL up to 4 for BACKGROUND."""
        return list(SyncPriority).index(self)


class CompressionAlgorithm(StrEnum):
    NONE = "NONE"
    LZ4 = "LZ4"
    ZSTD = "ZSTD"
    GZIP = "GZIP"


class CallDirection(StrEnum):
    INCOMING = "INCOMING"
    OUTGOING = "OUTGOING"
    MISSED = "MISSED"
    REJECTED = "REJECTED"


def _to_float32(value: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", float(value)))[0]
    except OverflowError as e:
        raise ValueError(f"{value!r} does not fit in single precision") from e


def _check_int32(value: int) -> int:
    if not INT32_MIN <= value <= INT32_MAX:
        raise ValueError(f"{value} is outside the 32-bit integer range")
    return value


def _require_tz(value: datetime) -> datetime:
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError("timestamp must carry a timezone offset")
    return value


Float32 = Annotated[float, AfterValidator(_to_float32)]
Float64 = float
Int32 = Annotated[int, AfterValidator(_check_int32)]
Timestamp = Annotated[datetime, AfterValidator(_require_tz)]
Metadata = dict[str, Any]


class FieldState(StrEnum):
    """Presence of an optional field: omitted, explicit null, or a value."""

    ABSENT = "absent"
    NULL = "null"
    VALUE = "value"


class ColumnStorage(StrEnum):
    INTEGER = "INTEGER"
    REAL = "REAL"
    TEXT = "TEXT"
    BOOLEAN = "BOOLEAN"
    TIMESTAMP = "TIMESTAMP"
    ENUM = "ENUM"
    JSON = "JSON"

    @property
    def sql_type(self) -> str:
        if self in (ColumnStorage.ENUM, ColumnStorage.JSON):
            return "TEXT"
        return self.value


@dataclass(frozen=True, slots=True)
class ColumnSpec:
    """One persisted column derived from a record field."""

    name: str
    storage: ColumnStorage
    nullable: bool


def _unwrap(annotation: Any) -> tuple[Any, bool]:
    """Strip Annotated/Optional wrappers, returning (base type, nullable)."""
    nullable = False
    while True:
        origin = get_origin(annotation)
        if origin is Annotated:
            annotation = get_args(annotation)[0]
        elif origin in (Union, types.UnionType):
            args = [a for a in get_args(annotation) if a is not type(None)]
            nullable = nullable or len(args) < len(get_args(annotation))
            if len(args) != 1:
                return Any, nullable
            annotation = args[0]
        else:
            return annotation, nullable


def _storage_for(base: Any) -> ColumnStorage:
    origin = get_origin(base)
    if origin in (list, dict) or base is Any:
        return ColumnStorage.JSON
    if isinstance(base, type):
        if issubclass(base, StrEnum):
            return ColumnStorage.ENUM
        if issubclass(base, bool):
            return ColumnStorage.BOOLEAN
        if issubclass(base, int):
            return ColumnStorage.INTEGER
        if issubclass(base, float):
            return ColumnStorage.REAL
        if issubclass(base, str):
            return ColumnStorage.TEXT
        if issubclass(base, datetime):
            return ColumnStorage.TIMESTAMP
        if issubclass(base, BaseModel):
            return ColumnStorage.JSON
    return ColumnStorage.JSON


def wire_value(value: Any) -> Any:
    if isinstance(value, Record):
        return value.to_wire_dict()
    if isinstance(value, list):
        return [wire_value(item) for item in value]
    return to_jsonable_python(value)


class Record(BaseModel):
    """
    Base for every record kind.

    Implements the marshaling contract: ``field_schema()`` describes the
    persisted columns, ``to_wire()`` emits sparse JSON, ``from_wire()``
    validates JSON text into a fully populated record or raises SchemaError.
    """

    model_config = ConfigDict(extra="forbid")

    # Registry kind name; set by each concrete record class.
    kind: ClassVar[str] = ""

    @classmethod
    def field_schema(cls) -> list[ColumnSpec]:
        return _field_schema(cls)

    @classmethod
    def optional_fields(cls) -> frozenset[str]:
        return frozenset(col.name for col in cls.field_schema() if col.nullable)

    def field_state(self, name: str) -> FieldState:
        if name not in type(self).model_fields:
            raise KeyError(name)
        if getattr(self, name) is not None:
            return FieldState.VALUE
        if name in self.model_fields_set:
            return FieldState.NULL
        return FieldState.ABSENT

    def to_wire_dict(self) -> dict[str, Any]:
        optional = self.optional_fields()
        data: dict[str, Any] = {}
        for name in type(self).model_fields:
            value = getattr(self, name)
            if value is None and name in optional and name not in self.model_fields_set:
                continue
            data[name] = wire_value(value)
        return data

    def to_wire(self) -> str:
        return json.dumps(self.to_wire_dict(), ensure_ascii=False)

    @classmethod
    def from_wire(cls, text: str | bytes):
        # Strict: "0.5" is not a float and 1 is not a bool on the wire.
        try:
            return cls.model_validate_json(text, strict=True)
        except ValidationError as e:
            raise SchemaError(f"invalid {cls.kind or cls.__name__} payload: {e}") from e

    @classmethod
    def from_wire_dict(cls, data: Any, *, strict: bool = False):
        """Validate already-decoded data; lax unless ``strict`` (stored rows are lax)."""
        if not isinstance(data, dict):
            raise SchemaError(f"{cls.kind or cls.__name__} payload must be a JSON object")
        try:
            return cls.model_validate(data, strict=strict)
        except ValidationError as e:
            raise SchemaError(f"invalid {cls.kind or cls.__name__} payload: {e}") from e


@cache
def _field_schema(cls: type[Record]) -> list[ColumnSpec]:
    columns: list[ColumnSpec] = []
    for name, info in cls.model_fields.items():
        base, nullable = _unwrap(info.annotation)
        nullable = nullable or (not info.is_required() and info.default is None)
        columns.append(ColumnSpec(name=name, storage=_storage_for(base), nullable=nullable))
    return columns


def field_state(record: Record, name: str) -> FieldState:
    return record.field_state(name)


def marshal(record: Record) -> str:
    """Serialize a record to its sparse JSON wire form."""
    return record.to_wire()


def unmarshal(model: type[Record], text: str | bytes) -> Record:
    """Parse wire JSON into ``model``; raises SchemaError on any defect."""
    return model.from_wire(text)
