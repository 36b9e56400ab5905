"""Single, versioned registry of record kinds and their tables."""

from __future__ import annotations

from dataclasses import dataclass

from loom.datatypes.config import RetentionConfig, SyncPriorityConfig
from loom.datatypes.device import Device
from loom.datatypes.note import KnownEntity, Note, NoteReference
from loom.datatypes.sensor import SENSOR_MODELS
from loom.datatypes.types import ColumnSpec, Record
from loom.datatypes.user import OAuthAccount, Session, User
from loom.errors import QueryError

# Bump whenever any registered field set changes; stamped into the database.
REGISTRY_VERSION = 1

WILDCARD_DEVICE = "*"


@dataclass(frozen=True, slots=True)
class RecordKind:
    """How one record model maps onto its table."""

    name: str
    model: type[Record]
    table_name: str
    key_columns: tuple[str, ...] = ()
    time_column: str | None = None
    device_column: str | None = None

    @property
    def is_observation(self) -> bool:
        return self.time_column is not None and self.device_column is not None

    @property
    def surrogate_key(self) -> bool:
        """Kinds without a natural key are addressed by the engine rowid."""
        return not self.key_columns

    def columns(self) -> list[ColumnSpec]:
        return self.model.field_schema()


def _observation(model: type[Record]) -> RecordKind:
    return RecordKind(
        name=model.kind,
        model=model,
        table_name=f"{model.kind}_data",
        key_columns=("device_id", "timestamp"),
        time_column="timestamp",
        device_column="device_id",
    )


_KINDS: tuple[RecordKind, ...] = (
    *(_observation(model) for model in SENSOR_MODELS),
    RecordKind("user", User, "users", key_columns=("id",)),
    RecordKind("oauth_account", OAuthAccount, "oauth_accounts", key_columns=("id",)),
    RecordKind("session", Session, "sessions", key_columns=("id",)),
    RecordKind("device", Device, "devices", key_columns=("device_id",)),
    RecordKind("note", Note, "notes", key_columns=("id",), time_column="timestamp"),
    RecordKind("note_reference", NoteReference, "note_references"),
    RecordKind("known_entity", KnownEntity, "known_entities", key_columns=("entity_id",)),
    RecordKind("retention_config", RetentionConfig, "retention_config", key_columns=("table_name",)),
    RecordKind(
        "sync_priority_config",
        SyncPriorityConfig,
        "sync_priority_config",
        key_columns=("table_name",),
    ),
)

_BY_NAME: dict[str, RecordKind] = {kind.name: kind for kind in _KINDS}
_BY_TABLE: dict[str, RecordKind] = {kind.table_name: kind for kind in _KINDS}
_BY_MODEL: dict[type[Record], RecordKind] = {kind.model: kind for kind in _KINDS}


def all_kinds() -> tuple[RecordKind, ...]:
    return _KINDS


def observation_kinds() -> tuple[RecordKind, ...]:
    return tuple(kind for kind in _KINDS if kind.is_observation)


def get_kind(name_or_table: str | RecordKind | type[Record]) -> RecordKind:
    """Resolve a kind name (``gps``), table name (``gps_data``), or model class."""
    if isinstance(name_or_table, RecordKind):
        return name_or_table
    if isinstance(name_or_table, type):
        kind = _BY_MODEL.get(name_or_table)
        if kind is None:
            raise QueryError(f"model {name_or_table.__name__} is not a registered record kind")
        return kind
    key = str(name_or_table or "").strip()
    kind = _BY_NAME.get(key) or _BY_TABLE.get(key)
    if kind is None:
        raise QueryError(f"unknown record kind or table: {key!r}")
    return kind


def kind_for(record: Record) -> RecordKind:
    return get_kind(type(record))


def table_name_for(name: str) -> str:
    return get_kind(name).table_name


def kind_for_model(model: type[Record]) -> RecordKind:
    return get_kind(model)
