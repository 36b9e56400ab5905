"""User-authored notes, their references, and recognised entities."""

from __future__ import annotations

from typing import ClassVar

from pydantic import Field

from loom.datatypes.types import EntityType, Float32, Metadata, NotePriority, Record, Timestamp


def default_note_priority() -> NotePriority:
    return NotePriority.MEDIUM


class Note(Record):
    kind: ClassVar[str] = "note"

    id: str
    user_id: str
    timestamp: Timestamp
    content: str
    priority: NotePriority = Field(default_factory=default_note_priority)
    parent_id: str | None = None
    tags: list[str] | None = None
    embedding: list[Float32] | None = None
    metadata: Metadata | None = None
    created_at: Timestamp
    updated_at: Timestamp


class NoteReference(Record):
    """Links a note to any referenced object (record, entity, URL...)."""

    kind: ClassVar[str] = "note_reference"

    note_id: str
    reference_type: str
    reference_id: str
    timestamp: Timestamp | None = None
    metadata: Metadata | None = None
    created_at: Timestamp


class KnownEntity(Record):
    kind: ClassVar[str] = "known_entity"

    entity_id: str
    entity_type: EntityType
    label: str
    embedding: list[Float32] | None = None
    metadata: Metadata | None = None
    created_at: Timestamp
    updated_at: Timestamp
