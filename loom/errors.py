"""Error taxonomy shared by the marshaling and storage layers."""

from __future__ import annotations


class LoomError(Exception):
    """Base class for every error raised by loom."""


class SchemaError(LoomError, ValueError):
    """Wire payload is malformed, mistyped, or names an unknown enum value."""


class QueryError(LoomError):
    """An SQL statement failed or referenced an unknown table/kind."""


class IncompatibleSchemaError(LoomError):
    """On-disk table shape or schema version disagrees with the registry."""

    def __init__(self, message: str, *, table: str = "", differences: list[str] | None = None) -> None:
        super().__init__(message)
        self.table = table
        self.differences = list(differences or [])


class StorageConnectionError(LoomError, ConnectionError):
    """The database file could not be opened."""


class TransactionAbortedError(LoomError):
    """A transaction handle was used after it rolled back."""
