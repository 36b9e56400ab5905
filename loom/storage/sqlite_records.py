"""SQLite storage engine for every registered record kind."""

from __future__ import annotations

import json
import sqlite3
import threading
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from functools import cache
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from loom.datatypes.registry import (
    REGISTRY_VERSION,
    WILDCARD_DEVICE,
    RecordKind,
    all_kinds,
    get_kind,
    kind_for,
)
from loom.datatypes.types import ColumnSpec, ColumnStorage, Record, wire_value
from loom.errors import (
    IncompatibleSchemaError,
    QueryError,
    SchemaError,
    StorageConnectionError,
    TransactionAbortedError,
)
from loom.storage.sqlite_tuning import SQLiteTuningOptions, apply_sqlite_tuning

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MICROSECOND = timedelta(microseconds=1)
SURROGATE_COLUMN = "id"
MEMORY_PATH = ":memory:"


def to_epoch_us(value: datetime) -> int:
    return (value - _EPOCH) // _MICROSECOND


def from_epoch_us(value: int) -> datetime:
    return _EPOCH + timedelta(microseconds=int(value))


class StoreClosedError(QueryError):
    """Operation attempted on a closed store."""


class Transaction:
    """
    Scope guard for one unit of work on a SQLiteRecordStore.

    While open, the transaction owns the store's lock, so statements from
    other threads wait and never observe uncommitted rows. Leaving the
    ``with`` block, or dropping the handle, without ``commit()`` rolls the
    work back. Once rolled back the handle refuses further use with
    TransactionAbortedError.
    """

    def __init__(self, store: SQLiteRecordStore) -> None:
        self._store = store
        self._owner = threading.get_ident()
        self._token = object()
        self.committed = False
        self.aborted = False
        store._open_transaction(self)

    @property
    def active(self) -> bool:
        return not (self.committed or self.aborted)

    def __enter__(self) -> Transaction:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if not self.active:
            return
        if exc_type is not None:
            logger.debug(f"transaction rolled back after {exc_type.__name__}: {exc_val}")
        else:
            logger.debug("transaction left without commit, rolling back")
        self._finish(commit=False)

    def __del__(self) -> None:
        if getattr(self, "_store", None) is not None and self.active:
            try:
                self._finish(commit=False)
            except (RuntimeError, sqlite3.Error, StoreClosedError):
                pass

    def insert(self, record: Record) -> int:
        self._ensure_usable()
        return self._store.insert(record)

    def insert_many(self, records: Iterable[Record]) -> int:
        self._ensure_usable()
        return self._store.insert_many(records)

    def commit(self) -> None:
        self._ensure_usable()
        self._finish(commit=True)

    def rollback(self) -> None:
        self._ensure_usable()
        self._finish(commit=False)

    def _ensure_usable(self) -> None:
        if threading.get_ident() != self._owner:
            raise QueryError("transaction handle used from a thread that did not open it")
        if self.aborted:
            raise TransactionAbortedError("transaction was rolled back")
        if self.committed:
            raise QueryError("transaction already committed")

    def _finish(self, *, commit: bool) -> None:
        if commit:
            self.committed = True
        else:
            self.aborted = True
        self._store._close_transaction(self, commit=commit)


class SQLiteRecordStore:
    """
    Single-connection store for telemetry, identity, and policy records.

    Every statement runs under one re-entrant lock. Outside a transaction each
    statement auto-commits; inside ``begin()`` writes stay invisible until
    ``commit()``. Tables are created from the record registry on open and an
    existing table whose shape drifted from its model raises
    IncompatibleSchemaError instead of being altered.
    """

    SCHEMA_VERSION = REGISTRY_VERSION

    def __init__(
        self,
        db_path: str | Path,
        *,
        tuning_options: SQLiteTuningOptions | None = None,
        create_indexes: bool = True,
        kinds: Iterable[str] | None = None,
    ) -> None:
        self.db_path = Path(db_path) if str(db_path) != MEMORY_PATH else None
        self.create_indexes = create_indexes
        self._lock = threading.RLock()
        self._tx_token: object | None = None
        self._verified: set[str] = set()
        # Tables verified or created inside the open transaction; forgotten on rollback.
        self._tx_verified: set[str] = set()
        self._closed = False
        try:
            if self.db_path is not None:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            target = str(self.db_path) if self.db_path is not None else MEMORY_PATH
            # isolation_level=None: statements auto-commit unless BEGIN was issued.
            self._conn = sqlite3.connect(target, check_same_thread=False, isolation_level=None)
            self._conn.row_factory = sqlite3.Row
            with self._lock:
                self._tuning_applied = apply_sqlite_tuning(self._conn, options=tuning_options)
        except (sqlite3.Error, OSError) as e:
            raise StorageConnectionError(f"cannot open database {db_path}: {e}") from e
        logger.info(f"record store opened at {target} (journal={self._tuning_applied['journal_mode']})")
        self.init_schema(kinds)

    # ------------------------------------------------------------------
    # Lifecycle and schema
    # ------------------------------------------------------------------

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            if self._tx_token is not None:
                if self._conn.in_transaction:
                    self._conn.execute("ROLLBACK")
                self._forget_tx_tables()
                self._tx_verified.clear()
                self._tx_token = None
                self._lock.release()
            self._conn.close()
            self._closed = True

    @property
    def tuning(self) -> dict[str, Any]:
        return dict(self._tuning_applied)

    def init_schema(self, kinds: Iterable[str] | None = None) -> None:
        selected = all_kinds() if kinds is None else tuple(get_kind(name) for name in kinds)
        with self._lock:
            version = self.schema_version()
            if version > self.SCHEMA_VERSION:
                raise IncompatibleSchemaError(
                    f"database schema version {version} is newer than supported {self.SCHEMA_VERSION}"
                )
            if 0 < version < self.SCHEMA_VERSION:
                raise IncompatibleSchemaError(
                    f"database schema version {version} has no upgrade path to {self.SCHEMA_VERSION}"
                )
            for kind in selected:
                self.ensure_table(kind)
            if version == 0:
                self._execute(f"PRAGMA user_version = {int(self.SCHEMA_VERSION)}")
                logger.info(f"stamped record schema version {self.SCHEMA_VERSION}")

    def schema_version(self) -> int:
        row = self._execute("PRAGMA user_version").fetchone()
        return int(row[0]) if row else 0

    def ensure_table(self, kind: str | RecordKind) -> RecordKind:
        """Create the table for ``kind`` if absent, otherwise verify its shape."""
        kind = get_kind(kind)
        with self._lock:
            if kind.table_name in self._verified:
                return kind
            if self.table_exists(kind.table_name):
                differences = self._shape_differences(kind)
                if differences:
                    raise IncompatibleSchemaError(
                        f"table {kind.table_name} does not match the {kind.name} schema: "
                        + "; ".join(differences),
                        table=kind.table_name,
                        differences=differences,
                    )
            else:
                self._execute(_create_table_sql(kind))
                logger.debug(f"created table {kind.table_name}")
            if self.create_indexes and kind.is_observation:
                self.create_index(kind, (kind.device_column, kind.time_column))
            self._verified.add(kind.table_name)
            if self._conn.in_transaction:
                self._tx_verified.add(kind.table_name)
        return kind

    def table_exists(self, table: str) -> bool:
        row = self._execute(
            "SELECT count(*) FROM sqlite_master WHERE type = 'table' AND name = ?",
            (str(table),),
        ).fetchone()
        return bool(row and int(row[0]) > 0)

    def table_schema(self, table: str) -> list[dict[str, Any]]:
        kind = get_kind(table)
        rows = self._execute(f'PRAGMA table_info("{kind.table_name}")').fetchall()
        return [
            {
                "name": str(row["name"]),
                "type": str(row["type"] or "").upper(),
                "notnull": bool(row["notnull"]),
                "pk": int(row["pk"] or 0),
            }
            for row in rows
        ]

    def create_index(self, kind: str | RecordKind, columns: Sequence[str | None]) -> str:
        kind = get_kind(kind)
        names = [str(col) for col in columns if col]
        known = {col["name"] for col in _expected_shape(kind)}
        unknown = [name for name in names if name not in known]
        if not names or unknown:
            raise QueryError(f"cannot index {kind.table_name} on {names}: unknown columns {unknown}")
        index_name = f"idx_{kind.table_name}__{'_'.join(names)}"
        column_sql = ", ".join(f'"{name}"' for name in names)
        self._execute(f'CREATE INDEX IF NOT EXISTS "{index_name}" ON "{kind.table_name}" ({column_sql})')
        return index_name

    def _shape_differences(self, kind: RecordKind) -> list[str]:
        expected = _expected_shape(kind)
        actual = self.table_schema(kind.table_name)
        differences: list[str] = []
        actual_by_name = {col["name"]: col for col in actual}
        expected_names = [col["name"] for col in expected]
        for col in expected:
            found = actual_by_name.get(col["name"])
            if found is None:
                differences.append(f"missing column {col['name']}")
                continue
            for attr in ("type", "notnull", "pk"):
                if found[attr] != col[attr]:
                    differences.append(f"column {col['name']} {attr} is {found[attr]!r}, expected {col[attr]!r}")
        for name in actual_by_name:
            if name not in expected_names:
                differences.append(f"unexpected column {name}")
        return differences

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def begin(self) -> Transaction:
        """Open a scoped transaction; use as a context manager."""
        return Transaction(self)

    @contextmanager
    def transaction(self) -> Iterator[Transaction]:
        """Commit on clean exit, roll back on error."""
        tx = self.begin()
        with tx:
            yield tx
            if tx.active:
                tx.commit()

    @property
    def in_transaction(self) -> bool:
        return self._tx_token is not None

    def _open_transaction(self, tx: Transaction) -> None:
        self._lock.acquire()
        try:
            self._check_open()
            if self._tx_token is not None:
                raise QueryError("a transaction is already open on this store (no nesting)")
            self._execute("BEGIN")
        except BaseException:
            self._lock.release()
            raise
        self._tx_token = tx._token

    def _close_transaction(self, tx: Transaction, *, commit: bool) -> None:
        try:
            if self._tx_token is tx._token and not self._closed:
                if commit:
                    try:
                        self._execute("COMMIT")
                    except QueryError as e:
                        if self._conn.in_transaction:
                            self._conn.execute("ROLLBACK")
                        tx.committed = False
                        tx.aborted = True
                        raise TransactionAbortedError(f"commit failed, work rolled back: {e}") from e
                elif self._conn.in_transaction:
                    self._conn.execute("ROLLBACK")
        finally:
            if self._tx_token is tx._token:
                if not tx.committed:
                    self._forget_tx_tables()
                self._tx_verified.clear()
                self._tx_token = None
                self._lock.release()

    def _forget_tx_tables(self) -> None:
        # A rolled-back CREATE TABLE must be re-created on next use.
        if self._tx_verified:
            logger.debug(f"rollback undid schema work on {sorted(self._tx_verified)}")
        self._verified -= self._tx_verified

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Group statements: joins an open transaction, otherwise BEGIN/COMMIT."""
        with self._lock:
            if self.in_transaction:
                yield
                return
            self._execute("BEGIN")
            try:
                yield
                self._execute("COMMIT")
            except BaseException:
                if self._conn.in_transaction:
                    self._conn.execute("ROLLBACK")
                self._forget_tx_tables()
                raise
            finally:
                self._tx_verified.clear()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, record: Record) -> int:
        """Append one record to its kind's table; returns the new rowid."""
        kind = self.ensure_table(kind_for(record))
        columns = kind.columns()
        names = ", ".join(f'"{col.name}"' for col in columns)
        placeholders = ", ".join("?" for _ in columns)
        sql = f'INSERT INTO "{kind.table_name}" ({names}) VALUES ({placeholders})'
        with self._lock:
            cur = self._execute(sql, _encode_record(record, columns))
            return int(cur.lastrowid)

    def insert_many(self, records: Iterable[Record]) -> int:
        """Insert all records atomically; returns the number written."""
        count = 0
        with self.atomic():
            for record in records:
                self.insert(record)
                count += 1
        return count

    def upsert(self, record: Record, *, keep_existing: Iterable[str] = ()) -> None:
        """Insert or replace by natural key; ``keep_existing`` columns survive a conflict."""
        kind = self.ensure_table(kind_for(record))
        if kind.surrogate_key:
            raise QueryError(f"{kind.name} has no natural key to upsert on")
        columns = kind.columns()
        keep = set(keep_existing)
        names = ", ".join(f'"{col.name}"' for col in columns)
        placeholders = ", ".join("?" for _ in columns)
        key_sql = ", ".join(f'"{name}"' for name in kind.key_columns)
        updates = [
            f'"{col.name}" = excluded."{col.name}"'
            for col in columns
            if col.name not in kind.key_columns and col.name not in keep
        ]
        conflict = f"DO UPDATE SET {', '.join(updates)}" if updates else "DO NOTHING"
        sql = (
            f'INSERT INTO "{kind.table_name}" ({names}) VALUES ({placeholders}) '
            f"ON CONFLICT({key_sql}) {conflict}"
        )
        with self._lock:
            self._execute(sql, _encode_record(record, columns))

    def update(self, kind: str | RecordKind, key: Any, **changes: Any) -> Record | None:
        """Apply ``changes`` to the row at ``key`` after validating the result."""
        kind = self.ensure_table(kind)
        protected = set(kind.key_columns) & set(changes)
        if protected:
            raise QueryError(f"cannot change key columns {sorted(protected)} of {kind.name}")
        with self._lock:
            current = self.get(kind, key)
            if current is None:
                return None
            data = current.model_dump(exclude_unset=True)
            data.update(changes)
            updated = kind.model.from_wire_dict(data)
            columns = [col for col in kind.columns() if col.name not in kind.key_columns]
            assignments = ", ".join(f'"{col.name}" = ?' for col in columns)
            where, params = _key_clause(kind, key)
            self._execute(
                f'UPDATE "{kind.table_name}" SET {assignments} WHERE {where}',
                [*_encode_record(updated, columns), *params],
            )
        return updated

    def delete(self, kind: str | RecordKind, key: Any) -> int:
        kind = self.ensure_table(kind)
        where, params = _key_clause(kind, key)
        with self._lock:
            cur = self._execute(f'DELETE FROM "{kind.table_name}" WHERE {where}', params)
            return int(cur.rowcount)

    def delete_before(
        self,
        kind: str | RecordKind,
        cutoff: datetime,
        *,
        device_id: str = WILDCARD_DEVICE,
    ) -> int:
        """Delete rows strictly older than ``cutoff``; returns the deleted count."""
        kind = self.ensure_table(kind)
        if kind.time_column is None:
            raise QueryError(f"{kind.name} has no time column")
        where = [f'"{kind.time_column}" < ?']
        params: list[Any] = [to_epoch_us(_require_aware(cutoff))]
        if device_id != WILDCARD_DEVICE and kind.device_column:
            where.append(f'"{kind.device_column}" = ?')
            params.append(str(device_id))
        with self._lock:
            cur = self._execute(f'DELETE FROM "{kind.table_name}" WHERE {" AND ".join(where)}', params)
            deleted = int(cur.rowcount)
        logger.debug(f"deleted {deleted} rows from {kind.table_name} older than {cutoff.isoformat()}")
        return deleted

    def ingest_json(self, table_name: str, json_array_text: str | bytes) -> int:
        """Validate a JSON array of records for ``table_name`` and insert all or none."""
        kind = self.ensure_table(table_name)
        try:
            records = _bulk_adapter(kind.model).validate_json(json_array_text, strict=True)
        except ValidationError as e:
            first = e.errors()[0]
            if first["type"] == "json_invalid":
                raise SchemaError(f"bulk payload for {kind.table_name} is not valid JSON: {e}") from e
            if not first["loc"]:
                raise SchemaError(f"bulk payload for {kind.table_name} must be a JSON array") from e
            raise SchemaError(f"element #{first['loc'][0]} rejected: {e}") from e
        written = self.insert_many(records)
        logger.debug(f"ingested {written} rows into {kind.table_name}")
        return written

    def last_insert_rowid(self) -> int:
        row = self._execute("SELECT last_insert_rowid()").fetchone()
        return int(row[0]) if row else 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def query(
        self,
        kind: str | RecordKind,
        device_id: str,
        start: datetime,
        end: datetime,
        *,
        order: str | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        """
        Records of ``kind`` from ``device_id`` with start <= timestamp <= end.

        ``device_id="*"`` matches every device. Row order is implementation
        defined unless ``order`` is ``"asc"`` or ``"desc"`` (by timestamp).
        """
        kind = self.ensure_table(kind)
        if not kind.is_observation:
            raise QueryError(f"{kind.name} is not a device time series")
        where = [f'"{kind.time_column}" >= ?', f'"{kind.time_column}" <= ?']
        params: list[Any] = [to_epoch_us(_require_aware(start)), to_epoch_us(_require_aware(end))]
        if device_id != WILDCARD_DEVICE:
            where.append(f'"{kind.device_column}" = ?')
            params.append(str(device_id))
        order_sql = _order_clause(kind, order)
        sql = f'SELECT * FROM "{kind.table_name}" WHERE {" AND ".join(where)} {order_sql}'
        if limit is not None:
            sql += " LIMIT ?"
            params.append(max(0, int(limit)))
        with self._lock:
            rows = self._execute(sql, params).fetchall()
        return [_decode_row(kind, row) for row in rows]

    def query_json(
        self,
        kind: str | RecordKind,
        device_id: str,
        start: datetime,
        end: datetime,
        *,
        order: str | None = None,
    ) -> str:
        """Same selection as ``query`` as one JSON array in wire format."""
        records = self.query(kind, device_id, start, end, order=order)
        return json.dumps([record.to_wire_dict() for record in records], ensure_ascii=False)

    def get(self, kind: str | RecordKind, key: Any) -> Record | None:
        kind = self.ensure_table(kind)
        where, params = _key_clause(kind, key)
        with self._lock:
            row = self._execute(f'SELECT * FROM "{kind.table_name}" WHERE {where} LIMIT 1', params).fetchone()
        return _decode_row(kind, row) if row is not None else None

    def list_records(
        self,
        kind: str | RecordKind,
        *,
        filters: dict[str, Any] | None = None,
        limit: int = 1000,
        offset: int = 0,
    ) -> list[Record]:
        """Rows of ``kind`` matching equality ``filters`` on field names."""
        kind = self.ensure_table(kind)
        columns = {col.name: col for col in kind.columns()}
        where: list[str] = []
        params: list[Any] = []
        for name, value in (filters or {}).items():
            col = columns.get(name)
            if col is None:
                raise QueryError(f"{kind.name} has no field {name!r}")
            if value is None:
                where.append(f'"{name}" IS NULL')
            else:
                where.append(f'"{name}" = ?')
                params.append(_encode_value(col, value))
        where_sql = f"WHERE {' AND '.join(where)}" if where else ""
        params.extend([max(1, int(limit)), max(0, int(offset))])
        sql = f'SELECT * FROM "{kind.table_name}" {where_sql} ORDER BY rowid LIMIT ? OFFSET ?'
        with self._lock:
            rows = self._execute(sql, params).fetchall()
        return [_decode_row(kind, row) for row in rows]

    def count(
        self,
        kind: str | RecordKind,
        *,
        device_id: str = WILDCARD_DEVICE,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> int:
        kind = self.ensure_table(kind)
        where: list[str] = []
        params: list[Any] = []
        if device_id != WILDCARD_DEVICE and kind.device_column:
            where.append(f'"{kind.device_column}" = ?')
            params.append(str(device_id))
        if start is not None and kind.time_column:
            where.append(f'"{kind.time_column}" >= ?')
            params.append(to_epoch_us(_require_aware(start)))
        if end is not None and kind.time_column:
            where.append(f'"{kind.time_column}" <= ?')
            params.append(to_epoch_us(_require_aware(end)))
        where_sql = f"WHERE {' AND '.join(where)}" if where else ""
        with self._lock:
            row = self._execute(f'SELECT count(*) FROM "{kind.table_name}" {where_sql}', params).fetchone()
        return int(row[0]) if row else 0

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_open(self) -> None:
        if self._closed:
            raise StoreClosedError("record store is closed")

    def _execute(self, sql: str, params: Sequence[Any] = ()) -> sqlite3.Cursor:
        with self._lock:
            self._check_open()
            try:
                return self._conn.execute(sql, params)
            except sqlite3.Error as e:
                raise QueryError(f"{e} [{_statement_head(sql)}]") from e


def _expected_shape(kind: RecordKind) -> list[dict[str, Any]]:
    shape: list[dict[str, Any]] = []
    if kind.surrogate_key:
        shape.append({"name": SURROGATE_COLUMN, "type": "INTEGER", "notnull": False, "pk": 1})
    for col in kind.columns():
        pk = kind.key_columns.index(col.name) + 1 if col.name in kind.key_columns else 0
        shape.append(
            {
                "name": col.name,
                "type": col.storage.sql_type,
                "notnull": not col.nullable,
                "pk": pk,
            }
        )
    return shape


def _create_table_sql(kind: RecordKind) -> str:
    lines: list[str] = []
    if kind.surrogate_key:
        lines.append(f'"{SURROGATE_COLUMN}" INTEGER PRIMARY KEY AUTOINCREMENT')
    for col in kind.columns():
        null_sql = "" if col.nullable else " NOT NULL"
        lines.append(f'"{col.name}" {col.storage.sql_type}{null_sql}')
    if kind.key_columns:
        key_sql = ", ".join(f'"{name}"' for name in kind.key_columns)
        lines.append(f"PRIMARY KEY ({key_sql})")
    body = ",\n  ".join(lines)
    return f'CREATE TABLE IF NOT EXISTS "{kind.table_name}" (\n  {body}\n)'


def _key_clause(kind: RecordKind, key: Any) -> tuple[str, list[Any]]:
    if kind.surrogate_key:
        return f'"{SURROGATE_COLUMN}" = ?', [int(key)]
    values = key if isinstance(key, (tuple, list)) else (key,)
    if len(values) != len(kind.key_columns):
        raise QueryError(f"{kind.name} is keyed by {kind.key_columns}, got {values!r}")
    columns = {col.name: col for col in kind.columns()}
    clauses = [f'"{name}" = ?' for name in kind.key_columns]
    params = [_encode_value(columns[name], value) for name, value in zip(kind.key_columns, values)]
    return " AND ".join(clauses), params


def _order_clause(kind: RecordKind, order: str | None) -> str:
    if order is None:
        return "ORDER BY rowid"
    direction = str(order).strip().lower()
    if direction not in {"asc", "desc"}:
        raise QueryError(f"order must be 'asc' or 'desc', got {order!r}")
    return f'ORDER BY "{kind.time_column}" {direction.upper()}, rowid {direction.upper()}'


def _require_aware(value: datetime) -> datetime:
    if value.tzinfo is None or value.utcoffset() is None:
        raise QueryError("query bounds must be timezone-aware datetimes")
    return value


def _encode_value(col: ColumnSpec, value: Any) -> Any:
    if value is None:
        return None
    if col.storage is ColumnStorage.TIMESTAMP:
        if isinstance(value, str):
            value = datetime.fromisoformat(value)
        return to_epoch_us(_require_aware(value))
    if col.storage is ColumnStorage.BOOLEAN:
        return 1 if value else 0
    if col.storage is ColumnStorage.ENUM:
        return str(value)
    if col.storage is ColumnStorage.JSON:
        return json.dumps(wire_value(value), ensure_ascii=False)
    return value


def _decode_value(col: ColumnSpec, value: Any) -> Any:
    if value is None:
        return None
    if col.storage is ColumnStorage.TIMESTAMP:
        return from_epoch_us(value)
    if col.storage is ColumnStorage.BOOLEAN:
        return bool(value)
    if col.storage is ColumnStorage.JSON:
        return json.loads(value)
    return value


@cache
def _bulk_adapter(model: type[Record]) -> TypeAdapter[list[Record]]:
    return TypeAdapter(list[model])  # type: ignore[valid-type]


def _encode_record(record: Record, columns: Sequence[ColumnSpec]) -> list[Any]:
    return [_encode_value(col, getattr(record, col.name)) for col in columns]


def _decode_row(kind: RecordKind, row: sqlite3.Row) -> Record:
    data: dict[str, Any] = {}
    for col in kind.columns():
        value = _decode_value(col, row[col.name])
        # NULL columns come back as absent fields, never as explicit nulls.
        if value is not None:
            data[col.name] = value
    return kind.model.from_wire_dict(data)


def _statement_head(sql: str) -> str:
    return " ".join(sql.split())[:80]
