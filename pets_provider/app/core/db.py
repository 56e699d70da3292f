"""
SQLite store engine and simple migration system.

``StoreEngine`` owns the physical database connections of the pets
provider.  A single writable connection is opened lazily on first use
and guarded by a lock, so concurrent writers are serialised and every
insert receives a unique identifier.  Reads run on short-lived
connections of their own, opened when a result is iterated and closed
when iteration ends.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order, so
``ensure_schema`` is idempotent.
"""

import logging
import os
import re
import sqlite3
import threading
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from .contract import ALL_COLUMNS, COLUMN_ID, TABLE_NAME
from .exceptions import StoreError, ValidationError

logger = logging.getLogger(__name__)

#: Reserved identifier reported for a failed insert; valid ids are >= 0.
INSERT_FAILED = -1

MEMORY_DATABASE = ":memory:"

MIGRATIONS: List[Tuple[int, str]] = [
    # Migration 1: Initial schema
    (
        1,
        f"""
        CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
            _id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            breed TEXT,
            gender INTEGER NOT NULL DEFAULT 0,
            weight INTEGER NOT NULL DEFAULT 0
        );
        """,
    ),
]

_ORDER_TERM_RE = re.compile(r"\s*(\w+)(?:\s+(ASC|DESC))?\s*", re.IGNORECASE)


def get_database_path(database_url: str) -> str:
    """Compute the path to the SQLite database file.

    If ``database_url`` is an absolute path, use it directly.
    Otherwise resolve it relative to the project root.
    """
    if os.path.isabs(database_url):
        return database_url
    base_dir = Path(__file__).resolve().parent.parent.parent.parent
    return str((base_dir / database_url).resolve())


@dataclass(frozen=True)
class InsertResult:
    """Outcome of ``StoreEngine.insert``: a new row id or the store error."""

    row_id: Optional[int] = None
    error: Optional[StoreError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.row_id is not None and self.row_id >= 0

    @property
    def row_id_or_sentinel(self) -> int:
        return self.row_id if self.ok else INSERT_FAILED


class RowSequence:
    """Lazy, forward-only sequence of rows.

    Nothing is executed until the sequence is iterated.  Every new
    iteration re-runs the query on a fresh read connection, so a
    sequence can be restarted to observe the current data.

    When ``lock`` is given the rows are fetched in one go while holding
    it, and only then handed out.
    """

    def __init__(
        self,
        connect: Callable[[], sqlite3.Connection],
        sql: str,
        params: Tuple[Any, ...],
        lock: Optional[threading.Lock] = None,
    ):
        self._connect = connect
        self.sql = sql
        self.params = params
        self._lock = lock

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        conn = self._connect()
        try:
            try:
                if self._lock is not None:
                    with self._lock:
                        rows = conn.execute(self.sql, self.params).fetchall()
                else:
                    rows = conn.execute(self.sql, self.params)
            except (sqlite3.Error, OverflowError) as e:
                logger.error("Query failed (%s): %s", self.sql, e)
                raise StoreError("query", str(e)) from e
            for row in rows:
                yield dict(row)
        finally:
            conn.close()

    def all(self) -> List[Dict[str, Any]]:
        return list(self)

    def first(self) -> Optional[Dict[str, Any]]:
        for row in self:
            return row
        return None


class StoreEngine:
    """Executes parameterised CRUD statements against the pets table."""

    def __init__(self, database_url: str = "pets.db", timeout: float = 5.0):
        self.timeout = timeout
        if database_url == MEMORY_DATABASE:
            # Shared cache so that read connections see the same database
            # as the writer for as long as the writer stays open.  Shared
            # cache locks whole tables and fails with SQLITE_LOCKED instead
            # of waiting, so reads take the write lock in this mode.
            self._target = f"file:pets-{uuid.uuid4().hex}?mode=memory&cache=shared"
            self._uri = True
        else:
            self._target = get_database_path(database_url)
            self._uri = False
        self._conn: Optional[sqlite3.Connection] = None
        self._write_lock = threading.Lock()
        self._init_lock = threading.Lock()

    @property
    def database(self) -> str:
        return self._target

    # connections -------------------------------------------------------

    def _connect(self, **kwargs) -> sqlite3.Connection:
        conn = sqlite3.connect(self._target, timeout=self.timeout, uri=self._uri, **kwargs)
        conn.row_factory = sqlite3.Row
        return conn

    def _writer(self) -> sqlite3.Connection:
        with self._init_lock:
            if self._conn is None:
                conn = self._connect(check_same_thread=False)
                if not self._uri:
                    # WAL lets readers proceed while a write is in progress.
                    conn.execute("PRAGMA journal_mode=WAL")
                self._apply_migrations(conn)
                self._conn = conn
                logger.debug("Opened pets database %s", self._target)
            return self._conn

    def _reader(self) -> sqlite3.Connection:
        self._writer()
        return self._connect()

    def ensure_schema(self) -> None:
        """Create the pets table if it does not exist yet."""
        self._writer()

    @staticmethod
    def _apply_migrations(conn: sqlite3.Connection) -> None:
        cursor = conn.cursor()
        cursor.execute(
            "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
        )
        cursor.execute("SELECT MAX(version) as version FROM migrations")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in MIGRATIONS:
            if version > current_version:
                cursor.executescript(sql)
                cursor.execute(
                    "INSERT INTO migrations (version) VALUES (?)", (version,)
                )
                current_version = version
                logger.info("Applied pets schema migration %d", version)
        conn.commit()

    def close(self) -> None:
        """Release the writable connection; the next call reopens it lazily."""
        with self._init_lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def __enter__(self) -> "StoreEngine":
        self.ensure_schema()
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # statement helpers -------------------------------------------------

    @staticmethod
    def _check_columns(columns: Sequence[str]) -> List[str]:
        unknown = [c for c in columns if c not in ALL_COLUMNS]
        if unknown:
            raise ValidationError(
                [{"field": c, "message": "unknown column"} for c in unknown]
            )
        return list(columns)

    @classmethod
    def _order_clause(cls, order_by: str) -> str:
        terms = []
        for term in order_by.split(","):
            m = _ORDER_TERM_RE.fullmatch(term)
            if m is None:
                raise ValidationError([{"field": "order_by", "message": f"invalid term {term!r}"}])
            cls._check_columns([m.group(1)])
            terms.append(f"{m.group(1)} {m.group(2).upper()}" if m.group(2) else m.group(1))
        return ", ".join(terms)

    def _execute_write(self, sql: str, params: Sequence[Any]) -> sqlite3.Cursor:
        conn = self._writer()
        with self._write_lock:
            try:
                cursor = conn.execute(sql, tuple(params))
                conn.commit()
                return cursor
            except (sqlite3.Error, OverflowError):
                conn.rollback()
                raise

    # CRUD --------------------------------------------------------------

    def query_all(
        self,
        columns: Optional[Sequence[str]] = None,
        selection: Optional[str] = None,
        selection_args: Optional[Sequence[Any]] = None,
        order_by: Optional[str] = None,
    ) -> RowSequence:
        """Return the rows matching ``selection``; never ``None``."""
        projection = ", ".join(self._check_columns(columns or ALL_COLUMNS))
        sql = f"SELECT {projection} FROM {TABLE_NAME}"
        if selection:
            sql += f" WHERE ({selection})"
        if order_by:
            sql += f" ORDER BY {self._order_clause(order_by)}"
        read_lock = self._write_lock if self._uri else None
        return RowSequence(self._reader, sql, tuple(selection_args or ()), read_lock)

    def query_one(self, item_id: int, columns: Optional[Sequence[str]] = None) -> Optional[Dict[str, Any]]:
        return self.query_all(columns, f"{COLUMN_ID} = ?", (item_id,)).first()

    def insert(self, fields: Mapping[str, Any]) -> InsertResult:
        try:
            names = self._check_columns(list(fields))
        except ValidationError as e:
            logger.error("Insert rejected: %s", e.message)
            return InsertResult(error=StoreError("insert", e.message))
        if names:
            placeholders = ", ".join("?" for _ in names)
            sql = f"INSERT INTO {TABLE_NAME} ({', '.join(names)}) VALUES ({placeholders})"
        else:
            sql = f"INSERT INTO {TABLE_NAME} DEFAULT VALUES"
        try:
            cursor = self._execute_write(sql, [fields[n] for n in names])
        except (sqlite3.Error, OverflowError) as e:
            logger.error("Insert into %s failed: %s", TABLE_NAME, e)
            return InsertResult(error=StoreError("insert", str(e)))
        return InsertResult(row_id=cursor.lastrowid)

    def update(
        self,
        fields: Mapping[str, Any],
        selection: Optional[str] = None,
        selection_args: Optional[Sequence[Any]] = None,
    ) -> int:
        """Apply a partial update; returns the number of rows affected."""
        if not fields:
            return 0
        try:
            names = self._check_columns(list(fields))
        except ValidationError as e:
            logger.error("Update rejected: %s", e.message)
            return 0
        sql = f"UPDATE {TABLE_NAME} SET " + ", ".join(f"{n} = ?" for n in names)
        if selection:
            sql += f" WHERE ({selection})"
        params = [fields[n] for n in names] + list(selection_args or ())
        try:
            return self._execute_write(sql, params).rowcount
        except (sqlite3.Error, OverflowError) as e:
            logger.error("Update of %s failed: %s", TABLE_NAME, e)
            return 0

    def delete(self, selection: Optional[str] = None, selection_args: Optional[Sequence[Any]] = None) -> int:
        sql = f"DELETE FROM {TABLE_NAME}"
        if selection:
            sql += f" WHERE ({selection})"
        try:
            return self._execute_write(sql, list(selection_args or ())).rowcount
        except (sqlite3.Error, OverflowError) as e:
            logger.error("Delete from %s failed: %s", TABLE_NAME, e)
            return 0
