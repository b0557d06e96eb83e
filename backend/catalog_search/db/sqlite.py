"""SQLite connection handling for the index and the source catalog."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any, Iterator, Sequence

WRITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL;",
    "PRAGMA synchronous=NORMAL;",
)
COMMON_PRAGMAS = (
    "PRAGMA foreign_keys=ON;",
    "PRAGMA temp_store=MEMORY;",
)
SCAN_BATCH_ROWS = 256


class SQLiteDatabase:
    """Lazily opened sqlite3 connection.

    ``read_only`` opens the file through a ``mode=ro`` URI so the source
    catalog can never be written, and fails if the file does not exist.
    ``timeout`` bounds how long a statement waits on a locked database.
    """

    def __init__(self, db_path: Path, read_only: bool = False, timeout: float = 10.0) -> None:
        self.db_path = db_path.expanduser()
        self.read_only = read_only
        self.timeout = timeout
        self._connection: sqlite3.Connection | None = None

    def connect(self) -> sqlite3.Connection:
        if self._connection is not None:
            return self._connection
        if self.read_only:
            conn = sqlite3.connect(f"file:{self.db_path}?mode=ro", uri=True, timeout=self.timeout)
            pragmas = COMMON_PRAGMAS
        else:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path, timeout=self.timeout)
            pragmas = WRITE_PRAGMAS + COMMON_PRAGMAS
        conn.row_factory = sqlite3.Row
        for pragma in pragmas:
            conn.execute(pragma)
        self._connection = conn
        return conn

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def __enter__(self) -> "SQLiteDatabase":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.commit()
        elif self._connection is not None:
            self._connection.rollback()
        self.close()

    def commit(self) -> None:
        if self._connection is not None:
            self._connection.commit()

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> sqlite3.Cursor:
        return self.connect().execute(sql, params or [])

    def query(self, sql: str, params: Sequence[Any] | None = None) -> list[sqlite3.Row]:
        return self.execute(sql, params).fetchall()

    def ensure_schema(self, schema_sql: str | None = None) -> None:
        """Create the index tables; idempotent."""
        if schema_sql is None:
            schema_sql = Path(__file__).with_name("schema.sql").read_text(encoding="utf-8")
        self.connect().executescript(schema_sql)


def iter_rows(cursor: sqlite3.Cursor, batch_rows: int = SCAN_BATCH_ROWS) -> Iterator[sqlite3.Row]:
    """Stream rows in ``fetchmany`` chunks so full scans stay memory-bounded."""
    while True:
        rows = cursor.fetchmany(batch_rows)
        if not rows:
            break
        yield from rows


__all__ = ["SQLiteDatabase", "iter_rows"]
