"""
DuckDB storage handle.

The store is constructed explicitly and passed to the loader, the
aggregator and the query service; there is no module-level connection.

DuckDB connections are not thread-safe, so each calling thread gets its
own cursor (a duplicate connection onto the same database).  Threads that
finish a unit of work call ``release()`` to close theirs.  After the
build the tables are never written again, so concurrent readers need no
further locking.
"""

from __future__ import annotations

import logging
import re
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import duckdb
import pandas as pd

from broadband.errors import StorageUnavailable

logger = logging.getLogger(__name__)

MEMORY: str = ":memory:"

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def quote_identifier(name: str) -> str:
    """Return *name* as a quoted SQL identifier, rejecting anything unusual."""
    if not _IDENTIFIER_RE.match(name):
        raise ValueError(f"Unsafe SQL identifier: {name!r}")
    return f'"{name}"'


class DuckDBStore:
    """
    Owns one DuckDB database (in-memory or file-backed).

    Parameters
    ----------
    database:
        Path to a ``.duckdb`` file, or ``":memory:"`` (default).
    read_only:
        Open a file-backed database read-only.
    """

    def __init__(
        self,
        database: Union[str, Path] = MEMORY,
        read_only: bool = False,
    ) -> None:
        self.database = str(database)
        self.read_only = read_only
        self._conn: Optional[duckdb.DuckDBPyConnection] = None
        self._local = threading.local()
        self._cursors: List[duckdb.DuckDBPyConnection] = []
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def connect(self) -> "DuckDBStore":
        if self._conn is not None:
            return self
        if self.database != MEMORY:
            Path(self.database).parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = duckdb.connect(self.database, read_only=self.read_only)
        except duckdb.Error as exc:
            raise StorageUnavailable(
                f"Cannot open DuckDB database {self.database}: {exc}"
            ) from exc
        logger.info("DuckDB connection opened: %s", self.database)
        return self

    def close(self) -> None:
        with self._lock:
            for cur in self._cursors:
                cur.close()
            self._cursors.clear()
            if self._conn is not None:
                self._conn.close()
                self._conn = None
        self._local = threading.local()
        logger.debug("DuckDB connection closed: %s", self.database)

    def __enter__(self) -> "DuckDBStore":
        return self.connect()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def cursor(self) -> duckdb.DuckDBPyConnection:
        """Return the calling thread's cursor, creating it on first use."""
        if self._conn is None:
            raise StorageUnavailable("DuckDB store is not connected")
        cur = getattr(self._local, "cursor", None)
        if cur is None:
            with self._lock:
                cur = self._conn.cursor()
                self._cursors.append(cur)
            self._local.cursor = cur
        return cur

    def release(self) -> None:
        """Close the calling thread's cursor, if it has one."""
        cur = getattr(self._local, "cursor", None)
        if cur is None:
            return
        self._local.cursor = None
        with self._lock:
            if cur in self._cursors:
                self._cursors.remove(cur)
                cur.close()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> None:
        self.cursor().execute(sql, params or [])

    def query(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[tuple]:
        return self.cursor().execute(sql, params or []).fetchall()

    def query_dicts(
        self, sql: str, params: Optional[Sequence[Any]] = None
    ) -> List[Dict[str, Any]]:
        """Run *sql* and return each row as a ``{column: value}`` dict."""
        cur = self.cursor().execute(sql, params or [])
        names = [d[0] for d in cur.description]
        return [dict(zip(names, row)) for row in cur.fetchall()]

    def query_df(self, sql: str, params: Optional[Sequence[Any]] = None) -> pd.DataFrame:
        return self.cursor().execute(sql, params or []).df()

    def table_exists(self, table: str) -> bool:
        rows = self.query(
            "SELECT table_name FROM duckdb_tables() WHERE table_name = ?",
            [table],
        )
        return len(rows) > 0

    def columns(self, table: str) -> List[str]:
        """Column names of *table* in declaration order."""
        rows = self.query(
            "SELECT column_name FROM duckdb_columns() "
            "WHERE table_name = ? ORDER BY column_index",
            [table],
        )
        return [r[0] for r in rows]

    def count_rows(self, table: str) -> int:
        return int(self.query(f"SELECT COUNT(*) FROM {quote_identifier(table)}")[0][0])
