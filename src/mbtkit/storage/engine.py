"""Narrow wrapper over :mod:`sqlite3` used by the validation and tile layers.

Everything here translates ``sqlite3.Error`` into :class:`EngineError` so the
rest of the package only has to reason about mbtkit exceptions.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from mbtkit.core.errors import EngineError
from mbtkit.logging import get_logger

LOGGER = get_logger(__name__)


def open_connection(path: Path | str) -> sqlite3.Connection:
    """Open ``path`` without creating it.

    ``check_same_thread`` is disabled because pooled handles are handed to
    whichever thread checks them out; callers serialise access per handle.
    """

    uri = f"{Path(path).resolve().as_uri()}?mode=rw"
    try:
        return sqlite3.connect(uri, uri=True, check_same_thread=False)
    except sqlite3.Error as exc:
        raise EngineError(f"Failed to open {path}: {exc}") from exc


def close_connection(connection: sqlite3.Connection) -> None:
    try:
        connection.close()
    except sqlite3.Error as exc:
        raise EngineError(f"Failed to close connection: {exc}") from exc


def table_exists(connection: sqlite3.Connection, name: str) -> bool:
    """Return True when ``name`` is a table or a view."""

    row = _query_one(
        connection,
        "SELECT 1 FROM sqlite_master WHERE type IN ('table', 'view') AND name = ?",
        (name,),
    )
    return row is not None


def columns_of(connection: sqlite3.Connection, table: str) -> Set[str]:
    try:
        rows = connection.execute(f'PRAGMA table_info("{table}")').fetchall()
    except sqlite3.Error as exc:
        raise EngineError(f"Failed to inspect columns of {table}: {exc}") from exc
    return {row[1] for row in rows}


def read_all_rows(connection: sqlite3.Connection, query: str) -> List[tuple]:
    try:
        return connection.execute(query).fetchall()
    except sqlite3.Error as exc:
        raise EngineError(f"Query failed: {exc}") from exc


def execute_batch(
    connection: sqlite3.Connection,
    query: str,
    rows: Iterable[Mapping[str, Any]],
) -> int:
    """Run ``query`` once per row inside a single transaction.

    Returns the number of rows the engine reports as changed.
    """

    batch = list(rows)
    if not batch:
        return 0
    try:
        with connection:
            cursor = connection.executemany(query, batch)
            return max(cursor.rowcount, 0)
    except sqlite3.Error as exc:
        raise EngineError(f"Batch execution failed: {exc}") from exc


def _query_one(connection: sqlite3.Connection, query: str, params: tuple) -> Optional[tuple]:
    try:
        return connection.execute(query, params).fetchone()
    except sqlite3.Error as exc:
        raise EngineError(f"Query failed: {exc}") from exc


class Statement:
    """A parameterised query reused across bind/step/reset cycles.

    ``sqlite3`` caches the compiled statement per connection; this class keeps
    the bound parameters and the live cursor so callers get explicit
    prepare/bind/step/reset/close semantics. Not safe for concurrent use.
    """

    def __init__(self, connection: sqlite3.Connection, query: str) -> None:
        self._connection = connection
        self._query = query
        self._params: Dict[str, Any] = {}
        self._cursor: Optional[sqlite3.Cursor] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def bind(self, params: Mapping[str, Any]) -> None:
        self._ensure_open()
        self.reset()
        self._params = dict(params)

    def step(self) -> Optional[tuple]:
        """Return the next row, or None once the result set is exhausted."""

        self._ensure_open()
        try:
            if self._cursor is None:
                self._cursor = self._connection.execute(self._query, self._params)
            return self._cursor.fetchone()
        except sqlite3.Error as exc:
            raise EngineError(f"Statement step failed: {exc}") from exc

    def reset(self) -> None:
        if self._cursor is None:
            return
        cursor, self._cursor = self._cursor, None
        try:
            cursor.close()
        except sqlite3.Error as exc:
            raise EngineError(f"Statement reset failed: {exc}") from exc

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.reset()

    def _ensure_open(self) -> None:
        if self._closed:
            raise EngineError("statement has been finalized")


def prepare(connection: sqlite3.Connection, query: str) -> Statement:
    LOGGER.debug("preparing statement", extra={"query": query})
    return Statement(connection, query)
