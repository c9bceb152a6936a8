"""Validated MBTiles handles and direct (unpooled) access."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Generator, Optional, Set, TypeVar

from mbtkit.core.errors import EngineError, HandleClosedError, HandleInUseError
from mbtkit.core.models import MbtilesMetadata
from mbtkit.logging import get_logger

from . import engine
from .validation import validate_mbtiles

LOGGER = get_logger(__name__)

R = TypeVar("R")

GET_TILE_QUERY = (
    "SELECT tile_data FROM tiles "
    "WHERE zoom_level = :zoom AND tile_column = :col AND tile_row = :row"
)


class MbtilesHandle:
    """An open connection, its prepared tile read, and a metadata snapshot.

    A handle is not safe to share between threads without external locking;
    use :class:`mbtkit.storage.pool.MbtilesPool` for concurrent access.
    """

    def __init__(
        self,
        path: Path,
        connection: sqlite3.Connection,
        metadata: MbtilesMetadata,
    ) -> None:
        self._path = path
        self._connection = connection
        self._metadata = metadata
        self._read_statement = engine.prepare(connection, GET_TILE_QUERY)
        self._streams: Set[object] = set()
        self._closed = False

    @property
    def path(self) -> Path:
        return self._path

    @property
    def metadata(self) -> MbtilesMetadata:
        return self._metadata

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def connection(self) -> sqlite3.Connection:
        self.ensure_open()
        return self._connection

    @property
    def read_statement(self) -> engine.Statement:
        self.ensure_open()
        return self._read_statement

    def ensure_open(self) -> None:
        if self._closed:
            raise HandleClosedError(f"handle for {self._path} is closed")

    def register_stream(self, stream: object) -> None:
        self.ensure_open()
        self._streams.add(stream)

    def release_stream(self, stream: object) -> None:
        self._streams.discard(stream)

    def close(self) -> None:
        """Finalize the read statement, then close the connection.

        Both steps always run; the first failure is re-raised afterwards.
        """

        if self._closed:
            return
        if self._streams:
            raise HandleInUseError(
                f"{len(self._streams)} tile stream(s) still open on {self._path}"
            )
        self._closed = True
        failure: Optional[EngineError] = None
        try:
            self._read_statement.close()
        except EngineError as exc:
            failure = exc
        try:
            engine.close_connection(self._connection)
        except EngineError as exc:
            failure = failure or exc
        LOGGER.debug("closed mbtiles handle", extra={"path": str(self._path)})
        if failure is not None:
            raise failure

    def force_close(self) -> None:
        """Close every stream still registered on this handle, then close it.

        Used by owners that must reclaim the connection regardless of what
        the last caller left open.
        """

        failure: Optional[EngineError] = None
        for stream in list(self._streams):
            try:
                stream.close()  # type: ignore[attr-defined]
            except EngineError as exc:
                failure = failure or exc
            finally:
                self._streams.discard(stream)
        try:
            self.close()
        except EngineError as exc:
            failure = failure or exc
        if failure is not None:
            raise failure

    def __enter__(self) -> "MbtilesHandle":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"MbtilesHandle({str(self._path)!r}, {state})"


def open_handle(path: Path | str) -> MbtilesHandle:
    """Validate ``path`` and return a ready-to-use handle."""

    connection, metadata = validate_mbtiles(path)
    return MbtilesHandle(Path(path), connection, metadata)


@contextmanager
def open_mbtiles(path: Path | str) -> Generator[MbtilesHandle, None, None]:
    """Yield a validated handle and close it on exit."""

    handle = open_handle(path)
    try:
        yield handle
    finally:
        handle.close()


def run_mbtiles(path: Path | str, action: Callable[[MbtilesHandle], R]) -> R:
    """Open ``path``, run ``action`` against it, close it and return the result."""

    with open_mbtiles(path) as handle:
        return action(handle)
