"""Ordered, resumable streaming over every tile in an MBTiles file."""

from __future__ import annotations

import enum
from typing import Generic, Iterator, Optional, TypeVar

from mbtkit.core.coordinates import to_client_row
from mbtkit.core.errors import StreamClosedError, TileDecodeError
from mbtkit.core.models import DataTile, TileCoordinate
from mbtkit.logging import get_logger
from mbtkit.storage import engine
from mbtkit.storage.handle import MbtilesHandle

from .access import decode_tile_data
from .base import Decodable
from .codecs import RAW

LOGGER = get_logger(__name__)

T = TypeVar("T")

STREAM_QUERY = (
    "SELECT zoom_level, tile_column, tile_row, tile_data FROM tiles "
    "ORDER BY zoom_level, tile_column, tile_row"
)


class StreamState(enum.Enum):
    CREATED = "created"
    OPEN = "open"
    EXHAUSTED = "exhausted"
    CLOSED = "closed"


class TileStream(Generic[T]):
    """Pull-based cursor over all tiles, sorted by zoom, column, then TMS row.

    The stream borrows its handle's connection and must be closed before the
    handle is. Yielded coordinates are XYZ, like every other mbtkit API.
    """

    def __init__(self, handle: MbtilesHandle, decoder: Decodable[T]) -> None:
        self._handle = handle
        self._decoder = decoder
        self._statement = engine.prepare(handle.connection, STREAM_QUERY)
        self._state = StreamState.CREATED
        handle.register_stream(self)

    @property
    def state(self) -> StreamState:
        return self._state

    def next(self) -> Optional[DataTile[T]]:
        """Return the next tile, or None once every tile has been produced."""

        self._ensure_open()
        if self._state is StreamState.EXHAUSTED:
            return None
        row = self._statement.step()
        if row is None:
            self._state = StreamState.EXHAUSTED
            LOGGER.debug("tile stream exhausted", extra={"path": str(self._handle.path)})
            return None
        self._state = StreamState.OPEN
        zoom, column, storage_row, blob = row
        try:
            tile = TileCoordinate(zoom, column, to_client_row(zoom, storage_row))
        except (TypeError, ValueError) as exc:
            raise TileDecodeError(f"invalid stored tile address {zoom}/{column}/{storage_row}") from exc
        return DataTile(tile, decode_tile_data(self._decoder, blob, tile))

    def reset(self) -> None:
        """Rewind to before the first tile."""

        self._ensure_open()
        self._statement.reset()
        self._state = StreamState.CREATED

    def close(self) -> None:
        if self._state is StreamState.CLOSED:
            return
        self._state = StreamState.CLOSED
        try:
            self._statement.close()
        finally:
            self._handle.release_stream(self)

    def _ensure_open(self) -> None:
        if self._state is StreamState.CLOSED:
            raise StreamClosedError("tile stream has been closed")

    def __iter__(self) -> Iterator[DataTile[T]]:
        return self

    def __next__(self) -> DataTile[T]:
        tile = self.next()
        if tile is None:
            raise StopIteration
        return tile

    def __enter__(self) -> "TileStream[T]":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def start_tile_stream(handle: MbtilesHandle, decoder: Decodable[T] = RAW) -> TileStream[T]:
    return TileStream(handle, decoder)


def next_tile(stream: TileStream[T]) -> Optional[DataTile[T]]:
    return stream.next()


def reset_tile_stream(stream: TileStream[T]) -> None:
    stream.reset()


def end_tile_stream(stream: TileStream[T]) -> None:
    stream.close()
