"""Point and batch tile access against a validated handle.

Coordinates passed in and returned are XYZ (row 0 at the north edge); MBTiles
stores TMS rows, so every bind flips the row exactly once.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, TypeVar

from mbtkit.core.errors import TileDecodeError
from mbtkit.core.models import DataTile, MbtilesMetadata, TileCoordinate
from mbtkit.logging import get_logger
from mbtkit.storage import engine
from mbtkit.storage.handle import MbtilesHandle

from .base import Decodable, Encodable
from .codecs import RAW

LOGGER = get_logger(__name__)

T = TypeVar("T")

NEW_TILE_QUERY = (
    "INSERT INTO tiles (zoom_level, tile_column, tile_row, tile_data) "
    "VALUES (:zoom, :col, :row, :data)"
)
UPDATE_TILE_QUERY = (
    "UPDATE tiles SET tile_data = :data "
    "WHERE zoom_level = :zoom AND tile_column = :col AND tile_row = :row"
)


def _bind_params(tile: TileCoordinate) -> Dict[str, int]:
    return {"zoom": tile.z, "col": tile.x, "row": tile.storage_row}


def decode_tile_data(decoder: Decodable[T], blob: Optional[bytes], tile: TileCoordinate) -> T:
    """Decode a stored blob, wrapping any decoder failure in TileDecodeError.

    A NULL blob is not a tile payload and is reported the same way.
    """

    if blob is None:
        raise TileDecodeError(f"tile {tile.z}/{tile.x}/{tile.y} has no tile_data")
    try:
        return decoder.decode(bytes(blob))
    except Exception as exc:
        raise TileDecodeError(f"failed to decode tile {tile.z}/{tile.x}/{tile.y}: {exc}") from exc


def get_tile(
    handle: MbtilesHandle,
    tile: TileCoordinate,
    decoder: Decodable[T] = RAW,
) -> Optional[T]:
    """Return the decoded payload stored at ``tile``, or None if absent."""

    statement = handle.read_statement
    statement.bind(_bind_params(tile))
    try:
        row = statement.step()
    finally:
        statement.reset()
    if row is None:
        return None
    return decode_tile_data(decoder, row[0], tile)


def _tile_rows(tiles: Iterable[DataTile[Any]], encoder: Encodable[Any]) -> List[Dict[str, Any]]:
    rows = []
    for data_tile in tiles:
        params: Dict[str, Any] = _bind_params(data_tile.tile)
        params["data"] = encoder.encode(data_tile.data)
        rows.append(params)
    return rows


def write_tiles(
    handle: MbtilesHandle,
    tiles: Iterable[DataTile[T]],
    encoder: Encodable[T] = RAW,
) -> int:
    """Insert new tiles in one batch.

    The tiles must not exist yet. With the standard unique ``tile_index`` a
    duplicate raises :class:`EngineError`; without it SQLite stores both rows.
    """

    rows = _tile_rows(tiles, encoder)
    changed = engine.execute_batch(handle.connection, NEW_TILE_QUERY, rows)
    LOGGER.debug("wrote tiles", extra={"path": str(handle.path), "count": len(rows)})
    return changed


def write_tile(handle: MbtilesHandle, tile: DataTile[T], encoder: Encodable[T] = RAW) -> int:
    return write_tiles(handle, [tile], encoder)


def update_tiles(
    handle: MbtilesHandle,
    tiles: Iterable[DataTile[T]],
    encoder: Encodable[T] = RAW,
) -> int:
    """Overwrite existing tiles in one batch; missing tiles are left absent."""

    rows = _tile_rows(tiles, encoder)
    changed = engine.execute_batch(handle.connection, UPDATE_TILE_QUERY, rows)
    LOGGER.debug(
        "updated tiles",
        extra={"path": str(handle.path), "count": len(rows), "changed": changed},
    )
    return changed


def update_tile(handle: MbtilesHandle, tile: DataTile[T], encoder: Encodable[T] = RAW) -> int:
    return update_tiles(handle, [tile], encoder)


def get_metadata(handle: MbtilesHandle) -> MbtilesMetadata:
    handle.ensure_open()
    return handle.metadata


def get_name(handle: MbtilesHandle) -> str:
    return get_metadata(handle).name


def get_type(handle: MbtilesHandle) -> str:
    return get_metadata(handle).type


def get_version(handle: MbtilesHandle) -> str:
    return get_metadata(handle).version


def get_description(handle: MbtilesHandle) -> str:
    return get_metadata(handle).description


def get_format(handle: MbtilesHandle) -> str:
    return get_metadata(handle).format
