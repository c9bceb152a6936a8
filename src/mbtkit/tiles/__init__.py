"""Tile read/write and streaming interfaces for mbtkit."""

from .access import (
    get_description,
    get_format,
    get_metadata,
    get_name,
    get_tile,
    get_type,
    get_version,
    update_tile,
    update_tiles,
    write_tile,
    write_tiles,
)
from .base import Decodable, Encodable
from .codecs import GZIP, RAW, TEXT, GzipBytes, RawBytes, Utf8Text
from .stream import (
    StreamState,
    TileStream,
    end_tile_stream,
    next_tile,
    reset_tile_stream,
    start_tile_stream,
)

__all__ = [
    "Decodable",
    "Encodable",
    "GZIP",
    "GzipBytes",
    "RAW",
    "RawBytes",
    "StreamState",
    "TEXT",
    "TileStream",
    "Utf8Text",
    "end_tile_stream",
    "get_description",
    "get_format",
    "get_metadata",
    "get_name",
    "get_tile",
    "get_type",
    "get_version",
    "next_tile",
    "reset_tile_stream",
    "start_tile_stream",
    "update_tile",
    "update_tiles",
    "write_tile",
    "write_tiles",
]
