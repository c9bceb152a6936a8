"""Core data models for mbtkit."""

from .coordinates import flip_y, to_client_row, to_storage_row
from .errors import (
    DoesNotExist,
    EngineError,
    HandleClosedError,
    HandleInUseError,
    InvalidMetadata,
    InvalidSchema,
    InvalidTiles,
    MbtilesError,
    PoolClosedError,
    PoolTimeoutError,
    StreamClosedError,
    TileDecodeError,
    ValidationError,
)
from .models import (
    REQUIRED_METADATA_KEYS,
    DataTile,
    LoggingConfig,
    MbtilesMetadata,
    PoolConfig,
    TileCoordinate,
)

__all__ = [
    "REQUIRED_METADATA_KEYS",
    "DataTile",
    "DoesNotExist",
    "EngineError",
    "HandleClosedError",
    "HandleInUseError",
    "InvalidMetadata",
    "InvalidSchema",
    "InvalidTiles",
    "LoggingConfig",
    "MbtilesError",
    "MbtilesMetadata",
    "PoolClosedError",
    "PoolConfig",
    "PoolTimeoutError",
    "StreamClosedError",
    "TileCoordinate",
    "TileDecodeError",
    "ValidationError",
    "flip_y",
    "to_client_row",
    "to_storage_row",
]
