"""Storage layer: validation, handles and pooling over SQLite."""

from .handle import MbtilesHandle, open_handle, open_mbtiles, run_mbtiles
from .pool import MbtilesPool, create_pool, create_pool_from_config
from .schema import create_mbtiles
from .validation import validate_mbtiles

__all__ = [
    "MbtilesHandle",
    "MbtilesPool",
    "create_mbtiles",
    "create_pool",
    "create_pool_from_config",
    "open_handle",
    "open_mbtiles",
    "run_mbtiles",
    "validate_mbtiles",
]
