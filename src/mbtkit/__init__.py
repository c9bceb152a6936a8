"""Validated, pooled access to MBTiles tile stores."""

from __future__ import annotations

import importlib
from typing import Any

__all__ = [
    "AccessConfig",
    "DataTile",
    "MbtilesError",
    "MbtilesHandle",
    "MbtilesMetadata",
    "MbtilesPool",
    "TileCoordinate",
    "TileStream",
    "create_mbtiles",
    "create_pool",
    "get_tile",
    "load_config",
    "open_handle",
    "open_mbtiles",
    "run_mbtiles",
    "start_tile_stream",
    "update_tile",
    "update_tiles",
    "write_tile",
    "write_tiles",
]

_MODULE_MAP = {
    "AccessConfig": ("mbtkit.config", "AccessConfig"),
    "DataTile": ("mbtkit.core", "DataTile"),
    "MbtilesError": ("mbtkit.core", "MbtilesError"),
    "MbtilesHandle": ("mbtkit.storage", "MbtilesHandle"),
    "MbtilesMetadata": ("mbtkit.core", "MbtilesMetadata"),
    "MbtilesPool": ("mbtkit.storage", "MbtilesPool"),
    "TileCoordinate": ("mbtkit.core", "TileCoordinate"),
    "TileStream": ("mbtkit.tiles", "TileStream"),
    "create_mbtiles": ("mbtkit.storage", "create_mbtiles"),
    "create_pool": ("mbtkit.storage", "create_pool"),
    "get_tile": ("mbtkit.tiles", "get_tile"),
    "load_config": ("mbtkit.config", "load_config"),
    "open_handle": ("mbtkit.storage", "open_handle"),
    "open_mbtiles": ("mbtkit.storage", "open_mbtiles"),
    "run_mbtiles": ("mbtkit.storage", "run_mbtiles"),
    "start_tile_stream": ("mbtkit.tiles", "start_tile_stream"),
    "update_tile": ("mbtkit.tiles", "update_tile"),
    "update_tiles": ("mbtkit.tiles", "update_tiles"),
    "write_tile": ("mbtkit.tiles", "write_tile"),
    "write_tiles": ("mbtkit.tiles", "write_tiles"),
}


def __getattr__(name: str) -> Any:
    if name not in _MODULE_MAP:
        raise AttributeError(f"module 'mbtkit' has no attribute '{name}'")
    module_name, attr = _MODULE_MAP[name]
    module = importlib.import_module(module_name)
    return getattr(module, attr)
