"""Creation of empty, conforming MBTiles files."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Mapping

from mbtkit.core.models import REQUIRED_METADATA_KEYS
from mbtkit.logging import get_logger

LOGGER = get_logger(__name__)

_SCHEMA_SQL = """\
CREATE TABLE metadata (name TEXT, value TEXT);
CREATE UNIQUE INDEX name ON metadata (name);
CREATE TABLE tiles (
    zoom_level  INTEGER,
    tile_column INTEGER,
    tile_row    INTEGER,
    tile_data   BLOB
);
CREATE UNIQUE INDEX tile_index ON tiles (zoom_level, tile_column, tile_row);
"""


def create_mbtiles(
    path: Path | str,
    metadata: Mapping[str, str],
    *,
    overwrite: bool = False,
) -> Path:
    """Write a new MBTiles file with the standard schema and ``metadata``."""

    missing = [key for key in REQUIRED_METADATA_KEYS if key not in metadata]
    if missing:
        raise ValueError(f"metadata is missing required keys: {', '.join(missing)}")

    mbtiles_path = Path(path)
    if mbtiles_path.exists():
        if not overwrite:
            raise FileExistsError(f"MBTiles file already exists: {mbtiles_path}")
        mbtiles_path.unlink()
    mbtiles_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(mbtiles_path))
    try:
        conn.executescript(_SCHEMA_SQL)
        with conn:
            conn.executemany(
                "INSERT INTO metadata (name, value) VALUES (?, ?)",
                [(str(key), str(value)) for key, value in metadata.items()],
            )
    finally:
        conn.close()
    LOGGER.info("created mbtiles file", extra={"path": str(mbtiles_path), "keys": len(metadata)})
    return mbtiles_path
