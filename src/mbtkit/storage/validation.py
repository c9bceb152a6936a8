"""Staged schema validation for MBTiles files."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Callable, Dict, List, Tuple

from mbtkit.core.errors import DoesNotExist, InvalidMetadata, InvalidSchema, InvalidTiles, MbtilesError
from mbtkit.core.models import MbtilesMetadata
from mbtkit.logging import get_logger

from . import engine

LOGGER = get_logger(__name__)

TILES_TABLE = "tiles"
METADATA_TABLE = "metadata"
TILES_COLUMNS = frozenset({"zoom_level", "tile_column", "tile_row", "tile_data"})
METADATA_COLUMNS = frozenset({"name", "value"})

ValidationResult = Tuple[sqlite3.Connection, MbtilesMetadata]


def _check_schema(connection: sqlite3.Connection) -> None:
    missing = [
        table
        for table in (TILES_TABLE, METADATA_TABLE)
        if not engine.table_exists(connection, table)
    ]
    if missing:
        raise InvalidSchema(f"missing tables: {', '.join(missing)}")


def _check_tiles_columns(connection: sqlite3.Connection) -> None:
    missing = TILES_COLUMNS - engine.columns_of(connection, TILES_TABLE)
    if missing:
        raise InvalidTiles(f"tiles table is missing columns: {', '.join(sorted(missing))}")


def _check_metadata_columns(connection: sqlite3.Connection) -> None:
    missing = METADATA_COLUMNS - engine.columns_of(connection, METADATA_TABLE)
    if missing:
        raise InvalidMetadata(f"metadata table is missing columns: {', '.join(sorted(missing))}")


_STAGES: List[Tuple[str, Callable[[sqlite3.Connection], None]]] = [
    ("schema", _check_schema),
    ("tiles columns", _check_tiles_columns),
    ("metadata columns", _check_metadata_columns),
]


def read_metadata(connection: sqlite3.Connection) -> MbtilesMetadata:
    """Load every metadata row and check that the required keys are present."""

    rows = engine.read_all_rows(connection, f"SELECT name, value FROM {METADATA_TABLE}")
    mapping: Dict[str, str] = {}
    for name, value in rows:
        if name is None:
            continue
        mapping[str(name)] = "" if value is None else str(value)
    return MbtilesMetadata.from_mapping(mapping)


def validate_mbtiles(path: Path | str) -> ValidationResult:
    """Open ``path`` and run every validation stage against it.

    Stages run cheapest first and stop at the first failure. On success the
    caller owns the returned connection; on failure it has been closed.
    """

    mbtiles_path = Path(path)
    if not mbtiles_path.is_file():
        LOGGER.warning("mbtiles file not found", extra={"path": str(mbtiles_path)})
        raise DoesNotExist(f"MBTiles file not found: {mbtiles_path}")

    connection = engine.open_connection(mbtiles_path)
    try:
        for stage, check in _STAGES:
            LOGGER.debug("validation stage", extra={"stage": stage, "path": str(mbtiles_path)})
            check(connection)
        metadata = read_metadata(connection)
    except MbtilesError as exc:
        LOGGER.warning(
            "mbtiles validation failed",
            extra={"path": str(mbtiles_path), "error": type(exc).__name__},
        )
        connection.close()
        raise
    LOGGER.debug("mbtiles validated", extra={"path": str(mbtiles_path), "name": metadata.name})
    return connection, metadata
