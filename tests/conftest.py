import sqlite3
from pathlib import Path
from typing import Iterator

import pytest

from mbtkit.storage import MbtilesHandle, create_mbtiles, open_handle

METADATA = {
    "name": "fixture",
    "type": "baselayer",
    "version": "1.0.0",
    "description": "Tiles used by the test-suite",
    "format": "png",
    "bounds": "-180.0,-85.0511,180.0,85.0511",
    "minzoom": "0",
    "maxzoom": "3",
}


def build_sqlite(path: Path, script: str) -> Path:
    """Create an arbitrary SQLite file from ``script``."""

    conn = sqlite3.connect(str(path))
    try:
        conn.executescript(script)
        conn.commit()
    finally:
        conn.close()
    return path


@pytest.fixture()
def mbtiles_path(tmp_path: Path) -> Path:
    return create_mbtiles(tmp_path / "fixture.mbtiles", METADATA)


@pytest.fixture()
def handle(mbtiles_path: Path) -> Iterator[MbtilesHandle]:
    mbtiles = open_handle(mbtiles_path)
    yield mbtiles
    if not mbtiles.closed:
        mbtiles.close()
