"""Row-convention translation between XYZ (north origin) and TMS (south origin)."""

from __future__ import annotations


def flip_y(zoom: int, row: int) -> int:
    """Return ``row`` expressed in the opposite row-numbering convention."""

    return (1 << zoom) - 1 - row


def to_storage_row(zoom: int, client_row: int) -> int:
    """Translate an XYZ row into the TMS row stored in MBTiles."""

    return flip_y(zoom, client_row)


def to_client_row(zoom: int, storage_row: int) -> int:
    """Translate a stored TMS row back into the XYZ convention."""

    return flip_y(zoom, storage_row)


def tiles_per_axis(zoom: int) -> int:
    return 1 << zoom
