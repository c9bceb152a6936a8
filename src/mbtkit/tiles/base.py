"""Protocol definitions for tile payload conversion."""

from __future__ import annotations

from typing import Protocol, TypeVar

T_co = TypeVar("T_co", covariant=True)
T_contra = TypeVar("T_contra", contravariant=True)


class Encodable(Protocol[T_contra]):
    """Interface for turning a tile payload into the bytes stored in MBTiles."""

    def encode(self, value: T_contra) -> bytes:
        """Return the raw ``tile_data`` bytes for ``value``."""


class Decodable(Protocol[T_co]):
    """Interface for turning stored ``tile_data`` bytes into a payload."""

    def decode(self, data: bytes) -> T_co:
        """Return the payload for ``data``; raise on malformed input."""
