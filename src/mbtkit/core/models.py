"""Dataclasses describing core mbtkit entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Generic, Mapping, Optional, Tuple, TypeVar

from .coordinates import flip_y, tiles_per_axis
from .errors import InvalidMetadata

T = TypeVar("T")

REQUIRED_METADATA_KEYS: Tuple[str, ...] = ("name", "type", "version", "description", "format")


@dataclass(frozen=True, order=True)
class TileCoordinate:
    """Address of a single tile in the XYZ (north origin) convention."""

    z: int
    x: int
    y: int

    def __post_init__(self) -> None:
        if self.z < 0:
            raise ValueError(f"zoom level must be non-negative, got {self.z}")
        limit = tiles_per_axis(self.z)
        if not 0 <= self.x < limit:
            raise ValueError(f"tile column {self.x} outside 0..{limit - 1} at zoom {self.z}")
        if not 0 <= self.y < limit:
            raise ValueError(f"tile row {self.y} outside 0..{limit - 1} at zoom {self.z}")

    def flip(self) -> "TileCoordinate":
        """Return the same tile with its row in the opposite convention."""

        return TileCoordinate(self.z, self.x, flip_y(self.z, self.y))

    @property
    def storage_row(self) -> int:
        return flip_y(self.z, self.y)


@dataclass(frozen=True)
class DataTile(Generic[T]):
    """A tile coordinate paired with its payload."""

    tile: TileCoordinate
    data: T


@dataclass(frozen=True)
class MbtilesMetadata:
    """Snapshot of the ``metadata`` table taken when a file is validated."""

    name: str
    type: str
    version: str
    description: str
    format: str
    values: Mapping[str, str] = field(default_factory=dict, hash=False, repr=False)
    bounds: Optional[Tuple[float, float, float, float]] = None
    center: Optional[Tuple[float, float, int]] = None
    minzoom: Optional[int] = None
    maxzoom: Optional[int] = None
    attribution: Optional[str] = None

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str]) -> "MbtilesMetadata":
        missing = [key for key in REQUIRED_METADATA_KEYS if key not in mapping]
        if missing:
            raise InvalidMetadata(f"metadata is missing required keys: {', '.join(missing)}")
        return cls(
            name=mapping["name"],
            type=mapping["type"],
            version=mapping["version"],
            description=mapping["description"],
            format=mapping["format"],
            values=MappingProxyType(dict(mapping)),
            bounds=_parse_bounds(mapping.get("bounds")),
            center=_parse_center(mapping.get("center")),
            minzoom=_parse_int(mapping.get("minzoom")),
            maxzoom=_parse_int(mapping.get("maxzoom")),
            attribution=mapping.get("attribution"),
        )

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.values.get(key, default)

    def __contains__(self, key: object) -> bool:
        return key in self.values


@dataclass
class PoolConfig:
    """Sizing and recycling policy for a handle pool."""

    min_idle: int = 1
    max_idle_time: float = 900.0
    max_size: int = 1000


@dataclass
class LoggingConfig:
    """Options forwarded to :func:`mbtkit.logging.configure_logging`."""

    level: str = "INFO"
    json_logs: bool = False
    log_file: Optional[str] = None


def _split_numbers(raw: Optional[str], count: int) -> Optional[Tuple[str, ...]]:
    if raw is None:
        return None
    parts = tuple(part.strip() for part in str(raw).split(","))
    if len(parts) != count:
        return None
    return parts


def _parse_bounds(raw: Optional[str]) -> Optional[Tuple[float, float, float, float]]:
    parts = _split_numbers(raw, 4)
    if parts is None:
        return None
    try:
        left, bottom, right, top = (float(value) for value in parts)
    except ValueError:
        return None
    return (left, bottom, right, top)


def _parse_center(raw: Optional[str]) -> Optional[Tuple[float, float, int]]:
    parts = _split_numbers(raw, 3)
    if parts is None:
        return None
    try:
        return (float(parts[0]), float(parts[1]), int(parts[2]))
    except ValueError:
        return None


def _parse_int(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None
