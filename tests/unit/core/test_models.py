import pytest

from mbtkit.core.errors import InvalidMetadata, MbtilesError, ValidationError
from mbtkit.core.models import MbtilesMetadata

REQUIRED = {
    "name": "world",
    "type": "overlay",
    "version": "2",
    "description": "World overlay",
    "format": "pbf",
}


def test_from_mapping_exposes_required_keys() -> None:
    metadata = MbtilesMetadata.from_mapping(REQUIRED)

    assert metadata.name == "world"
    assert metadata.type == "overlay"
    assert metadata.version == "2"
    assert metadata.description == "World overlay"
    assert metadata.format == "pbf"
    assert metadata.bounds is None
    assert metadata.get("missing") is None
    assert "name" in metadata


def test_from_mapping_parses_optional_keys() -> None:
    payload = dict(
        REQUIRED,
        bounds="-10, -5, 10, 5",
        center="0,0,4",
        minzoom="0",
        maxzoom="14",
        attribution="(c) contributors",
        json='{"vector_layers": []}',
    )
    metadata = MbtilesMetadata.from_mapping(payload)

    assert metadata.bounds == (-10.0, -5.0, 10.0, 5.0)
    assert metadata.center == (0.0, 0.0, 4)
    assert metadata.minzoom == 0
    assert metadata.maxzoom == 14
    assert metadata.attribution == "(c) contributors"
    assert metadata.get("json") == '{"vector_layers": []}'


def test_unparseable_optional_keys_are_ignored() -> None:
    metadata = MbtilesMetadata.from_mapping(dict(REQUIRED, bounds="a,b,c", center="x,y,z", minzoom="low"))

    assert metadata.bounds is None
    assert metadata.center is None
    assert metadata.minzoom is None


def test_missing_required_key_is_invalid_metadata() -> None:
    payload = dict(REQUIRED)
    del payload["format"]

    with pytest.raises(InvalidMetadata) as excinfo:
        MbtilesMetadata.from_mapping(payload)
    assert "format" in str(excinfo.value)
    assert isinstance(excinfo.value, ValidationError)
    assert isinstance(excinfo.value, MbtilesError)


def test_snapshots_compare_and_hash_structurally() -> None:
    first = MbtilesMetadata.from_mapping(REQUIRED)
    second = MbtilesMetadata.from_mapping(dict(REQUIRED))

    assert first == second
    assert hash(first) == hash(second)
    assert first != MbtilesMetadata.from_mapping(dict(REQUIRED, extra="1"))


def test_values_are_read_only() -> None:
    metadata = MbtilesMetadata.from_mapping(REQUIRED)
    with pytest.raises(TypeError):
        metadata.values["name"] = "changed"  # type: ignore[index]
