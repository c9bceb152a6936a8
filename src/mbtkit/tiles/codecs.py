"""Stock payload codecs."""

from __future__ import annotations

import gzip
import zlib


class RawBytes:
    """Pass ``tile_data`` through unchanged."""

    def encode(self, value: bytes) -> bytes:
        return bytes(value)

    def decode(self, data: bytes) -> bytes:
        return bytes(data)


class GzipBytes:
    """Gzip-compressed payloads, as stored by vector tile (pbf) archives."""

    def __init__(self, compresslevel: int = 6) -> None:
        self._compresslevel = compresslevel

    def encode(self, value: bytes) -> bytes:
        return gzip.compress(bytes(value), compresslevel=self._compresslevel)

    def decode(self, data: bytes) -> bytes:
        try:
            return gzip.decompress(data)
        except (OSError, EOFError, zlib.error) as exc:
            raise ValueError(f"tile data is not valid gzip: {exc}") from exc


class Utf8Text:
    def encode(self, value: str) -> bytes:
        return value.encode("utf-8")

    def decode(self, data: bytes) -> str:
        return bytes(data).decode("utf-8")


RAW = RawBytes()
GZIP = GzipBytes()
TEXT = Utf8Text()
