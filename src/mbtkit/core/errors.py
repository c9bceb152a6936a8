"""Exception hierarchy shared by the storage and tile layers."""

from __future__ import annotations


class MbtilesError(RuntimeError):
    """Base class for every error raised by mbtkit."""


class ValidationError(MbtilesError):
    """Raised when a file does not conform to the MBTiles schema."""


class DoesNotExist(ValidationError):
    """Raised when the MBTiles path does not point at an existing file."""


class InvalidSchema(ValidationError):
    """Raised when the ``tiles`` or ``metadata`` table is missing."""


class InvalidTiles(ValidationError):
    """Raised when the ``tiles`` table lacks a required column."""


class InvalidMetadata(ValidationError):
    """Raised when the ``metadata`` table is malformed or incomplete."""


class EngineError(MbtilesError):
    """Raised when the SQLite engine reports a failure."""


class TileDecodeError(MbtilesError):
    """Raised when stored tile bytes cannot be decoded."""


class HandleClosedError(MbtilesError):
    """Raised when a closed handle is used."""


class HandleInUseError(MbtilesError):
    """Raised when a handle is closed while tile streams are still open."""


class StreamClosedError(MbtilesError):
    """Raised when a closed tile stream is used."""


class PoolClosedError(MbtilesError):
    """Raised when checking out from a closed pool."""


class PoolTimeoutError(MbtilesError):
    """Raised when no pooled handle became available in time."""
