"""
Structured metadata carried in the envelope.

Metadata is authenticated but not encrypted. It is serialized as canonical
JSON (sorted keys, compact separators, UTF-8) so the same record always
produces the same bytes, which keeps sealing deterministic.

Wire form:
    {"content_type":"text/plain","created_at":1700000000000,"filename":"a.txt","size":5}

Unknown top-level keys are kept in ``extra`` and written back unchanged.
"""

from __future__ import annotations

import json
import math
import time
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

from tdf_envelope.constants import DEFAULT_CONTENT_TYPE, MAX_METADATA_SIZE
from tdf_envelope.exceptions import MetadataError

__all__ = [
    "Metadata",
    "now_ms",
]

_RESERVED_KEYS = frozenset({"filename", "size", "content_type", "created_at"})
_SCALAR_TYPES = (str, int, float, bool, type(None))


def now_ms() -> int:
    """Current time as integer milliseconds since the Unix epoch."""
    return time.time_ns() // 1_000_000


def _is_int(value: Any) -> bool:
    # bool is an int subclass; it is never a valid size or timestamp
    return isinstance(value, int) and not isinstance(value, bool)


def _check_utf8(name: str, value: str) -> None:
    # Lone surrogates (e.g. from surrogateescape'd file names) have no UTF-8 form
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise MetadataError(f"{name} is not valid Unicode text") from e


@dataclass(frozen=True)
class Metadata:
    """Authenticated description of the sealed file."""

    filename: str
    """Original file name (no directory component is implied)."""

    size: int = 0
    """Original plaintext size in bytes."""

    content_type: str = DEFAULT_CONTENT_TYPE
    """MIME type of the plaintext."""

    created_at: int = field(default_factory=now_ms)
    """Creation time in milliseconds since the Unix epoch."""

    extra: Mapping[str, Any] = field(default_factory=dict, hash=False)
    """Additional scalar fields, preserved round-trip (read-only)."""

    def __post_init__(self) -> None:
        # Copy so later changes to the caller's dict cannot reach the record
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))
        self.validate()

    def validate(self) -> None:
        """
        Check field types and ranges.

        Raises:
            MetadataError: If any field is out of range or the wrong type
        """
        if not isinstance(self.filename, str) or not self.filename:
            raise MetadataError("filename must be a non-empty string")
        _check_utf8("filename", self.filename)
        if not _is_int(self.size) or self.size < 0:
            raise MetadataError("size must be a non-negative integer")
        if not isinstance(self.content_type, str):
            raise MetadataError("content_type must be a string")
        _check_utf8("content_type", self.content_type)
        if not _is_int(self.created_at) or self.created_at < 0:
            raise MetadataError("created_at must be a non-negative integer")
        for key, value in self.extra.items():
            if not isinstance(key, str):
                raise MetadataError("extra keys must be strings")
            _check_utf8("extra key", key)
            if key in _RESERVED_KEYS:
                raise MetadataError(f"extra may not redefine {key!r}")
            if not isinstance(value, _SCALAR_TYPES):
                raise MetadataError(f"extra field {key!r} must be a JSON scalar")
            if isinstance(value, float) and not math.isfinite(value):
                raise MetadataError(f"extra field {key!r} must be finite")
            if isinstance(value, str):
                _check_utf8(f"extra field {key!r}", value)

    def with_size(self, size: int) -> Metadata:
        """Return a copy with ``size`` replaced."""
        return replace(self, size=size)

    def to_dict(self) -> dict[str, Any]:
        """Flatten into the JSON object written on the wire."""
        data: dict[str, Any] = dict(self.extra)
        data["filename"] = self.filename
        data["size"] = self.size
        data["content_type"] = self.content_type
        data["created_at"] = self.created_at
        return data

    def to_bytes(self) -> bytes:
        """
        Serialize to canonical JSON.

        Returns:
            UTF-8 JSON bytes

        Raises:
            MetadataError: If the serialized form exceeds MAX_METADATA_SIZE
        """
        encoded = json.dumps(
            self.to_dict(),
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        ).encode("utf-8")
        if len(encoded) > MAX_METADATA_SIZE:
            raise MetadataError(f"Metadata too large: {len(encoded)} bytes (maximum {MAX_METADATA_SIZE})")
        return encoded

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Metadata:
        """
        Build a record from a decoded JSON object.

        Raises:
            MetadataError: If required fields are missing or invalid
        """
        if "filename" not in data:
            raise MetadataError("Metadata missing required field: filename")
        extra = {k: v for k, v in data.items() if k not in _RESERVED_KEYS}
        return cls(
            filename=data["filename"],
            size=data.get("size", 0),
            content_type=data.get("content_type", DEFAULT_CONTENT_TYPE),
            created_at=data.get("created_at", 0),
            extra=extra,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> Metadata:
        """
        Parse the metadata block of an envelope.

        Args:
            data: UTF-8 JSON object bytes

        Returns:
            Parsed Metadata

        Raises:
            MetadataError: If the block is not a valid metadata object
        """
        if len(data) > MAX_METADATA_SIZE:
            raise MetadataError(f"Metadata too large: {len(data)} bytes (maximum {MAX_METADATA_SIZE})")
        try:
            decoded = json.loads(bytes(data).decode("utf-8"))
        except (UnicodeDecodeError, ValueError, RecursionError) as e:
            raise MetadataError("Metadata is not valid UTF-8 JSON") from e
        if not isinstance(decoded, dict):
            raise MetadataError("Metadata must be a JSON object")
        return cls.from_dict(decoded)
