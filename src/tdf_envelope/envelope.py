"""
Wire format for sealed file envelopes.

Envelope format:
┌───────┬─────────┬───────┬──────────────┬──────────┬────────────────┬────────────┬─────┐
│ Magic │ Version │ Nonce │ Metadata len │ Metadata │ Ciphertext len │ Ciphertext │ Tag │
│ (4B)  │  (1B)   │ (12B) │  (4B, BE)    │   (N)    │   (4B, BE)     │    (M)     │(16B)│
└───────┴─────────┴───────┴──────────────┴──────────┴────────────────┴────────────┴─────┘

Every variable-length field is length-prefixed. Each length is checked
against the bytes actually remaining before it is used to slice.

The codec is a pure transformation; it performs no cryptography. The tag is
produced and verified by the cipher engine.
"""

from __future__ import annotations

from dataclasses import dataclass

from tdf_envelope.constants import (
    ENVELOPE_FIXED_OVERHEAD,
    ENVELOPE_MAGIC,
    ENVELOPE_PREFIX_SIZE,
    ENVELOPE_VERSION,
    LENGTH_PREFIX_SIZE,
    MAGIC_SIZE,
    MAX_LENGTH_FIELD,
    MAX_METADATA_SIZE,
    NONCE_SIZE,
    TAG_SIZE,
)
from tdf_envelope.exceptions import FormatError, TruncatedInputError
from tdf_envelope.metadata import Metadata

__all__ = [
    "DecodedEnvelope",
    "RawEnvelope",
    "decode_envelope",
    "encode_envelope",
    "envelope_overhead",
    "split_envelope",
]


@dataclass(frozen=True)
class RawEnvelope:
    """Envelope fields with the metadata block left unparsed."""

    version: int
    nonce: bytes
    metadata_bytes: bytes
    """Exact metadata bytes from the wire; this is the associated data."""
    ciphertext: bytes
    tag: bytes


@dataclass(frozen=True)
class DecodedEnvelope:
    """Envelope fields with parsed metadata.

    Metadata is not yet authenticated at this point; pass
    ``metadata_bytes`` as associated data to the cipher engine.
    """

    nonce: bytes
    metadata: Metadata
    ciphertext: bytes
    tag: bytes
    metadata_bytes: bytes


class _Reader:
    """Bounds-checked cursor over an envelope buffer."""

    __slots__ = ("_data", "_offset")

    def __init__(self, data: bytes, offset: int = 0) -> None:
        self._data = data
        self._offset = offset

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    def take(self, size: int, field: str) -> bytes:
        """Read exactly ``size`` bytes or raise TruncatedInputError."""
        if size > self.remaining:
            raise TruncatedInputError(field, size, self.remaining)
        start = self._offset
        self._offset += size
        return self._data[start : self._offset]

    def take_length(self, field: str) -> int:
        """Read a 4-byte big-endian length prefix."""
        return int.from_bytes(self.take(LENGTH_PREFIX_SIZE, f"{field} length"), "big")


def _encode_length(length: int, field: str) -> bytes:
    if length > MAX_LENGTH_FIELD:
        raise FormatError(f"{field} too large for length prefix: {length} bytes")
    return length.to_bytes(LENGTH_PREFIX_SIZE, "big")


def encode_envelope(
    nonce: bytes,
    metadata: Metadata | bytes,
    ciphertext: bytes,
    tag: bytes,
) -> bytes:
    """
    Encode sealed fields into the envelope format.

    Args:
        nonce: 12-byte nonce used for sealing
        metadata: Metadata record, or its exact serialized bytes
        ciphertext: Encrypted payload (without tag)
        tag: 16-byte authentication tag

    Returns:
        Complete envelope: magic || version || nonce || len || metadata || len || ciphertext || tag

    Raises:
        FormatError: If nonce or tag have the wrong size, or metadata is too large
    """
    if len(nonce) != NONCE_SIZE:
        raise FormatError(f"Nonce must be {NONCE_SIZE} bytes, got {len(nonce)}")
    if len(tag) != TAG_SIZE:
        raise FormatError(f"Tag must be {TAG_SIZE} bytes, got {len(tag)}")

    metadata_bytes = metadata.to_bytes() if isinstance(metadata, Metadata) else bytes(metadata)
    if len(metadata_bytes) > MAX_METADATA_SIZE:
        raise FormatError(f"Metadata too large: {len(metadata_bytes)} bytes (maximum {MAX_METADATA_SIZE})")

    return b"".join(
        (
            ENVELOPE_MAGIC,
            ENVELOPE_VERSION.to_bytes(1, "big"),
            bytes(nonce),
            _encode_length(len(metadata_bytes), "metadata"),
            metadata_bytes,
            _encode_length(len(ciphertext), "ciphertext"),
            bytes(ciphertext),
            bytes(tag),
        )
    )


def _check_prefix(data: bytes) -> int:
    """
    Validate magic and version.

    A short buffer whose bytes agree with the magic so far is treated as
    truncated, not as a foreign format.

    Returns:
        The version byte

    Raises:
        FormatError: On a magic or version mismatch
        TruncatedInputError: If the buffer ends inside magic/version
    """
    head = data[:MAGIC_SIZE]
    if head != ENVELOPE_MAGIC[: len(head)]:
        raise FormatError("Invalid envelope magic")
    if len(data) < ENVELOPE_PREFIX_SIZE:
        raise TruncatedInputError("header", ENVELOPE_PREFIX_SIZE, len(data))

    version = data[MAGIC_SIZE]
    if version != ENVELOPE_VERSION:
        raise FormatError(f"Unsupported envelope version: {version}")
    return version


def split_envelope(data: bytes) -> RawEnvelope:
    """
    Split an envelope into its fields without parsing metadata.

    Args:
        data: Complete envelope bytes

    Returns:
        RawEnvelope with the exact metadata bytes

    Raises:
        FormatError: Bad magic, unsupported version, or trailing bytes
        TruncatedInputError: A length field exceeds the remaining bytes
    """
    data = bytes(data)
    version = _check_prefix(data)
    reader = _Reader(data, ENVELOPE_PREFIX_SIZE)

    nonce = reader.take(NONCE_SIZE, "nonce")

    metadata_len = reader.take_length("metadata")
    metadata_bytes = reader.take(metadata_len, "metadata")
    if metadata_len > MAX_METADATA_SIZE:
        raise FormatError(f"Metadata too large: {metadata_len} bytes (maximum {MAX_METADATA_SIZE})")

    ciphertext_len = reader.take_length("ciphertext")
    ciphertext = reader.take(ciphertext_len, "ciphertext")
    tag = reader.take(TAG_SIZE, "tag")

    if reader.remaining:
        raise FormatError(f"Unexpected {reader.remaining} trailing bytes after tag")

    return RawEnvelope(
        version=version,
        nonce=nonce,
        metadata_bytes=metadata_bytes,
        ciphertext=ciphertext,
        tag=tag,
    )


def decode_envelope(data: bytes) -> DecodedEnvelope:
    """
    Decode an envelope into nonce, parsed metadata, ciphertext and tag.

    Nothing returned here is authenticated yet. Callers that act on the
    metadata before verifying the tag must treat it as untrusted.

    Args:
        data: Complete envelope bytes

    Returns:
        DecodedEnvelope

    Raises:
        FormatError: Bad magic, unsupported version, or trailing bytes
        TruncatedInputError: A length field exceeds the remaining bytes
        MetadataError: The metadata block is malformed
    """
    raw = split_envelope(data)
    return DecodedEnvelope(
        nonce=raw.nonce,
        metadata=Metadata.from_bytes(raw.metadata_bytes),
        ciphertext=raw.ciphertext,
        tag=raw.tag,
        metadata_bytes=raw.metadata_bytes,
    )


def envelope_overhead(metadata_len: int = 0) -> int:
    """
    Calculate total overhead added by envelope encoding.

    Args:
        metadata_len: Size of the serialized metadata block

    Returns:
        Overhead in bytes (framing + nonce + tag + metadata)
    """
    return ENVELOPE_FIXED_OVERHEAD + metadata_len
