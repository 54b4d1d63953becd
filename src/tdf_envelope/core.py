"""
High-level sealing and opening of whole files.

Combines the container codec, the cipher engine and an injected key source.
These classes handle:
- Fresh random nonce per envelope
- Metadata serialization (size filled from the plaintext)
- In-memory size limits
- Authenticate-then-parse on open

Usage (sealing):
    from tdf_envelope.core import EnvelopeEncryptor
    from tdf_envelope.keys import EnvKeySource
    from tdf_envelope.metadata import Metadata

    encryptor = EnvelopeEncryptor(EnvKeySource())
    envelope = encryptor.encrypt(data, Metadata(filename="report.pdf", content_type="application/pdf"))

Usage (opening):
    from tdf_envelope.core import EnvelopeDecryptor

    decryptor = EnvelopeDecryptor(EnvKeySource())
    metadata, plaintext = decryptor.decrypt(envelope)
"""

from __future__ import annotations

import mimetypes
import os
import secrets
from pathlib import Path
from typing import NamedTuple

from tdf_envelope._logging import get_logger
from tdf_envelope.cipher import CipherEngine, load_engine
from tdf_envelope.constants import DEFAULT_CONTENT_TYPE, MAX_METADATA_SIZE, MAX_PLAINTEXT_SIZE
from tdf_envelope.envelope import encode_envelope, envelope_overhead, split_envelope
from tdf_envelope.exceptions import EnvelopeError, MetadataError, PayloadTooLargeError
from tdf_envelope.keys import KeySource, StaticKeySource
from tdf_envelope.metadata import Metadata

__all__ = [
    "EnvelopeDecryptor",
    "EnvelopeEncryptor",
    "OpenedEnvelope",
    "metadata_for_file",
    "open_envelope",
    "seal_envelope",
]

_logger = get_logger(__name__)


class OpenedEnvelope(NamedTuple):
    """Authenticated result of opening an envelope."""

    metadata: Metadata
    plaintext: bytes


def metadata_for_file(
    path: str | os.PathLike[str],
    content_type: str | None = None,
) -> Metadata:
    """
    Build metadata for a file, guessing the content type from its name.

    Only the final path component is recorded. Bytes in the name that are
    not UTF-8 are replaced with U+FFFD. ``size`` is filled in when the file
    is sealed.

    Args:
        path: File path
        content_type: MIME type override

    Returns:
        Metadata with filename, content_type and created_at set
    """
    name = os.fsencode(Path(path).name).decode("utf-8", "replace")
    if content_type is None:
        guessed, _ = mimetypes.guess_type(name)
        content_type = guessed or DEFAULT_CONTENT_TYPE
    return Metadata(filename=name, content_type=content_type)


class EnvelopeEncryptor:
    """
    Seal plaintext into envelopes.

    A fresh random nonce is drawn for every call. The ``nonce`` argument to
    encrypt() exists for known-answer tests only: passing the same nonce
    twice under one key is forbidden and is not detected.

    Example:
        encryptor = EnvelopeEncryptor(StaticKeySource(key))
        envelope = encryptor.encrypt(b"hello", Metadata(filename="a.txt"))
    """

    def __init__(
        self,
        key_source: KeySource,
        engine: CipherEngine | None = None,
        *,
        max_size: int = MAX_PLAINTEXT_SIZE,
    ) -> None:
        """
        Initialize envelope encryptor.

        Args:
            key_source: Supplies the 32-byte key
            engine: Cipher engine (default: load_engine())
            max_size: Largest plaintext accepted, in bytes

        Raises:
            EngineUnavailableError: If no engine is given and none can be loaded
        """
        self._key_source = key_source
        self._engine = engine if engine is not None else load_engine()
        self.max_size = max_size

    def encrypt(
        self,
        plaintext: bytes,
        metadata: Metadata,
        *,
        nonce: bytes | None = None,
    ) -> bytes:
        """
        Seal plaintext and metadata into an envelope.

        Args:
            plaintext: File contents
            metadata: Metadata record; ``size`` is replaced by len(plaintext)
            nonce: Explicit nonce (tests only; must never repeat under a key)

        Returns:
            Envelope bytes

        Raises:
            PayloadTooLargeError: If plaintext exceeds max_size
            MetadataError: If metadata serializes larger than MAX_METADATA_SIZE
            InvalidKeyError: If the key source returns a wrong-size key
            InvalidNonceError: If an explicit nonce has the wrong size
        """
        if len(plaintext) > self.max_size:
            raise PayloadTooLargeError(len(plaintext), self.max_size)

        metadata_bytes = metadata.with_size(len(plaintext)).to_bytes()
        if nonce is None:
            nonce = secrets.token_bytes(self._engine.nonce_size)

        ciphertext, tag = self._engine.seal(self._key_source.get_key(), nonce, plaintext, metadata_bytes)
        envelope = encode_envelope(nonce, metadata_bytes, ciphertext, tag)

        _logger.debug(
            "Envelope sealed: plaintext_len=%d metadata_len=%d envelope_len=%d",
            len(plaintext),
            len(metadata_bytes),
            len(envelope),
        )
        return envelope


class EnvelopeDecryptor:
    """
    Open envelopes produced by EnvelopeEncryptor.

    The tag is verified over the exact metadata bytes before the metadata is
    parsed, so any change to nonce, metadata, ciphertext or tag surfaces as
    AuthenticationError rather than as a parse error.

    Example:
        decryptor = EnvelopeDecryptor(StaticKeySource(key))
        metadata, plaintext = decryptor.decrypt(envelope)
    """

    def __init__(
        self,
        key_source: KeySource,
        engine: CipherEngine | None = None,
        *,
        max_size: int = MAX_PLAINTEXT_SIZE,
    ) -> None:
        """
        Initialize envelope decryptor.

        Args:
            key_source: Supplies the 32-byte key
            engine: Cipher engine (default: load_engine())
            max_size: Largest plaintext accepted, in bytes

        Raises:
            EngineUnavailableError: If no engine is given and none can be loaded
        """
        self._key_source = key_source
        self._engine = engine if engine is not None else load_engine()
        self.max_size = max_size

    def decrypt(self, data: bytes) -> OpenedEnvelope:
        """
        Verify and open an envelope.

        Args:
            data: Envelope bytes

        Returns:
            OpenedEnvelope(metadata, plaintext)

        Raises:
            PayloadTooLargeError: If the envelope exceeds the size limit
            FormatError: Bad magic, unsupported version, or trailing bytes
            TruncatedInputError: A length field exceeds the remaining bytes
            AuthenticationError: Tag verification failed
            MetadataError: Authenticated metadata is malformed or disagrees with the plaintext size
        """
        limit = self.max_size + envelope_overhead(MAX_METADATA_SIZE)
        if len(data) > limit:
            raise PayloadTooLargeError(len(data), limit)

        try:
            raw = split_envelope(data)
            plaintext = self._engine.open(
                self._key_source.get_key(),
                raw.nonce,
                raw.ciphertext,
                raw.tag,
                raw.metadata_bytes,
            )
        except EnvelopeError as e:
            _logger.debug("Envelope rejected: envelope_len=%d error_type=%s", len(data), type(e).__name__)
            raise

        metadata = Metadata.from_bytes(raw.metadata_bytes)
        if metadata.size != len(plaintext):
            raise MetadataError(f"Metadata size {metadata.size} does not match plaintext size {len(plaintext)}")

        _logger.debug("Envelope opened: envelope_len=%d plaintext_len=%d", len(data), len(plaintext))
        return OpenedEnvelope(metadata=metadata, plaintext=plaintext)


def seal_envelope(
    key: bytes,
    plaintext: bytes,
    metadata: Metadata,
    *,
    nonce: bytes | None = None,
    engine: CipherEngine | None = None,
) -> bytes:
    """
    Seal with a raw key in one call.

    See EnvelopeEncryptor.encrypt(). A nonce must never be reused with the
    same key; omit it to get a fresh random one.
    """
    return EnvelopeEncryptor(StaticKeySource(key), engine).encrypt(plaintext, metadata, nonce=nonce)


def open_envelope(
    key: bytes,
    data: bytes,
    *,
    engine: CipherEngine | None = None,
) -> OpenedEnvelope:
    """Open with a raw key in one call. See EnvelopeDecryptor.decrypt()."""
    return EnvelopeDecryptor(StaticKeySource(key), engine).decrypt(data)
