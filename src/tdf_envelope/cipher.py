"""
Authenticated encryption for envelope payloads.

ChaCha20-Poly1305 (RFC 8439) via the ``cryptography`` package:
- Key:   256-bit (32 bytes)
- Nonce:  96-bit (12 bytes)
- Tag:   128-bit (16 bytes)

The serialized metadata is passed as associated data: authenticated, not
encrypted.

NONCE REUSE IS FORBIDDEN. A (key, nonce) pair must never seal more than one
plaintext. Reuse leaks the XOR of the plaintexts and lets an attacker forge
tags. Engines do not and cannot detect reuse; guaranteeing uniqueness is the
caller's obligation (EnvelopeEncryptor draws a fresh random nonce per call).

Engines hold no state between calls and are safe to share across threads.
"""

from __future__ import annotations

from typing import Protocol

from cryptography.exceptions import InvalidTag, UnsupportedAlgorithm
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305

from tdf_envelope._logging import get_logger
from tdf_envelope.constants import (
    CHACHA20_POLY1305_KEY_SIZE,
    CHACHA20_POLY1305_NONCE_SIZE,
    CHACHA20_POLY1305_TAG_SIZE,
)
from tdf_envelope.exceptions import (
    AuthenticationError,
    EngineUnavailableError,
    InvalidKeyError,
    InvalidNonceError,
)

__all__ = [
    "ChaCha20Poly1305Engine",
    "CipherEngine",
    "load_engine",
]

_logger = get_logger(__name__)


class CipherEngine(Protocol):
    """AEAD primitive used to seal and open envelope payloads."""

    key_size: int
    nonce_size: int
    tag_size: int

    def seal(self, key: bytes, nonce: bytes, plaintext: bytes, associated_data: bytes) -> tuple[bytes, bytes]:
        """Encrypt plaintext and authenticate it with associated_data.

        Returns:
            Tuple of (ciphertext, tag)
        """
        ...

    def open(self, key: bytes, nonce: bytes, ciphertext: bytes, tag: bytes, associated_data: bytes) -> bytes:
        """Verify the tag, then decrypt.

        Returns:
            Plaintext
        """
        ...


class ChaCha20Poly1305Engine:
    """
    ChaCha20-Poly1305 cipher engine.

    Sealing is deterministic: identical (key, nonce, plaintext,
    associated_data) always produce identical (ciphertext, tag). That is
    exactly why a nonce must never be reused under the same key.

    Example:
        engine = ChaCha20Poly1305Engine()
        ciphertext, tag = engine.seal(key, nonce, b"hello", metadata_bytes)
        plaintext = engine.open(key, nonce, ciphertext, tag, metadata_bytes)
    """

    key_size = CHACHA20_POLY1305_KEY_SIZE
    nonce_size = CHACHA20_POLY1305_NONCE_SIZE
    tag_size = CHACHA20_POLY1305_TAG_SIZE

    def _cipher(self, key: bytes, nonce: bytes) -> ChaCha20Poly1305:
        """Check lengths at the boundary, then build the primitive."""
        if len(key) != self.key_size:
            raise InvalidKeyError(self.key_size, len(key))
        if len(nonce) != self.nonce_size:
            raise InvalidNonceError(self.nonce_size, len(nonce))
        return ChaCha20Poly1305(bytes(key))

    def seal(self, key: bytes, nonce: bytes, plaintext: bytes, associated_data: bytes) -> tuple[bytes, bytes]:
        """
        Encrypt and authenticate a payload.

        The caller must never reuse ``nonce`` with the same ``key``; reuse is
        not detected here.

        Args:
            key: 32-byte key
            nonce: 12-byte nonce, unique per key
            plaintext: Payload to encrypt
            associated_data: Authenticated but unencrypted data (serialized metadata)

        Returns:
            Tuple of (ciphertext, tag)

        Raises:
            InvalidKeyError: If key is not 32 bytes
            InvalidNonceError: If nonce is not 12 bytes
        """
        cipher = self._cipher(key, nonce)
        sealed = cipher.encrypt(bytes(nonce), bytes(plaintext), bytes(associated_data))
        split = len(sealed) - self.tag_size
        return sealed[:split], sealed[split:]

    def open(self, key: bytes, nonce: bytes, ciphertext: bytes, tag: bytes, associated_data: bytes) -> bytes:
        """
        Verify and decrypt a payload.

        The tag is checked in constant time over (nonce, ciphertext,
        associated_data) before any plaintext is produced. On failure no
        plaintext is returned.

        Args:
            key: 32-byte key
            nonce: 12-byte nonce used for sealing
            ciphertext: Encrypted payload
            tag: 16-byte authentication tag
            associated_data: The same associated data given to seal()

        Returns:
            Decrypted plaintext

        Raises:
            InvalidKeyError: If key is not 32 bytes
            InvalidNonceError: If nonce is not 12 bytes
            AuthenticationError: If the tag does not verify
        """
        cipher = self._cipher(key, nonce)
        if len(tag) != self.tag_size:
            # Same presentation as a tag mismatch
            _logger.debug("Authentication failed: tag_len=%d", len(tag))
            raise AuthenticationError()
        try:
            return cipher.decrypt(bytes(nonce), bytes(ciphertext) + bytes(tag), bytes(associated_data))
        except InvalidTag as e:
            _logger.debug("Authentication failed: ciphertext_len=%d", len(ciphertext))
            raise AuthenticationError() from e


def load_engine() -> ChaCha20Poly1305Engine:
    """
    Select the cipher engine at startup.

    Probes the crypto backend once. There is no fallback to a weaker
    engine: if ChaCha20-Poly1305 is unavailable, encryption is unavailable.

    Returns:
        A ready ChaCha20Poly1305Engine

    Raises:
        EngineUnavailableError: If the backend does not support ChaCha20-Poly1305
    """
    try:
        ChaCha20Poly1305(bytes(CHACHA20_POLY1305_KEY_SIZE))
    except UnsupportedAlgorithm as e:
        _logger.debug("Cipher engine unavailable: error_type=%s", type(e).__name__)
        raise EngineUnavailableError("ChaCha20-Poly1305 is not supported by the crypto backend") from e
    _logger.debug("Cipher engine loaded: aead=chacha20-poly1305")
    return ChaCha20Poly1305Engine()
