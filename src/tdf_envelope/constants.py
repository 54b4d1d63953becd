"""
Constants for the tdf_envelope container format.

Envelope layout:
┌───────┬─────────┬───────┬──────────────┬──────────┬────────────────┬────────────┬─────┐
│ Magic │ Version │ Nonce │ Metadata len │ Metadata │ Ciphertext len │ Ciphertext │ Tag │
│ (4B)  │  (1B)   │ (12B) │  (4B, BE)    │   (N)    │   (4B, BE)     │    (M)     │(16B)│
└───────┴─────────┴───────┴──────────────┴──────────┴────────────────┴────────────┴─────┘
"""

from typing import Final

# =============================================================================
# Envelope framing
# =============================================================================

ENVELOPE_MAGIC: Final[bytes] = b"TDFE"
"""Format identifier at offset 0."""

ENVELOPE_VERSION: Final[int] = 0x01
"""Only supported format revision. Decoders fail closed on anything else."""

MAGIC_SIZE: Final[int] = len(ENVELOPE_MAGIC)
VERSION_SIZE: Final[int] = 1
LENGTH_PREFIX_SIZE: Final[int] = 4
ENVELOPE_PREFIX_SIZE: Final[int] = MAGIC_SIZE + VERSION_SIZE
"""Magic + version, validated before anything else is read."""

MAX_LENGTH_FIELD: Final[int] = 0xFFFFFFFF
"""Largest value a 4-byte big-endian length prefix can carry."""

# =============================================================================
# ChaCha20-Poly1305 (RFC 8439)
# =============================================================================

CHACHA20_POLY1305_KEY_SIZE: Final[int] = 32
CHACHA20_POLY1305_NONCE_SIZE: Final[int] = 12
CHACHA20_POLY1305_TAG_SIZE: Final[int] = 16

KEY_SIZE: Final[int] = CHACHA20_POLY1305_KEY_SIZE
NONCE_SIZE: Final[int] = CHACHA20_POLY1305_NONCE_SIZE
TAG_SIZE: Final[int] = CHACHA20_POLY1305_TAG_SIZE

ENVELOPE_FIXED_OVERHEAD: Final[int] = (
    ENVELOPE_PREFIX_SIZE + NONCE_SIZE + LENGTH_PREFIX_SIZE + LENGTH_PREFIX_SIZE + TAG_SIZE
)
"""Bytes added to metadata + ciphertext by the framing (41 bytes)."""

# =============================================================================
# Limits
# =============================================================================

MAX_METADATA_SIZE: Final[int] = 64 * 1024
"""Serialized metadata larger than this is rejected on encode and decode."""

MAX_PLAINTEXT_SIZE: Final[int] = 64 * 1024 * 1024
"""Default in-memory bound for a single sealed payload (64MB).

Everything is held in memory at once; callers with larger inputs must chunk.
"""

# =============================================================================
# Metadata
# =============================================================================

DEFAULT_CONTENT_TYPE: Final[str] = "application/octet-stream"

# =============================================================================
# Environment / CLI
# =============================================================================

ENV_KEY: Final[str] = "TDF_ENVELOPE_KEY"
"""Base64url-encoded 32-byte key read by EnvKeySource and the CLI."""

ENV_MAX_SIZE: Final[str] = "TDF_ENVELOPE_MAX_SIZE"
"""Optional override of the CLI's plaintext size limit in bytes."""

ENVELOPE_FILE_SUFFIX: Final[str] = ".tdfe"
