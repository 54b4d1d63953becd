"""
Authenticated encrypted envelopes for files.

Seals a file's bytes with ChaCha20-Poly1305 (RFC 8439) into a self-describing
binary envelope. The file's metadata (name, size, content type, creation
time) travels in the clear but is bound to the ciphertext by the
authentication tag. Keys are supplied by the application through a KeySource.

Usage:
    from tdf_envelope import EnvelopeDecryptor, EnvelopeEncryptor, Metadata, StaticKeySource

    keys = StaticKeySource(key)
    envelope = EnvelopeEncryptor(keys).encrypt(data, Metadata(filename="a.txt", content_type="text/plain"))
    metadata, plaintext = EnvelopeDecryptor(keys).decrypt(envelope)

Never seal two plaintexts under the same (key, nonce) pair. EnvelopeEncryptor
draws a fresh random nonce for every envelope unless one is passed explicitly.
"""

from tdf_envelope.cipher import ChaCha20Poly1305Engine, CipherEngine, load_engine
from tdf_envelope.constants import ENVELOPE_MAGIC, ENVELOPE_VERSION, KEY_SIZE, NONCE_SIZE, TAG_SIZE
from tdf_envelope.core import EnvelopeDecryptor, EnvelopeEncryptor, OpenedEnvelope, open_envelope, seal_envelope
from tdf_envelope.envelope import decode_envelope, encode_envelope
from tdf_envelope.exceptions import (
    AuthenticationError,
    EngineUnavailableError,
    EnvelopeError,
    FormatError,
    InvalidKeyError,
    InvalidNonceError,
    MetadataError,
    PayloadTooLargeError,
    TruncatedInputError,
)
from tdf_envelope.keys import EnvKeySource, KeySource, StaticKeySource, generate_key
from tdf_envelope.metadata import Metadata

__all__ = [
    # Constants
    "ENVELOPE_MAGIC",
    "ENVELOPE_VERSION",
    "KEY_SIZE",
    "NONCE_SIZE",
    "TAG_SIZE",
    # Exceptions
    "AuthenticationError",
    "EngineUnavailableError",
    "EnvelopeError",
    "FormatError",
    "InvalidKeyError",
    "InvalidNonceError",
    "MetadataError",
    "PayloadTooLargeError",
    "TruncatedInputError",
    # Codec
    "Metadata",
    "decode_envelope",
    "encode_envelope",
    # Engine
    "ChaCha20Poly1305Engine",
    "CipherEngine",
    "load_engine",
    # Keys
    "EnvKeySource",
    "KeySource",
    "StaticKeySource",
    "generate_key",
    # Workflow
    "EnvelopeDecryptor",
    "EnvelopeEncryptor",
    "OpenedEnvelope",
    "open_envelope",
    "seal_envelope",
]

__version__ = "0.1.0"
