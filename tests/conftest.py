"""Shared test fixtures for tdf_envelope tests."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import pytest

from tdf_envelope.cipher import ChaCha20Poly1305Engine
from tdf_envelope.constants import LENGTH_PREFIX_SIZE, NONCE_SIZE, TAG_SIZE
from tdf_envelope.core import EnvelopeDecryptor, EnvelopeEncryptor
from tdf_envelope.keys import StaticKeySource
from tdf_envelope.metadata import Metadata

# Enable tdf_envelope debug logging during tests
logging.getLogger("tdf_envelope").setLevel(logging.DEBUG)
logging.getLogger("tdf_envelope").addHandler(logging.StreamHandler())


# Fixed creation time so serialized metadata (and sealed output) is reproducible
TEST_CREATED_AT = 1_700_000_000_000


# === Key Fixtures ===


@pytest.fixture(scope="session")
def test_key() -> bytes:
    """Fixed 32-byte test key. Deterministic for known-answer tests."""
    return bytes(range(32))


@pytest.fixture
def wrong_key() -> bytes:
    """A valid-length key that differs from test_key.

    Use for testing authentication failures due to wrong key (not invalid key).
    """
    return b"wrong-key-but-still-32-bytes!!!!"


@pytest.fixture(scope="session")
def test_nonce() -> bytes:
    """Fixed 12-byte nonce. Only ever reused here to check determinism."""
    return b"\x00\x01\x02\x03\x04\x05\x06\x07\x08\x09\x0a\x0b"


@pytest.fixture
def key_source(test_key: bytes) -> StaticKeySource:
    """Key source returning test_key."""
    return StaticKeySource(test_key)


# === Engine / Workflow Fixtures ===


@pytest.fixture(scope="session")
def engine() -> ChaCha20Poly1305Engine:
    """Shared cipher engine (stateless)."""
    return ChaCha20Poly1305Engine()


@pytest.fixture
def encryptor(key_source: StaticKeySource, engine: ChaCha20Poly1305Engine) -> EnvelopeEncryptor:
    """Encryptor bound to test_key."""
    return EnvelopeEncryptor(key_source, engine)


@pytest.fixture
def decryptor(key_source: StaticKeySource, engine: ChaCha20Poly1305Engine) -> EnvelopeDecryptor:
    """Decryptor bound to test_key."""
    return EnvelopeDecryptor(key_source, engine)


# === Metadata Fixtures ===


@pytest.fixture
def metadata_factory() -> Callable[..., Metadata]:
    """Factory for metadata with a fixed creation time.

    Usage:
        def test_something(metadata_factory):
            metadata = metadata_factory("a.txt", content_type="text/plain")
    """

    def _make_metadata(filename: str = "a.txt", **kwargs: Any) -> Metadata:
        kwargs.setdefault("created_at", TEST_CREATED_AT)
        return Metadata(filename=filename, **kwargs)

    return _make_metadata


@pytest.fixture
def hello_metadata(metadata_factory: Callable[..., Metadata]) -> Metadata:
    """Metadata for the 'hello' / a.txt example scenario."""
    return metadata_factory("a.txt")


# === Envelope Layout Helpers ===


@dataclass
class EnvelopeLayout:
    """Byte ranges of each field in an encoded envelope.

    Example:
        layout = EnvelopeLayout.of(envelope)
        envelope[layout.ciphertext]  # ciphertext bytes
    """

    nonce: slice
    metadata: slice
    ciphertext: slice
    tag: slice

    @classmethod
    def of(cls, envelope: bytes) -> "EnvelopeLayout":
        """Compute field ranges by walking the length prefixes."""
        nonce_start = 5
        metadata_len_at = nonce_start + NONCE_SIZE
        metadata_start = metadata_len_at + LENGTH_PREFIX_SIZE
        metadata_len = int.from_bytes(envelope[metadata_len_at:metadata_start], "big")
        ciphertext_len_at = metadata_start + metadata_len
        ciphertext_start = ciphertext_len_at + LENGTH_PREFIX_SIZE
        ciphertext_len = int.from_bytes(envelope[ciphertext_len_at:ciphertext_start], "big")
        tag_start = ciphertext_start + ciphertext_len
        return cls(
            nonce=slice(nonce_start, metadata_len_at),
            metadata=slice(metadata_start, ciphertext_len_at),
            ciphertext=slice(ciphertext_start, tag_start),
            tag=slice(tag_start, tag_start + TAG_SIZE),
        )


def flip_bit(data: bytes, index: int, bit: int) -> bytes:
    """Return a copy of data with one bit inverted."""
    mutated = bytearray(data)
    mutated[index] ^= 1 << bit
    return bytes(mutated)


@pytest.fixture
def hello_envelope(encryptor: EnvelopeEncryptor, hello_metadata: Metadata, test_nonce: bytes) -> bytes:
    """Envelope sealing b"hello" with a.txt metadata under the fixed key and nonce."""
    return encryptor.encrypt(b"hello", hello_metadata, nonce=test_nonce)


@pytest.fixture
def layout() -> Callable[[bytes], EnvelopeLayout]:
    """Fixture exposing EnvelopeLayout.of."""
    return EnvelopeLayout.of


@pytest.fixture
def bit_flipper() -> Callable[[bytes, int, int], bytes]:
    """Fixture exposing flip_bit."""
    return flip_bit
