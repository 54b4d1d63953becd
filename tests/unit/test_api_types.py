"""API type contract tests.

These tests verify that public APIs maintain their type signatures.
Uses typing_extensions.assert_type for STATIC type checking by pyright.

If someone changes a return type, pyright will fail BEFORE tests run.
"""

from typing_extensions import assert_type

from tdf_envelope.cipher import ChaCha20Poly1305Engine
from tdf_envelope.core import EnvelopeDecryptor, EnvelopeEncryptor, OpenedEnvelope
from tdf_envelope.envelope import DecodedEnvelope, decode_envelope
from tdf_envelope.keys import StaticKeySource
from tdf_envelope.metadata import Metadata

KEY = b"k" * 32
NONCE = b"n" * 12


class TestCipherEngineTypes:
    """Verify ChaCha20Poly1305Engine type contracts."""

    def test_seal_returns_bytes_pair(self) -> None:
        """seal must return (ciphertext, tag) as bytes."""
        result = ChaCha20Poly1305Engine().seal(KEY, NONCE, b"hello", b"")

        assert_type(result, tuple[bytes, bytes])
        assert isinstance(result, tuple)
        assert all(isinstance(part, bytes) for part in result)

    def test_open_returns_bytes(self) -> None:
        """open must return bytes."""
        engine = ChaCha20Poly1305Engine()
        ciphertext, tag = engine.seal(KEY, NONCE, b"hello", b"")

        result = engine.open(KEY, NONCE, ciphertext, tag, b"")

        assert_type(result, bytes)
        assert isinstance(result, bytes)


class TestWorkflowTypes:
    """Verify EnvelopeEncryptor / EnvelopeDecryptor type contracts."""

    def test_encrypt_returns_bytes(self) -> None:
        """encrypt must return envelope bytes."""
        encryptor = EnvelopeEncryptor(StaticKeySource(KEY), ChaCha20Poly1305Engine())

        result = encryptor.encrypt(b"hello", Metadata(filename="a.txt"))

        assert_type(result, bytes)
        assert isinstance(result, bytes)

    def test_decrypt_returns_opened_envelope(self) -> None:
        """decrypt must return OpenedEnvelope with typed fields."""
        keys = StaticKeySource(KEY)
        envelope = EnvelopeEncryptor(keys, ChaCha20Poly1305Engine()).encrypt(b"hello", Metadata(filename="a.txt"))

        result = EnvelopeDecryptor(keys, ChaCha20Poly1305Engine()).decrypt(envelope)

        assert_type(result, OpenedEnvelope)
        assert_type(result.metadata, Metadata)
        assert_type(result.plaintext, bytes)
        assert isinstance(result.plaintext, bytes)


class TestCodecTypes:
    """Verify codec type contracts."""

    def test_decode_returns_decoded_envelope(self) -> None:
        """decode_envelope must return DecodedEnvelope."""
        envelope = EnvelopeEncryptor(StaticKeySource(KEY), ChaCha20Poly1305Engine()).encrypt(
            b"hello", Metadata(filename="a.txt")
        )

        result = decode_envelope(envelope)

        assert_type(result, DecodedEnvelope)
        assert isinstance(result.metadata, Metadata)
