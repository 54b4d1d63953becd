"""
Key sources.

Key provisioning is owned by the application: the envelope workflow only
asks a KeySource for the current key and never stores or derives keys
itself. The sources here cover wiring and tests; they are not a key
management system.
"""

from __future__ import annotations

import os
import secrets
from collections.abc import Mapping
from typing import Protocol

from tdf_envelope.constants import ENV_KEY, KEY_SIZE
from tdf_envelope.encoding import b64url_decode, b64url_encode
from tdf_envelope.exceptions import InvalidKeyError

__all__ = [
    "EnvKeySource",
    "KeySource",
    "StaticKeySource",
    "encode_key",
    "generate_key",
]


class KeySource(Protocol):
    """Supplies the symmetric key for sealing and opening."""

    def get_key(self) -> bytes:
        """Return the fixed-length key."""
        ...


def generate_key() -> bytes:
    """Generate a random 32-byte key (for tests and one-off use)."""
    return secrets.token_bytes(KEY_SIZE)


class StaticKeySource:
    """Key held in memory, handed in by the caller."""

    __slots__ = ("_key",)

    def __init__(self, key: bytes) -> None:
        """
        Args:
            key: 32-byte key

        Raises:
            InvalidKeyError: If key is not 32 bytes
        """
        if len(key) != KEY_SIZE:
            raise InvalidKeyError(KEY_SIZE, len(key))
        self._key = bytes(key)

    def get_key(self) -> bytes:
        return self._key

    def __repr__(self) -> str:
        return "StaticKeySource(key=<redacted>)"


class EnvKeySource:
    """
    Key read from an environment variable as base64url text.

    The variable is read on every call so a rotated value is picked up
    without rebuilding the source.

    Example:
        export TDF_ENVELOPE_KEY=$(tdf-envelope keygen)
    """

    def __init__(self, var: str = ENV_KEY, environ: Mapping[str, str] | None = None) -> None:
        """
        Args:
            var: Environment variable name
            environ: Mapping to read from (defaults to os.environ)
        """
        self.var = var
        self._environ = environ if environ is not None else os.environ

    def get_key(self) -> bytes:
        """
        Decode the key from the environment.

        Raises:
            InvalidKeyError: If the variable is unset, not base64url, or not 32 bytes
        """
        value = self._environ.get(self.var)
        if not value:
            raise InvalidKeyError(KEY_SIZE, 0, f"Key variable {self.var} is not set")
        try:
            key = b64url_decode(value)
        except ValueError as e:
            raise InvalidKeyError(KEY_SIZE, 0, f"Key variable {self.var} is not valid base64url") from e
        if len(key) != KEY_SIZE:
            raise InvalidKeyError(KEY_SIZE, len(key))
        return key


def encode_key(key: bytes) -> str:
    """Render a key as base64url text for EnvKeySource."""
    return b64url_encode(key)
