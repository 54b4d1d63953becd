"""
Text encoding helpers for keys and nonces.

Uses base64url encoding (RFC 4648 §5) so keys survive environment
variables, shells and config files unchanged.
"""

import base64
import binascii

__all__ = [
    "b64url_decode",
    "b64url_encode",
]

_B64_PAD_SIZE = 4  # Base64 padding block size


def b64url_encode(data: bytes) -> str:
    """
    Encode bytes to base64url string without padding.

    Args:
        data: Raw bytes to encode

    Returns:
        base64url encoded string (no padding)
    """
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(s: str) -> bytes:
    """
    Decode base64url string to bytes.

    Handles missing padding automatically. Rejects characters outside the
    base64url alphabet instead of silently dropping them.

    Args:
        s: base64url encoded string (with or without padding)

    Returns:
        Decoded bytes

    Raises:
        ValueError: If the string is not valid base64url
    """
    s = s.strip()
    # Add padding if needed (base64 uses 4-byte blocks)
    padding = len(s) % _B64_PAD_SIZE
    if padding:
        s += "=" * (_B64_PAD_SIZE - padding)
    try:
        return base64.b64decode(s, altchars=b"-_", validate=True)
    except binascii.Error as e:
        raise ValueError("Invalid base64url data") from e
