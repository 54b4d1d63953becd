"""
Exception hierarchy for tdf_envelope.

All errors inherit from EnvelopeError for easy catching.
"""


class EnvelopeError(Exception):
    """Base exception for all envelope errors."""


class FormatError(EnvelopeError):
    """Not an envelope this implementation can read.

    Possible causes:
    - Wrong magic bytes
    - Unsupported version
    - Trailing bytes after the tag
    - Wrong-size nonce or tag handed to the encoder
    """


class TruncatedInputError(FormatError):
    """A length field points past the end of the buffer.

    Raised for every strict prefix of a valid envelope.
    """

    def __init__(self, field: str, needed: int, available: int) -> None:
        self.field = field
        self.needed = needed
        self.available = available
        super().__init__(f"Envelope truncated in {field}: need {needed} bytes, have {available}")


class MetadataError(EnvelopeError):
    """Metadata block is not a valid structured record.

    The block must be a UTF-8 JSON object with the required fields.
    """


class InvalidKeyError(EnvelopeError):
    """Key is missing, undecodable, or has the wrong length for the cipher engine."""

    def __init__(self, expected: int, received: int, reason: str | None = None) -> None:
        self.expected = expected
        self.received = received
        super().__init__(reason or f"Invalid key length: expected {expected} bytes, got {received}")


class InvalidNonceError(EnvelopeError):
    """Nonce has the wrong length for the cipher engine."""

    def __init__(self, expected: int, received: int) -> None:
        self.expected = expected
        self.received = received
        super().__init__(f"Invalid nonce length: expected {expected} bytes, got {received}")


class AuthenticationError(EnvelopeError):
    """Authentication tag verification failed.

    Possible causes:
    - Wrong key
    - Modified nonce, metadata, ciphertext or tag
    """

    def __init__(self) -> None:
        # Same message for every cause so callers cannot tell them apart
        super().__init__("Envelope authentication failed")


class PayloadTooLargeError(EnvelopeError):
    """Input exceeds the configured in-memory size limit."""

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"Payload too large: {size} bytes (limit {limit})")


class EngineUnavailableError(EnvelopeError):
    """No cipher engine could be loaded at startup.

    There is no fallback; encryption is unavailable until the crypto
    backend provides the required primitive.
    """
