"""
Command line interface for sealing and opening files.

Usage:
    export TDF_ENVELOPE_KEY=$(tdf-envelope keygen)
    tdf-envelope encrypt report.pdf                 # -> report.pdf.tdfe
    tdf-envelope decrypt report.pdf.tdfe -o out.pdf
    tdf-envelope inspect report.pdf.tdfe

The key is read from the environment (base64url, 32 bytes); it is never
accepted as a command line argument.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from collections.abc import Sequence
from pathlib import Path

from tdf_envelope import __version__
from tdf_envelope._logging import get_logger
from tdf_envelope.constants import (
    ENV_KEY,
    ENV_MAX_SIZE,
    ENVELOPE_FILE_SUFFIX,
    MAX_METADATA_SIZE,
    MAX_PLAINTEXT_SIZE,
)
from tdf_envelope.core import EnvelopeDecryptor, EnvelopeEncryptor, metadata_for_file
from tdf_envelope.envelope import envelope_overhead, split_envelope
from tdf_envelope.exceptions import (
    AuthenticationError,
    EnvelopeError,
    FormatError,
    InvalidKeyError,
    MetadataError,
    PayloadTooLargeError,
)
from tdf_envelope.keys import EnvKeySource, encode_key, generate_key

__all__ = ["main"]

_logger = get_logger(__name__)

# Failures of an envelope to open share one message on the console
_OPEN_FAILED = "cannot open envelope: invalid, corrupted, or encrypted under a different key"


class CLIError(Exception):
    """Usage error reported on stderr with exit status 1."""


def _max_size() -> int:
    value = os.environ.get(ENV_MAX_SIZE)
    if not value:
        return MAX_PLAINTEXT_SIZE
    try:
        size = int(value)
    except ValueError as e:
        raise CLIError(f"{ENV_MAX_SIZE} must be an integer, got {value!r}") from e
    if size <= 0:
        raise CLIError(f"{ENV_MAX_SIZE} must be positive")
    return size


def _display(path: str | os.PathLike[str] | None) -> str:
    # Undecodable file name bytes are shown as U+FFFD
    if path is None:
        return ""
    return os.fsencode(path).decode("utf-8", "replace")


def _read_input(path: Path, limit: int) -> bytes:
    # Size is checked before the file is read into memory
    size = path.stat().st_size
    if size > limit:
        raise PayloadTooLargeError(size, limit)
    return path.read_bytes()


def _write_output(path: Path, data: bytes, force: bool) -> None:
    if path.exists() and not force:
        raise CLIError(f"{_display(path)} already exists (use --force to overwrite)")
    path.write_bytes(data)


def _cmd_encrypt(args: argparse.Namespace) -> int:
    source = Path(args.input)
    output = Path(args.output) if args.output else source.with_name(source.name + ENVELOPE_FILE_SUFFIX)

    max_size = _max_size()
    encryptor = EnvelopeEncryptor(EnvKeySource(args.key_env), max_size=max_size)
    envelope = encryptor.encrypt(_read_input(source, max_size), metadata_for_file(source, args.content_type))
    _write_output(output, envelope, args.force)

    print(f"Encrypted {_display(source)} -> {_display(output)}")
    return 0


def _safe_output_name(filename: str) -> str:
    # Stored names come from the envelope; never let them pick a directory
    name = Path(filename.replace("\\", "/")).name
    if name in ("", ".", ".."):
        raise CLIError("envelope does not name a usable output file; pass -o")
    return name


def _cmd_decrypt(args: argparse.Namespace) -> int:
    source = Path(args.input)
    max_size = _max_size()
    decryptor = EnvelopeDecryptor(EnvKeySource(args.key_env), max_size=max_size)
    data = _read_input(source, max_size + envelope_overhead(MAX_METADATA_SIZE))
    try:
        metadata, plaintext = decryptor.decrypt(data)
    except (AuthenticationError, FormatError, MetadataError) as e:
        _logger.debug("Decrypt failed: path=%s error_type=%s", _display(source), type(e).__name__)
        raise CLIError(_OPEN_FAILED) from e

    output = Path(args.output) if args.output else Path(_safe_output_name(metadata.filename))
    _write_output(output, plaintext, args.force)

    print(f"Decrypted {_display(source)} -> {_display(output)} ({metadata.size} bytes, {metadata.content_type})")
    return 0


def _cmd_inspect(args: argparse.Namespace) -> int:
    source = Path(args.input)
    raw = split_envelope(_read_input(source, _max_size() + envelope_overhead(MAX_METADATA_SIZE)))
    try:
        metadata = json.loads(raw.metadata_bytes.decode("utf-8"))
    except (ValueError, RecursionError):
        # Unauthenticated input, possibly hostile
        metadata = None

    print(f"version:        {raw.version}")
    print(f"nonce:          {raw.nonce.hex()}")
    print(f"metadata_len:   {len(raw.metadata_bytes)}")
    print(f"ciphertext_len: {len(raw.ciphertext)}")
    print(f"tag:            {raw.tag.hex()}")
    print("metadata (unverified):")
    if metadata is None:
        print("  <not valid JSON>")
    else:
        print(json.dumps(metadata, indent=2, sort_keys=True))
    return 0


def _cmd_keygen(args: argparse.Namespace) -> int:
    print(encode_key(generate_key()))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tdf-envelope",
        description="Seal and open files in authenticated encrypted envelopes.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--key-env",
        default=ENV_KEY,
        metavar="VAR",
        help=f"Environment variable holding the base64url key (default: {ENV_KEY})",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    encrypt = subparsers.add_parser("encrypt", help="Seal a file")
    encrypt.add_argument("input", help="File to encrypt")
    encrypt.add_argument("-o", "--output", help=f"Output path (default: INPUT{ENVELOPE_FILE_SUFFIX})")
    encrypt.add_argument("--content-type", help="MIME type to record (default: guessed from name)")
    encrypt.add_argument("-f", "--force", action="store_true", help="Overwrite an existing output file")
    encrypt.set_defaults(handler=_cmd_encrypt)

    decrypt = subparsers.add_parser("decrypt", help="Open an envelope")
    decrypt.add_argument("input", help="Envelope to decrypt")
    decrypt.add_argument("-o", "--output", help="Output path (default: stored file name)")
    decrypt.add_argument("-f", "--force", action="store_true", help="Overwrite an existing output file")
    decrypt.set_defaults(handler=_cmd_decrypt)

    inspect = subparsers.add_parser("inspect", help="Show envelope framing without decrypting")
    inspect.add_argument("input", help="Envelope to inspect")
    inspect.set_defaults(handler=_cmd_inspect)

    keygen = subparsers.add_parser("keygen", help="Print a new random base64url key")
    keygen.set_defaults(handler=_cmd_keygen)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the ``tdf-envelope`` console script."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )

    try:
        return args.handler(args)
    except InvalidKeyError as e:
        print(f"error: {e} (set {args.key_env} to a base64url 32-byte key)", file=sys.stderr)
    except (CLIError, EnvelopeError) as e:
        print(f"error: {e}", file=sys.stderr)
    except OSError as e:
        print(f"error: {e.strerror or e}: {_display(e.filename)}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
