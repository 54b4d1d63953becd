"""Logging helpers for tdf_envelope.

The package logger carries a NullHandler so library use stays silent
unless the application configures logging.
"""

import logging

_PACKAGE_LOGGER = "tdf_envelope"

logging.getLogger(_PACKAGE_LOGGER).addHandler(logging.NullHandler())


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the tdf_envelope namespace."""
    if name != _PACKAGE_LOGGER and not name.startswith(_PACKAGE_LOGGER + "."):
        name = f"{_PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
