"""Logging helpers."""

from __future__ import annotations

import logging
from typing import Optional

_LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s - %(message)s"
_LOGGING_CONFIGURED = False


def get_logger(name: Optional[str] = None) -> logging.Logger:
    global _LOGGING_CONFIGURED
    if not _LOGGING_CONFIGURED:
        logging.basicConfig(level=logging.WARNING, format=_LOG_FORMAT)
        _LOGGING_CONFIGURED = True
    return logging.getLogger(name)


def configure_logging(verbose: bool = False) -> None:
    """Set the root level; ``--verbose`` exposes transport tracing."""
    get_logger()
    logging.getLogger().setLevel(logging.DEBUG if verbose else logging.WARNING)
    # paramiko packet traces stay out of --verbose
    logging.getLogger("paramiko").setLevel(logging.INFO if verbose else logging.WARNING)
