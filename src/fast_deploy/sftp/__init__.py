"""SFTP utilities for fast-deploy."""

from .credentials import load_private_key, resolve_credentials
from .transport import DEFAULT_CONNECT_TIMEOUT, ParamikoTransport, Transport

__all__ = [
    "DEFAULT_CONNECT_TIMEOUT",
    "ParamikoTransport",
    "Transport",
    "load_private_key",
    "resolve_credentials",
]
