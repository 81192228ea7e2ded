"""SSH credential helpers."""

from __future__ import annotations

import dataclasses
import io
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import paramiko

from ..config import ServerConfig
from ..errors import LocalPreconditionError
from ..paths import resolve_against

if TYPE_CHECKING:
    from ..diagnostics import DiagnosticsSink

_KEY_CLASSES = (paramiko.Ed25519Key, paramiko.ECDSAKey, paramiko.RSAKey)


def resolve_credentials(
    server: ServerConfig,
    cwd: Path,
    sink: Optional["DiagnosticsSink"] = None,
) -> ServerConfig:
    """Return a copy of ``server`` with ``private_key_path`` loaded.

    A missing key file only produces a warning; authentication then fails
    at connect time if nothing else is configured.
    """
    private_key = server.private_key
    if server.private_key_path and not private_key:
        key_path = resolve_against(cwd, server.private_key_path)
        if key_path.is_file():
            try:
                private_key = key_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                raise LocalPreconditionError(
                    f"Could not read private key file {key_path}", context=str(exc)
                ) from exc
        elif sink is not None:
            sink.warn(f"Warning: Private key file not found at {key_path}")
    return dataclasses.replace(server, private_key=private_key, private_key_path=None)


def load_private_key(material: str, passphrase: Optional[str] = None) -> paramiko.PKey:
    """Parse inline private key material into a paramiko key."""
    last_error: Optional[Exception] = None
    for key_class in _KEY_CLASSES:
        try:
            return key_class.from_private_key(io.StringIO(material), password=passphrase)
        except paramiko.PasswordRequiredException:
            raise
        except (paramiko.SSHException, ValueError) as exc:
            last_error = exc
    raise paramiko.SSHException(f"Unsupported or invalid private key: {last_error}")
