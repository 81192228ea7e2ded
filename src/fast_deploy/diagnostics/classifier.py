"""Maps deployment failures to actionable diagnostics."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from ..config import DEFAULT_PORT, ServerConfig
from ..errors import CLIENT_AUTHENTICATION, ErrorCode, error_code_for, error_level_for
from .sink import DiagnosticsSink

PERMISSION_DENIED_TEXT = "Permission denied"
AUTH_FAILED_TEXT = "All configured authentication methods failed"

_CONNECTION_CODES = frozenset(
    {
        ErrorCode.HOST_NOT_FOUND,
        ErrorCode.CONNECTION_TIMED_OUT,
        ErrorCode.CONNECTION_REFUSED,
    }
)


class DiagnosticCategory(str, Enum):
    REMOTE_PERMISSION_DENIED = "remote-permission-denied"
    AUTHENTICATION_FAILED = "authentication-failed"
    CONNECTION_FAILED = "connection-failed"


@dataclass
class Diagnostic:
    """A structured explanation of a classified failure."""

    category: DiagnosticCategory
    headline: str
    context: List[Tuple[str, str]] = field(default_factory=list)
    causes: List[str] = field(default_factory=list)
    advice: str = ""

    def emit(self, sink: DiagnosticsSink) -> None:
        sink.error(f"\nError: {self.headline}")
        for label, value in self.context:
            sink.error(f"{label}: {value}")
        sink.warn("Possible reasons:")
        for number, cause in enumerate(self.causes, 1):
            sink.warn(f"{number}. {cause}")
        if self.advice:
            sink.warn(f"{self.advice}\n")


def _permission_denied(error: BaseException, server: ServerConfig, remote_path: str) -> Optional[Diagnostic]:
    if PERMISSION_DENIED_TEXT not in str(error) and error_code_for(error) != ErrorCode.PERMISSION_DENIED:
        return None
    return Diagnostic(
        category=DiagnosticCategory.REMOTE_PERMISSION_DENIED,
        headline="Permission denied accessing or creating remote directory.",
        context=[("Target path", remote_path)],
        causes=[
            "The remote directory does not exist, and the current user does not have permission to create it.",
            "The current user does not have write permission for the existing remote directory.",
        ],
        advice="Please verify the remote path and user permissions on the server.",
    )


def _authentication_failed(error: BaseException, server: ServerConfig, remote_path: str) -> Optional[Diagnostic]:
    if AUTH_FAILED_TEXT not in str(error) and error_level_for(error) != CLIENT_AUTHENTICATION:
        return None
    return Diagnostic(
        category=DiagnosticCategory.AUTHENTICATION_FAILED,
        headline="SSH authentication failed.",
        context=[("Host", server.host), ("Username", server.username)],
        causes=[
            "Incorrect password or private key.",
            "Incorrect username.",
            "The server does not support the configured authentication method.",
        ],
        advice="Please verify your credentials and server configuration.",
    )


def _connection_failed(error: BaseException, server: ServerConfig, remote_path: str) -> Optional[Diagnostic]:
    if error_code_for(error) not in _CONNECTION_CODES:
        return None
    return Diagnostic(
        category=DiagnosticCategory.CONNECTION_FAILED,
        headline="Could not connect to server.",
        context=[("Host", server.host), ("Port", str(server.port or DEFAULT_PORT))],
        causes=[
            "The hostname or IP address is incorrect.",
            "The server is down or not reachable.",
            "The port is blocked by a firewall.",
        ],
        advice="Please check your network connection and server status.",
    )


Rule = Callable[[BaseException, ServerConfig, str], Optional[Diagnostic]]

# Evaluated in order; the first match wins.
DEFAULT_RULES: Tuple[Rule, ...] = (
    _permission_denied,
    _authentication_failed,
    _connection_failed,
)


class ErrorClassifier:
    """Explains failures without influencing what the deployer does next."""

    def __init__(self, sink: DiagnosticsSink, rules: Sequence[Rule] = DEFAULT_RULES) -> None:
        self.sink = sink
        self.rules = tuple(rules)

    def diagnose(self, error: BaseException, server: ServerConfig, remote_path: str) -> Optional[Diagnostic]:
        for rule in self.rules:
            diagnostic = rule(error, server, remote_path)
            if diagnostic is not None:
                return diagnostic
        return None

    def classify(self, error: BaseException, server: ServerConfig, remote_path: str) -> Optional[DiagnosticCategory]:
        """Emit the matching diagnostic and return its category.

        Unmatched errors produce no output; the caller still reports the
        raw error.
        """
        diagnostic = self.diagnose(error, server, remote_path)
        if diagnostic is None:
            return None
        diagnostic.emit(self.sink)
        return diagnostic.category
