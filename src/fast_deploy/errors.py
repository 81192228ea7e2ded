"""Error taxonomy for fast-deploy.

Every failure raised by the package derives from :class:`FastDeployError`.
Failures coming from the remote side are :class:`TransportError` instances
built from the raw paramiko/socket exception, which stays attached as
``__cause__``.
"""

from __future__ import annotations

import errno
import socket
from enum import Enum
from typing import Optional

import paramiko
from paramiko.ssh_exception import NoValidConnectionsError

CLIENT_AUTHENTICATION = "client-authentication"


class ErrorCode(str, Enum):
    """Normalized failure codes attached to transport errors."""

    PERMISSION_DENIED = "permission-denied"
    HOST_NOT_FOUND = "host-not-found"
    CONNECTION_TIMED_OUT = "connection-timed-out"
    CONNECTION_REFUSED = "connection-refused"
    NO_SUCH_FILE = "no-such-file"


class FastDeployError(Exception):
    """Base exception for all fast-deploy errors."""

    def __init__(self, message: str, context: Optional[str] = None):
        self.message = message
        self.context = context
        # Set by the orchestrator to the stage the failure happened in.
        self.stage: Optional[str] = None
        super().__init__(self.format_message())

    def format_message(self) -> str:
        if self.context:
            return f"{self.message} ({self.context})"
        return self.message


class ConfigurationError(FastDeployError):
    """Raised when the deployment configuration is missing or invalid."""


class LocalPreconditionError(FastDeployError):
    """Raised when something on the invoking machine is not usable."""


class TransportError(FastDeployError):
    """Raised when an SFTP/SSH operation fails."""

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        code: Optional[ErrorCode] = None,
        level: Optional[str] = None,
        context: Optional[str] = None,
    ):
        self.operation = operation
        self.code = code
        self.level = level
        super().__init__(message, context)

    @classmethod
    def from_exception(
        cls, exc: BaseException, operation: str, context: Optional[str] = None
    ) -> "TransportError":
        message = str(exc) or type(exc).__name__
        return cls(
            message,
            operation=operation,
            code=error_code_for(exc),
            level=error_level_for(exc),
            context=context,
        )


class TeardownError(TransportError):
    """Raised when the SFTP session cannot be closed cleanly."""


_ERRNO_CODES = {
    errno.EACCES: ErrorCode.PERMISSION_DENIED,
    errno.EPERM: ErrorCode.PERMISSION_DENIED,
    errno.ENOENT: ErrorCode.NO_SUCH_FILE,
    errno.ECONNREFUSED: ErrorCode.CONNECTION_REFUSED,
    errno.ETIMEDOUT: ErrorCode.CONNECTION_TIMED_OUT,
}


def error_code_for(exc: BaseException) -> Optional[ErrorCode]:
    """Derive an :class:`ErrorCode` from a raw or already wrapped exception."""
    if isinstance(exc, TransportError):
        return exc.code
    if isinstance(exc, socket.gaierror):
        return ErrorCode.HOST_NOT_FOUND
    if isinstance(exc, (socket.timeout, TimeoutError)):
        return ErrorCode.CONNECTION_TIMED_OUT
    if isinstance(exc, NoValidConnectionsError):
        # paramiko aggregates one socket error per resolved address
        codes = {error_code_for(err) for err in exc.errors.values()}
        if codes == {ErrorCode.CONNECTION_TIMED_OUT}:
            return ErrorCode.CONNECTION_TIMED_OUT
        return ErrorCode.CONNECTION_REFUSED
    if isinstance(exc, OSError) and exc.errno is not None:
        return _ERRNO_CODES.get(exc.errno)
    return None


def error_level_for(exc: BaseException) -> Optional[str]:
    if isinstance(exc, TransportError):
        return exc.level
    if isinstance(exc, paramiko.AuthenticationException):
        return CLIENT_AUTHENTICATION
    return None
