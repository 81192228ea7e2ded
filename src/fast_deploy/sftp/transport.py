"""SFTP transport built on Paramiko."""

from __future__ import annotations

import os
import posixpath
import stat
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

import paramiko

from ..config import ServerConfig
from ..errors import TeardownError, TransportError
from ..utils.logging import get_logger
from .credentials import load_private_key

logger = get_logger(__name__)

DEFAULT_CONNECT_TIMEOUT = 20


class Transport(ABC):
    """Remote file operations needed by a deployment."""

    @abstractmethod
    def connect(self, credentials: ServerConfig) -> None:
        pass

    @abstractmethod
    def exists(self, remote_path: str) -> bool:
        pass

    @abstractmethod
    def mkdir(self, remote_path: str, recursive: bool = False) -> None:
        pass

    @abstractmethod
    def rename(self, old_path: str, new_path: str) -> None:
        pass

    @abstractmethod
    def upload_directory(self, local_path: str, remote_path: str) -> int:
        """Recursively upload ``local_path``; returns the number of files sent."""

    @abstractmethod
    def disconnect(self) -> None:
        pass


class ParamikoTransport(Transport):
    """Transport backed by paramiko.SSHClient and its SFTP channel."""

    def __init__(
        self,
        *,
        client_factory: Callable[[], paramiko.SSHClient] | None = None,
        timeout: int = DEFAULT_CONNECT_TIMEOUT,
    ) -> None:
        self._client_factory = client_factory or paramiko.SSHClient
        self.timeout = timeout
        self._client: Optional[paramiko.SSHClient] = None
        self._sftp: Optional[paramiko.SFTPClient] = None

    @property
    def connected(self) -> bool:
        return self._sftp is not None

    def connect(self, credentials: ServerConfig) -> None:
        if self._client:
            return
        client = self._client_factory()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            connect_kwargs: Dict[str, Any] = {
                "hostname": credentials.host,
                "port": credentials.port,
                "username": credentials.username,
                "timeout": self.timeout,
                "look_for_keys": False,
                "allow_agent": False,
            }
            if credentials.password:
                connect_kwargs["password"] = credentials.password
            if credentials.private_key:
                connect_kwargs["pkey"] = load_private_key(
                    credentials.private_key, credentials.passphrase
                )
            logger.debug("Opening SSH connection to %s:%s", credentials.host, credentials.port)
            client.connect(**connect_kwargs)
            sftp = client.open_sftp()
        except (paramiko.SSHException, OSError) as exc:
            client.close()
            raise TransportError.from_exception(
                exc, "connect", context=f"{credentials.host}:{credentials.port}"
            ) from exc
        self._client = client
        self._sftp = sftp

    def exists(self, remote_path: str) -> bool:
        sftp = self._require_sftp("exists")
        logger.debug("stat %s", remote_path)
        try:
            sftp.stat(remote_path)
        except FileNotFoundError:
            return False
        except (paramiko.SSHException, OSError) as exc:
            raise TransportError.from_exception(exc, "exists", context=remote_path) from exc
        return True

    def mkdir(self, remote_path: str, recursive: bool = False) -> None:
        sftp = self._require_sftp("mkdir")
        if not recursive:
            self._mkdir_one(sftp, remote_path)
            return
        current = "/" if remote_path.startswith("/") else ""
        for part in remote_path.split("/"):
            if not part:
                continue
            current = posixpath.join(current, part)
            if not self._is_dir(sftp, current):
                self._mkdir_one(sftp, current)

    def rename(self, old_path: str, new_path: str) -> None:
        sftp = self._require_sftp("rename")
        logger.debug("rename %s -> %s", old_path, new_path)
        try:
            sftp.rename(old_path, new_path)
        except (paramiko.SSHException, OSError) as exc:
            raise TransportError.from_exception(
                exc, "rename", context=f"{old_path} -> {new_path}"
            ) from exc

    def upload_directory(self, local_path: str, remote_path: str) -> int:
        sftp = self._require_sftp("upload")
        self.mkdir(remote_path, recursive=True)
        uploaded = 0
        for dirpath, dirnames, filenames in os.walk(local_path, onerror=_raise_walk_error):
            dirnames.sort()
            relative = os.path.relpath(dirpath, local_path)
            remote_dir = remote_path
            if relative != os.curdir:
                remote_dir = posixpath.join(remote_path, *relative.split(os.sep))
                self._mkdir_one(sftp, remote_dir, allow_existing=True)
            for filename in sorted(filenames):
                source = os.path.join(dirpath, filename)
                target = posixpath.join(remote_dir, filename)
                logger.debug("put %s -> %s", source, target)
                try:
                    sftp.put(source, target)
                except (paramiko.SSHException, OSError) as exc:
                    raise TransportError.from_exception(exc, "upload", context=target) from exc
                uploaded += 1
        return uploaded

    def disconnect(self) -> None:
        sftp, client = self._sftp, self._client
        self._sftp = None
        self._client = None
        if client is None:
            return
        logger.debug("Closing SFTP session")
        try:
            if sftp is not None:
                sftp.close()
        except (paramiko.SSHException, OSError) as exc:
            raise TeardownError.from_exception(exc, "disconnect") from exc
        finally:
            client.close()

    def _require_sftp(self, operation: str) -> paramiko.SFTPClient:
        if self._sftp is None:
            raise TransportError("SFTP session is not connected", operation=operation)
        return self._sftp

    def _is_dir(self, sftp: paramiko.SFTPClient, remote_path: str) -> bool:
        try:
            attrs = sftp.stat(remote_path)
        except FileNotFoundError:
            return False
        except (paramiko.SSHException, OSError) as exc:
            raise TransportError.from_exception(exc, "mkdir", context=remote_path) from exc
        if attrs.st_mode is not None and not stat.S_ISDIR(attrs.st_mode):
            raise TransportError(
                "Remote path exists and is not a directory",
                operation="mkdir",
                context=remote_path,
            )
        return True

    def _mkdir_one(
        self, sftp: paramiko.SFTPClient, remote_path: str, allow_existing: bool = False
    ) -> None:
        logger.debug("mkdir %s", remote_path)
        try:
            sftp.mkdir(remote_path)
        except (paramiko.SSHException, OSError) as exc:
            if allow_existing and self._is_dir(sftp, remote_path):
                return
            raise TransportError.from_exception(exc, "mkdir", context=remote_path) from exc


def _raise_walk_error(exc: OSError) -> None:
    # os.walk skips unlistable directories unless onerror raises
    raise TransportError.from_exception(exc, "upload", context=exc.filename) from exc
