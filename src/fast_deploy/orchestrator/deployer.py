"""Deployment orchestration: backup rotation and directory upload over SFTP."""

from __future__ import annotations

import posixpath
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterator, Optional

from ..config import DeployOptions, ServerConfig
from ..diagnostics import ConsoleDiagnostics, DiagnosticsSink, ErrorClassifier
from ..errors import ConfigurationError, FastDeployError, LocalPreconditionError
from ..paths import resolve_against
from ..sftp import ParamikoTransport, Transport, resolve_credentials
from ..utils.logging import get_logger
from .models import DeployReport, DeployStage

logger = get_logger(__name__)

BACKUP_TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M-%S"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def backup_timestamp(moment: datetime) -> str:
    """Render ``moment`` as a sortable name fragment without ``:`` or ``.``."""
    moment = moment.astimezone(timezone.utc)
    millis = moment.microsecond // 1000
    return f"{moment.strftime(BACKUP_TIMESTAMP_FORMAT)}-{millis:03d}Z"


def backup_target_for(remote_path: str, backup_path: str, moment: datetime) -> str:
    name = posixpath.basename(remote_path.rstrip("/")) or "root"
    return posixpath.join(backup_path, f"{name}-{backup_timestamp(moment)}")


class Deployer:
    """Runs one deployment at a time against a single remote host."""

    def __init__(
        self,
        *,
        transport_factory: Callable[[], Transport] | None = None,
        sink: Optional[DiagnosticsSink] = None,
        classifier: Optional[ErrorClassifier] = None,
        clock: Callable[[], datetime] = _utc_now,
        cwd: Optional[Path] = None,
    ) -> None:
        self._transport_factory = transport_factory or ParamikoTransport
        self.sink = sink or ConsoleDiagnostics()
        self.classifier = classifier or ErrorClassifier(self.sink)
        self._clock = clock
        self.cwd = Path(cwd) if cwd is not None else None

    def deploy(self, options: DeployOptions) -> DeployReport:
        """Deploy ``options.local_path`` to ``options.remote_path``.

        Raises:
            ConfigurationError: Before any network activity
            LocalPreconditionError: Local source or key file unusable
            TransportError: Any remote failure, after classification
        """
        cwd = self.cwd or Path.cwd()
        try:
            options.validate()
        except ConfigurationError as exc:
            exc.stage = DeployStage.VALIDATE.value
            self.sink.error(f"Error: {exc}")
            raise
        assert options.server is not None and options.remote_path is not None
        server = options.server
        remote_path = options.remote_path

        try:
            credentials = resolve_credentials(server, cwd, self.sink)
        except LocalPreconditionError as exc:
            self._report_failure(exc, DeployStage.CREDENTIALS, server, remote_path)
            raise

        with self._session() as transport:
            stage = DeployStage.CONNECT
            try:
                self.sink.info(f"Connecting to {credentials.host}...")
                transport.connect(credentials)
                self.sink.info("Connected.")

                stage = DeployStage.LOCAL_CHECK
                local_path = self._resolve_local_path(cwd, options.local_path)

                backup_target = None
                if options.backup_path:
                    stage = DeployStage.BACKUP
                    backup_target = self._rotate_backup(
                        transport, remote_path, options.backup_path
                    )

                stage = DeployStage.UPLOAD
                self.sink.info(f"Uploading {local_path} to {server.host}:{remote_path}...")
                uploaded = transport.upload_directory(str(local_path), remote_path)
            except Exception as exc:
                # classified before the session scope tears down
                self._report_failure(exc, stage, server, remote_path)
                raise

        self.sink.success("deploy completed successfully.")
        return DeployReport(
            host=server.host,
            local_path=str(local_path),
            remote_path=remote_path,
            backup_target=backup_target,
            files_uploaded=uploaded,
        )

    @contextmanager
    def _session(self) -> Iterator[Transport]:
        transport = self._transport_factory()
        try:
            yield transport
        finally:
            self._teardown(transport)

    def _teardown(self, transport: Transport) -> None:
        try:
            transport.disconnect()
        except Exception as exc:
            # never replaces the failure that triggered teardown
            logger.warning("Failed to close SFTP session: %s", exc)
            self.sink.warn(f"Warning: failed to close SFTP session: {exc}")

    def _resolve_local_path(self, cwd: Path, local_path: str) -> Path:
        resolved = resolve_against(cwd, local_path)
        if not resolved.exists():
            raise LocalPreconditionError(f"Local path does not exist: {resolved}")
        if not resolved.is_dir():
            raise LocalPreconditionError(f"Local path is not a directory: {resolved}")
        return resolved

    def _rotate_backup(
        self, transport: Transport, remote_path: str, backup_path: str
    ) -> Optional[str]:
        if not transport.exists(remote_path):
            self.sink.info(f"Remote path {remote_path} does not exist, skipping backup.")
            return None

        self.sink.info(f"Backing up {remote_path} to {backup_path}...")
        if not transport.exists(backup_path):
            transport.mkdir(backup_path, recursive=True)

        target = backup_target_for(remote_path, backup_path, self._clock())
        transport.rename(remote_path, target)
        self.sink.info(f"Backup created at {target}")
        return target

    def _report_failure(
        self,
        error: Exception,
        stage: DeployStage,
        server: ServerConfig,
        remote_path: str,
    ) -> None:
        if isinstance(error, FastDeployError) and error.stage is None:
            error.stage = stage.value
        logger.debug("Deployment failed during %s", stage.value, exc_info=error)
        self.classifier.classify(error, server, remote_path)
        self.sink.error(f"Deployment failed during {stage.value}: {error}")


def deploy(options: DeployOptions, **kwargs) -> DeployReport:
    """Programmatic entry point; see :class:`Deployer` for keyword arguments."""
    return Deployer(**kwargs).deploy(options)
