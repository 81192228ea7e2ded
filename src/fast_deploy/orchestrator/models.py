"""Data models for the deployment orchestrator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class DeployStage(str, Enum):
    """Steps of a deployment, in execution order."""

    VALIDATE = "validate"
    CREDENTIALS = "credentials"
    CONNECT = "connect"
    LOCAL_CHECK = "local-check"
    BACKUP = "backup"
    UPLOAD = "upload"


@dataclass
class DeployReport:
    """Outcome of a successful deployment."""

    host: str
    local_path: str
    remote_path: str
    backup_target: Optional[str] = None
    files_uploaded: int = 0

