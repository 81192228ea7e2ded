"""Deployment orchestration for fast-deploy."""

from .deployer import Deployer, backup_target_for, backup_timestamp, deploy
from .models import DeployReport, DeployStage

__all__ = [
    "DeployReport",
    "DeployStage",
    "Deployer",
    "backup_target_for",
    "backup_timestamp",
    "deploy",
]
