"""File naming conventions for fast-deploy.

Configuration lives next to the project being deployed:
- .fastdeploy          # default configuration
- .fastdeploy.<mode>   # per-environment configuration (dev, test, uat, prod)
"""

from pathlib import Path
from typing import Optional

BASE_CONFIG_NAME = ".fastdeploy"
GITIGNORE_PATTERN = ".fastdeploy*"
KNOWN_MODES = ("dev", "test", "uat", "prod")


def config_name_for(mode: Optional[str] = None) -> str:
    """Return the config file name for ``mode`` (``.fastdeploy.<mode>``)."""
    if not mode:
        return BASE_CONFIG_NAME
    return f"{BASE_CONFIG_NAME}.{mode}"


def resolve_against(cwd: Path, path: str) -> Path:
    """Resolve ``path`` relative to ``cwd`` unless it is already absolute."""
    candidate = Path(path).expanduser()
    if not candidate.is_absolute():
        candidate = cwd / candidate
    return candidate.resolve()
