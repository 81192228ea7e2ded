"""Configuration model and loading utilities for fast-deploy."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError
from .paths import BASE_CONFIG_NAME, config_name_for, resolve_against

if TYPE_CHECKING:
    from .diagnostics import DiagnosticsSink

# Load .env file if it exists
load_dotenv()

DEFAULT_PORT = 22
DEFAULT_LOCAL_PATH = "dist"

# JSON key -> dataclass field
_SERVER_KEYS = {
    "host": "host",
    "port": "port",
    "username": "username",
    "password": "password",
    "privateKey": "private_key",
    "privateKeyPath": "private_key_path",
    "passphrase": "passphrase",
}

_OPTION_KEYS = {
    "localPath": "local_path",
    "remotePath": "remote_path",
    "backupPath": "backup_path",
}

# Environment variables (higher priority than the config file)
_ENV_OVERRIDES = {
    "FASTDEPLOY_HOST": "host",
    "FASTDEPLOY_PORT": "port",
    "FASTDEPLOY_USERNAME": "username",
    "FASTDEPLOY_PASSWORD": "password",
    "FASTDEPLOY_PRIVATE_KEY_PATH": "privateKeyPath",
    "FASTDEPLOY_PASSPHRASE": "passphrase",
}


@dataclass(frozen=True)
class ServerConfig:
    """Connection credentials for one remote host."""

    host: str
    username: str
    port: int = DEFAULT_PORT
    password: Optional[str] = field(default=None, repr=False)
    private_key: Optional[str] = field(default=None, repr=False)
    private_key_path: Optional[str] = None
    passphrase: Optional[str] = field(default=None, repr=False)

    @property
    def has_credentials(self) -> bool:
        return bool(self.password or self.private_key or self.private_key_path)

    def problems(self) -> List[str]:
        problems = []
        if not self.host:
            problems.append('server "host" is required')
        if not self.username:
            problems.append('server "username" is required')
        if not self.has_credentials:
            problems.append(
                'server needs one of "password", "privateKey" or "privateKeyPath"'
            )
        return problems

    def validate(self) -> None:
        problems = self.problems()
        if problems:
            raise ConfigurationError(
                "Invalid server configuration: " + "; ".join(problems)
            )

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ServerConfig":
        if not isinstance(payload, dict):
            raise ConfigurationError('"server" must be a JSON object')
        values = _pick(payload, _SERVER_KEYS, section="server")
        port = values.get("port", DEFAULT_PORT)
        if port is None:
            port = DEFAULT_PORT
        if isinstance(port, bool) or not isinstance(port, int):
            raise ConfigurationError(f'server "port" must be an integer, got {port!r}')
        return cls(
            host=values.get("host") or "",
            username=values.get("username") or "",
            port=port,
            password=values.get("password"),
            private_key=values.get("private_key"),
            private_key_path=values.get("private_key_path"),
            passphrase=values.get("passphrase"),
        )


@dataclass(frozen=True)
class DeployOptions:
    """One deployment request."""

    remote_path: Optional[str] = None
    server: Optional[ServerConfig] = None
    local_path: str = DEFAULT_LOCAL_PATH
    backup_path: Optional[str] = None

    def validate(self) -> None:
        """Raise :class:`ConfigurationError` unless the request is deployable."""
        if self.server is None or not self.remote_path:
            raise ConfigurationError('Config must contain "server" and "remotePath".')
        self.server.validate()

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "DeployOptions":
        if not isinstance(payload, dict):
            raise ConfigurationError("Configuration must be a JSON object")
        values = _pick(payload, _OPTION_KEYS, section="config")
        server_payload = payload.get("server")
        server = None
        if server_payload is not None:
            server = ServerConfig.from_dict(server_payload)
        return cls(
            remote_path=values.get("remote_path"),
            server=server,
            local_path=values.get("local_path") or DEFAULT_LOCAL_PATH,
            backup_path=values.get("backup_path") or None,
        )


def _pick(payload: Dict[str, Any], keys: Dict[str, str], section: str) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for json_key, field_name in keys.items():
        if json_key not in payload:
            continue
        value = payload[json_key]
        if field_name != "port" and value is not None and not isinstance(value, str):
            raise ConfigurationError(
                f'{section} "{json_key}" must be a string, got {type(value).__name__}'
            )
        values[field_name] = value
    return values


def find_config_file(
    cwd: Path,
    config: Optional[str] = None,
    mode: Optional[str] = None,
    sink: Optional["DiagnosticsSink"] = None,
) -> Path:
    """Locate the configuration file for this invocation.

    Args:
        cwd: Directory the tool was invoked from
        config: Explicit config path (``--config``), wins over ``mode``
        mode: Deployment mode; selects ``.fastdeploy.<mode>`` when present
        sink: Receives the fallback warning

    Returns:
        Absolute path of an existing configuration file

    Raises:
        ConfigurationError: If no configuration file exists
    """
    if config:
        path = resolve_against(cwd, config)
    elif mode:
        path = cwd / config_name_for(mode)
        if not path.is_file():
            if sink is not None:
                sink.warn(
                    f"Configuration file {path.name} not found. "
                    f"Falling back to default {BASE_CONFIG_NAME}."
                )
            path = cwd / BASE_CONFIG_NAME
    else:
        path = cwd / BASE_CONFIG_NAME

    if not path.is_file():
        raise ConfigurationError(f"Configuration file not found at {path}")
    return path


def load_config(path: Path) -> DeployOptions:
    """Load deployment options from the JSON file at ``path``.

    Environment variables (higher priority than config file):
    - FASTDEPLOY_HOST, FASTDEPLOY_PORT, FASTDEPLOY_USERNAME
    - FASTDEPLOY_PASSWORD, FASTDEPLOY_PRIVATE_KEY_PATH, FASTDEPLOY_PASSPHRASE
    """
    try:
        with Path(path).open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(
            "Error parsing configuration file. Make sure it is valid JSON.",
            context=f"{path}: {exc}",
        ) from exc
    except OSError as exc:
        raise ConfigurationError(
            f"Could not read configuration file {path}", context=str(exc)
        ) from exc

    if not isinstance(data, dict):
        raise ConfigurationError("Configuration must be a JSON object", context=str(path))

    return DeployOptions.from_dict(_apply_env_overrides(data))


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for env_name, json_key in _ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if not value:
            continue
        if json_key == "port":
            try:
                overrides[json_key] = int(value)
            except ValueError as exc:
                raise ConfigurationError(
                    f"{env_name} must be an integer, got {value!r}"
                ) from exc
        else:
            overrides[json_key] = value

    if not overrides:
        return data

    server = data.get("server")
    if server is not None and not isinstance(server, dict):
        return data
    merged = dict(data)
    merged["server"] = {**(server or {}), **overrides}
    return merged


__all__ = [
    "DEFAULT_LOCAL_PATH",
    "DEFAULT_PORT",
    "DeployOptions",
    "ServerConfig",
    "find_config_file",
    "load_config",
]
