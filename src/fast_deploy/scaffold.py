"""Project scaffolding for ``fastdeploy init``."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from .diagnostics import DiagnosticsSink
from .paths import BASE_CONFIG_NAME, GITIGNORE_PATTERN

PUBLISH_SCRIPT = "fastdeploy"

DEFAULT_CONFIG: Dict[str, Any] = {
    "localPath": "dist",
    "remotePath": "/var/www/html/my-app",
    "server": {
        "host": "192.168.1.100",
        "username": "user",
        "password": "password",
        "port": 22,
    },
    "backupPath": "/var/www/backups",
}


class Scaffolder:
    """Writes the starter config and wires the project for deployment."""

    def __init__(self, cwd: Path, sink: DiagnosticsSink) -> None:
        self.cwd = Path(cwd)
        self.sink = sink

    def run(self) -> None:
        self.write_config()
        self.add_publish_script()
        self.update_gitignore()

    def write_config(self) -> None:
        config_path = self.cwd / BASE_CONFIG_NAME
        if config_path.exists():
            self.sink.info(f"{BASE_CONFIG_NAME} configuration file already exists.")
            return
        config_path.write_text(
            json.dumps(DEFAULT_CONFIG, indent=2, ensure_ascii=False), encoding="utf-8"
        )
        self.sink.success(f"Created {BASE_CONFIG_NAME} configuration file.")

    def add_publish_script(self) -> None:
        package_json = self.cwd / "package.json"
        if not package_json.exists():
            self.sink.warn("package.json not found in the current directory.")
            return
        try:
            data = json.loads(package_json.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError("top-level value is not an object")
            scripts = data.get("scripts")
            if not isinstance(scripts, dict):
                scripts = data["scripts"] = {}
            if "publish" in scripts:
                self.sink.info('"publish" script already exists in package.json.')
                return
            scripts["publish"] = PUBLISH_SCRIPT
            package_json.write_text(
                json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8"
            )
        except (OSError, ValueError) as exc:
            self.sink.error(f"Failed to parse or update package.json: {exc}")
            return
        self.sink.success('Added "publish" script to package.json.')

    def update_gitignore(self) -> None:
        gitignore = self.cwd / ".gitignore"
        entry = GITIGNORE_PATTERN
        try:
            if not gitignore.exists():
                gitignore.write_text(entry + "\n", encoding="utf-8")
                self.sink.success(f'Created .gitignore with "{entry}".')
                return
            content = gitignore.read_text(encoding="utf-8")
            if entry in content:
                self.sink.info(f'"{entry}" already exists in .gitignore.')
                return
            separator = "" if not content or content.endswith("\n") else "\n"
            with gitignore.open("a", encoding="utf-8") as handle:
                handle.write(f"{separator}{entry}\n")
        except OSError as exc:
            self.sink.error(f"Failed to update .gitignore: {exc}")
            return
        self.sink.success(f'Added "{entry}" to .gitignore.')
