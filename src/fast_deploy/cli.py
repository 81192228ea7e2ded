"""Command-line interface for fast-deploy."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Callable, List, Optional

from . import __version__
from .config import find_config_file, load_config
from .diagnostics import ConsoleDiagnostics, DiagnosticsSink
from .errors import ConfigurationError, FastDeployError
from .orchestrator import Deployer
from .paths import KNOWN_MODES
from .scaffold import Scaffolder
from .utils.logging import configure_logging

_COMMANDS = ("deploy", "init")
_TOP_LEVEL_FLAGS = ("-h", "--help", "--version")

CONFIG_HELP = """
Configuration (.fastdeploy):
  The configuration file should be a JSON file with the following structure:

  {
    "localPath": "dist",
    "remotePath": "/var/www/html/my-app",
    "server": {
      "host": "192.168.1.100",
      "username": "user",
      "password": "password",
      "// OR": "privateKeyPath: '/path/to/key'",
      "port": 22
    },
    "backupPath": "/var/www/backups"
  }
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fastdeploy",
        description="Deploy to remote server using SFTP",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser(
        "init", help="Initialize configuration, scripts and .gitignore"
    )

    deploy_parser = subparsers.add_parser(
        "deploy",
        help="Deploy to remote server (default command)",
        epilog=CONFIG_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    deploy_parser.add_argument(
        "-m", "--mode", help="Deployment mode (e.g., dev, test, prod)"
    )
    for mode in KNOWN_MODES:
        deploy_parser.add_argument(
            f"--{mode}",
            action="store_true",
            help=f"Shortcut for --mode {mode} (read .fastdeploy.{mode})",
        )
    deploy_parser.add_argument("-c", "--config", help="Custom config file path")
    deploy_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log every SFTP operation"
    )
    return parser


def _normalize_argv(argv: List[str]) -> List[str]:
    """Make ``deploy`` the default command."""
    if argv and (argv[0] in _COMMANDS or argv[0] in _TOP_LEVEL_FLAGS):
        return argv
    return ["deploy", *argv]


def _selected_mode(args: argparse.Namespace) -> Optional[str]:
    mode = args.mode
    # Shortcut flags override --mode; precedence is dev < test < prod < uat.
    for shortcut in ("dev", "test", "prod", "uat"):
        if getattr(args, shortcut, False):
            mode = shortcut
    return mode


def handle_init_command(cwd: Path, sink: DiagnosticsSink) -> int:
    Scaffolder(cwd, sink).run()
    return 0


def handle_deploy_command(
    args: argparse.Namespace,
    cwd: Path,
    sink: DiagnosticsSink,
    deployer_factory: Callable[..., Deployer],
) -> int:
    configure_logging(args.verbose)
    try:
        config_path = find_config_file(cwd, args.config, _selected_mode(args), sink)
        sink.info(f"Using configuration file: {config_path}")
        options = load_config(config_path)
    except ConfigurationError as exc:
        sink.error(f"Error: {exc}")
        return 1

    deployer = deployer_factory(sink=sink, cwd=cwd)
    try:
        deployer.deploy(options)
    except FastDeployError:
        # Already reported by the deployer.
        return 1
    return 0


def run_cli(
    argv: Optional[List[str]] = None,
    *,
    cwd: Optional[Path] = None,
    sink: Optional[DiagnosticsSink] = None,
    deployer_factory: Callable[..., Deployer] = Deployer,
) -> int:
    parser = build_parser()
    args = parser.parse_args(_normalize_argv(list(sys.argv[1:] if argv is None else argv)))
    cwd = cwd or Path.cwd()
    sink = sink or ConsoleDiagnostics()

    if args.command == "init":
        return handle_init_command(cwd, sink)
    if args.command == "deploy":
        return handle_deploy_command(args, cwd, sink, deployer_factory)

    raise ValueError(f"Unsupported command: {args.command}")
