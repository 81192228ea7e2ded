"""Diagnostics sinks for user-facing output."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from rich.console import Console
from rich.text import Text


class DiagnosticsSink(ABC):
    """Receives user-facing messages from the deployer and classifier."""

    @abstractmethod
    def info(self, message: str) -> None:
        pass

    @abstractmethod
    def warn(self, message: str) -> None:
        pass

    @abstractmethod
    def error(self, message: str) -> None:
        pass

    @abstractmethod
    def success(self, message: str) -> None:
        pass


class ConsoleDiagnostics(DiagnosticsSink):
    """Colored terminal output built on rich.

    Errors and warnings go to stderr, everything else to stdout.
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        err_console: Optional[Console] = None,
    ) -> None:
        self.console = console or Console(highlight=False)
        self.err_console = err_console or Console(stderr=True, highlight=False)

    def info(self, message: str) -> None:
        self.console.print(Text(message))

    def warn(self, message: str) -> None:
        self.err_console.print(Text(message, style="yellow"))

    def error(self, message: str) -> None:
        self.err_console.print(Text(message, style="red"))

    def success(self, message: str) -> None:
        self.console.print(Text(message, style="green"))
