"""User-facing diagnostics for fast-deploy."""

from .classifier import Diagnostic, DiagnosticCategory, ErrorClassifier
from .sink import ConsoleDiagnostics, DiagnosticsSink

__all__ = [
    "ConsoleDiagnostics",
    "Diagnostic",
    "DiagnosticCategory",
    "DiagnosticsSink",
    "ErrorClassifier",
]
