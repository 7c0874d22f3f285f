"""Convert pipeline markers into LSP Diagnostic objects."""
from __future__ import annotations

from lsprotocol import types as lsp

from mmdlsp.pipeline import Marker, Severity

SOURCE = 'mermaid'

_SEVERITY = {
    Severity.ERROR: lsp.DiagnosticSeverity.Error,
    Severity.WARNING: lsp.DiagnosticSeverity.Warning,
}


def marker_to_diagnostic(marker: Marker) -> lsp.Diagnostic:
    """Map a 1-based marker onto a 0-based LSP range.

    Empty spans (e.g. the line 1, column 1 fallback) are widened to one
    character so clients still draw something.
    """
    start_line = max(0, marker.start_line - 1)      # LSP is 0-based; markers are 1-based
    start_col = max(0, marker.start_col - 1)
    end_line = max(start_line, marker.end_line - 1)
    end_col = max(0, marker.end_col - 1)
    if end_line == start_line and end_col <= start_col:
        end_col = start_col + 1
    return lsp.Diagnostic(
        range=lsp.Range(
            start=lsp.Position(line=start_line, character=start_col),
            end=lsp.Position(line=end_line, character=end_col),
        ),
        message=marker.message,
        severity=_SEVERITY.get(marker.severity, lsp.DiagnosticSeverity.Error),
        source=SOURCE,
    )


def get_diagnostics(markers: list[Marker]) -> list[lsp.Diagnostic]:
    """Return LSP ``Diagnostic`` objects for the current marker set."""
    return [marker_to_diagnostic(m) for m in markers]
