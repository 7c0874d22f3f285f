"""Document formatting: one whole-document edit from the indentation formatter."""
from __future__ import annotations

from typing import TYPE_CHECKING

from lsprotocol import types as lsp

from mmdlsp.formatter import INDENT_WIDTH, format_text

if TYPE_CHECKING:
    from mmdlsp.document import MermaidDocument


def full_range(source: str) -> lsp.Range:
    lines = source.split('\n')
    return lsp.Range(
        start=lsp.Position(line=0, character=0),
        end=lsp.Position(line=len(lines) - 1, character=len(lines[-1])),
    )


def get_formatting_edits(
    doc: MermaidDocument,
    indent_width: int = INDENT_WIDTH,
) -> list[lsp.TextEdit]:
    """Return a single full-range edit, or ``[]`` if *doc* is already formatted.

    The client's ``tabSize`` option is ignored; indentation width is a
    server setting.
    """
    formatted = format_text(doc.source, indent_width)
    if formatted == doc.source:
        return []
    return [lsp.TextEdit(range=full_range(doc.source), new_text=formatted)]
