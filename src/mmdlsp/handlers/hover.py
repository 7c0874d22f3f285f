"""
Hover handler.

Resolves the keyword or edge glyph under the cursor and returns its Markdown
documentation from the keyword table.
"""
from __future__ import annotations

import re

from lsprotocol import types as lsp

from mmdlsp.document import MermaidDocument, open_document
from mmdlsp.keywords import doc_for

# A word (inner hyphens allowed, as in 'stateDiagram-v2') or a run of edge
# glyph characters ('-->', '---', '==>').
_TOKEN_RE = re.compile(r'\w+(?:-\w+)*|[-=.<>]+')


def token_at(line: str, character: int) -> tuple[str, int, int] | None:
    """Return ``(token, start_col, end_col)`` for the token under *character*."""
    if character < 0:
        return None
    for m in _TOKEN_RE.finditer(line):
        if m.start() <= character <= m.end():
            return m.group(0), m.start(), m.end()
        if m.start() > character:
            break
    return None


def _documented_token(line_text: str | None, character: int) -> tuple[str, int, int] | None:
    """``(markdown, start_col, end_col)`` for a documented token at *character*."""
    if line_text is None:
        return None
    found = token_at(line_text, character)
    if found is None:
        return None
    word, start_col, end_col = found
    md = doc_for(word)
    if md is None:
        return None
    return md, start_col, end_col


def hover_text(text: str, line: int, character: int) -> str | None:
    """Documentation for the token at (*line*, *character*), or ``None``."""
    found = _documented_token(open_document('', text).line_at(line), character)
    return found[0] if found else None


def get_hover(doc: MermaidDocument, position: lsp.Position) -> lsp.Hover | None:
    """Return LSP hover content for *position* in *doc*, or *None*."""
    found = _documented_token(doc.line_at(position.line), position.character)
    if found is None:
        return None
    md, start_col, end_col = found
    return lsp.Hover(
        contents=lsp.MarkupContent(kind=lsp.MarkupKind.Markdown, value=md),
        range=lsp.Range(
            start=lsp.Position(line=position.line, character=start_col),
            end=lsp.Position(line=position.line, character=end_col),
        ),
    )
