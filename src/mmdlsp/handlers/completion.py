"""
Completion handler.

Offers two kinds of completion items, always together and unfiltered:

1. **Mermaid keywords** — every entry of the keyword table.
2. **Diagram snippets** — a full skeleton for each diagram kind, inserted in
   snippet mode so the client can walk its tab stops.

Prefix filtering and ranking are left to the client; the server only decides
which text the chosen item replaces (the word touching the cursor).
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from lsprotocol import types as lsp

from mmdlsp.keywords import KEYWORD_LIST, SNIPPETS

if TYPE_CHECKING:
    from mmdlsp.document import MermaidDocument

_WORD_RE = re.compile(r'\w+')


@dataclass(frozen=True)
class Candidate:
    label: str
    insert_text: str
    snippet: bool = False
    detail: str | None = None


@dataclass(frozen=True)
class CompletionResult:
    line: int                 # 0-based
    start: int                # replacement range, 0-based columns
    end: int
    candidates: tuple[Candidate, ...]


_CANDIDATES: tuple[Candidate, ...] = tuple(
    [Candidate(label=kw, insert_text=kw) for kw in KEYWORD_LIST]
    + [Candidate(label=s.label, insert_text=s.body, snippet=True, detail=s.detail)
       for s in SNIPPETS]
)


def word_range(line: str, character: int) -> tuple[int, int]:
    """Span of the word-character run touching *character*; empty in whitespace."""
    character = max(0, min(character, len(line)))
    for m in _WORD_RE.finditer(line):
        if m.start() <= character <= m.end():
            return m.start(), m.end()
        if m.start() > character:
            break
    return character, character


def complete(text: str, line: int, character: int) -> CompletionResult:
    """Compute the replacement range and the full candidate list."""
    lines = text.split('\n')
    line = max(0, min(line, len(lines) - 1))
    start, end = word_range(lines[line], character)
    return CompletionResult(line=line, start=start, end=end, candidates=_CANDIDATES)


def _to_item(candidate: Candidate, rng: lsp.Range) -> lsp.CompletionItem:
    if candidate.snippet:
        return lsp.CompletionItem(
            label=candidate.label,
            kind=lsp.CompletionItemKind.Snippet,
            detail=candidate.detail,
            insert_text_format=lsp.InsertTextFormat.Snippet,
            text_edit=lsp.TextEdit(range=rng, new_text=candidate.insert_text),
        )
    return lsp.CompletionItem(
        label=candidate.label,
        kind=lsp.CompletionItemKind.Keyword,
        insert_text_format=lsp.InsertTextFormat.PlainText,
        text_edit=lsp.TextEdit(range=rng, new_text=candidate.insert_text),
    )


def get_completions(
    doc: MermaidDocument,
    position: lsp.Position,
) -> list[lsp.CompletionItem]:
    """Return completion items for *position* in *doc*."""
    result = complete(doc.source, position.line, position.character)
    rng = lsp.Range(
        start=lsp.Position(line=result.line, character=result.start),
        end=lsp.Position(line=result.line, character=result.end),
    )
    return [_to_item(c, rng) for c in result.candidates]
