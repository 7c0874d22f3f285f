"""
Per-document text cache.

Each open document is stored as a ``MermaidDocument``.  There is no parse
tree: the providers work on raw lines, and lexer state per line is computed
lazily the first time something (semantic tokens) asks for it.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property

from mmdlsp.tokenizer import Span, tokenize


@dataclass
class MermaidDocument:
    uri: str
    source: str
    version: int | None = None

    @cached_property
    def lines(self) -> list[str]:
        return self.source.split('\n')

    @cached_property
    def spans(self) -> list[list[Span]]:
        return tokenize(self.source)

    def line_at(self, line: int) -> str | None:
        """Return line *line* (0-based), or ``None`` if out of range."""
        if 0 <= line < len(self.lines):
            return self.lines[line]
        return None


def open_document(uri: str, source: str, version: int | None = None) -> MermaidDocument:
    """Build a :class:`MermaidDocument` for *source*."""
    return MermaidDocument(uri=uri, source=source, version=version)
