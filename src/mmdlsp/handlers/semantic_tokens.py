"""
Semantic tokens: the tokenizer's spans in LSP's relative integer encoding.

Each token is five integers ``(deltaLine, deltaStart, length, type, 0)``;
columns and lengths are UTF-16 code units as the protocol requires.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from lsprotocol import types as lsp

from mmdlsp.tokenizer import Span, TokenClass

if TYPE_CHECKING:
    from mmdlsp.document import MermaidDocument

TOKEN_TYPES = ['keyword', 'string', 'comment', 'operator', 'variable']

_TYPE_INDEX = {
    TokenClass.KEYWORD: 0,
    TokenClass.STRING: 1,
    TokenClass.COMMENT: 2,
    TokenClass.DELIMITER: 3,
    TokenClass.IDENTIFIER: 4,
}

LEGEND = lsp.SemanticTokensLegend(token_types=TOKEN_TYPES, token_modifiers=[])


def _utf16_len(s: str) -> int:
    return len(s.encode('utf-16-le')) // 2


def encode(lines: list[str], spans_by_line: list[list[Span]]) -> list[int]:
    data: list[int] = []
    prev_line = 0
    prev_start = 0
    for line_no, spans in enumerate(spans_by_line):
        line = lines[line_no]
        for span in spans:
            type_index = _TYPE_INDEX.get(span.token)
            if type_index is None:
                continue
            start = _utf16_len(line[:span.start])
            delta_line = line_no - prev_line
            delta_start = start - prev_start if delta_line == 0 else start
            data.extend([delta_line, delta_start, _utf16_len(span.text), type_index, 0])
            prev_line, prev_start = line_no, start
    return data


def get_semantic_tokens(doc: MermaidDocument) -> lsp.SemanticTokens:
    return lsp.SemanticTokens(data=encode(doc.lines, doc.spans))
