"""
Lexical classifier for Mermaid source.

A two-state lexer (``root`` and ``string``).  Each state owns an ordered rule
list; at every offset the rules of the current state are tried top to bottom
and the first match wins.  Characters no rule matches become ``text`` spans,
so :func:`classify` terminates on any input and the span texts always
concatenate back to the original line.
"""
from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import NamedTuple

from mmdlsp.keywords import is_keyword


class LexState(enum.Enum):
    ROOT = 'root'
    STRING = 'string'


class TokenClass(str, enum.Enum):
    COMMENT = 'comment'
    DELIMITER = 'delimiter'
    STRING = 'string'
    KEYWORD = 'keyword'
    IDENTIFIER = 'identifier'
    TEXT = 'text'


class Span(NamedTuple):
    start: int          # 0-based column
    text: str
    token: TokenClass


@dataclass(frozen=True)
class Rule:
    pattern: re.Pattern[str]
    token: TokenClass
    next_state: LexState | None = None


# Identifier runs may contain inner hyphens ('stateDiagram-v2', 'stroke-width')
# but never swallow an edge glyph: 'A-->B' lexes as 'A', '--', '>', 'B'.
_IDENT = re.compile(r'[a-zA-Z][\w$]*(?:-[\w$]+)*')

RULES: dict[LexState, tuple[Rule, ...]] = {
    LexState.ROOT: (
        Rule(re.compile(r'%%.*$'), TokenClass.COMMENT),
        Rule(re.compile(r'\[|\]|\(|\)|\{|\}|>|--|==|:'), TokenClass.DELIMITER),
        Rule(re.compile(r'"'), TokenClass.STRING, LexState.STRING),
        Rule(_IDENT, TokenClass.IDENTIFIER),
    ),
    LexState.STRING: (
        Rule(re.compile(r'[^\\"]+'), TokenClass.STRING),
        # Labels have no escapes; a backslash never hides the closing quote.
        Rule(re.compile(r'\\'), TokenClass.STRING),
        Rule(re.compile(r'"'), TokenClass.STRING, LexState.ROOT),
    ),
}


def classify(line: str, state: LexState = LexState.ROOT) -> tuple[list[Span], LexState]:
    """Classify one *line* starting in *state*.

    Returns ``(spans, next_state)``; *next_state* is ``STRING`` when the line
    ends inside an unterminated string.
    """
    spans: list[Span] = []
    pos = 0
    pending = -1     # start of a run of unmatched characters
    while pos < len(line):
        for rule in RULES[state]:
            m = rule.pattern.match(line, pos)
            if m is None or m.end() == pos:
                continue
            if pending >= 0:
                spans.append(Span(pending, line[pending:pos], TokenClass.TEXT))
                pending = -1
            token = rule.token
            if token is TokenClass.IDENTIFIER and is_keyword(m.group()):
                token = TokenClass.KEYWORD
            spans.append(Span(pos, m.group(), token))
            if rule.next_state is not None:
                state = rule.next_state
            pos = m.end()
            break
        else:
            if pending < 0:
                pending = pos
            pos += 1
    if pending >= 0:
        spans.append(Span(pending, line[pending:], TokenClass.TEXT))
    return spans, state


def tokenize(text: str) -> list[list[Span]]:
    """Classify every line of *text*, threading lexer state across lines."""
    state = LexState.ROOT
    result: list[list[Span]] = []
    for line in text.split('\n'):
        spans, state = classify(line, state)
        result.append(spans)
    return result
