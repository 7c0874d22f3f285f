"""
Diagram validators.

A validator is any object with an ``async validate(text)`` method that returns
on success and raises :class:`~mmdlsp.errors.ValidationError` on failure.

Two implementations ship with the server:

``StructuralValidator``
    Built in, lexical only.  Catches the mistakes that do not need a real
    Mermaid grammar: an unknown diagram type, unbalanced ``subgraph``/``end``
    blocks, unbalanced brackets in flowcharts and unterminated strings.

``CommandValidator``
    Pipes the diagram into an external command (typically a small Node
    wrapper around ``mermaid.parse``).  Exit status 0 means valid; otherwise
    stdout is read as a JSON error in the shape Mermaid's parser throws::

        {"message": "...", "hash": {"loc": {"first_line": 2, "last_line": 2,
                                            "first_column": 4, "last_column": 9}}}
"""
from __future__ import annotations

import asyncio
import json
import logging
import shutil
from typing import Protocol

from mmdlsp.errors import Span, ValidationError, ValidatorUnavailable
from mmdlsp.keywords import DIAGRAM_KINDS
from mmdlsp.tokenizer import LexState, TokenClass, classify
from mmdlsp.tokenizer import Span as TokenSpan

logger = logging.getLogger(__name__)


class Validator(Protocol):
    async def validate(self, text: str) -> None: ...


# ---------------------------------------------------------------------------
# Structural (built-in) validator
# ---------------------------------------------------------------------------

_FLOWCHARTS = {'graph', 'flowchart', 'flowchart-elk'}
# Blocks closed by 'end' in each diagram kind.
_END_BLOCKS = {
    'graph': {'subgraph'},
    'flowchart': {'subgraph'},
    'flowchart-elk': {'subgraph'},
    'sequenceDiagram': {'loop', 'alt', 'opt', 'par', 'critical', 'break', 'rect', 'box'},
}
_PAIRS = {')': '(', ']': '[', '}': '{'}


def _first_word(spans) -> tuple[str, int] | None:
    for span in spans:
        if span.token in (TokenClass.KEYWORD, TokenClass.IDENTIFIER):
            return span.text, span.start
        if span.text.strip():
            return None
    return None


class StructuralValidator:
    """Lexical sanity checks; see the module docstring."""

    async def validate(self, text: str) -> None:
        self.check(text)

    def check(self, text: str) -> None:
        lines = text.split('\n')
        kind: str | None = None
        open_blocks: list[tuple[str, int, int]] = []   # (keyword, line, col), 1-based
        in_front_matter = False
        state = LexState.ROOT
        # A statement continues onto the next line while a string is open
        # (multi-line Markdown labels).
        statement: list[tuple[int, TokenSpan]] = []
        string_open: Span | None = None

        for idx, line in enumerate(lines, start=1):
            stripped = line.strip()
            if kind is None:
                # YAML front matter and comments may precede the declaration.
                if stripped == '---':
                    in_front_matter = not in_front_matter
                    continue
                if in_front_matter or not stripped or stripped.startswith('%%'):
                    continue

            spans, state = classify(line, state)
            if state is LexState.STRING:
                quote = _opening_quote(spans)
                if quote is not None:
                    string_open = Span(idx, idx, quote + 1, len(line) + 1)

            if kind is None:
                first = _first_word(spans)
                word = first[0] if first else stripped.split()[0]
                if word not in DIAGRAM_KINDS:
                    col = len(line) - len(line.lstrip()) + 1
                    raise ValidationError(
                        f'No diagram type detected for text: {word!r}',
                        Span(idx, idx, col, col + len(word)),
                    )
                kind = word
                continue

            statement.extend((idx, span) for span in spans)
            if state is LexState.STRING or not statement:
                continue
            current, statement = statement, []

            if kind in _FLOWCHARTS:
                self._check_brackets(current)

            blocks = _END_BLOCKS.get(kind)
            if blocks:
                head_line = current[0][0]
                first = _first_word(s for n, s in current if n == head_line)
                if first is None:
                    continue
                word, col = first
                if word in blocks:
                    open_blocks.append((word, head_line, col + 1))
                elif word == 'end':
                    if not open_blocks:
                        raise ValidationError(
                            "Unexpected 'end' without an open block",
                            Span(head_line, head_line, col + 1, col + 4),
                        )
                    open_blocks.pop()

        if kind is None:
            raise ValidationError('No diagram type detected')
        if state is LexState.STRING:
            raise ValidationError('Unterminated string', string_open)
        if open_blocks:
            word, line_no, col = open_blocks[-1]
            raise ValidationError(
                f"'{word}' block is never closed with 'end'",
                Span(line_no, line_no, col, col + len(word)),
            )

    @staticmethod
    def _check_brackets(statement: list[tuple[int, TokenSpan]]) -> None:
        stack: list[tuple[str, int, int]] = []
        prev = None
        for line_no, span in statement:
            if span.token is TokenClass.DELIMITER:
                ch = span.text
                if ch in '([{':
                    stack.append((ch, line_no, span.start))
                elif ch == '>' and prev is not None and prev.token in (
                        TokenClass.IDENTIFIER, TokenClass.KEYWORD):
                    # Asymmetric node shape: id>label]
                    stack.append(('>', line_no, span.start))
                elif ch in _PAIRS:
                    want = _PAIRS[ch]
                    if stack and (stack[-1][0] == want or (ch == ']' and stack[-1][0] == '>')):
                        stack.pop()
                    else:
                        raise ValidationError(
                            f"Unmatched '{ch}'",
                            Span(line_no, line_no, span.start + 1, span.start + 2),
                        )
            prev = span
        if stack:
            ch, line_no, col = stack[-1]
            raise ValidationError(
                f"Unclosed '{ch}'",
                Span(line_no, line_no, col + 1, col + 2),
            )


def _opening_quote(spans) -> int | None:
    """Column of the last quote on a line that ends inside a string.

    ``None`` when the string was opened on an earlier line.
    """
    quotes = [s.start for s in spans if s.text == '"']
    return quotes[-1] if quotes else None


# ---------------------------------------------------------------------------
# External command validator
# ---------------------------------------------------------------------------

def _error_from_payload(payload: dict) -> ValidationError:
    message = payload.get('message') or 'Syntax Error'
    loc = (payload.get('hash') or {}).get('loc') or payload.get('loc')
    if not isinstance(loc, dict):
        return ValidationError(message)
    try:
        span = Span(
            first_line=int(loc['first_line']),
            last_line=int(loc['last_line']),
            first_col=int(loc['first_column']),
            last_col=int(loc['last_column']),
        )
    except (KeyError, TypeError, ValueError):
        return ValidationError(message)
    return ValidationError(message, span)


class CommandValidator:
    """Validate by piping the diagram into *argv* (see module docstring)."""

    def __init__(self, argv: list[str], timeout: float = 10.0):
        if not argv:
            raise ValueError('CommandValidator needs a command')
        self.argv = list(argv)
        self.timeout = timeout

    async def validate(self, text: str) -> None:
        if shutil.which(self.argv[0]) is None:
            raise ValidatorUnavailable(f'Validator command not found: {self.argv[0]}')
        proc = await asyncio.create_subprocess_exec(
            *self.argv,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            out, err = await asyncio.wait_for(
                proc.communicate(text.encode('utf-8')), timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise ValidatorUnavailable(
                f'Validator timed out after {self.timeout:g}s'
            ) from None

        if proc.returncode == 0:
            return
        stdout = out.decode('utf-8', errors='replace').strip()
        stderr = err.decode('utf-8', errors='replace').strip()
        logger.debug('validator exited %s: %s', proc.returncode, stdout or stderr)
        try:
            payload = json.loads(stdout)
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            raise _error_from_payload(payload)
        raise ValidationError(stderr or stdout or 'Syntax Error')


def make_validator(settings) -> Validator:
    """Build the validator selected by *settings* (a :class:`~mmdlsp.config.Settings`)."""
    if settings.validator == 'command':
        return CommandValidator(settings.validator_command, settings.validator_timeout)
    return StructuralValidator()
