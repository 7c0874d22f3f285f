"""
Indentation formatter.

Reindents a whole document from keyword prefixes alone; no parsing.  Each
non-blank line is trimmed and prefixed with ``level * indent_width`` spaces,
where a block closer (``end``) lowers the level *before* its own line is
emitted and a block opener (diagram declarations, ``subgraph``) raises it
*after*, so only the lines that follow are nested deeper.
"""
from __future__ import annotations

from mmdlsp.keywords import CLOSER_RE, OPENER_RE

INDENT_WIDTH = 4


def format_text(text: str, indent_width: int = INDENT_WIDTH) -> str:
    out: list[str] = []
    level = 0
    for raw in text.split('\n'):
        line = raw.strip()
        if not line:
            out.append('')
            continue
        if CLOSER_RE.match(line):
            level = max(0, level - 1)
        out.append(' ' * (level * indent_width) + line)
        if OPENER_RE.match(line):
            level += 1
    return '\n'.join(out)
