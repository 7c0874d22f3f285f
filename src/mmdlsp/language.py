"""Static language metadata for Mermaid: comments, brackets, auto-closing pairs."""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from mmdlsp.tokenizer import RULES, LexState, Rule

LANGUAGE_ID = 'mermaid'
FILE_EXTENSIONS = ('.mmd', '.mermaid')


@dataclass(frozen=True)
class LanguageConfiguration:
    line_comment: str = '%%'
    brackets: tuple[tuple[str, str], ...] = (('{', '}'), ('[', ']'), ('(', ')'))
    auto_closing_pairs: tuple[tuple[str, str], ...] = (
        ('{', '}'), ('[', ']'), ('(', ')'), ('"', '"'),
    )

    def to_dict(self) -> dict:
        """Render in the shape of an editor ``language-configuration.json``."""
        return {
            'comments': {'lineComment': self.line_comment},
            'brackets': [list(pair) for pair in self.brackets],
            'autoClosingPairs': [
                {'open': o, 'close': c} for o, c in self.auto_closing_pairs
            ],
        }


@dataclass(frozen=True)
class LanguageDescriptor:
    id: str
    extensions: tuple[str, ...]
    rules: dict[LexState, tuple[Rule, ...]]
    configuration: LanguageConfiguration

    @property
    def comment_prefix(self) -> str:
        return self.configuration.line_comment

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'extensions': list(self.extensions),
            'configuration': self.configuration.to_dict(),
        }


@lru_cache(maxsize=1)
def get_descriptor() -> LanguageDescriptor:
    """The process-wide Mermaid descriptor (built on first use, never mutated)."""
    return LanguageDescriptor(
        id=LANGUAGE_ID,
        extensions=FILE_EXTENSIONS,
        rules=RULES,
        configuration=LanguageConfiguration(),
    )
