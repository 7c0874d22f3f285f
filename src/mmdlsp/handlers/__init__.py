"""handlers/__init__.py — re-export handler functions for convenience."""
from .diagnostics import get_diagnostics
from .completion import get_completions
from .hover import get_hover
from .formatting import get_formatting_edits
from .semantic_tokens import get_semantic_tokens

__all__ = [
    'get_diagnostics', 'get_completions', 'get_hover',
    'get_formatting_edits', 'get_semantic_tokens',
]
