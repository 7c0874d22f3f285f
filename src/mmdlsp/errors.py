"""Exceptions raised by mmdlsp validators."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Span:
    """1-based source span.  ``last_col`` points one past the last character."""
    first_line: int
    last_line: int
    first_col: int
    last_col: int


class MmdlspError(Exception):
    pass


class ValidationError(MmdlspError):
    """A diagram failed validation.

    *span* is ``None`` when the validator could not locate the problem.
    """

    def __init__(self, message: str, span: Span | None = None):
        super().__init__(message)
        self.message = message
        self.span = span


class ValidatorUnavailable(ValidationError):
    """The configured validator could not be run (missing binary, timeout)."""

    def __init__(self, message: str):
        super().__init__(message, span=None)
