"""
Error taxonomy for the import manager.

SourceSyntaxError  -- the source (or an edited unit) does not parse.
MatchError         -- a selection found zero or several candidates.
ContractError      -- an operation is invalid for a unit, mode or selector.
"""

from __future__ import annotations

from typing import Optional


class ImportManagerError(Exception):
    """Base class for every error raised by the import manager."""


class SourceSyntaxError(ImportManagerError, SyntaxError):
    """Raised when source text cannot be parsed.

    ``lineno`` and ``offset`` are 1-based, as for the builtin SyntaxError,
    whose ``__str__`` appends the location to the message.
    """

    def __init__(
        self,
        message: str,
        filename: str = "",
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.filename = filename or None
        self.lineno = line
        self.offset = column


class MatchError(ImportManagerError):
    """Raised when a selection does not resolve to exactly one candidate.

    The message contains a listing of the candidate units so a human can
    disambiguate, typically by hash.
    """

    def __init__(self, message: str, candidates: Optional[list] = None) -> None:
        super().__init__(message)
        self.candidates = list(candidates or [])


class ContractError(ImportManagerError, TypeError):
    """Raised when an operation is used in a way it does not support."""
