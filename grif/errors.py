"""
GRIF Errors.

Malformed input is a ValueError so callers that already guard parsing
with ``except ValueError`` keep working. Missing files surface as the
built-in FileNotFoundError and write failures as OSError.
"""

from __future__ import annotations


class GRIFError(Exception):
    """Base class for all grif errors."""


class MalformedInputError(GRIFError, ValueError):
    """Grammar violation while parsing GRIF text.

    ``offset`` is the character index where parsing stopped and ``key`` the
    key of the entry being read, when one had been read already.
    """

    def __init__(
        self,
        reason: str,
        offset: int | None = None,
        key: str | None = None,
        context: str = "",
    ) -> None:
        self.reason = reason
        self.offset = offset
        self.key = key
        self.context = context
        message = reason
        if key:
            message = f'Key "{key}": {message}'
        if context:
            message = f"{context}: {message}"
        super().__init__(message)


class ScriptFormatError(GRIFError):
    """The script formatter could not pretty-print or compress a script."""
