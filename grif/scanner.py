"""
GRIF Scanner - Low-level cursor helpers shared by both dialect parsers.

Functions take the full text and a character offset and return the new
offset, so parsers keep their own cursor and never copy the input.
"""

from __future__ import annotations

import string

from grif.errors import MalformedInputError
from grif.spec import (
    QUOTE, ESCAPES, UNICODE_ESCAPE_DIGITS,
    LINE_COMMENT, BLOCK_COMMENT_START, BLOCK_COMMENT_END,
)

_HEX_DIGITS = frozenset(string.hexdigits)


def skip_insignificant(text: str, pos: int) -> int:
    """Skip whitespace, // line comments and /* */ block comments.

    Comments and whitespace may appear in any order; keep going until a
    full pass makes no progress. An unterminated block comment runs to the
    end of the text.
    """
    n = len(text)
    while pos < n:
        start = pos
        while pos < n and text[pos].isspace():
            pos += 1
        if text.startswith(LINE_COMMENT, pos):
            newline = text.find("\n", pos + len(LINE_COMMENT))
            pos = n if newline < 0 else newline + 1
        elif text.startswith(BLOCK_COMMENT_START, pos):
            end = text.find(BLOCK_COMMENT_END, pos + len(BLOCK_COMMENT_START))
            pos = n if end < 0 else end + len(BLOCK_COMMENT_END)
        if pos == start:
            break
    return pos


def read_quoted_string(text: str, pos: int) -> tuple[str, int]:
    """Decode the quoted string starting at ``text[pos]``.

    Returns the unescaped value and the offset just past the closing quote.
    """
    n = len(text)
    if pos >= n:
        raise MalformedInputError(f"Unexpected end of input at {pos}", pos)
    if text[pos] != QUOTE:
        raise MalformedInputError(f'Invalid char at {pos} - "{text[pos]}" should be quote', pos)

    out: list[str] = []
    i = pos + 1
    while True:
        if i >= n:
            raise MalformedInputError(f"Unexpected end of input at {i}", i)
        c = text[i]
        if c == QUOTE:
            return "".join(out), i + 1
        if c != "\\":
            out.append(c)
            i += 1
            continue

        i += 1
        if i >= n:
            raise MalformedInputError(f"Unexpected end of input at {i}", i)
        escaped = text[i]
        i += 1
        if escaped in ESCAPES:
            out.append(ESCAPES[escaped])
        elif escaped == "u":
            digits = text[i:i + UNICODE_ESCAPE_DIGITS]
            if len(digits) < UNICODE_ESCAPE_DIGITS:
                raise MalformedInputError(
                    f'Parsing "u####" failed, index={i}, not enough chars', i
                )
            if not all(d in _HEX_DIGITS for d in digits):
                raise MalformedInputError(
                    f'Parsing "u####" failed, index={i}, invalid hexadecimal "{digits}"', i
                )
            _append_code_unit(out, int(digits, 16))
            i += UNICODE_ESCAPE_DIGITS
        else:
            raise MalformedInputError(f'Unexpected escaped char at {i - 1}: "\\{escaped}"', i - 1)


def _append_code_unit(out: list[str], unit: int) -> None:
    """Append one UTF-16 code unit, joining a low surrogate onto its high half."""
    if 0xDC00 <= unit <= 0xDFFF and out and len(out[-1]) == 1 and 0xD800 <= ord(out[-1]) <= 0xDBFF:
        high = ord(out.pop())
        out.append(chr(0x10000 + ((high - 0xD800) << 10) + (unit - 0xDC00)))
    else:
        out.append(chr(unit))
