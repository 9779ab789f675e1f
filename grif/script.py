"""
GRIF Script formatting - Pretty-print and compress script values.

Script values are source text in a small command language embedded in the
data: commands start with "@", may take a parenthesised argument list, and
string literals are double-quoted:

    @if @eq(player.room,kitchen) @then @write("Smells good.") @else @write("Nothing.") @endif

The writer only ever needs two operations, so any object with ``pretty``
and ``compress`` methods can stand in for the formatter below.
"""

from __future__ import annotations

import logging
import re
from typing import Iterator, Protocol

from grif.errors import ScriptFormatError

logger = logging.getLogger(__name__)

INDENT = "\t"

# Token kinds
STRING = "string"
COMMAND = "command"
CALL = "call"        # "@name(" - command with an argument list
OPEN = "open"
CLOSE = "close"
COMMA = "comma"
SPACE = "space"
TEXT = "text"

_COMMAND = re.compile(r"@[A-Za-z_][A-Za-z0-9_.]*")
_NO_SPACE_AFTER = frozenset({None, CALL, OPEN, COMMA})
_NO_SPACE_BEFORE = frozenset({CLOSE, COMMA})
_SPECIAL = frozenset('"(),@') | frozenset(" \t\r\n")


class ScriptFormatter(Protocol):
    """What the reader and writer need from a script formatter."""

    def pretty(self, script: str) -> str: ...

    def compress(self, script: str) -> str: ...


def tokenize(script: str) -> Iterator[tuple[str, str]]:
    """Split script source into (kind, text) tokens.

    Raises ScriptFormatError on an unterminated string literal.
    """
    i = 0
    n = len(script)
    while i < n:
        c = script[i]
        if c.isspace():
            j = i
            while j < n and script[j].isspace():
                j += 1
            yield SPACE, script[i:j]
            i = j
        elif c == '"':
            j = i + 1
            while j < n and script[j] != '"':
                if script[j] == "\\":
                    j += 1
                j += 1
            if j >= n:
                raise ScriptFormatError(f"Unterminated string starting at {i}")
            yield STRING, script[i:j + 1]
            i = j + 1
        elif c == "(":
            yield OPEN, c
            i += 1
        elif c == ")":
            yield CLOSE, c
            i += 1
        elif c == ",":
            yield COMMA, c
            i += 1
        elif c == "@" and _COMMAND.match(script, i):
            m = _COMMAND.match(script, i)
            end = m.end()
            if end < n and script[end] == "(":
                yield CALL, script[i:end + 1]
                i = end + 1
            else:
                yield COMMAND, m.group()
                i = end
        else:
            j = i + 1
            while j < n and script[j] not in _SPECIAL:
                j += 1
            yield TEXT, script[i:j]
            i = j


def _check_balanced(tokens: list[tuple[str, str]]) -> None:
    depth = 0
    for kind, _ in tokens:
        if kind in (CALL, OPEN):
            depth += 1
        elif kind == CLOSE:
            depth -= 1
            if depth < 0:
                raise ScriptFormatError("Unbalanced parentheses: unexpected \")\"")
    if depth:
        raise ScriptFormatError(f"Unbalanced parentheses: {depth} not closed")


class DagsFormatter:
    """Reference formatter for the embedded command language.

    ``compress`` collapses whitespace outside string literals to single
    spaces and drops it around parentheses and commas. ``pretty`` puts each
    top-level command on its own line and indents the bodies of
    ``@if ... @then ... @else ... @endif`` and ``@for(...) ... @endfor``
    blocks with tabs.
    """

    BLOCK_OPENERS = ("@for", "@foreachkey", "@foreachlist")
    CONDITION_OPENERS = ("@if", "@elseif")
    CONDITION_END = "@then"
    BLOCK_MIDDLE = ("@else", "@elseif")
    BLOCK_CLOSERS = ("@endif", "@endfor", "@endforeachkey", "@endforeachlist")

    def compress(self, script: str) -> str:
        tokens = list(tokenize(script.strip()))
        _check_balanced(tokens)
        out: list[str] = []
        prev_kind = None
        pending_space = False
        for kind, text in tokens:
            if kind == SPACE:
                pending_space = True
                continue
            if pending_space and prev_kind not in _NO_SPACE_AFTER and kind not in _NO_SPACE_BEFORE:
                out.append(" ")
            pending_space = False
            prev_kind = kind
            out.append(text)
        return "".join(out)

    def pretty(self, script: str) -> str:
        tokens = list(tokenize(script.strip()))
        _check_balanced(tokens)

        lines: list[tuple[int, list[str]]] = []
        current: list[str] = []
        indent = 0
        line_indent = 0
        parens = 0
        in_condition = False
        open_after_call = False

        def flush() -> None:
            nonlocal current
            if current:
                lines.append((line_indent, current))
            current = []

        for kind, text in tokens:
            if kind == SPACE:
                if current:
                    current.append(" ")
                continue

            name = text.rstrip("(").lower() if kind in (COMMAND, CALL) else ""
            if parens == 0 and name:
                if name in self.BLOCK_CLOSERS or name in self.BLOCK_MIDDLE:
                    indent -= 1
                    if indent < 0:
                        raise ScriptFormatError(f"Unexpected {text.rstrip('(')} outside a block")
                if name == self.CONDITION_END and in_condition:
                    current.append(text)
                    in_condition = False
                    indent += 1
                    flush()
                    continue
                if not in_condition:
                    flush()
                    line_indent = indent
                if name in self.CONDITION_OPENERS:
                    in_condition = True
                elif name == "@else":
                    indent += 1
                elif name in self.BLOCK_OPENERS:
                    open_after_call = True

            current.append(text)
            if kind in (CALL, OPEN):
                parens += 1
            elif kind == CLOSE:
                parens -= 1
            if parens == 0 and open_after_call:
                open_after_call = False
                indent += 1
                flush()

        flush()
        if indent != 0 or in_condition:
            raise ScriptFormatError("Unclosed block at end of script")
        return "\n".join(
            INDENT * depth + "".join(parts).strip() for depth, parts in lines
        )


def pretty_or_raw(formatter: ScriptFormatter, value: str) -> str:
    """Best-effort pretty-print: the unformatted value if formatting fails."""
    try:
        return formatter.pretty(value)
    except Exception as e:
        # Formatters other than DagsFormatter may not raise ScriptFormatError
        logger.warning("Script left unformatted: %s", e)
        return value
