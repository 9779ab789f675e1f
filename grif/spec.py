"""
GRIF Format Specification
=========================

Legacy dialect (human-editable, line oriented):
    room.1.name                  <- Key line (the whole line, verbatim)
    	The Kitchen                  <- Value line (starts with tab or space)
    room.1.desc
    	A long description that      <- Continuation lines are joined
    	spans several lines.         <- with a single space
    script.look
    	@write("You see nothing.")   <- Script value (starts with @)

Quoted dialect (strict, JSON-compatible):
    {
    	"room.1.name": "The Kitchen",
    	"script.look": "@write(\\"You see nothing.\\")"
    }

Design Decisions:
    - First significant character "{" selects the quoted dialect
    - Whitespace, // line comments and /* */ block comments are skipped
      before the first entry (both dialects) and between tokens (quoted)
    - Legacy dialect does no escape processing; characters are verbatim
    - Quoted dialect entries are separated by "," or ";", trailing allowed
    - Output is always sorted by the key comparator, never insertion order

String Escaping (quoted dialect):
    - Reader accepts \\n \\r \\t \\" \\\\ \\/ and \\uXXXX (exactly 4 hex digits)
    - Writer emits printable ASCII verbatim, escapes " and \\ with a
      backslash, and everything else as \\uXXXX (lowercase hex)
    - Writer never emits the \\n \\r \\t shorthands; script values keep
      literal CR, LF and TAB so formatted scripts stay readable
"""

from __future__ import annotations

# File extension
EXTENSION = ".grif"

# A value is a script when its first non-whitespace character is this
SCRIPT_PREFIX = "@"

# Quoted dialect delimiters
OBJECT_START = "{"
OBJECT_END = "}"
QUOTE = '"'
KEY_SEPARATOR = ":"
ENTRY_SEPARATORS = frozenset(",;")

# Comment markers (skipped as insignificant text)
LINE_COMMENT = "//"
BLOCK_COMMENT_START = "/*"
BLOCK_COMMENT_END = "*/"

# Legacy dialect
LINE_TERMINATORS = frozenset("\r\n")
CONTINUATION_CHARS = frozenset("\t ")
VALUE_INDENT = "\t"

# Key structure
KEY_SEPARATOR_DOT = "."
WILDCARD_SEGMENTS = ("*", "?", "#")  # sort precedence, first sorts earliest

# Short escapes accepted by the reader
ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    '"': '"',
    "\\": "\\",
    "/": "/",
}
UNICODE_ESCAPE_DIGITS = 4

# Safety limits
MAX_FILE_SIZE = 100 * 1024 * 1024  # 100MB max file size for reader

# Characters the writer keeps literal inside script values
_SCRIPT_LITERALS = frozenset("\r\n\t")


def is_script_value(value: str) -> bool:
    """True if the value holds script source (leading whitespace, then @)."""
    return value.lstrip().startswith(SCRIPT_PREFIX)


def encode_string(value: str) -> str:
    """Escape a key or value for use between double quotes.

    Printable ASCII passes through, ``"`` and ``\\`` get a backslash, and
    everything else becomes ``\\uXXXX``. Characters outside the BMP are
    written as a surrogate pair so the escape stays four digits wide.
    """
    script = is_script_value(value)
    out: list[str] = []
    for c in value:
        if c == '"' or c == "\\":
            out.append("\\" + c)
        elif " " <= c <= "~":
            out.append(c)
        elif script and c in _SCRIPT_LITERALS:
            out.append(c)
        else:
            code = ord(c)
            if code > 0xFFFF:
                code -= 0x10000
                out.append(f"\\u{0xD800 + (code >> 10):04x}")
                out.append(f"\\u{0xDC00 + (code & 0x3FF):04x}")
            else:
                out.append(f"\\u{code:04x}")
    return "".join(out)


def decode_string(text: str) -> str:
    """Inverse of encode_string: unescape the body of a quoted string."""
    from grif.scanner import read_quoted_string

    value, _ = read_quoted_string(QUOTE + text + QUOTE, 0)
    return value
