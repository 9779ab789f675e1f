"""
GRIF Reader - Parsers for the legacy and quoted dialects.

Both dialects produce a flat list of Entry(key, value) in input order.
Loading is two-phase: the whole text is parsed first, and only a
successful parse touches the caller's mapping. A grammar error therefore
never leaves a half-loaded store behind.

Dialect selection is a one-character lookahead: the first significant
character "{" selects the quoted dialect, anything else the legacy one.
"""

from __future__ import annotations

import enum
import logging
from pathlib import Path
from typing import MutableMapping, Protocol

from grif.document import Entry
from grif.errors import MalformedInputError
from grif.scanner import read_quoted_string, skip_insignificant
from grif.script import ScriptFormatter, pretty_or_raw
from grif.spec import (
    OBJECT_START, OBJECT_END, KEY_SEPARATOR, ENTRY_SEPARATORS,
    LINE_TERMINATORS, CONTINUATION_CHARS, MAX_FILE_SIZE, is_script_value,
)

logger = logging.getLogger(__name__)


class Dialect(enum.Enum):
    LEGACY = "grif"
    QUOTED = "json"


def detect_dialect(text: str) -> tuple[Dialect, int]:
    """Pick the dialect from the first significant character.

    Returns the dialect and the offset of that character, so parsing can
    start there without skipping the leading comments a second time.
    """
    pos = skip_insignificant(text, 0)
    if text.startswith(OBJECT_START, pos):
        return Dialect.QUOTED, pos
    return Dialect.LEGACY, pos


class DialectParser(Protocol):
    def parse(self, text: str, pos: int = 0) -> list[Entry]: ...


class LegacyParser:
    """Line-oriented dialect: a key line followed by indented value lines.

    Continuation lines (starting with tab or space) lose their leading
    tab/space run and are joined with a single space. Blank and
    whitespace-only lines are skipped. No escape processing happens.
    """

    def parse(self, text: str, pos: int = 0) -> list[Entry]:
        entries: list[Entry] = []
        n = len(text)
        while pos < n:
            pos = self._skip_terminators(text, pos)
            if pos >= n:
                break
            key, pos = self._read_line(text, pos)
            value, pos = self._read_value(text, pos)
            entries.append(Entry(key, value))
        return entries

    @staticmethod
    def _skip_terminators(text: str, pos: int) -> int:
        while pos < len(text) and text[pos] in LINE_TERMINATORS:
            pos += 1
        return pos

    @staticmethod
    def _read_line(text: str, pos: int) -> tuple[str, int]:
        end = pos
        while end < len(text) and text[end] not in LINE_TERMINATORS:
            end += 1
        return text[pos:end], end

    def _read_value(self, text: str, pos: int) -> tuple[str, int]:
        parts: list[str] = []
        n = len(text)
        while True:
            pos = self._skip_terminators(text, pos)
            if pos >= n or text[pos] not in CONTINUATION_CHARS:
                break
            while pos < n and text[pos] in CONTINUATION_CHARS:
                pos += 1
            line, pos = self._read_line(text, pos)
            if line.strip():
                parts.append(line)
        return " ".join(parts), pos


class QuotedParser:
    """Strict dialect: ``{"key": "value", ...}`` with relaxed separators.

    The surrounding braces are optional, "," and ";" both separate
    entries, repeated and trailing separators are allowed, and comments
    may appear between any two tokens.
    """

    def parse(self, text: str, pos: int = 0) -> list[Entry]:
        entries: list[Entry] = []
        n = len(text)
        pos = skip_insignificant(text, pos)
        if text.startswith(OBJECT_START, pos):
            pos += 1
        while True:
            pos = self._skip_separators(text, pos)
            if pos >= n:
                break
            if text[pos] == OBJECT_END:
                pos += 1
                break
            entry, pos = self._read_entry(text, pos)
            entries.append(entry)
        return entries

    @staticmethod
    def _skip_separators(text: str, pos: int) -> int:
        pos = skip_insignificant(text, pos)
        while pos < len(text) and text[pos] in ENTRY_SEPARATORS:
            pos = skip_insignificant(text, pos + 1)
        return pos

    def _read_entry(self, text: str, pos: int) -> tuple[Entry, int]:
        key = None
        try:
            key, pos = read_quoted_string(text, pos)
            pos = self._expect(text, skip_insignificant(text, pos), KEY_SEPARATOR, '":"')
            pos = skip_insignificant(text, pos + 1)
            value, pos = read_quoted_string(text, pos)
            pos = skip_insignificant(text, pos)
            if pos < len(text) and text[pos] not in ENTRY_SEPARATORS and text[pos] != OBJECT_END:
                raise MalformedInputError(
                    f'Invalid char at {pos} - "{text[pos]}" should be comma or "}}"', pos
                )
        except MalformedInputError as e:
            if key and e.key is None:
                raise MalformedInputError(e.reason, e.offset, key) from e
            raise
        return Entry(key, value), pos

    @staticmethod
    def _expect(text: str, pos: int, char: str, label: str) -> int:
        if pos >= len(text):
            raise MalformedInputError(f"Unexpected end of input at {pos}", pos)
        if text[pos] != char:
            raise MalformedInputError(
                f'Invalid char at {pos} - "{text[pos]}" should be {label}', pos
            )
        return pos


PARSERS: dict[Dialect, DialectParser] = {
    Dialect.LEGACY: LegacyParser(),
    Dialect.QUOTED: QuotedParser(),
}


class GRIFReader:
    """
    GRIF file reader.

    Usage:
        # Parse text into ordered entries
        entries = GRIFReader.parse(text)

        # Load a file into any mutable mapping (dict, GRIFDocument, ...)
        doc = GRIFDocument()
        GRIFReader.load("game.grif", doc)
    """

    @staticmethod
    def detect(path: str | Path) -> Dialect:
        """Dialect of a file, judged from its first significant character."""
        text = Path(path).read_text(encoding="utf-8-sig")
        return detect_dialect(text)[0]

    @classmethod
    def parse(cls, text: str) -> list[Entry]:
        """Parse GRIF text (either dialect) into entries, in input order."""
        dialect, pos = detect_dialect(text)
        try:
            entries = PARSERS[dialect].parse(text, pos)
        except MalformedInputError as e:
            raise MalformedInputError(e.reason, e.offset, e.key, context="Error loading data") from e
        logger.debug("Parsed %d entries (%s dialect)", len(entries), dialect.value)
        return entries

    @classmethod
    def load_text(
        cls,
        text: str,
        target: MutableMapping[str, str],
        formatter: ScriptFormatter | None = None,
    ) -> int:
        """Parse text and insert the entries into ``target``.

        Existing data is kept and duplicate keys are overwritten, last one
        winning. Entries with an empty key are dropped. With a formatter,
        script values are pretty-printed on the way in (best-effort).
        Returns the number of entries stored.
        """
        entries = cls.parse(text)
        stored = 0
        seen: set[str] = set()
        for key, value in entries:
            if not key:
                continue
            folded = key.upper()
            if folded in seen:
                logger.debug("Duplicate key %r overwritten", key)
            seen.add(folded)
            if formatter is not None and is_script_value(value):
                value = pretty_or_raw(formatter, value)
            target[key] = value
            stored += 1
        return stored

    @classmethod
    def read(cls, path: str | Path, max_size: int = MAX_FILE_SIZE) -> list[Entry]:
        """Read and parse a GRIF file into entries."""
        return cls.parse(cls._read_text(path, max_size))

    @classmethod
    def load(
        cls,
        path: str | Path,
        target: MutableMapping[str, str],
        formatter: ScriptFormatter | None = None,
        max_size: int = MAX_FILE_SIZE,
    ) -> int:
        """Load a GRIF file into ``target``. See load_text."""
        return cls.load_text(cls._read_text(path, max_size), target, formatter)

    @staticmethod
    def _read_text(path: str | Path, max_size: int) -> str:
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(str(path))
        file_size = path.stat().st_size
        if file_size > max_size:
            raise ValueError(
                f"File size {file_size} exceeds maximum {max_size} bytes. "
                f"Pass max_size= to override."
            )
        # newline="" keeps CR/LF as written; both parsers handle all three endings
        with open(path, "r", encoding="utf-8-sig", newline="") as f:
            return f.read()
