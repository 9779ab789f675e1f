"""
GRIF Key ordering - Deterministic, case-insensitive order for dotted keys.

Keys are compared segment by segment (split on "."):
    - a key that runs out of segments first sorts earlier
    - wildcard segments sort first, "*" then "?" then "#"
    - integer segments compare numerically ("item.2" before "item.10");
      equal numbers such as "01" and "1" leave it to the next segment
    - anything else compares as case-insensitive text

Integer segments sort ahead of text segments. Comparing a number against
text lexically (as for two text segments) is not transitive, e.g.
"9" < "10" numerically, "10" < "5a" and "5a" < "9" as text.
"""

from __future__ import annotations

import functools
import re
from typing import Iterable

from grif.spec import KEY_SEPARATOR_DOT, WILDCARD_SEGMENTS

# Same shape int.TryParse accepts: optional sign, digits, surrounding spaces
_INTEGER = re.compile(r"\s*[+-]?[0-9]+\s*\Z")
_INT32_MIN = -(2 ** 31)
_INT32_MAX = 2 ** 31 - 1

_RANK_INTEGER = len(WILDCARD_SEGMENTS)
_RANK_TEXT = _RANK_INTEGER + 1


def _as_int(segment: str) -> int | None:
    if not _INTEGER.match(segment):
        return None
    value = int(segment)
    if value < _INT32_MIN or value > _INT32_MAX:
        return None
    return value


def _segment_rank(segment: str) -> tuple:
    if segment in WILDCARD_SEGMENTS:
        return (WILDCARD_SEGMENTS.index(segment),)
    number = _as_int(segment)
    if number is not None:
        return (_RANK_INTEGER, number)
    return (_RANK_TEXT, segment.upper())


def key_order(key: str) -> tuple:
    """Sort key for a dotted key; ``sorted(keys, key=key_order)`` matches compare_keys.

    Segments compare by rank first, so "01" and "1" count as the same
    number and the next segment decides. Only keys equal segment by segment
    fall back to their upper-cased text, which keeps "a.01" and "a.1" apart.
    """
    segments = key.split(KEY_SEPARATOR_DOT)
    return (
        tuple(_segment_rank(s) for s in segments),
        tuple(s.upper() for s in segments),
    )


def compare_keys(x: str, y: str) -> int:
    """Compare two keys. Returns -1, 0 or 1."""
    if x.upper() == y.upper():
        return 0
    kx, ky = key_order(x), key_order(y)
    if kx < ky:
        return -1
    if kx > ky:
        return 1
    return 0


def sort_keys(keys: Iterable[str]) -> list[str]:
    """Return the keys in export order."""
    return sorted(keys, key=functools.cmp_to_key(compare_keys))
