"""
GRIF Document - In-memory two-layer key/value store.

Keys are case-insensitive and keep the spelling they were last written
with. Reads look in the overlay first, then the base layer; writes always
go to the overlay, so saving ``overlay_only`` yields just the local changes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Mapping, NamedTuple


class Entry(NamedTuple):
    """A single key/value pair as read from or written to text."""
    key: str
    value: str


def _fold(key: str) -> str:
    return key.upper()


@dataclass
class GRIFDocument:
    """
    In-memory GRIF data.

    Usage:
        base = GRIFDocument.from_mapping({"room.1.name": "Kitchen"})
        doc = GRIFDocument(base=base)
        doc["room.1.name"] = "Scullery"
        doc.overlay_keys()   # ["room.1.name"]
    """

    base: GRIFDocument | None = None
    _overlay: dict[str, Entry] = field(default_factory=dict, repr=False)

    @classmethod
    def from_mapping(cls, data: Mapping[str, str], base: GRIFDocument | None = None) -> GRIFDocument:
        doc = cls(base=base)
        for key, value in data.items():
            doc[key] = value
        return doc

    def __getitem__(self, key: str) -> str:
        entry = self._overlay.get(_fold(key))
        if entry is not None:
            return entry.value
        if self.base is not None:
            return self.base[key]
        raise KeyError(key)

    def __setitem__(self, key: str, value: str) -> None:
        if not key:
            raise ValueError("Key cannot be empty")
        self._overlay[_fold(key)] = Entry(key, value)

    def __delitem__(self, key: str) -> None:
        """Remove a key from the overlay. Base values become visible again."""
        del self._overlay[_fold(key)]

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        if _fold(key) in self._overlay:
            return True
        return self.base is not None and key in self.base

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self.keys())

    def get(self, key: str, default: str | None = None) -> str | None:
        try:
            return self[key]
        except KeyError:
            return default

    def keys(self) -> list[str]:
        """All keys, overlay spelling winning over the base layer."""
        merged: dict[str, str] = {}
        if self.base is not None:
            for key in self.base.keys():
                merged[_fold(key)] = key
        for folded, entry in self._overlay.items():
            merged[folded] = entry.key
        return list(merged.values())

    def overlay_keys(self) -> list[str]:
        """Keys defined in this layer only."""
        return [entry.key for entry in self._overlay.values()]

    def items(self) -> list[Entry]:
        return [Entry(key, self[key]) for key in self.keys()]

    def update(self, entries: Mapping[str, str] | list[Entry]) -> None:
        pairs = entries.items() if isinstance(entries, Mapping) else entries
        for key, value in pairs:
            self[key] = value

    def __repr__(self) -> str:
        layers = 1 if self.base is None else 2
        return f"GRIFDocument(keys={len(self)}, overlay={len(self._overlay)}, layers={layers})"
