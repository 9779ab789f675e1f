"""
GRIF Writer - Serializes key/value data to either dialect.

Output order is always the key comparator's order, so the same data
always produces the same text.

Legacy output:
    key
    	value
Quoted (JSON) output:
    {
    	"key": "value",
    	"key2": "value2"
    }

Script values are pretty-printed for legacy output and compressed for
JSON output. What happens when the formatter fails is a ScriptErrorPolicy;
legacy output falls back to the raw script, JSON output raises.
"""

from __future__ import annotations

import enum
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Iterable, Mapping, Protocol

from grif.errors import ScriptFormatError
from grif.keys import sort_keys
from grif.script import DagsFormatter, ScriptFormatter
from grif.spec import (
    OBJECT_START, OBJECT_END, QUOTE, VALUE_INDENT, EXTENSION,
    encode_string, is_script_value,
)

logger = logging.getLogger(__name__)

# Line breaks the legacy dialect recognises
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class ScriptErrorPolicy(enum.Enum):
    FALLBACK = "fallback"  # keep the unformatted script
    RAISE = "raise"


class KeyValueStore(Protocol):
    """What the writer needs from a store. ``overlay_keys`` is optional."""

    def __getitem__(self, key: str) -> str: ...

    def keys(self) -> Iterable[str]: ...


def store_keys(store: KeyValueStore, overlay_only: bool = False) -> list[str]:
    """Keys to export. Stores without layers export everything for overlay_only."""
    if overlay_only and hasattr(store, "overlay_keys"):
        return list(store.overlay_keys())
    return list(store.keys())


class GRIFWriter:

    @staticmethod
    def serialize(
        store: KeyValueStore | Mapping[str, str],
        keys: Iterable[str] | None = None,
        json_mode: bool = False,
        formatter: ScriptFormatter | None = None,
        script_errors: ScriptErrorPolicy | None = None,
    ) -> str:
        """Render ``keys`` (default: every key in the store) as GRIF text."""
        if keys is None:
            keys = store.keys()
        if formatter is None:
            formatter = DagsFormatter()
        if script_errors is None:
            script_errors = ScriptErrorPolicy.RAISE if json_mode else ScriptErrorPolicy.FALLBACK

        ordered = sort_keys(keys)
        if json_mode:
            lines = []
            for key in ordered:
                value = store[key]
                if is_script_value(value):
                    value = _format_script(formatter.compress, value, script_errors)
                lines.append(f"{VALUE_INDENT}{QUOTE}{encode_string(key)}{QUOTE}: {QUOTE}{encode_string(value)}{QUOTE}")
            return OBJECT_START + "\n" + ",\n".join(lines) + "\n" + OBJECT_END

        out: list[str] = []
        for key in ordered:
            value = store[key]
            if is_script_value(value):
                value = _format_script(formatter.pretty, value, script_errors)
            out.append(key + "\n")
            for line in _LINE_BREAK.split(value):
                out.append(VALUE_INDENT + line + "\n")
        return "".join(out)

    @staticmethod
    def dumps(
        store: KeyValueStore,
        overlay_only: bool = False,
        json_mode: bool = False,
        formatter: ScriptFormatter | None = None,
    ) -> str:
        """Serialize a whole store, or just its overlay layer."""
        keys = store_keys(store, overlay_only)
        return GRIFWriter.serialize(store, keys, json_mode=json_mode, formatter=formatter)

    @staticmethod
    def write(
        path: str | Path,
        store: KeyValueStore,
        json_mode: bool = False,
        overlay_only: bool = False,
        formatter: ScriptFormatter | None = None,
        mode: int = 0o644,
    ) -> int:
        """Write a store to a file atomically. Returns bytes written.

        The parent directory is created when missing. The text is written
        to a temp file in the same directory, then renamed over the target,
        so an interrupted save never leaves a truncated data file.
        """
        path = Path(path)
        text = GRIFWriter.dumps(store, overlay_only=overlay_only, json_mode=json_mode, formatter=formatter)
        data = text.encode("utf-8")

        dir_name = path.resolve().parent
        if not dir_name.is_dir():
            logger.debug("Creating directory %s", dir_name)
            dir_name.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(dir_name), suffix=EXTENSION + ".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, mode)
            os.replace(tmp_path, path)
        except Exception:
            # Clean up temp file on failure
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
        logger.debug("Wrote %d bytes to %s", len(data), path)
        return len(data)


def _format_script(operation, value: str, policy: ScriptErrorPolicy) -> str:
    try:
        return operation(value)
    except Exception as e:
        if policy is ScriptErrorPolicy.RAISE:
            if isinstance(e, ScriptFormatError):
                raise
            raise ScriptFormatError(str(e)) from e
        logger.warning("Script left unformatted: %s", e)
        return value
