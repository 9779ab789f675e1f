"""
GRIF CLI - Command-line interface for GRIF data files.

Commands:
  grif inspect  - Show dialect, entry count and duplicate keys of a file
  grif get      - Print the value of one key
  grif keys     - List keys in export order
  grif set      - Set a key and save the file
  grif validate - Check that a file parses
  grif convert  - Convert between the legacy and JSON dialects
  grif format   - Rewrite a file in canonical (sorted) form
  grif identify - Report which dialect a file uses
  grif view     - Browse a file in the terminal (TUI)
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

_TRUTHY = {"1", "true", "yes", "on"}


def _json_mode(args: argparse.Namespace) -> bool:
    """Output dialect: --json/--grif win, then GRIF_JSON, then legacy."""
    if getattr(args, "json", None) is not None:
        return args.json
    return os.environ.get("GRIF_JSON", "").strip().lower() in _TRUTHY


def _configure_logging(verbose: int) -> None:
    level_name = os.environ.get("GRIF_LOG_LEVEL", "").upper()
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = getattr(logging, level_name, logging.WARNING) if level_name else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)


def _load(path: str, pretty_scripts: bool = False):
    """Load a file into a GRIFDocument, exiting with a message on failure."""
    from grif.document import GRIFDocument
    from grif.errors import MalformedInputError
    from grif.reader import GRIFReader
    from grif.script import DagsFormatter

    doc = GRIFDocument()
    try:
        GRIFReader.load(path, doc, formatter=DagsFormatter() if pretty_scripts else None)
    except FileNotFoundError:
        print(f"Error: File not found: {path}", file=sys.stderr)
        sys.exit(1)
    except MalformedInputError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    return doc


def cmd_inspect(args: argparse.Namespace) -> None:
    """Show dialect, entry count and duplicate keys."""
    from grif.reader import GRIFReader
    from grif.spec import is_script_value

    try:
        entries = GRIFReader.read(args.path)
        dialect = GRIFReader.detect(args.path)
    except FileNotFoundError:
        print(f"Error: File not found: {args.path}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    seen: dict[str, int] = {}
    for key, _ in entries:
        if key:
            seen[key.upper()] = seen.get(key.upper(), 0) + 1
    duplicates = [k for k, count in seen.items() if count > 1]
    scripts = sum(1 for key, value in entries if key and is_script_value(value))

    print(f"FILE:       {args.path}")
    print(f"DIALECT:    {dialect.value}")
    print(f"ENTRIES:    {len(entries)}")
    print(f"KEYS:       {len(seen)}")
    print(f"SCRIPTS:    {scripts}")
    if duplicates:
        print(f"DUPLICATES: {', '.join(sorted(duplicates))}")


def cmd_get(args: argparse.Namespace) -> None:
    """Print the value of one key."""
    doc = _load(args.path, pretty_scripts=args.pretty)
    value = doc.get(args.key)
    if value is None:
        print(f"Key '{args.key}' not found.", file=sys.stderr)
        sys.exit(1)
    print(value)


def cmd_keys(args: argparse.Namespace) -> None:
    """List keys in export order."""
    from grif.keys import sort_keys

    doc = _load(args.path)
    prefix = (args.prefix or "").upper()
    for key in sort_keys(doc.keys()):
        if key.upper().startswith(prefix):
            print(key)


def cmd_set(args: argparse.Namespace) -> None:
    """Set a key and save the file in its current dialect."""
    from grif.reader import Dialect, GRIFReader
    from grif.writer import GRIFWriter

    path = Path(args.path)
    if path.exists():
        doc = _load(args.path)
        json_mode = args.json if args.json is not None else GRIFReader.detect(path) is Dialect.QUOTED
    else:
        from grif.document import GRIFDocument
        doc = GRIFDocument()
        json_mode = _json_mode(args)
    if not args.key:
        print("Error: Key cannot be empty", file=sys.stderr)
        sys.exit(1)
    doc[args.key] = args.value
    nbytes = GRIFWriter.write(path, doc, json_mode=json_mode)
    print(f"Saved {path} ({nbytes} bytes)")


def cmd_validate(args: argparse.Namespace) -> None:
    """Check that a file parses."""
    from grif.errors import MalformedInputError
    from grif.reader import GRIFReader

    path = args.path
    if not Path(path).is_file():
        print(f"FAIL: {path} not found")
        sys.exit(1)
    try:
        entries = GRIFReader.read(path)
    except MalformedInputError as e:
        print(f"FAIL: parse error: {e}")
        sys.exit(1)
    except ValueError:
        print("FAIL: unable to read file (not UTF-8 text or too large)")
        sys.exit(1)
    empty = sum(1 for key, _ in entries if not key)
    print(f"OK: {path} ({len(entries) - empty} entries)")
    if empty:
        print(f"    Skipped {empty} entries with an empty key")


def cmd_convert(args: argparse.Namespace) -> None:
    """Convert between the legacy and JSON dialects."""
    from grif.errors import ScriptFormatError
    from grif.reader import Dialect, GRIFReader
    from grif.writer import GRIFWriter

    doc = _load(args.input)
    if args.json is None:
        # Flip the dialect unless told otherwise
        json_mode = GRIFReader.detect(args.input) is not Dialect.QUOTED
    else:
        json_mode = args.json

    try:
        if args.output:
            if ".." in Path(args.output).parts:
                print("Error: Output path must not contain '..' (path traversal)", file=sys.stderr)
                sys.exit(1)
            nbytes = GRIFWriter.write(args.output, doc, json_mode=json_mode)
            print(f"Converted {args.input} -> {args.output} ({nbytes} bytes)")
        else:
            print(GRIFWriter.dumps(doc, json_mode=json_mode))
    except ScriptFormatError as e:
        print(f"Error: cannot compress script: {e}", file=sys.stderr)
        sys.exit(1)


def cmd_format(args: argparse.Namespace) -> None:
    """Rewrite a file sorted, in its own dialect unless --json/--grif is given."""
    from grif.errors import ScriptFormatError
    from grif.reader import Dialect, GRIFReader
    from grif.writer import GRIFWriter

    doc = _load(args.path)
    json_mode = args.json if args.json is not None else GRIFReader.detect(args.path) is Dialect.QUOTED
    try:
        nbytes = GRIFWriter.write(args.path, doc, json_mode=json_mode)
    except ScriptFormatError as e:
        print(f"Error: cannot compress script: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"Formatted {args.path} ({len(doc)} keys, {nbytes} bytes)")


def cmd_identify(args: argparse.Namespace) -> None:
    """Report which dialect a file uses."""
    from grif.reader import GRIFReader

    if not Path(args.path).is_file():
        print(f"{args.path}: not found")
        sys.exit(1)
    dialect = GRIFReader.detect(args.path)
    print(f"{args.path}: GRIF ({dialect.value} dialect)")


def cmd_view(args: argparse.Namespace) -> None:
    """Browse a file in the terminal."""
    try:
        from grif.tui.viewer import run_viewer
    except ImportError:
        print(
            "TUI viewer requires the 'textual' package.\n"
            "Install it with: pip install \"grif[tui]\"",
            file=sys.stderr,
        )
        sys.exit(1)
    run_viewer(args.path)


def _add_dialect_flags(p: argparse.ArgumentParser) -> None:
    group = p.add_mutually_exclusive_group()
    group.add_argument("--json", dest="json", action="store_true", default=None, help="Write the JSON dialect")
    group.add_argument("--grif", dest="json", action="store_false", help="Write the legacy GRIF dialect")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="grif",
        description="GRIF - layered key/value data files.",
    )
    from grif import __version__
    parser.add_argument("--version", action="version", version=f"grif {__version__}")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-vv for debug)")
    sub = parser.add_subparsers(dest="command")

    # inspect
    p_inspect = sub.add_parser("inspect", help="Show dialect and entry counts")
    p_inspect.add_argument("path", help="Path to data file")

    # get
    p_get = sub.add_parser("get", help="Print the value of a key")
    p_get.add_argument("path", help="Path to data file")
    p_get.add_argument("key", help="Key to read")
    p_get.add_argument("--pretty", action="store_true", help="Pretty-print script values")

    # keys
    p_keys = sub.add_parser("keys", help="List keys in sorted order")
    p_keys.add_argument("path", help="Path to data file")
    p_keys.add_argument("--prefix", help="Only keys starting with this prefix")

    # set
    p_set = sub.add_parser("set", help="Set a key and save the file")
    p_set.add_argument("path", help="Path to data file (created if missing)")
    p_set.add_argument("key", help="Key to write")
    p_set.add_argument("value", help="Value to store")
    _add_dialect_flags(p_set)

    # validate
    p_validate = sub.add_parser("validate", help="Check that a file parses")
    p_validate.add_argument("path", help="Path to data file")

    # convert
    p_convert = sub.add_parser("convert", help="Convert between dialects")
    p_convert.add_argument("input", help="Input file path")
    p_convert.add_argument("-o", "--output", help="Output file path (default: stdout)")
    _add_dialect_flags(p_convert)

    # format
    p_format = sub.add_parser("format", help="Rewrite a file in sorted order")
    p_format.add_argument("path", help="Path to data file")
    _add_dialect_flags(p_format)

    # identify
    p_identify = sub.add_parser("identify", help="Report the dialect of a file")
    p_identify.add_argument("path", help="Path to file")

    # view
    p_view = sub.add_parser("view", help="Browse a file in the terminal")
    p_view.add_argument("path", help="Path to data file")

    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if not args.command:
        print("GRIF - layered key/value data files\n")
        print("Usage:")
        print("  grif inspect game.grif")
        print("  grif get game.grif room.1.name")
        print("  grif keys game.grif --prefix room.")
        print("  grif set save.grif player.room 3")
        print("  grif validate game.grif")
        print("  grif convert game.grif -o game.json --json")
        print("  grif format game.grif")
        print("  grif identify game.grif")
        print("  grif view game.grif")
        print()
        print("Set GRIF_JSON=1 to write new files in the JSON dialect.")
        print("Run 'grif <command> --help' for details on any command.")
        sys.exit(0)

    commands = {
        "inspect": cmd_inspect,
        "get": cmd_get,
        "keys": cmd_keys,
        "set": cmd_set,
        "validate": cmd_validate,
        "convert": cmd_convert,
        "format": cmd_format,
        "identify": cmd_identify,
        "view": cmd_view,
    }

    commands[args.command](args)


if __name__ == "__main__":
    main()
