"""
GRIF - Persistence for layered key/value game data.

Reads and writes the human-editable GRIF text format and its strict
JSON-compatible dialect.
"""

__version__ = "0.2.0"

from grif.spec import EXTENSION, encode_string, decode_string, is_script_value
from grif.errors import GRIFError, MalformedInputError, ScriptFormatError
from grif.keys import compare_keys, sort_keys
from grif.document import Entry, GRIFDocument
from grif.reader import Dialect, GRIFReader, detect_dialect
from grif.writer import GRIFWriter, ScriptErrorPolicy
from grif.script import DagsFormatter, ScriptFormatter
