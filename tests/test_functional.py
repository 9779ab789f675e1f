"""
Functional Tests - Test reader, writer, and document working together.
"""

import logging

import pytest

from grif.document import Entry, GRIFDocument
from grif.errors import MalformedInputError, ScriptFormatError
from grif.reader import Dialect, GRIFReader, detect_dialect
from grif.script import DagsFormatter
from grif.writer import GRIFWriter, ScriptErrorPolicy


class UpperFormatter:
    """Stand-in formatter that makes its work visible."""

    def pretty(self, script):
        return script.upper()

    def compress(self, script):
        return script.lower()


class BrokenFormatter:
    """Formatter that fails without raising ScriptFormatError."""

    def pretty(self, script):
        raise RuntimeError("formatter exploded")

    def compress(self, script):
        raise RuntimeError("formatter exploded")


# =============================================================================
# Dialect detection
# =============================================================================

class TestDetectDialect:

    def test_brace_selects_quoted(self):
        assert detect_dialect('{"a": "1"}') == (Dialect.QUOTED, 0)

    def test_brace_after_comments(self):
        text = '// header\n/* note */\n  {"a": "1"}'
        dialect, pos = detect_dialect(text)
        assert dialect is Dialect.QUOTED
        assert text[pos] == "{"

    def test_anything_else_is_legacy(self):
        assert detect_dialect("room.1\n\tKitchen")[0] is Dialect.LEGACY
        assert detect_dialect('"a": "1"')[0] is Dialect.LEGACY

    def test_empty_text(self):
        assert detect_dialect("") == (Dialect.LEGACY, 0)


# =============================================================================
# Legacy dialect
# =============================================================================

class TestLegacyParser:

    def test_key_and_value(self):
        assert GRIFReader.parse("room.1.name\n\tKitchen\n") == [Entry("room.1.name", "Kitchen")]

    def test_continuation_lines_joined(self):
        entries = GRIFReader.parse("key1\n\tline one\n\tline two\n")
        assert entries == [Entry("key1", "line one line two")]

    def test_space_indent_and_mixed_runs(self):
        entries = GRIFReader.parse("k\n    four spaces\n\t \tmixed\n")
        assert entries == [Entry("k", "four spaces mixed")]

    def test_key_without_value(self):
        entries = GRIFReader.parse("a\nb\n\tx\n")
        assert entries == [Entry("a", ""), Entry("b", "x")]

    def test_blank_and_whitespace_only_lines_skipped(self):
        entries = GRIFReader.parse("a\n\n\tone\n\t  \n\n\ttwo\n\n\nb\n\tthree")
        assert entries == [Entry("a", "one two"), Entry("b", "three")]

    def test_whitespace_only_line_inside_value(self):
        # skipped outright: no empty part, so no double space
        assert GRIFReader.parse("a\n\t1\n\t\n\t2") == [Entry("a", "1 2")]

    def test_line_endings(self):
        assert GRIFReader.parse("a\r\n\tv\r\nb\r\tw\r") == [Entry("a", "v"), Entry("b", "w")]

    def test_no_escape_processing(self):
        entries = GRIFReader.parse('path\n\tC:\\games\\"save"\\u0041\n')
        assert entries[0].value == 'C:\\games\\"save"\\u0041'

    def test_key_line_verbatim(self):
        entries = GRIFReader.parse("key with spaces  \n\tv")
        assert entries[0].key == "key with spaces  "

    def test_leading_comments_skipped(self):
        entries = GRIFReader.parse("// generated\n/* block\n comment */\nk\n\tv\n")
        assert entries == [Entry("k", "v")]

    def test_trailing_text_in_value_kept(self):
        entries = GRIFReader.parse("s\n\t@write(\"a // not a comment\")\n")
        assert entries[0].value == '@write("a // not a comment")'

    def test_duplicates_kept_in_order(self):
        entries = GRIFReader.parse("a\n\t1\nA\n\t2\n")
        assert entries == [Entry("a", "1"), Entry("A", "2")]


# =============================================================================
# Quoted dialect
# =============================================================================

class TestQuotedParser:

    def test_basic_object(self):
        entries = GRIFReader.parse('{"a": "1", "b": "2"}')
        assert entries == [Entry("a", "1"), Entry("b", "2")]

    def test_trailing_comma(self):
        assert GRIFReader.parse('{"a": "1",}') == [Entry("a", "1")]

    def test_semicolon_separator(self):
        assert GRIFReader.parse('{"a": "1"; "b": "2";}') == [Entry("a", "1"), Entry("b", "2")]

    def test_repeated_separators(self):
        assert GRIFReader.parse('{,, "a": "1" ,;, "b": "2" ,,}') == [Entry("a", "1"), Entry("b", "2")]

    def test_comments_between_tokens(self):
        text = '{ /* c */ "a" /* d */ : // e\n "1" // f\n , "b":"2" }'
        assert GRIFReader.parse(text) == [Entry("a", "1"), Entry("b", "2")]

    def test_escapes_decoded(self):
        entries = GRIFReader.parse(r'{"k\u0041": "line\none\ttab \"q\" \\"}')
        assert entries == [Entry("kA", 'line\none\ttab "q" \\')]

    def test_empty_object(self):
        assert GRIFReader.parse("{}") == []
        assert GRIFReader.parse("{\n\n}") == []

    def test_missing_close_brace(self):
        assert GRIFReader.parse('{"a": "1",') == [Entry("a", "1")]

    def test_text_after_close_brace_ignored(self):
        assert GRIFReader.parse('{"a": "1"} trailing words') == [Entry("a", "1")]

    def test_missing_colon_reports_key_and_offset(self):
        with pytest.raises(MalformedInputError) as exc_info:
            GRIFReader.parse('{"k" "v"}')
        err = exc_info.value
        assert err.key == "k"
        assert err.offset == 5
        assert str(err) == 'Error loading data: Key "k": Invalid char at 5 - """ should be ":"'

    def test_missing_separator_between_entries(self):
        with pytest.raises(MalformedInputError) as exc_info:
            GRIFReader.parse('{"a": "1" "b": "2"}')
        assert exc_info.value.key == "a"
        assert "should be comma" in str(exc_info.value)

    def test_unquoted_key(self):
        with pytest.raises(MalformedInputError) as exc_info:
            GRIFReader.parse("{a: 1}")
        assert exc_info.value.key is None
        assert exc_info.value.offset == 1

    def test_bad_escape_in_value(self):
        with pytest.raises(MalformedInputError) as exc_info:
            GRIFReader.parse(r'{"k": "\q"}')
        assert exc_info.value.key == "k"
        assert "Unexpected escaped char" in str(exc_info.value)

    def test_end_of_input_message_has_offset(self):
        with pytest.raises(MalformedInputError) as exc_info:
            GRIFReader.parse('{"k":')
        assert exc_info.value.offset == 5
        assert str(exc_info.value) == 'Error loading data: Key "k": Unexpected end of input at 5'

    def test_bad_escape_message_has_offset(self):
        with pytest.raises(MalformedInputError) as exc_info:
            GRIFReader.parse(r'{"k":"\q"}')
        assert exc_info.value.offset == 7
        assert str(exc_info.value) == 'Error loading data: Key "k": Unexpected escaped char at 7: "\\q"'

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            GRIFReader.parse('{"k": ')


# =============================================================================
# Loading into a store
# =============================================================================

class TestLoad:

    def test_load_into_dict(self):
        target = {}
        count = GRIFReader.load_text('{"a": "1", "b": "2"}', target)
        assert count == 2
        assert target == {"a": "1", "b": "2"}

    def test_existing_data_kept(self):
        target = {"old": "x"}
        GRIFReader.load_text("new\n\ty\n", target)
        assert target == {"old": "x", "new": "y"}

    def test_empty_key_dropped(self):
        target = {}
        count = GRIFReader.load_text('{"": "nothing", "a": "1"}', target)
        assert count == 1
        assert target == {"a": "1"}

    def test_duplicates_last_wins(self, caplog):
        doc = GRIFDocument()
        with caplog.at_level(logging.DEBUG, logger="grif.reader"):
            GRIFReader.load_text('{"room": "1", "ROOM": "2"}', doc)
        assert len(doc) == 1
        assert doc["room"] == "2"
        assert "Duplicate key" in caplog.text

    def test_failed_load_leaves_target_unchanged(self):
        doc = GRIFDocument.from_mapping({"keep": "me"})
        with pytest.raises(MalformedInputError):
            GRIFReader.load_text('{"a": "1", "b": "2", "c" "3"}', doc)
        assert doc.keys() == ["keep"]

    def test_scripts_untouched_without_formatter(self):
        target = {}
        GRIFReader.load_text('{"s": "@a @b"}', target)
        assert target["s"] == "@a @b"

    def test_scripts_pretty_printed_with_formatter(self):
        target = {}
        GRIFReader.load_text('{"s": "@a @b", "t": "plain @a @b"}', target, formatter=DagsFormatter())
        assert target["s"] == "@a\n@b"
        assert target["t"] == "plain @a @b"

    def test_broken_formatter_keeps_raw_value(self, caplog):
        target = {}
        with caplog.at_level(logging.WARNING):
            GRIFReader.load_text('{"s": "@a @b"}', target, formatter=BrokenFormatter())
        assert target["s"] == "@a @b"
        assert "formatter exploded" in caplog.text

    def test_load_file(self, tmp_path):
        path = tmp_path / "game.grif"
        path.write_text("title\n\tThe Cave\n", encoding="utf-8")
        doc = GRIFDocument()
        assert GRIFReader.load(path, doc) == 1
        assert doc["TITLE"] == "The Cave"

    def test_load_file_with_bom(self, tmp_path):
        path = tmp_path / "bom.grif"
        path.write_bytes(b'\xef\xbb\xbf{"a": "1"}')
        assert GRIFReader.detect(path) is Dialect.QUOTED
        assert GRIFReader.read(path) == [Entry("a", "1")]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            GRIFReader.load(tmp_path / "nope.grif", {})

    def test_max_size(self, tmp_path):
        path = tmp_path / "big.grif"
        path.write_text("k\n\t" + "x" * 100, encoding="utf-8")
        with pytest.raises(ValueError, match="exceeds maximum"):
            GRIFReader.read(path, max_size=10)


# =============================================================================
# Writer
# =============================================================================

class TestWriterLegacy:

    def test_sorted_output(self):
        text = GRIFWriter.serialize({"b": "2", "a": "1", "a.10": "x", "a.2": "y"})
        assert text == "a\n\t1\na.2\n\ty\na.10\n\tx\nb\n\t2\n"

    def test_empty_store(self):
        assert GRIFWriter.serialize({}) == ""

    def test_empty_value(self):
        assert GRIFWriter.serialize({"k": ""}) == "k\n\t\n"

    def test_multiline_value_split(self):
        text = GRIFWriter.serialize({"k": "one\r\ntwo\rthree\nfour"})
        assert text == "k\n\tone\n\ttwo\n\tthree\n\tfour\n"

    def test_no_escaping(self):
        text = GRIFWriter.serialize({"k": 'quote " and \\ backslash'})
        assert text == 'k\n\tquote " and \\ backslash\n'

    def test_script_pretty_printed(self):
        text = GRIFWriter.serialize({"s": "@if @a @then @x @endif"})
        assert text == "s\n\t@if @a @then\n\t\t@x\n\t@endif\n"

    def test_script_error_falls_back(self, caplog):
        with caplog.at_level(logging.WARNING, logger="grif.writer"):
            text = GRIFWriter.serialize({"s": "@write("})
        assert text == "s\n\t@write(\n"
        assert "unformatted" in caplog.text

    def test_script_error_raise_policy(self):
        with pytest.raises(ScriptFormatError):
            GRIFWriter.serialize({"s": "@write("}, script_errors=ScriptErrorPolicy.RAISE)

    def test_custom_formatter(self):
        text = GRIFWriter.serialize({"s": "@go", "p": "plain"}, formatter=UpperFormatter())
        assert text == "p\n\tplain\ns\n\t@GO\n"

    def test_key_subset(self):
        text = GRIFWriter.serialize({"a": "1", "b": "2"}, keys=["b"])
        assert text == "b\n\t2\n"


class TestWriterJSON:

    def test_sorted_output(self):
        text = GRIFWriter.serialize({"b": "2", "a": "1"}, json_mode=True)
        assert text == '{\n\t"a": "1",\n\t"b": "2"\n}'

    def test_empty_store(self):
        assert GRIFWriter.serialize({}, json_mode=True) == "{\n\n}"

    def test_values_escaped(self):
        text = GRIFWriter.serialize({"k": 'a"b\\c\nd\u00e9'}, json_mode=True)
        assert text == '{\n\t"k": "a\\"b\\\\c\\u000ad\\u00e9"\n}'

    def test_keys_escaped(self):
        text = GRIFWriter.serialize({'we"ird': "v"}, json_mode=True)
        assert '"we\\"ird": "v"' in text

    def test_script_compressed(self):
        text = GRIFWriter.serialize({"s": "@if @a @then\n\t@x\n@endif"}, json_mode=True)
        assert text == '{\n\t"s": "@if @a @then @x @endif"\n}'

    def test_script_error_raises(self):
        with pytest.raises(ScriptFormatError):
            GRIFWriter.serialize({"s": "@write("}, json_mode=True)

    def test_script_error_fallback_policy(self):
        text = GRIFWriter.serialize(
            {"s": "@write("}, json_mode=True, script_errors=ScriptErrorPolicy.FALLBACK
        )
        assert text == '{\n\t"s": "@write("\n}'

    def test_foreign_exception_wrapped(self):
        with pytest.raises(ScriptFormatError, match="formatter exploded"):
            GRIFWriter.serialize({"s": "@x"}, json_mode=True, formatter=BrokenFormatter())

    def test_output_parses_as_json(self):
        import json
        data = {"b": "line\nbreak", "a": "tab\there", "c": "\u00fcber \U0001F600"}
        text = GRIFWriter.serialize(data, json_mode=True)
        assert json.loads(text) == data


class TestWriterFiles:

    def test_dumps_overlay_only(self):
        base = GRIFDocument.from_mapping({"a": "1", "b": "2"})
        doc = GRIFDocument(base=base)
        doc["b"] = "changed"
        assert GRIFWriter.dumps(doc) == "a\n\t1\nb\n\tchanged\n"
        assert GRIFWriter.dumps(doc, overlay_only=True) == "b\n\tchanged\n"

    def test_dumps_overlay_only_plain_mapping(self):
        assert GRIFWriter.dumps({"a": "1"}, overlay_only=True) == "a\n\t1\n"

    def test_write_creates_directories(self, tmp_path):
        path = tmp_path / "saves" / "slot1" / "save.grif"
        nbytes = GRIFWriter.write(path, GRIFDocument.from_mapping({"k": "v"}))
        assert path.read_bytes() == b"k\n\tv\n"
        assert nbytes == 5

    def test_write_overwrites(self, tmp_path):
        path = tmp_path / "save.grif"
        path.write_text("old\n\tstuff\n", encoding="utf-8")
        GRIFWriter.write(path, {"new": "data"}, json_mode=True)
        assert path.read_text(encoding="utf-8") == '{\n\t"new": "data"\n}'
        assert [p.name for p in tmp_path.iterdir()] == ["save.grif"]

    def test_write_counts_utf8_bytes(self, tmp_path):
        path = tmp_path / "u.grif"
        nbytes = GRIFWriter.write(path, {"k": "\u00e9"})
        assert nbytes == len(path.read_bytes()) == 6

    def test_failed_script_leaves_file_alone(self, tmp_path):
        path = tmp_path / "save.grif"
        path.write_text("keep\n\tme\n", encoding="utf-8")
        with pytest.raises(ScriptFormatError):
            GRIFWriter.write(path, {"s": "@write("}, json_mode=True)
        assert path.read_text(encoding="utf-8") == "keep\n\tme\n"
