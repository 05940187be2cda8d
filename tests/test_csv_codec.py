"""Unit tests for the CSV codec (domain.csv_codec)."""

import pytest

from rental_backoffice.domain import csv_codec
from rental_backoffice.errors import EmptyFile, MalformedInput


class TestEncode:

    def test_quotes_value_with_comma(self):
        assert csv_codec.encode([{"name": "A,B", "age": 5}]) == 'name,age\n"A,B",5'

    def test_doubles_inner_quotes(self):
        text = csv_codec.encode([{"note": 'a,"b"'}])
        assert text == 'note\n"a,""b"""'

    def test_quote_without_comma_is_still_wrapped(self):
        assert csv_codec.encode([{"v": 'say "hi"'}]) == 'v\n"say ""hi"""'

    def test_empty_input_has_no_header(self):
        assert csv_codec.encode([]) == ""

    def test_header_comes_from_first_record(self):
        records = [{"a": 1, "b": 2}, {"a": 3, "c": 4}]
        assert csv_codec.encode(records) == "a,b\n1,2\n3,"

    def test_scalar_stringification(self):
        text = csv_codec.encode([{"ok": True, "off": False, "none": None, "f": 2.0, "g": 2.5}])
        assert text.split("\n")[1] == "true,false,,2,2.5"


class TestParseLine:

    def test_plain_fields_are_trimmed(self):
        assert csv_codec.parse_line(" a , b ,c") == ["a", "b", "c"]

    def test_escaped_quotes_inside_quoted_field(self):
        assert csv_codec.parse_line('x,"He said ""hi""",y') == ["x", 'He said "hi"', "y"]

    def test_comma_inside_quotes_does_not_split(self):
        assert csv_codec.parse_line('"Thane, Maharashtra",400601') == ["Thane, Maharashtra", "400601"]

    def test_trailing_empty_field(self):
        assert csv_codec.parse_line("a,") == ["a", ""]


class TestDecode:

    def test_scenario_recovers_string_values(self):
        assert csv_codec.decode('name,age\n"A,B",5') == [{"name": "A,B", "age": "5"}]

    def test_quoted_value_round_trips(self):
        original = [{"note": 'a,"b"'}]
        assert csv_codec.decode(csv_codec.encode(original)) == original

    def test_round_trip_preserves_field_order(self):
        records = [
            {"id": "1", "make": "Maruti", "model": "Swift", "status": "Available"},
            {"id": "2", "make": "Hyundai", "model": "Creta, SX", "status": "Rented"},
        ]
        decoded = csv_codec.decode(csv_codec.encode(records))
        assert decoded == records
        assert list(decoded[0].keys()) == ["id", "make", "model", "status"]

    def test_header_quotes_are_removed(self):
        assert csv_codec.decode('"name", "age"\nx,1') == [{"name": "x", "age": "1"}]

    def test_missing_trailing_fields_default_to_empty(self):
        assert csv_codec.decode("a,b,c\n1") == [{"a": "1", "b": "", "c": ""}]

    def test_extra_fields_are_ignored(self):
        assert csv_codec.decode("a\n1,2,3") == [{"a": "1"}]

    def test_blank_lines_are_skipped(self):
        assert csv_codec.decode("a,b\n\n1,2\n   \n3,4\n") == [{"a": "1", "b": "2"}, {"a": "3", "b": "4"}]

    def test_single_column_empty_value_is_dropped(self):
        text = csv_codec.encode([{"a": "x"}, {"a": ""}])
        assert text == "a\nx\n"
        assert csv_codec.decode(text) == [{"a": "x"}]

    def test_crlf_line_endings(self):
        assert csv_codec.decode("a,b\r\n1,2\r\n") == [{"a": "1", "b": "2"}]

    def test_header_only_raises_empty_file(self):
        with pytest.raises(EmptyFile):
            csv_codec.decode("name,phone\n")

    def test_empty_file_is_malformed_input(self):
        with pytest.raises(MalformedInput):
            csv_codec.decode("\n\n  \n")
