"""
Tests for output extraction helpers (text, JSON, numbers).
"""

import pytest

from cogwork.cog.output import parse_json, parse_number
from cogwork.cogs.cmd import CmdOutput
from cogwork.errors import OutputParseError


def output(text: str) -> CmdOutput:
    return CmdOutput(stdout=text)


class TestText:
    def test_text_is_stripped(self):
        assert output("  hello\n\n").text() == "hello"

    def test_lines_are_stripped(self):
        assert output(" a \n b\n").lines() == ["a", "b"]

    def test_empty_output_has_no_lines(self):
        assert output("").lines() == []


class TestJson:
    def test_whole_string(self):
        assert output('{"a": 1}').json() == {"a": 1}

    def test_fenced_json_block(self):
        text = 'Here is the result:\n```json\n{"status": "ok"}\n```\nDone.'
        assert output(text).json() == {"status": "ok"}

    def test_last_json_block_wins(self):
        text = '```json\n{"draft": true}\n```\nrevised:\n```json\n{"draft": false}\n```'
        assert output(text).json() == {"draft": False}

    def test_json_block_preferred_over_bare_block(self):
        text = '```json\n{"tagged": 1}\n```\n```\n{"bare": 1}\n```'
        assert output(text).json() == {"tagged": 1}

    def test_bare_block(self):
        assert output("```\n[1, 2]\n```").json() == [1, 2]

    def test_other_language_block(self):
        assert output('```python\n{"x": 1}\n```').json() == {"x": 1}

    def test_longest_embedded_value(self):
        text = 'see [3] and {"a": [1, 2], "b": "c"} for details'
        assert output(text).json() == {"a": [1, 2], "b": "c"}

    def test_empty_text_is_empty_object(self):
        assert output("   ").json() == {}

    def test_unparseable_text(self):
        with pytest.raises(OutputParseError):
            output("no json here").json()
        assert output("no json here").json_or_none() is None

    def test_parse_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_json("{broken")


class TestNumber:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("42", "42"),
            ("$1,234.56", "1234.56"),
            ("The answer is 42", "42"),
            ("Total: 1_000 items", "1000"),
            ("-3.5", "-3.5"),
            ("1e3", "1e3"),
            ("first line\nsecond line 7", "7"),
        ],
    )
    def test_parse_number(self, text, expected):
        assert parse_number(text) == expected

    def test_to_float(self):
        assert output("€ 12.50").to_float() == 12.5

    @pytest.mark.parametrize(
        "text,expected",
        [("3.7", 4), ("2.5", 3), ("-2.5", -3), ("2.4", 2), ("1,000", 1000)],
    )
    def test_to_int_rounds_half_away_from_zero(self, text, expected):
        assert output(text).to_int() == expected

    def test_no_number(self):
        with pytest.raises(OutputParseError):
            output("nothing numeric").to_float()
        assert output("nothing numeric").to_float_or_none() is None
        assert output("nothing numeric").to_int_or_none() is None
