"""Tests for the skip-instances parser."""

import pytest

from utils.errors import ErrorType
from utils.skip_ranges import format_skip_set, parse_skip_spec, validate_skip_spec


class TestParseSkipSpec:
    def test_mixed_ranges_and_numbers(self):
        skip, error = parse_skip_spec("1-4, 7, 9", 10)
        assert skip == {1, 2, 3, 4, 7, 9}
        assert error is None

    @pytest.mark.parametrize("text", ["", "   ", None, ",,"])
    def test_empty(self, text):
        assert parse_skip_spec(text, 4) == (set(), None)

    def test_whitespace_around_separators(self):
        skip, error = parse_skip_spec("  2 -  3 ,5 ", 6)
        assert skip == {2, 3, 5}
        assert error is None

    def test_duplicates_collapse(self):
        skip, _ = parse_skip_spec("1-3, 2, 3", 5)
        assert skip == {1, 2, 3}

    def test_range_end_clamped(self):
        skip, error = parse_skip_spec("3-99", 4)
        assert skip == {3, 4}
        assert error is None

    def test_reversed_range(self):
        _, error = parse_skip_spec("5-3", 10)
        assert error is not None
        assert error.token == "5-3"
        assert error.error_type == ErrorType.SKIP_SPEC
        assert "5-3" in error.message

    def test_exceeds_total(self):
        _, error = parse_skip_spec("100", 10)
        assert error.message == "Instance exceeds total parts (10): 100"

    def test_valid_tokens_still_collected(self):
        skip, error = parse_skip_spec("1, abc, 3", 5)
        assert skip == {1, 3}
        assert error.token == "abc"

    def test_first_error_reported(self):
        _, error = parse_skip_spec("0, 9", 5)
        assert error.token == "0"


class TestValidateSkipSpec:
    @pytest.mark.parametrize("text, message", [
        ("1-2-3", "Invalid range format: 1-2-3"),
        ("-3", "Invalid range: -3"),
        ("4-", "Invalid range: 4-"),
        ("a-3", "Invalid numbers in range: a-3"),
        ("0-3", "Range start must be >= 1: 0-3"),
        ("5-3", "Range end must be >= start: 5-3"),
        ("12-14", "Range start exceeds total parts (10): 12-14"),
        ("x", "Invalid number: x"),
        ("1.5", "Invalid number: 1.5"),
        ("0", "Instance must be >= 1: 0"),
        ("11", "Instance exceeds total parts (10): 11"),
    ])
    def test_messages(self, text, message):
        assert validate_skip_spec(text, 10) == message

    def test_valid(self):
        assert validate_skip_spec("1, 2-3", 10) is None

    def test_fail_fast(self):
        assert validate_skip_spec("x, 0", 10) == "Invalid number: x"


def test_format_skip_set():
    assert format_skip_set({9, 1, 4}) == "1, 4, 9"
    assert format_skip_set([]) == ""
