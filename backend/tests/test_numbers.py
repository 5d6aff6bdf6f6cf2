"""Tests for locale-aware number parsing and formatting."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from telemetry_core.core.config import Settings
from telemetry_core.core.numbers import NumberFormat, get_number_format


class TestParse:
    """Tests for NumberFormat.parse."""

    def test_grouped_and_plain_parse_equal(self, number_format: NumberFormat):
        assert number_format.parse("1,234.5") == number_format.parse("1234.5") == Decimal("1234.5")

    def test_parse_integer(self, number_format: NumberFormat):
        assert number_format.parse("42") == Decimal(42)

    def test_parse_negative(self, number_format: NumberFormat):
        assert number_format.parse("-3.25") == Decimal("-3.25")

    def test_parse_strips_whitespace(self, number_format: NumberFormat):
        assert number_format.parse(" 1,000 ") == Decimal(1000)

    @pytest.mark.parametrize("text", ["bad", "", "1,23", "1.2.3", "12abc", "1e5"])
    def test_parse_rejects_non_numbers(self, number_format: NumberFormat, text: str):
        assert number_format.parse(text) is None

    def test_parse_german_style(self, german_number_format: NumberFormat):
        assert german_number_format.parse("1.234,5") == Decimal("1234.5")
        assert german_number_format.parse("1234,5") == Decimal("1234.5")

    def test_parse_without_grouping(self):
        fmt = NumberFormat(uses_grouping=False)
        assert fmt.parse("1,234") is None
        assert fmt.parse("1234") == Decimal(1234)


class TestFormat:
    """Tests for NumberFormat.format."""

    def test_format_groups_thousands(self, number_format: NumberFormat):
        assert number_format.format(1234567) == "1,234,567"

    def test_format_decimal(self, number_format: NumberFormat):
        assert number_format.format(Decimal("1234.5")) == "1,234.5"

    def test_format_rounds_to_three_digits(self, number_format: NumberFormat):
        assert number_format.format(0.1234) == "0.123"

    def test_format_rounds_half_even(self, number_format: NumberFormat):
        assert number_format.format(Decimal("2.0005")) == "2"
        assert number_format.format(Decimal("2.0015")) == "2.002"

    def test_format_negative(self, number_format: NumberFormat):
        assert number_format.format(-1500) == "-1,500"

    def test_format_negative_zero(self, number_format: NumberFormat):
        assert number_format.format(Decimal("-0.0001")) == "0"

    def test_format_german_style(self, german_number_format: NumberFormat):
        assert german_number_format.format(Decimal("1234.5")) == "1.234,5"

    def test_format_then_parse(self, german_number_format: NumberFormat):
        text = german_number_format.format(9876543.25)
        assert german_number_format.parse(text) == Decimal("9876543.25")


class TestConfiguration:
    """Tests for the shared number format configuration."""

    def test_number_format_is_immutable(self, number_format: NumberFormat):
        with pytest.raises(ValidationError):
            number_format.decimal_separator = ","

    def test_process_wide_format_is_shared(self):
        assert get_number_format() is get_number_format()

    def test_from_settings(self):
        settings = Settings(NUMBER_DECIMAL_SEPARATOR=",", NUMBER_GROUPING_SEPARATOR=".")
        fmt = NumberFormat.from_settings(settings)
        assert fmt == NumberFormat(decimal_separator=",", grouping_separator=".")
