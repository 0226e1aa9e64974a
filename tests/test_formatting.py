"""
Tests for number formatting.
"""

import pytest

from src.core.formatting import format_amount, format_irt, format_pct, format_price


class TestFormatIrt:

    @pytest.mark.parametrize("value,expected", [
        (0, "0"),
        (999, "999"),
        (1500, "1.5K"),
        (1_234_567, "1.2M"),
        (2_500_000_000, "2.5B"),
        (3.2e12, "3.2T"),
    ])
    def test_suffixes(self, value, expected):
        assert format_irt(value) == expected

    def test_negative_uses_unicode_minus(self):
        assert format_irt(-2500) == "−2.5K"
        assert format_irt(-12) == "−12"


class TestFormatPct:

    def test_signed(self):
        assert format_pct(2.9) == "+2.900%"
        assert format_pct(0) == "+0.000%"
        assert format_pct(-1.5) == "-1.500%"


class TestFormatPrice:

    @pytest.mark.parametrize("value,expected", [
        (0, "0"),
        (1000, "1,000"),
        (1.05, "1.05"),
        (1234567.891, "1,234,567.9"),
        (0.000123456789, "0.00012345679"),
    ])
    def test_significant_digits(self, value, expected):
        assert format_price(value) == expected

    def test_non_finite(self):
        assert format_price(float("inf")) == "inf"


class TestFormatAmount:

    @pytest.mark.parametrize("value,expected", [
        (1.5, "1.5"),
        (1234, "1,234"),
        (0.1234567, "0.123457"),
        (2e9, "2.0B"),
    ])
    def test_amounts(self, value, expected):
        assert format_amount(value) == expected
