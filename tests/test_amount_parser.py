"""Tests for amount parsing and formatting."""

import pytest

from bookkeeper.utils.amount_parser import format_amount, parse_amount


@pytest.mark.parametrize(
    "text, expected",
    [
        ("123.45", 123450),
        ("$123.45", 123450),
        ("-123.45", -123450),
        ("1,234.56", 1234560),
        ("(50.00)", -50000),
        ("0.0005", 1),
        ("7", 7000),
    ],
)
def test_parse_amount(text, expected):
    assert parse_amount(text) == expected


@pytest.mark.parametrize("text", ["", "   ", "abc", "nan", "12..3"])
def test_parse_amount_rejects_garbage(text):
    with pytest.raises(ValueError):
        parse_amount(text)


def test_format_amount():
    assert format_amount(1234500) == "1,234.50"
    assert format_amount(-70) == "-0.07"
    assert format_amount(0) == "0.00"
    assert format_amount(1005, places=3) == "1.005"
