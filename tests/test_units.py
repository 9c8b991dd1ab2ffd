import pytest

from utils.errors import InvalidAmountError
from utils.units import format_units, parse_amount


@pytest.mark.parametrize("raw, text", [
    (1234500, "123.45"),
    (500000, "50.0"),
    (250000, "25.0"),
    (1, "0.0001"),
    (0, "0.0"),
    (10000, "1.0"),
    (-1234500, "-123.45"),
])
def test_format_units(raw, text):
    assert format_units(raw, 4) == text


def test_format_units_other_scales():
    assert format_units(1_500_000_000_000_000_000, 18) == "1.5"
    assert format_units(7, 0) == "7.0"


@pytest.mark.parametrize("text, raw", [
    ("123.45", 1234500),
    ("1", 10000),
    (" 2.5 ", 25000),
    ("0.0001", 1),
    ("1e2", 1000000),
    ("1.50000", 15000),
])
def test_parse_amount(text, raw):
    assert parse_amount(text, 4) == raw


@pytest.mark.parametrize("text", ["", " ", "abc", "1,5", "0", "-3", "NaN", "Infinity", "0.00001", "1e90", None,
                                  "1_000", "\u0661\u0660", "\uff11\uff12", "0x10", "1.2.3", "+"])
def test_parse_amount_rejects(text):
    with pytest.raises(InvalidAmountError):
        parse_amount(text, 4)


@pytest.mark.parametrize("text", ["123.45", "50.0", "0.0001", "987654321.1234"])
def test_display_of_parsed_value_is_identity(text):
    assert format_units(parse_amount(text)) == text


def test_large_amounts_are_exact():
    text = "12345678901234567890123456.7891"
    assert parse_amount(text) == 123456789012345678901234567891
