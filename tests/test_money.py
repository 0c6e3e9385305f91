import pytest

from money import (
    format_currency,
    line_total_cents,
    parse_amount,
    parse_cents_input,
    parse_price_input,
)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("12", 1200),
        ("12,49", 1249),
        ("12.49 €", 1249),
        ("1.234,50", 123450),
        ("0,5", 50),
    ],
)
def test_parse_amount(raw: str, expected: int) -> None:
    assert parse_amount(raw) == expected


def test_parse_amount_rejects_garbage_and_negatives() -> None:
    with pytest.raises(ValueError):
        parse_amount("abc")
    with pytest.raises(ValueError):
        parse_amount("-3,00")
    assert parse_amount("-3,00", allow_negative=True) == -300


@pytest.mark.parametrize(
    "raw,expected",
    [("123", 123), ("89", 89), ("1,23 €", 123), ("", 0), ("abc", 0)],
)
def test_parse_cents_input(raw: str, expected: int) -> None:
    assert parse_cents_input(raw) == expected


def test_format_currency_uses_german_separators() -> None:
    assert format_currency(123) == "1,23 €"
    assert format_currency(123456) == "1.234,56 €"
    assert format_currency(5, symbol="") == "0,05"


def test_line_total_rounds_to_whole_cents() -> None:
    assert line_total_cents(199, 3) == 597
    assert line_total_cents(250, 1.5) == 375
    assert line_total_cents(333, 0.5) == 166


@pytest.mark.parametrize(
    "raw,expected", [("349", 349), ("2,50", 250), ("2.5", 250), ("1,23 €", 123)]
)
def test_parse_price_input(raw: str, expected: int) -> None:
    assert parse_price_input(raw) == expected


@pytest.mark.parametrize("raw", ["-349", " -2,50"])
def test_parse_price_input_rejects_negative_prices(raw: str) -> None:
    with pytest.raises(ValueError):
        parse_price_input(raw)
