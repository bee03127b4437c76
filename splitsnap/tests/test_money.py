"""Tests for cent-based money helpers."""

from decimal import Decimal

import pytest

from splitsnap.domain.errors import InvalidManualEntry
from splitsnap.domain.money import (
    MAX_ITEM_CENTS,
    from_cents,
    is_plausible_item,
    parse_amount,
    parse_non_negative,
    quantize,
    to_cents,
)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("12", 1200),
        ("12.5", 1250),
        ("12.50", 1250),
        ("$8.99", 899),
        ("$ 8.99", 899),
        (".99", 99),
        ("1,250.00", 125000),
        ("  3.10 ", 310),
        ("10000.00", MAX_ITEM_CENTS),
    ],
)
def test_parse_amount_accepts_prices(text: str, expected: int) -> None:
    assert parse_amount(text) == expected


@pytest.mark.parametrize("text", ["", "   ", "abc", "12.345", "-5", "0", "0.00", "10000.01", "nan", "inf", "1,23.00", "$"])
def test_parse_amount_rejects_invalid_or_out_of_range(text: str) -> None:
    with pytest.raises(InvalidManualEntry):
        parse_amount(text)


def test_cents_round_trip_keeps_two_decimals() -> None:
    assert from_cents(899) == Decimal("8.99")
    assert str(from_cents(1200)) == "12.00"
    assert to_cents(Decimal("12.345")) == 1235
    assert to_cents("0.01") == 1


def test_quantize_rounds_half_up() -> None:
    assert quantize(Decimal("0.125")) == Decimal("0.13")
    assert quantize(Decimal("2.004999")) == Decimal("2.00")


def test_plausible_item_range() -> None:
    assert not is_plausible_item(0)
    assert is_plausible_item(1)
    assert is_plausible_item(MAX_ITEM_CENTS)
    assert not is_plausible_item(MAX_ITEM_CENTS + 1)


def test_parse_non_negative_allows_zero_and_symbols() -> None:
    assert parse_non_negative("0", field="Tax") == Decimal("0")
    assert parse_non_negative("$2.40", field="Tax") == Decimal("2.40")
    assert parse_non_negative("18%", field="Tip") == Decimal("18")


@pytest.mark.parametrize("text", ["-1", "abc", "nan", "", "Infinity"])
def test_parse_non_negative_rejects_bad_values(text: str) -> None:
    with pytest.raises(InvalidManualEntry):
        parse_non_negative(text, field="Tax")


def test_parse_non_negative_enforces_maximum() -> None:
    assert parse_non_negative("100", field="Tip", maximum=Decimal("100")) == Decimal("100")
    with pytest.raises(InvalidManualEntry, match="at most 100"):
        parse_non_negative("101", field="Tip", maximum=Decimal("100"))
