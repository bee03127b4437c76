"""Tests for candidate price extraction."""

from decimal import Decimal

from splitsnap.domain.bill import Assignment, OCRWord, Region
from splitsnap.domain.money import MAX_ITEM_CENTS, MIN_ITEM_CENTS
from splitsnap.receipt.price_parser import find_amounts, is_summary_line, item_lines, parse_prices, summary_lines


def _amounts(items) -> list[Decimal]:
    return [item.amount for item in items]


def test_parse_prices_skips_total_line() -> None:
    items = parse_prices("Burger $8.99\nFries $3.50\nTotal $12.49")

    assert _amounts(items) == [Decimal("8.99"), Decimal("3.50")]
    assert all(item.assignment == Assignment.SHARED for item in items)
    assert all(item.origin == "ocr" for item in items)


def test_parse_prices_empty_and_no_matches() -> None:
    assert parse_prices("") == []
    assert parse_prices("   \n\t") == []
    assert parse_prices("THANK YOU FOR DINING WITH US") == []


def test_parse_prices_deduplicates_by_cents() -> None:
    items = parse_prices("Coffee 4.50\nCoffee 4.50\nMuffin $4.50")

    assert _amounts(items) == [Decimal("4.50")]


def test_parse_prices_rejects_out_of_range_values() -> None:
    items = parse_prices("Promo 0.00\nDeposit 12000.00\nSoup 5.00")

    assert _amounts(items) == [Decimal("5.00")]


def test_parse_prices_ignores_digits_inside_longer_numbers() -> None:
    items = parse_prices("Call 555.1234\nRef 12.345\nTea 2.75")

    assert _amounts(items) == [Decimal("2.75")]


def test_parse_prices_ignores_dotted_dates() -> None:
    items = parse_prices("Date 12.05.2024\nPizza 14.00\nEnd of day.")

    assert _amounts(items) == [Decimal("14.00")]


def test_parse_prices_pattern_variants() -> None:
    items = parse_prices("Catering 1,234.50\nSalad 12 . 99\nWine $ 7.25\nBread 3.00")

    assert _amounts(items) == [Decimal("1234.50"), Decimal("12.99"), Decimal("7.25"), Decimal("3.00")]


def test_parse_prices_keeps_every_price_on_an_item_line() -> None:
    items = parse_prices("2 x 3.50 7.00")

    assert _amounts(items) == [Decimal("7.00"), Decimal("3.50")]


def test_parse_prices_excludes_summary_and_payment_lines() -> None:
    text = "\n".join(
        [
            "Cashew Chicken 11.00",
            "Pad Thai 14.00",
            "Sub-total 25.00",
            "Sales Tax 2.25",
            "Tip 4.00",
            "VISA 31.25",
            "MasterCard 31.25",
            "Cash 40.00",
            "Change 8.75",
        ]
    )

    assert _amounts(parse_prices(text)) == [Decimal("14.00"), Decimal("11.00")]


def test_parse_prices_word_pass_adds_regions_and_skips_summary_amounts() -> None:
    noodles_box = Region(300, 10, 40, 12)
    missed_box = Region(300, 30, 40, 12)
    total_box = Region(300, 60, 45, 12)
    words = [
        OCRWord("Noodles", Region(10, 10, 80, 12)),
        OCRWord("9.50", noodles_box),
        OCRWord("3.25", missed_box),
        OCRWord("Total", Region(10, 60, 50, 12)),
        OCRWord("12.75", total_box),
    ]

    items = parse_prices("Noodles 9.50\nTotal 12.75", words)

    assert _amounts(items) == [Decimal("9.50"), Decimal("3.25")]
    assert items[0].source_region == noodles_box
    assert items[1].source_region == missed_box


def test_parse_prices_limit_keeps_largest() -> None:
    text = "A 1.00\nB 5.00\nC 3.00\nD 4.00\nE 2.00"

    assert _amounts(parse_prices(text, limit=2)) == [Decimal("5.00"), Decimal("4.00")]
    assert len(parse_prices(text)) == 5


def test_parse_prices_candidates_are_unique_and_in_range() -> None:
    text = "\n".join(f"Item {n} {n * 7 % 10000}.{n % 100:02d}" for n in range(300))
    items = parse_prices(text)

    cents = [item.cents for item in items]
    assert len(cents) == len(set(cents))
    assert all(MIN_ITEM_CENTS <= c <= MAX_ITEM_CENTS for c in cents)
    assert cents == sorted(cents, reverse=True)


def test_candidate_ids_are_unique() -> None:
    items = parse_prices("A 1.00\nB 2.00\nC 3.00")

    assert len({item.id for item in items}) == 3
    assert all(item.id.startswith("price_") for item in items)


def test_summary_keyword_boundaries() -> None:
    assert is_summary_line("TOTAL 12.49")
    assert is_summary_line("Total12.49")
    assert is_summary_line("Subtotal: 20.00")
    assert is_summary_line("Taxes 1.20")
    assert not is_summary_line("Cashew Chicken 11.00")
    assert not is_summary_line("Tipsy Noodles 9.00")
    assert not is_summary_line("Taxi fare 20.00")


def test_summary_and_item_lines_partition_text() -> None:
    text = "Burger 8.99\n\nTotal 8.99\n"

    assert item_lines(text) == ["Burger 8.99"]
    assert summary_lines(text) == ["Total 8.99"]


def test_find_amounts_matches_in_pattern_order() -> None:
    assert find_amounts("") == []
    assert set(find_amounts("$4.00 and 5.50")) == {400, 550}
