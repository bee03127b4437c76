"""Shared patterns and helpers for price extraction."""

import re
from decimal import Decimal, InvalidOperation

from splitsnap.domain.money import to_cents

# Digits may not continue on either side of a price, so "555.1234",
# "12.345" and dates like "12.05.2024" never yield a two-decimal candidate.
_WHOLE = r"(\d{1,3}(?:,\d{3})+|\d+)"
_NOT_BEFORE = r"(?<![\d.,])"
_NOT_AFTER = r"(?!\d|\.\d)"

# Ordered from most to least specific. Every pattern captures (whole, cents).
PRICE_PATTERNS = [
    # $12.99
    re.compile(_NOT_BEFORE + r"\$" + _WHOLE + r"\.(\d{2})" + _NOT_AFTER),
    # 12.99
    re.compile(_NOT_BEFORE + _WHOLE + r"\.(\d{2})" + _NOT_AFTER),
    # $ 12.99
    re.compile(r"\$[ \t]+" + _WHOLE + r"\.(\d{2})" + _NOT_AFTER),
    # "12 . 99" split by OCR
    re.compile(_NOT_BEFORE + _WHOLE + r"[ \t]*\.[ \t]*(\d{2})" + _NOT_AFTER),
]

# Any two-decimal number, used by the numeric-maximum total fallback
ANY_AMOUNT = re.compile(_NOT_BEFORE + _WHOLE + r"\.(\d{2})" + _NOT_AFTER)

# Summary and payment lines: totals or metadata, not purchasable items.
# Trailing letters are not allowed so "Cashew" or "Tipsy" stay items, while
# OCR-glued labels like "Total12.49" are still recognized.
SUMMARY_KEYWORDS = re.compile(
    r"\b(?:sub\s*-?\s*total|total|tax(?:es)?|tip|change|cash|credit|debit|visa|master\s*card)(?![a-z])",
    re.IGNORECASE,
)


def _to_cents(whole: str, fraction: str) -> int | None:
    try:
        return to_cents(Decimal(f"{whole.replace(',', '')}.{fraction}"))
    except InvalidOperation:
        return None


def find_amounts(text: str) -> list[int]:
    """Return every price (in cents) matched by PRICE_PATTERNS, in pattern order."""
    found: list[int] = []
    if not text:
        return found
    for pattern in PRICE_PATTERNS:
        for match in pattern.finditer(text):
            cents = _to_cents(match.group(1), match.group(2))
            if cents is not None:
                found.append(cents)
    return found


def is_summary_line(line: str) -> bool:
    """Return True for total/tax/tip/payment lines."""
    return SUMMARY_KEYWORDS.search(line) is not None


def split_lines(text: str) -> list[str]:
    """Split OCR text into non-empty stripped lines."""
    return [line.strip() for line in (text or "").splitlines() if line.strip()]


def summary_lines(text: str) -> list[str]:
    return [line for line in split_lines(text) if is_summary_line(line)]


def item_lines(text: str) -> list[str]:
    return [line for line in split_lines(text) if not is_summary_line(line)]
