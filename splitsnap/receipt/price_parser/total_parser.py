"""Grand total and tax extraction from full bill text."""

import re
from decimal import Decimal

from splitsnap.domain.money import from_cents

from .common import ANY_AMOUNT, _to_cents, summary_lines

_AMOUNT = r"\$?\s*(\d{1,3}(?:,\d{3})+|\d+)\.(\d{2})(?!\d|\.\d)"

# Tried in order; the first capture wins.
TOTAL_PATTERNS = [
    re.compile(r"(?<!sub)(?<!sub )total[\s:]*" + _AMOUNT, re.IGNORECASE),
    re.compile(r"amount(?:\s+due)?[\s:]*" + _AMOUNT, re.IGNORECASE),
    re.compile(r"grand\s+total[\s:]*" + _AMOUNT, re.IGNORECASE),
    re.compile(_AMOUNT + r"\s*total", re.IGNORECASE),
]

TAX_PATTERN = re.compile(r"\b(?:sales\s+)?tax(?:es)?\b[^\n$]*?" + _AMOUNT + r"(?!\s*%)", re.IGNORECASE)


def find_total(text: str) -> Decimal:
    """
    Find the most likely grand total in the bill text.

    Returns Decimal("0.00") when nothing qualifies; callers treat that as
    unknown, not as a free bill.
    """
    if not text or not text.strip():
        return Decimal("0.00")

    for pattern in TOTAL_PATTERNS:
        match = pattern.search(text)
        if match:
            cents = _to_cents(match.group(1), match.group(2))
            if cents is not None:
                return from_cents(cents)

    # The largest number on a receipt is usually the total.
    amounts = [_to_cents(m.group(1), m.group(2)) for m in ANY_AMOUNT.finditer(text)]
    amounts = [cents for cents in amounts if cents is not None]
    if amounts:
        return from_cents(max(amounts))
    return Decimal("0.00")


def find_tax(text: str) -> Decimal | None:
    """Return the amount on a labelled tax line, if any."""
    for line in summary_lines(text):
        match = TAX_PATTERN.search(line)
        if match is None:
            continue
        cents = _to_cents(match.group(1), match.group(2))
        if cents is not None:
            return from_cents(cents)
    return None
