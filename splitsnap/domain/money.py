"""Monetary amounts stored as integer cents."""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from splitsnap.domain.errors import InvalidManualEntry

CENT = Decimal("0.01")

# Plausible range for a single candidate price. Rejects stray digits and
# phone-number fragments while admitting realistic bill line items.
MIN_ITEM_CENTS = 1
MAX_ITEM_CENTS = 1_000_000

_AMOUNT_TEXT = re.compile(r"^\$?\s*(\d{1,3}(?:,\d{3})+|\d+)?(?:\.(\d{1,2}))?$")


def to_cents(value: Decimal | int | str) -> int:
    """Convert a decimal amount to integer cents (ROUND_HALF_UP)."""
    amount = Decimal(value) if not isinstance(value, Decimal) else value
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    """Return cents as a two-decimal ``Decimal``."""
    return (Decimal(cents) / 100).quantize(CENT)


def quantize(value: Decimal) -> Decimal:
    """Round a full-precision amount for display."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def is_plausible_item(cents: int) -> bool:
    """Return True if cents fall inside the accepted candidate range."""
    return MIN_ITEM_CENTS <= cents <= MAX_ITEM_CENTS


def parse_amount(text: str) -> int:
    """
    Parse a user-entered price into cents.

    Accepts an optional leading ``$``, thousands separators and up to two
    fractional digits ("12", "12.5", "$1,250.00").

    Raises:
        InvalidManualEntry: if the text is not a price or falls outside
            [0.01, 10000.00].
    """
    cleaned = (text or "").strip()
    match = _AMOUNT_TEXT.match(cleaned)
    if not cleaned or match is None or (match.group(1) is None and match.group(2) is None):
        raise InvalidManualEntry(f"Not a price: {text!r}")

    whole = (match.group(1) or "0").replace(",", "")
    fraction = match.group(2) or "0"
    try:
        cents = to_cents(Decimal(f"{whole}.{fraction}"))
    except InvalidOperation as exc:
        raise InvalidManualEntry(f"Not a price: {text!r}") from exc

    if not is_plausible_item(cents):
        raise InvalidManualEntry(f"Price must be between $0.01 and $10000.00, got {text!r}")
    return cents


def parse_non_negative(text: str, *, field: str, maximum: Decimal | None = None) -> Decimal:
    """
    Parse a tax amount or tip percentage.

    Unlike item prices, zero is allowed. Used for the tax and tip inputs.
    """
    try:
        value = Decimal((text or "").strip().lstrip("$").rstrip("%").strip())
    except InvalidOperation as exc:
        raise InvalidManualEntry(f"{field} must be a number, got {text!r}") from exc
    if not value.is_finite() or value < 0:
        raise InvalidManualEntry(f"{field} must be zero or positive, got {text!r}")
    if maximum is not None and value > maximum:
        raise InvalidManualEntry(f"{field} must be at most {maximum}, got {text!r}")
    return value
