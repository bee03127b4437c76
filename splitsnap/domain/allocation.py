"""Proportional two-person bill allocation.

Shared items are split exactly 50/50. Tax is distributed in proportion to each
person's pre-tax base, and tip is computed on the post-tax amount and
distributed in proportion to each person's post-tax amount. No rounding
happens here; callers round with ``BillTotals.rounded()`` for display.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from splitsnap.domain.bill import Assignment, BillTotals, CandidateItem, TaxFigure
from splitsnap.domain.money import from_cents

ZERO = Decimal("0")
HUNDRED = Decimal("100")
DEFAULT_ASSUMED_TAX_RATE = Decimal("9")


def _share(amount: Decimal, part: Decimal, whole: Decimal) -> Decimal:
    """Return ``amount * part / whole``, or zero when ``whole`` is zero."""
    if whole == 0:
        return ZERO
    return amount * part / whole


def subtotals(items: Iterable[CandidateItem]) -> tuple[Decimal, Decimal, Decimal]:
    """Return (person A, person B, shared) subtotals."""
    cents = {Assignment.PERSON_A: 0, Assignment.PERSON_B: 0, Assignment.SHARED: 0}
    for item in items:
        cents[item.assignment] += item.cents
    return (
        from_cents(cents[Assignment.PERSON_A]),
        from_cents(cents[Assignment.PERSON_B]),
        from_cents(cents[Assignment.SHARED]),
    )


def allocate(
    items: Iterable[CandidateItem],
    tax_amount: Decimal | None = None,
    tip_percent: Decimal | None = None,
    *,
    tax_rate: Decimal | None = None,
) -> BillTotals:
    """
    Split a bill between person A and person B.

    Args:
        items: Candidate items with their assignments
        tax_amount: Declared tax for the whole bill
        tip_percent: Tip as a percentage of the post-tax amount
        tax_rate: Tax as a percentage of the subtotal; only used when
            ``tax_amount`` is None

    Returns:
        Full-precision BillTotals. When the subtotal is zero, tax and tip
        shares are zero rather than an error.
    """
    person_a, person_b, shared = subtotals(items)
    grand_subtotal = person_a + person_b + shared

    if tax_amount is None:
        tax_amount = grand_subtotal * tax_rate / HUNDRED if tax_rate is not None else ZERO
    tip_percent = tip_percent if tip_percent is not None else ZERO

    base_a = person_a + shared / 2
    base_b = person_b + shared / 2

    tax_a = _share(tax_amount, base_a, grand_subtotal)
    tax_b = _share(tax_amount, base_b, grand_subtotal)

    post_tax_a = base_a + tax_a
    post_tax_b = base_b + tax_b
    tip_base = post_tax_a + post_tax_b
    tip_amount = tip_base * tip_percent / HUNDRED

    tip_a = _share(tip_amount, post_tax_a, tip_base)
    tip_b = _share(tip_amount, post_tax_b, tip_base)

    return BillTotals(
        person_a_subtotal=person_a,
        person_b_subtotal=person_b,
        shared_subtotal=shared,
        grand_subtotal=grand_subtotal,
        tax_amount=tax_amount,
        person_a_tax=tax_a,
        person_b_tax=tax_b,
        tip_percent=tip_percent,
        tip_amount=tip_amount,
        person_a_tip=tip_a,
        person_b_tip=tip_b,
        person_a_final=post_tax_a + tip_a,
        person_b_final=post_tax_b + tip_b,
    )


def infer_tax(declared_total: Decimal, subtotal: Decimal) -> TaxFigure:
    """Estimate tax as the gap between a printed total and the item subtotal."""
    return TaxFigure(amount=max(ZERO, declared_total - subtotal), source="inferred_from_total")


def estimate_tax(subtotal: Decimal, rate: Decimal = DEFAULT_ASSUMED_TAX_RATE) -> TaxFigure:
    """Estimate tax at an assumed flat rate when nothing better is known."""
    return TaxFigure(amount=subtotal * rate / HUNDRED, source="assumed_rate")
