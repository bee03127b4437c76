"""Data models for a two-person bill split."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from typing import Literal

from splitsnap.domain.money import from_cents, quantize

ItemOrigin = Literal["ocr", "manual"]
TaxSource = Literal["declared", "printed", "inferred_from_total", "assumed_rate"]


class Assignment(str, Enum):
    """Who pays for a candidate item."""

    SHARED = "shared"
    PERSON_A = "person_a"
    PERSON_B = "person_b"


@dataclass(frozen=True)
class Region:
    """Axis-aligned rectangle in native image pixels."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def center(self) -> tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2

    @property
    def area(self) -> int:
        return self.width * self.height

    def as_box(self) -> tuple[int, int, int, int]:
        """Return (left, upper, right, lower) as used by ``Image.crop``."""
        return self.x, self.y, self.right, self.bottom

    def offset(self, dx: int, dy: int) -> Region:
        return replace(self, x=self.x + dx, y=self.y + dy)

    def clamp(self, width: int, height: int) -> Region:
        """Clip the region to an image of the given size."""
        left = min(max(self.x, 0), width)
        top = min(max(self.y, 0), height)
        right = min(max(self.right, 0), width)
        bottom = min(max(self.bottom, 0), height)
        return Region(left, top, right - left, bottom - top)


@dataclass(frozen=True)
class OCRWord:
    """A single recognized token."""

    text: str
    bbox: Region | None = None
    confidence: float = 1.0


@dataclass(frozen=True)
class RecognitionResult:
    """Output of an OCR engine call."""

    text: str
    words: list[OCRWord] = field(default_factory=list)
    provider: str = ""


def new_item_id(origin: ItemOrigin = "ocr") -> str:
    prefix = "manual" if origin == "manual" else "price"
    return f"{prefix}_{uuid.uuid4().hex}"


@dataclass(frozen=True)
class CandidateItem:
    """A detected (or manually entered) price on the bill."""

    cents: int
    id: str = field(default_factory=new_item_id)
    source_region: Region | None = None
    assignment: Assignment = Assignment.SHARED
    origin: ItemOrigin = "ocr"

    @property
    def amount(self) -> Decimal:
        return from_cents(self.cents)

    def with_assignment(self, assignment: Assignment) -> CandidateItem:
        return replace(self, assignment=assignment)


@dataclass(frozen=True)
class TaxFigure:
    """A tax amount together with where it came from.

    Only ``declared`` figures are exact; the other sources are estimates and
    must be presented as such.
    """

    amount: Decimal
    source: TaxSource

    @property
    def is_estimate(self) -> bool:
        return self.source != "declared"


@dataclass(frozen=True)
class BillTotals:
    """Per-person split of a bill, carried at full precision."""

    person_a_subtotal: Decimal
    person_b_subtotal: Decimal
    shared_subtotal: Decimal
    grand_subtotal: Decimal
    tax_amount: Decimal
    person_a_tax: Decimal
    person_b_tax: Decimal
    tip_percent: Decimal
    tip_amount: Decimal
    person_a_tip: Decimal
    person_b_tip: Decimal
    person_a_final: Decimal
    person_b_final: Decimal

    @property
    def person_a_base(self) -> Decimal:
        return self.person_a_subtotal + self.shared_subtotal / 2

    @property
    def person_b_base(self) -> Decimal:
        return self.person_b_subtotal + self.shared_subtotal / 2

    @property
    def grand_total(self) -> Decimal:
        return self.grand_subtotal + self.tax_amount + self.tip_amount

    @property
    def unallocated(self) -> Decimal:
        """Tax/tip that could not be attributed (only when the subtotal is zero)."""
        return self.grand_total - self.person_a_final - self.person_b_final

    def rounded(self) -> BillTotals:
        """Return a copy with every amount rounded to cents for display."""
        values = {
            name: quantize(getattr(self, name)) if name != "tip_percent" else self.tip_percent
            for name in self.__dataclass_fields__
        }
        return BillTotals(**values)

    def as_dict(self) -> dict[str, str]:
        shown = self.rounded()
        return {name: str(getattr(shown, name)) for name in self.__dataclass_fields__}
