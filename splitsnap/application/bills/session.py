"""The active bill: items, tax, tip, labels and the OCR scan lifecycle.

One BillSession exists per process. ``reset()`` starts a new bill in place
and bumps ``generation``; any OCR scan started under an older generation is
cancelled and its late result discarded instead of merged.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from decimal import Decimal
from typing import Literal

from PIL import Image

from splitsnap.application.bills.capture import CaptureStrategy, ExtractionResult, PriceExtractor
from splitsnap.domain.allocation import allocate, estimate_tax, infer_tax
from splitsnap.domain.assignment_cycle import next_assignment
from splitsnap.domain.bill import Assignment, BillTotals, CandidateItem, Region, TaxFigure, new_item_id
from splitsnap.domain.errors import InvalidManualEntry, ItemNotFound
from splitsnap.domain.money import from_cents, parse_amount, parse_non_negative
from splitsnap.receipt.image_enhancer import load_image
from splitsnap.runtime.logging import get_logger

logger = get_logger(__name__)

SessionStatus = Literal["empty", "processing", "ready", "no_candidates", "failed"]

MAX_TIP_PERCENT = Decimal("100")
DEFAULT_PERSON_A = "You"
DEFAULT_PERSON_B = "Your Partner"


@dataclass(frozen=True)
class ScanOutcome:
    """Result of one scan as seen by the session."""

    generation: int
    extraction: ExtractionResult | None
    stale: bool = False

    @property
    def added(self) -> int:
        return 0 if self.extraction is None or self.stale else len(self.extraction.items)


def _region_list(region: Region | None) -> list[int] | None:
    if region is None:
        return None
    return [region.x, region.y, region.width, region.height]


class BillSession:
    """Mutable state of the bill currently being split."""

    def __init__(
        self,
        person_a_label: str = DEFAULT_PERSON_A,
        person_b_label: str = DEFAULT_PERSON_B,
        assumed_tax_rate: Decimal | None = None,
    ) -> None:
        self.default_labels = (person_a_label, person_b_label)
        self.assumed_tax_rate = assumed_tax_rate
        self.generation = 0
        self._clear()

    def _clear(self) -> None:
        self.source_image: Image.Image | None = None
        self.items: list[CandidateItem] = []
        self.declared_total: Decimal | None = None
        self.printed_tax: Decimal | None = None
        self.tax_amount: Decimal | None = None
        self.tip_percent: Decimal | None = None
        self.person_a_label, self.person_b_label = self.default_labels
        self.status: SessionStatus = "empty"
        self.last_error: str | None = None
        self._scan_lock = asyncio.Lock()
        self._scan_task: asyncio.Task[ExtractionResult] | None = None

    # --- lifecycle ---

    def reset(self) -> None:
        """Start a new bill. Safe to call while a scan is outstanding."""
        if self._scan_task is not None and not self._scan_task.done():
            logger.info("Reset during OCR scan; cancelling generation %d", self.generation)
            self._scan_task.cancel()
        self.generation += 1
        self._clear()

    def start(self, image_bytes: bytes) -> Image.Image:
        """Reset and load a new source image (raises DecodeFailure)."""
        image = load_image(image_bytes)
        self.reset()
        self.source_image = image
        return image

    @property
    def is_processing(self) -> bool:
        return self.status == "processing"

    async def scan(self, extractor: PriceExtractor, strategy: CaptureStrategy | None = None) -> ScanOutcome:
        """
        OCR the source image and add the candidates to the bill.

        Scans are serialized per session. The OCR call runs as a task so
        ``reset()`` can cancel it; a result arriving after a reset is dropped.
        """
        if self.source_image is None:
            raise InvalidManualEntry("No bill image loaded")

        generation = self.generation
        lock = self._scan_lock
        image = self.source_image
        async with lock:
            if generation != self.generation:
                return ScanOutcome(generation=generation, extraction=None, stale=True)

            self.status = "processing"
            self.last_error = None
            task = asyncio.ensure_future(extractor.extract(image, strategy))
            self._scan_task = task
            try:
                extraction = await task
            except asyncio.CancelledError:
                if generation != self.generation:
                    logger.debug("Discarding cancelled scan from generation %d", generation)
                    return ScanOutcome(generation=generation, extraction=None, stale=True)
                raise
            except Exception as exc:
                if generation == self.generation:
                    self.status = "failed"
                    self.last_error = str(exc)
                raise
            finally:
                if self._scan_task is task:
                    self._scan_task = None

            if generation != self.generation:
                logger.debug("Discarding late scan result from generation %d", generation)
                return ScanOutcome(generation=generation, extraction=extraction, stale=True)

            self._merge(extraction)
            return ScanOutcome(generation=generation, extraction=extraction)

    def _merge(self, extraction: ExtractionResult) -> None:
        # A rescan of the same spot skips prices already on the bill; equal
        # prices within one extraction are separate picks and all kept
        existing = {(item.cents, item.source_region) for item in self.items}
        self.items.extend(item for item in extraction.items if (item.cents, item.source_region) not in existing)
        if extraction.total > 0 and self.declared_total is None:
            self.declared_total = extraction.total
        if extraction.tax is not None and self.printed_tax is None:
            self.printed_tax = extraction.tax
        self.status = "ready" if self.items else "no_candidates"
        logger.info("Scan merged %d candidates (provider=%s)", len(extraction.items), extraction.provider or "-")

    # --- items ---

    def _index(self, item_id: str) -> int:
        for index, item in enumerate(self.items):
            if item.id == item_id:
                return index
        raise ItemNotFound(f"No item with id {item_id!r}")

    def get_item(self, item_id: str) -> CandidateItem:
        return self.items[self._index(item_id)]

    def add_manual_item(self, text: str, assignment: Assignment = Assignment.SHARED) -> CandidateItem:
        """Add a user-typed price (raises InvalidManualEntry)."""
        item = CandidateItem(
            cents=parse_amount(text),
            id=new_item_id("manual"),
            assignment=assignment,
            origin="manual",
        )
        self.items.append(item)
        if self.status in ("empty", "no_candidates", "failed"):
            self.status = "ready"
        return item

    def remove_item(self, item_id: str) -> CandidateItem:
        item = self.items.pop(self._index(item_id))
        if not self.items and self.status == "ready":
            self.status = "empty" if self.source_image is None else "no_candidates"
        return item

    def set_assignment(self, item_id: str, assignment: Assignment) -> CandidateItem:
        index = self._index(item_id)
        self.items[index] = self.items[index].with_assignment(assignment)
        return self.items[index]

    def cycle_assignment(self, item_id: str) -> CandidateItem:
        item = self.get_item(item_id)
        return self.set_assignment(item_id, next_assignment(item.assignment))

    # --- bill-level inputs ---

    def set_tax(self, text: str | None) -> Decimal | None:
        self.tax_amount = None if text is None or not text.strip() else parse_non_negative(text, field="Tax")
        return self.tax_amount

    def set_tip(self, text: str | None) -> Decimal | None:
        self.tip_percent = (
            None
            if text is None or not text.strip()
            else parse_non_negative(text, field="Tip percentage", maximum=MAX_TIP_PERCENT)
        )
        return self.tip_percent

    def set_declared_total(self, text: str | None) -> Decimal | None:
        self.declared_total = None if text is None or not text.strip() else from_cents(parse_amount(text))
        return self.declared_total

    def set_labels(self, person_a: str | None = None, person_b: str | None = None) -> None:
        if person_a is not None and person_a.strip():
            self.person_a_label = person_a.strip()
        if person_b is not None and person_b.strip():
            self.person_b_label = person_b.strip()

    # --- derived ---

    def totals(self) -> BillTotals:
        """Recompute the split from the current items, tax and tip."""
        return allocate(self.items, self.tax_amount, self.tip_percent)

    def tax_figure(self) -> TaxFigure | None:
        """
        Best available tax figure, labelled with its source.

        A declared tax wins. Otherwise a tax line read from the bill is
        offered, then the gap between the printed total and the item
        subtotal, then the assumed rate if one is configured. Estimates are never fed into ``totals()`` implicitly.
        """
        if self.tax_amount is not None:
            return TaxFigure(amount=self.tax_amount, source="declared")
        if self.printed_tax is not None:
            return TaxFigure(amount=self.printed_tax, source="printed")
        subtotal = sum((item.amount for item in self.items), Decimal("0"))
        if self.declared_total is not None and self.declared_total > subtotal:
            return infer_tax(self.declared_total, subtotal)
        if self.assumed_tax_rate is not None and subtotal > 0:
            return estimate_tax(subtotal, self.assumed_tax_rate)
        return None

    def snapshot(self) -> dict[str, object]:
        """JSON-friendly view of the bill for the HTTP and CLI surfaces."""
        tax_figure = self.tax_figure()
        return {
            "generation": self.generation,
            "status": self.status,
            "error": self.last_error,
            "labels": {"person_a": self.person_a_label, "person_b": self.person_b_label},
            "items": [
                {
                    "id": item.id,
                    "amount": str(item.amount),
                    "assignment": item.assignment.value,
                    "origin": item.origin,
                    "source_region": _region_list(item.source_region),
                }
                for item in self.items
            ],
            "declared_total": None if self.declared_total is None else str(self.declared_total),
            "printed_tax": None if self.printed_tax is None else str(self.printed_tax),
            "tax_amount": None if self.tax_amount is None else str(self.tax_amount),
            "tip_percent": None if self.tip_percent is None else str(self.tip_percent),
            "tax_suggestion": (
                None
                if tax_figure is None or not tax_figure.is_estimate
                else {"amount": str(tax_figure.amount.quantize(Decimal("0.01"))), "source": tax_figure.source}
            ),
            "totals": self.totals().as_dict(),
        }
