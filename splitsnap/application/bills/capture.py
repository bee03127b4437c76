"""Capture strategies and the OCR-to-candidates extraction pipeline.

Whole-image, region-select and point-sample flows share one pipeline; a
strategy only decides which parts of the image are OCRed and which parsed
candidates it keeps.
"""

from __future__ import annotations

import asyncio
import math
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import ClassVar

from PIL import Image

from splitsnap.domain.bill import CandidateItem, RecognitionResult, Region
from splitsnap.domain.errors import InvalidSelection, RecognitionFailure
from splitsnap.receipt.image_enhancer import MIN_OCR_WIDTH, enhance
from splitsnap.receipt.price_parser import find_tax, find_total, parse_prices
from splitsnap.receipt.region_sampler import (
    MIN_SELECTION_SIZE,
    Point,
    Size,
    display_to_native,
    ensure_selection_size,
    region_around_point,
    region_from_display,
    sample,
)
from splitsnap.runtime.logging import get_logger
from splitsnap.runtime.ocr_engines import (
    NUMERIC_ONLY,
    OCREngine,
    PageSegmentationMode,
    RecognitionOptions,
    RemoteOCREngine,
    TesseractEngine,
)
from splitsnap.runtime.settings import Settings, get_settings

logger = get_logger(__name__)

MANUAL_ENTRY_HINT = "Could not read prices from the photo. Please add the prices manually."


@dataclass(frozen=True)
class Sample:
    """One image (or crop) to OCR, identified by its position in the strategy."""

    index: int
    image: Image.Image
    region: Region | None = None
    anchor: tuple[int, int] | None = None


class CaptureStrategy(ABC):
    """Decides what to OCR and which candidates to keep."""

    mode: ClassVar[str]
    options: ClassVar[RecognitionOptions | None] = None
    sort_by_amount: ClassVar[bool] = True

    @abstractmethod
    def samples(self, image: Image.Image) -> list[Sample]:
        ...

    def select(self, sample: Sample, candidates: list[CandidateItem]) -> list[CandidateItem]:
        return candidates


class WholeImage(CaptureStrategy):
    mode = "whole"

    def samples(self, image: Image.Image) -> list[Sample]:
        return [Sample(index=0, image=image)]


@dataclass
class RegionSelect(CaptureStrategy):
    """
    User-dragged rectangles, given in display coordinates.

    Each rectangle contributes its own candidates; prices repeated across
    rectangles are kept once per rectangle.
    """

    regions: Sequence[Region]
    display_size: Size | None = None
    min_selection_size: int = MIN_SELECTION_SIZE

    mode = "region"

    def samples(self, image: Image.Image) -> list[Sample]:
        result = []
        for index, selection in enumerate(self.regions):
            region = region_from_display(selection, image.size, self.display_size)
            ensure_selection_size(region, self.min_selection_size)
            result.append(Sample(index=index, image=sample(image, region), region=region))
        return result


@dataclass
class PointSample(CaptureStrategy):
    """User clicks on individual prices, given in display coordinates."""

    points: Sequence[Point]
    display_size: Size | None = None
    window: Size = (240, 80)
    min_selection_size: int = MIN_SELECTION_SIZE

    mode = "point"
    options = replace(NUMERIC_ONLY, page_segmentation_mode=PageSegmentationMode.SPARSE_TEXT)
    sort_by_amount = False

    def samples(self, image: Image.Image) -> list[Sample]:
        result = []
        for index, point in enumerate(self.points):
            anchor = display_to_native(point, image.size, self.display_size)
            region = region_around_point(anchor, image.size, *self.window)
            ensure_selection_size(region, self.min_selection_size)
            result.append(Sample(index=index, image=sample(image, region), region=region, anchor=anchor))
        return result

    def select(self, sample: Sample, candidates: list[CandidateItem]) -> list[CandidateItem]:
        """Keep the single price closest to the click."""
        if not candidates or sample.anchor is None:
            return candidates[:1]

        def distance(item: CandidateItem) -> float:
            if item.source_region is None:
                return math.inf
            cx, cy = item.source_region.center
            return math.hypot(cx - sample.anchor[0], cy - sample.anchor[1])

        # min() keeps the first (largest) candidate on ties or missing geometry
        return [min(candidates, key=distance)]


@dataclass(frozen=True)
class ExtractionResult:
    """Candidates extracted from one capture."""

    items: list[CandidateItem] = field(default_factory=list)
    total: Decimal = Decimal("0.00")
    tax: Decimal | None = None
    provider: str = ""
    text: str = ""

    @property
    def found(self) -> bool:
        return bool(self.items)


@dataclass(frozen=True)
class _Prepared:
    sample: Sample
    image: Image.Image
    # Native pixels per prepared pixel, for mapping word boxes back
    factor: float


def _to_native(region: Region, prepared: _Prepared) -> Region:
    factor = prepared.factor
    scaled = Region(
        round(region.x * factor),
        round(region.y * factor),
        round(region.width * factor),
        round(region.height * factor),
    )
    origin = prepared.sample.region
    return scaled.offset(origin.x, origin.y) if origin is not None else scaled


class PriceExtractor:
    """Runs OCR over a capture and turns the output into candidate items."""

    def __init__(
        self,
        primary: OCREngine,
        fallback: OCREngine | None = None,
        *,
        max_candidates: int | None = 20,
        enhance_images: bool = True,
        upscale_min_width: int = MIN_OCR_WIDTH,
    ) -> None:
        self.primary = primary
        self.fallback = fallback
        self.max_candidates = max_candidates
        self.enhance_images = enhance_images
        self.upscale_min_width = upscale_min_width

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> PriceExtractor:
        settings = settings or get_settings()
        return cls(
            TesseractEngine.from_settings(settings),
            RemoteOCREngine.from_settings(settings),
            max_candidates=settings.max_candidates,
            enhance_images=settings.enhance_images,
            upscale_min_width=settings.upscale_min_width,
        )

    def _prepare(self, sample: Sample) -> _Prepared:
        if not self.enhance_images:
            return _Prepared(sample=sample, image=sample.image, factor=1.0)
        prepared = enhance(sample.image, min_width=self.upscale_min_width)
        return _Prepared(sample=sample, image=prepared, factor=sample.image.width / prepared.width)

    async def _recognize_all(
        self,
        engine: OCREngine,
        prepared: list[_Prepared],
        options: RecognitionOptions | None,
    ) -> list[RecognitionResult]:
        # gather() returns results in argument order, so merging follows sample order
        return list(await asyncio.gather(*(engine.recognize(p.image, options) for p in prepared)))

    def _merge(
        self,
        strategy: CaptureStrategy,
        prepared: list[_Prepared],
        results: list[RecognitionResult],
    ) -> ExtractionResult:
        # parse_prices dedupes within a sample; equal prices in different
        # samples are distinct line items (two $5.00 beers are two picks)
        items: list[CandidateItem] = []
        for prep, result in zip(prepared, results):
            candidates = [
                replace(item, source_region=_to_native(item.source_region, prep))
                if item.source_region is not None
                else replace(item, source_region=prep.sample.region)
                for item in parse_prices(result.text, result.words)
            ]
            items.extend(strategy.select(prep.sample, candidates))

        if strategy.sort_by_amount:
            items.sort(key=lambda item: item.cents, reverse=True)
        if self.max_candidates is not None:
            items = items[: self.max_candidates]

        text = "\n".join(result.text for result in results)
        provider = results[0].provider if results else ""
        return ExtractionResult(
            items=items, total=find_total(text), tax=find_tax(text), provider=provider, text=text
        )

    async def extract(self, image: Image.Image, strategy: CaptureStrategy | None = None) -> ExtractionResult:
        """
        OCR a capture and parse candidate prices.

        Order of attempts:
        1. primary engine with the strategy's options
        2. primary engine again with a numeric-only whitelist, if nothing was found
        3. one fallback-engine attempt, if the primary failed or found nothing

        Raises:
            RecognitionFailure: if every configured engine failed. An empty
                result (recognition worked, no prices) is returned, not raised.
        """
        strategy = strategy or WholeImage()
        prepared = [self._prepare(s) for s in strategy.samples(image)]
        logger.debug("Extracting prices: mode=%s samples=%d", strategy.mode, len(prepared))

        primary_error: RecognitionFailure | None = None
        result = ExtractionResult()
        try:
            result = self._merge(strategy, prepared, await self._recognize_all(self.primary, prepared, strategy.options))
            if not result.found and not (strategy.options and strategy.options.character_whitelist):
                logger.info("No prices found, retrying with numeric-only recognition")
                numeric = await self._recognize_all(self.primary, prepared, NUMERIC_ONLY)
                retry = self._merge(strategy, prepared, numeric)
                if retry.found:
                    result = retry
        except RecognitionFailure as exc:
            primary_error = exc
            logger.warning("Primary OCR (%s) failed: %s", self.primary.name, exc)

        if result.found:
            return result

        if self.fallback is None:
            if primary_error is not None:
                raise RecognitionFailure(MANUAL_ENTRY_HINT) from primary_error
            return result

        logger.info("Falling back to %s OCR", self.fallback.name)
        try:
            return self._merge(strategy, prepared, await self._recognize_all(self.fallback, prepared, strategy.options))
        except RecognitionFailure as exc:
            if primary_error is not None:
                raise RecognitionFailure(MANUAL_ENTRY_HINT) from exc
            logger.warning("Fallback OCR (%s) failed: %s", self.fallback.name, exc)
            return result


def _numbers(text: str, count: int, what: str) -> list[float]:
    parts = [p for p in text.replace("x", ",").replace("X", ",").split(",") if p.strip()]
    if len(parts) != count:
        raise InvalidSelection(f"Expected {what}, got {text!r}")
    try:
        return [float(p) for p in parts]
    except ValueError:
        raise InvalidSelection(f"Expected {what}, got {text!r}") from None


def parse_region(text: str) -> Region:
    """Parse ``"x,y,w,h"``."""
    x, y, w, h = _numbers(text, 4, "x,y,width,height")
    return Region(round(x), round(y), round(w), round(h))


def parse_point(text: str) -> Point:
    """Parse ``"x,y"``."""
    x, y = _numbers(text, 2, "x,y")
    return x, y


def parse_size(text: str) -> Size:
    """Parse ``"WxH"`` (or ``"W,H"``)."""
    w, h = _numbers(text, 2, "WIDTHxHEIGHT")
    return round(w), round(h)


def build_strategy(
    mode: str,
    regions: Sequence[str] = (),
    points: Sequence[str] = (),
    display: str | None = None,
    settings: Settings | None = None,
) -> CaptureStrategy:
    """Build a capture strategy from textual selections (CLI flags or form fields)."""
    settings = settings or get_settings()
    display_size = parse_size(display) if display else None
    if mode == WholeImage.mode:
        return WholeImage()
    if mode == RegionSelect.mode:
        if not regions:
            raise InvalidSelection("Region mode needs at least one region")
        return RegionSelect(
            regions=[parse_region(r) for r in regions],
            display_size=display_size,
            min_selection_size=settings.min_selection_size,
        )
    if mode == PointSample.mode:
        if not points:
            raise InvalidSelection("Point mode needs at least one point")
        return PointSample(
            points=[parse_point(p) for p in points],
            display_size=display_size,
            window=(settings.point_window_width, settings.point_window_height),
            min_selection_size=settings.min_selection_size,
        )
    raise InvalidSelection(f"Unknown capture mode {mode!r}; use whole, region or point")
