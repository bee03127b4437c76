"""Bill scan workflow orchestration."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from splitsnap.application.bills.capture import CaptureStrategy, PriceExtractor
from splitsnap.application.bills.session import BillSession
from splitsnap.domain.errors import DecodeFailure, ImageProcessingFailure, InvalidSelection, RecognitionFailure

if TYPE_CHECKING:
    from splitsnap.application.bills.capture import ExtractionResult

ScanStatus = Literal[
    "file_not_found",
    "decode_failed",
    "processing_failed",
    "invalid_selection",
    "ocr_unavailable",
    "no_candidates",
    "candidates_found",
]


@dataclass(frozen=True)
class BillScanRequest:
    """Inputs for running the bill scan workflow."""

    image_path: Path
    session: BillSession
    extractor: PriceExtractor
    strategy: CaptureStrategy | None = None


@dataclass(frozen=True)
class BillScanResult:
    """Outcome from the bill scan workflow."""

    status: ScanStatus
    extraction: ExtractionResult | None = None
    error: str | None = None


async def run_bill_scan_async(request: BillScanRequest) -> BillScanResult:
    """Run scan flow: load image -> OCR -> parse -> merge into the session."""
    if not request.image_path.exists():
        return BillScanResult(
            status="file_not_found",
            error=f"Bill image not found: {request.image_path}",
        )

    try:
        request.session.start(request.image_path.read_bytes())
    except DecodeFailure as exc:
        return BillScanResult(status="decode_failed", error=str(exc))

    try:
        outcome = await request.session.scan(request.extractor, request.strategy)
    except InvalidSelection as exc:
        return BillScanResult(status="invalid_selection", error=str(exc))
    except ImageProcessingFailure as exc:
        return BillScanResult(status="processing_failed", error=str(exc))
    except RecognitionFailure as exc:
        return BillScanResult(status="ocr_unavailable", error=str(exc))

    extraction = outcome.extraction
    if extraction is None or not extraction.found:
        return BillScanResult(status="no_candidates", extraction=extraction)
    return BillScanResult(status="candidates_found", extraction=extraction)


def run_bill_scan(request: BillScanRequest) -> BillScanResult:
    """Blocking wrapper for command-line use."""
    return asyncio.run(run_bill_scan_async(request))
