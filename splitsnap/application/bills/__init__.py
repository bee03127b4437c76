"""Bill workflows: capture, session state and scanning."""

from splitsnap.application.bills.capture import (
    CaptureStrategy,
    ExtractionResult,
    PointSample,
    PriceExtractor,
    RegionSelect,
    WholeImage,
    build_strategy,
)
from splitsnap.application.bills.scan import BillScanRequest, BillScanResult, run_bill_scan, run_bill_scan_async
from splitsnap.application.bills.session import BillSession, ScanOutcome

__all__ = [
    "BillScanRequest",
    "BillScanResult",
    "BillSession",
    "CaptureStrategy",
    "ExtractionResult",
    "PointSample",
    "PriceExtractor",
    "RegionSelect",
    "ScanOutcome",
    "WholeImage",
    "build_strategy",
    "run_bill_scan",
    "run_bill_scan_async",
]
