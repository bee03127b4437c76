"""Core domain models for splitsnap.

This package is pure: no I/O, no OCR, no runtime configuration.
- CandidateItem, Assignment, Region: bill line items and their geometry
- allocate(): proportional two-person split
- next_assignment(): click-to-cycle state machine

Usage:
    from splitsnap.domain import CandidateItem, allocate
"""

from splitsnap.domain.allocation import allocate, estimate_tax, infer_tax
from splitsnap.domain.assignment_cycle import next_assignment, parse_assignment
from splitsnap.domain.bill import (
    Assignment,
    BillTotals,
    CandidateItem,
    OCRWord,
    RecognitionResult,
    Region,
    TaxFigure,
)

__all__ = [
    "Assignment",
    "BillTotals",
    "CandidateItem",
    "OCRWord",
    "RecognitionResult",
    "Region",
    "TaxFigure",
    "allocate",
    "estimate_tax",
    "infer_tax",
    "next_assignment",
    "parse_assignment",
]
