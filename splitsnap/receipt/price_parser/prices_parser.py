"""Candidate price extraction from OCR text and word tokens."""

from collections.abc import Sequence
from dataclasses import replace

from splitsnap.domain.bill import CandidateItem, OCRWord
from splitsnap.domain.money import is_plausible_item

from .common import find_amounts, is_summary_line, item_lines, summary_lines


def parse_prices(
    text: str,
    words: Sequence[OCRWord] | None = None,
    *,
    limit: int | None = None,
) -> list[CandidateItem]:
    """
    Extract candidate item prices from recognized text.

    Lines mentioning totals, tax, tip or payment methods are skipped. Every
    other price in [0.01, 10000.00] becomes a candidate, deduplicated by cents
    (the first occurrence wins). Word tokens are scanned as a second pass: they
    give text-derived candidates a bounding box and add prices lost when OCR
    reconstructed the lines. Amounts seen only on summary lines are not picked
    up again from the words.

    Args:
        text: Full recognized text
        words: Optional per-word tokens with bounding boxes
        limit: Keep only the N largest candidates (None keeps all)

    Returns:
        Candidates sorted by descending amount, all assigned to SHARED.
    """
    seen: dict[int, CandidateItem] = {}
    summary_amounts: set[int] = set()

    for line in summary_lines(text):
        summary_amounts.update(find_amounts(line))
    for line in item_lines(text):
        for cents in find_amounts(line):
            if is_plausible_item(cents) and cents not in seen:
                seen[cents] = CandidateItem(cents=cents)

    for word in words or ():
        token = word.text.strip()
        if not token or is_summary_line(token):
            continue
        for cents in find_amounts(token):
            existing = seen.get(cents)
            if existing is not None:
                if existing.source_region is None and word.bbox is not None:
                    seen[cents] = replace(existing, source_region=word.bbox)
                continue
            if cents in summary_amounts or not is_plausible_item(cents):
                continue
            seen[cents] = CandidateItem(cents=cents, source_region=word.bbox)

    # Largest first: the grand total is usually the biggest number present.
    items = sorted(seen.values(), key=lambda item: item.cents, reverse=True)
    if limit is not None:
        items = items[:limit]
    return items
