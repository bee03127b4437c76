"""Price and total extraction from OCR output."""

from .common import find_amounts, is_summary_line, item_lines, summary_lines
from .prices_parser import parse_prices
from .total_parser import find_tax, find_total

__all__ = [
    "find_amounts",
    "find_tax",
    "find_total",
    "is_summary_line",
    "item_lines",
    "parse_prices",
    "summary_lines",
]
