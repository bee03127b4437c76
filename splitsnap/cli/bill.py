"""Bill command handlers used by the unified CLI."""

import argparse
import sys
from dataclasses import replace
from decimal import Decimal
from pathlib import Path

from splitsnap.application.bills.session import BillSession
from splitsnap.domain.assignment_cycle import parse_assignment
from splitsnap.domain.bill import Assignment
from splitsnap.domain.errors import InvalidManualEntry, InvalidSelection, ItemNotFound
from splitsnap.runtime import Settings, get_logger, get_settings

logger = get_logger(__name__)

_ESTIMATE_SOURCES = {
    "printed": "read from bill",
    "inferred_from_total": "from printed total",
    "assumed_rate": "assumed rate",
}


def _settings_from_args(args: argparse.Namespace) -> Settings:
    settings = get_settings()
    overrides: dict[str, object] = {}
    if getattr(args, "ocr_url", None) is not None:
        overrides["ocr_service_url"] = args.ocr_url
    if getattr(args, "no_enhance", False):
        overrides["enhance_images"] = False
    return replace(settings, **overrides) if overrides else settings


def _new_session(args: argparse.Namespace, settings: Settings) -> BillSession:
    session = BillSession(settings.person_a_label, settings.person_b_label, assumed_tax_rate=settings.assumed_tax_rate)
    if getattr(args, "names", None):
        names = [part.strip() for part in args.names.split(",")]
        if len(names) != 2:
            raise InvalidManualEntry(f"--names expects two comma-separated names, got {args.names!r}")
        session.set_labels(*names)
    return session


def apply_bill_options(session: BillSession, args: argparse.Namespace) -> None:
    """Apply --assign/--tax/--tip/--total flags to a session."""
    for entry in getattr(args, "assign", None) or []:
        number, sep, label = entry.partition("=")
        if not sep or not number.strip().isdigit():
            raise InvalidManualEntry(f"--assign expects N=a|b|shared, got {entry!r}")
        index = int(number) - 1
        if not 0 <= index < len(session.items):
            raise ItemNotFound(f"No item #{number}; the bill has {len(session.items)} items")
        session.set_assignment(session.items[index].id, parse_assignment(label))
    if getattr(args, "tax", None) is not None:
        session.set_tax(args.tax)
    if getattr(args, "tip", None) is not None:
        session.set_tip(args.tip)
    if getattr(args, "total", None) is not None:
        session.set_declared_total(args.total)


def _money(value: Decimal) -> str:
    return f"${value:.2f}"


def format_split(session: BillSession) -> str:
    """Render the items and per-person totals as plain text."""
    totals = session.totals().rounded()
    name_a, name_b = session.person_a_label, session.person_b_label
    width = max(12, len(name_a) + 2, len(name_b) + 2)

    owners = {Assignment.PERSON_A: name_a, Assignment.PERSON_B: name_b}

    lines = ["=" * 60, "BILL SPLIT", "=" * 60, f"Items ({len(session.items)}):"]
    for i, item in enumerate(session.items, 1):
        label = owners.get(item.assignment, "Shared")
        manual = " (manual)" if item.origin == "manual" else ""
        lines.append(f"  {i:2}. {_money(item.amount):>10}  {label}{manual}")

    if session.declared_total is not None:
        lines.append(f"\nPrinted total: {_money(session.declared_total)}")
    tax_figure = session.tax_figure()
    if tax_figure is not None and tax_figure.is_estimate:
        source = _ESTIMATE_SOURCES[tax_figure.source]
        lines.append(f"Estimated tax ({source}, not applied): {_money(tax_figure.amount.quantize(Decimal('0.01')))}")

    lines.append("")
    lines.append(f"{'':16}{name_a:>{width}}{name_b:>{width}}")
    rows = [
        ("Items", totals.person_a_subtotal, totals.person_b_subtotal),
        ("Shared (50%)", totals.shared_subtotal / 2, totals.shared_subtotal / 2),
        ("Tax", totals.person_a_tax, totals.person_b_tax),
        (f"Tip ({totals.tip_percent}%)", totals.person_a_tip, totals.person_b_tip),
        ("Total", totals.person_a_final, totals.person_b_final),
    ]
    for title, value_a, value_b in rows:
        lines.append(f"{title:16}{_money(value_a):>{width}}{_money(value_b):>{width}}")
    lines.append("")
    lines.append(
        f"Subtotal {_money(totals.grand_subtotal)} + tax {_money(totals.tax_amount)}"
        f" + tip {_money(totals.tip_amount)} = {_money(totals.grand_total)}"
    )
    lines.append("=" * 60)
    return "\n".join(lines)


def cmd_scan(args: argparse.Namespace) -> None:
    """OCR a bill photo, apply assignments and print the split."""
    from splitsnap.application.bills.capture import PriceExtractor, build_strategy
    from splitsnap.application.bills.scan import BillScanRequest, run_bill_scan

    settings = _settings_from_args(args)
    try:
        session = _new_session(args, settings)
        strategy = build_strategy(args.mode, args.region or (), args.point or (), args.display, settings)
    except (InvalidManualEntry, InvalidSelection) as exc:
        print(f"Error: {exc}")
        sys.exit(2)

    result = run_bill_scan(
        BillScanRequest(
            image_path=Path(args.image),
            session=session,
            extractor=PriceExtractor.from_settings(settings),
            strategy=strategy,
        )
    )

    if result.status in ("file_not_found", "decode_failed", "processing_failed", "invalid_selection"):
        logger.error("%s", result.error)
        print(f"Error: {result.error}")
        sys.exit(1)

    if result.status == "ocr_unavailable":
        logger.error("%s", result.error)
        print(f"OCR failed: {result.error}")
        print("Use `splitsnap split AMOUNT...` to enter the prices by hand.")
        sys.exit(1)

    if result.status == "no_candidates":
        print("No prices found on the bill.")
        print("Use `splitsnap split AMOUNT...` to enter the prices by hand.")
        sys.exit(1)

    try:
        apply_bill_options(session, args)
    except (InvalidManualEntry, ItemNotFound) as exc:
        print(f"Error: {exc}")
        sys.exit(2)
    print(format_split(session))


def cmd_split(args: argparse.Namespace) -> None:
    """Split manually entered prices."""
    settings = get_settings()
    try:
        session = _new_session(args, settings)
        for amount in args.amounts:
            session.add_manual_item(amount)
        apply_bill_options(session, args)
    except (InvalidManualEntry, ItemNotFound) as exc:
        print(f"Error: {exc}")
        sys.exit(2)
    print(format_split(session))


def cmd_serve(args: argparse.Namespace) -> None:
    """Start the FastAPI server for the bill front end."""
    import uvicorn

    from splitsnap.runtime.bill_server import create_app

    print(f"Starting bill server on {args.host}:{args.port}")
    print("Press Ctrl+C to stop")

    uvicorn.run(create_app(), host=args.host, port=args.port)
