#!/usr/bin/env python3

import argparse
from collections.abc import Callable, Sequence

from splitsnap.runtime import get_settings, set_log_level


def _coerce_exit_code(code: object) -> int:
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    return 1


def _run_command(command: Callable[[argparse.Namespace], None], args: argparse.Namespace) -> int:
    """
    Run a command handler that may call sys.exit().

    This keeps process termination centralized in this module's entrypoint.
    """
    try:
        command(args)
    except SystemExit as exc:
        return _coerce_exit_code(exc.code)
    return 0


def _add_bill_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--assign",
        action="append",
        metavar="N=WHO",
        help="Assign item N (1-based, as listed) to a, b or shared; repeatable",
    )
    parser.add_argument("--tax", help="Tax amount for the whole bill, e.g. 2.40")
    parser.add_argument("--tip", help="Tip percentage applied after tax, e.g. 18")
    parser.add_argument("--total", help="Printed bill total, used only for the tax estimate")
    parser.add_argument("--names", help='Display names for the two people, e.g. "Sam,Alex"')


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the CLI."""
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="Split a bill between two people from a receipt photo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  scan <image> [--mode whole|region|point]
                             OCR a bill photo and split it
  split <amount>...          Split prices entered by hand
  serve [--host] [--port]    Start the bill HTTP server

Assignments cycle shared -> a -> b -> shared; every item starts shared.
""",
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging (same as SPLITSNAP_LOG_LEVEL=DEBUG)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    scan_parser = subparsers.add_parser("scan", help="OCR a bill photo and split it")
    scan_parser.add_argument("image", help="Path to bill image")
    scan_parser.add_argument("--mode", choices=["whole", "region", "point"], default="whole", help="Capture mode")
    scan_parser.add_argument(
        "--region", action="append", metavar="X,Y,W,H", help="Region to OCR (region mode); repeatable"
    )
    scan_parser.add_argument("--point", action="append", metavar="X,Y", help="Price to sample (point mode); repeatable")
    scan_parser.add_argument(
        "--display", metavar="WxH", help="Size the image was displayed at when regions/points were picked"
    )
    scan_parser.add_argument("--ocr-url", default=None, help="Fallback OCR service URL (default: SPLITSNAP_OCR_SERVICE_URL)")
    scan_parser.add_argument("--no-enhance", action="store_true", help="Skip contrast/brightness enhancement")
    _add_bill_options(scan_parser)

    split_parser = subparsers.add_parser("split", help="Split prices entered by hand")
    split_parser.add_argument("amounts", nargs="+", help="Item prices, e.g. 8.99 3.50")
    _add_bill_options(split_parser)

    serve_parser = subparsers.add_parser("serve", help="Start the bill HTTP server")
    serve_parser.add_argument("--host", default=settings.host, help=f"Host to bind to (default: {settings.host})")
    serve_parser.add_argument("--port", type=int, default=settings.port, help=f"Port to bind to (default: {settings.port})")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    if args.verbose:
        set_log_level("DEBUG")

    if args.command == "scan":
        from splitsnap.cli.bill import cmd_scan

        return _run_command(cmd_scan, args)
    elif args.command == "split":
        from splitsnap.cli.bill import cmd_split

        return _run_command(cmd_split, args)
    elif args.command == "serve":
        from splitsnap.cli.bill import cmd_serve

        return _run_command(cmd_serve, args)

    return 1


if __name__ == "__main__":
    raise SystemExit(main())
