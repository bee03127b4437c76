"""Tests for the unified CLI entrypoint and bill commands."""

from __future__ import annotations

import logging
import sys
from decimal import Decimal
from pathlib import Path

import pytest
from _pytest.monkeypatch import MonkeyPatch

from splitsnap.application.bills import capture
from splitsnap.application.bills.capture import ExtractionResult
from splitsnap.application.bills.session import BillSession
from splitsnap.cli import main as unified_cli
from splitsnap.cli.bill import format_split
from splitsnap.domain.bill import Assignment, CandidateItem
from splitsnap.domain.errors import ImageProcessingFailure, RecognitionFailure
from splitsnap.runtime import set_log_level
from splitsnap.runtime.logging import ROOT_LOGGER_NAME


class FakeExtractor:
    def __init__(self, result: ExtractionResult | None = None, error: Exception | None = None) -> None:
        self.result = result or ExtractionResult()
        self.error = error

    async def extract(self, image, strategy=None) -> ExtractionResult:
        if self.error is not None:
            raise self.error
        return self.result


def _use_extractor(monkeypatch: MonkeyPatch, extractor: FakeExtractor) -> None:
    monkeypatch.setattr(capture.PriceExtractor, "from_settings", staticmethod(lambda settings=None: extractor))


@pytest.fixture
def bill_path(tmp_path: Path, png_bytes: bytes) -> Path:
    path = tmp_path / "bill.png"
    path.write_bytes(png_bytes)
    return path


def test_no_command_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    assert unified_cli.main([]) == 1
    assert "scan" in capsys.readouterr().out


def test_split_prints_per_person_totals(capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = unified_cli.main(
        ["split", "5", "5", "10", "--assign", "1=a", "--assign", "2=b", "--tax", "2", "--tip", "10", "--names", "Sam,Alex"]
    )

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "BILL SPLIT" in out
    assert "Sam" in out and "Alex" in out
    total_line = next(line for line in out.splitlines() if line.startswith("Total"))
    assert total_line.split()[1:] == ["$12.10", "$12.10"]
    assert "= $24.20" in out


def test_split_rejects_bad_amount(capsys: pytest.CaptureFixture[str]) -> None:
    assert unified_cli.main(["split", "5", "lots"]) == 2
    assert "Error" in capsys.readouterr().out


@pytest.mark.parametrize("assign", ["3=a", "1=c", "first=a"])
def test_split_rejects_bad_assignment(assign: str) -> None:
    assert unified_cli.main(["split", "5", "6", "--assign", assign]) == 2


def test_scan_missing_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert unified_cli.main(["scan", str(tmp_path / "missing.jpg")]) == 1
    assert "not found" in capsys.readouterr().out


def test_scan_prints_split(monkeypatch: MonkeyPatch, bill_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _use_extractor(
        monkeypatch,
        FakeExtractor(
            ExtractionResult(
                items=[CandidateItem(cents=899), CandidateItem(cents=350)],
                total=Decimal("13.60"),
                provider="tesseract",
            )
        ),
    )

    exit_code = unified_cli.main(["scan", str(bill_path), "--assign", "2=b"])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "$8.99" in out
    assert "Your Partner" in out
    assert "Printed total: $13.60" in out
    assert "Estimated tax (from printed total, not applied): $1.11" in out


def test_scan_ocr_failure_suggests_manual_entry(
    monkeypatch: MonkeyPatch, bill_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _use_extractor(monkeypatch, FakeExtractor(error=RecognitionFailure("Please add the prices manually.")))

    assert unified_cli.main(["scan", str(bill_path)]) == 1
    assert "splitsnap split" in capsys.readouterr().out


def test_scan_no_prices(monkeypatch: MonkeyPatch, bill_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _use_extractor(monkeypatch, FakeExtractor())

    assert unified_cli.main(["scan", str(bill_path)]) == 1
    assert "No prices found" in capsys.readouterr().out


def test_scan_processing_failure(monkeypatch: MonkeyPatch, bill_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _use_extractor(monkeypatch, FakeExtractor(error=ImageProcessingFailure("Image enhancement failed: boom")))

    assert unified_cli.main(["scan", str(bill_path)]) == 1
    assert "Error: Image enhancement failed: boom" in capsys.readouterr().out


def test_scan_bad_selection(bill_path: Path) -> None:
    assert unified_cli.main(["scan", str(bill_path), "--mode", "region"]) == 2
    assert unified_cli.main(["scan", str(bill_path), "--mode", "region", "--region", "1,2"]) == 2


def test_cli_does_not_mutate_sys_argv(monkeypatch: MonkeyPatch) -> None:
    sentinel_argv = ["sentinel", "keep-this"]
    monkeypatch.setattr(sys, "argv", sentinel_argv)

    assert unified_cli.main(["split", "4.00"]) == 0
    assert sys.argv == sentinel_argv


def test_format_split_marks_manual_items_and_owners() -> None:
    session = BillSession("Sam", "Alex")
    item = session.add_manual_item("4.00")
    session.set_assignment(item.id, Assignment.PERSON_A)
    session.add_manual_item("6.00")

    report = format_split(session)

    assert "$4.00  Sam (manual)" in report
    assert "$6.00  Shared (manual)" in report
    assert "Subtotal $10.00 + tax $0.00 + tip $0.00 = $10.00" in report


def test_verbose_flag_enables_debug_logging(capsys: pytest.CaptureFixture[str]) -> None:
    root = logging.getLogger(ROOT_LOGGER_NAME)
    previous = root.level
    try:
        assert unified_cli.main(["--verbose", "split", "4.00"]) == 0
        assert root.level == logging.DEBUG
    finally:
        set_log_level(previous)
