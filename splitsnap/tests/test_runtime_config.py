"""Tests for environment-driven settings and logging."""

from __future__ import annotations

import logging
from decimal import Decimal

import pytest
from _pytest.monkeypatch import MonkeyPatch

from splitsnap.runtime import get_logger, get_settings, parse_log_level, reset_settings, set_log_level
from splitsnap.runtime.logging import ROOT_LOGGER_NAME


def test_defaults() -> None:
    settings = get_settings()

    assert settings.max_candidates == 20
    assert settings.min_selection_size == 20
    assert settings.upscale_min_width == 1200
    assert settings.assumed_tax_rate == Decimal("9")
    assert (settings.person_a_label, settings.person_b_label) == ("You", "Your Partner")
    assert not settings.remote_ocr_enabled


def test_settings_singleton_until_reset(monkeypatch: MonkeyPatch) -> None:
    first = get_settings()
    monkeypatch.setenv("SPLITSNAP_MAX_CANDIDATES", "5")

    assert get_settings() is first
    reset_settings()
    assert get_settings().max_candidates == 5


def test_environment_overrides(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setenv("SPLITSNAP_OCR_SERVICE_URL", "http://ocr.local:8001")
    monkeypatch.setenv("SPLITSNAP_ENHANCE_IMAGES", "no")
    monkeypatch.setenv("SPLITSNAP_OCR_TIMEOUT", "2.5")
    monkeypatch.setenv("SPLITSNAP_PERSON_A", "Sam")
    reset_settings()

    settings = get_settings()

    assert settings.remote_ocr_enabled
    assert settings.enhance_images is False
    assert settings.ocr_timeout == 2.5
    assert settings.person_a_label == "Sam"


def test_bad_integer_setting(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setenv("SPLITSNAP_PORT", "eighty")
    reset_settings()

    with pytest.raises(ValueError, match="SPLITSNAP_PORT"):
        get_settings()


def test_loggers_are_namespaced() -> None:
    assert get_logger("splitsnap.receipt").name == "splitsnap.receipt"
    assert get_logger("plugins.extra").name == "splitsnap.plugins.extra"
    assert get_logger(ROOT_LOGGER_NAME).name == ROOT_LOGGER_NAME


def test_set_log_level() -> None:
    root = logging.getLogger(ROOT_LOGGER_NAME)
    previous = root.level
    try:
        set_log_level(logging.DEBUG)
        assert root.level == logging.DEBUG
    finally:
        set_log_level(previous)


def test_module_loggers_share_the_package_handler() -> None:
    logger = get_logger("splitsnap.application.bills.capture")

    assert logger.name == "splitsnap.application.bills.capture"
    assert logger.parent is not None and logger.parent.name.startswith(ROOT_LOGGER_NAME)
    assert logging.getLogger(ROOT_LOGGER_NAME).handlers
    assert logging.getLogger(ROOT_LOGGER_NAME).propagate is False


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("debug", logging.DEBUG),
        (" Warn ", logging.WARNING),
        ("CRITICAL", logging.CRITICAL),
        ("30", logging.WARNING),
        (logging.ERROR, logging.ERROR),
        ("chatty", logging.INFO),
        (None, logging.INFO),
    ],
)
def test_parse_log_level(value: int | str | None, expected: int) -> None:
    assert parse_log_level(value) == expected


def test_set_log_level_accepts_names_and_switches_format() -> None:
    root = logging.getLogger(ROOT_LOGGER_NAME)
    previous = root.level
    try:
        set_log_level("debug")
        assert root.level == logging.DEBUG
        assert all("%(lineno)d" in handler.formatter._fmt for handler in root.handlers)
        set_log_level("warning")
        assert all("%(lineno)d" not in handler.formatter._fmt for handler in root.handlers)
    finally:
        set_log_level(previous)
