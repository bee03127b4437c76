"""Centralized runtime settings for splitsnap.

All knobs are read from ``SPLITSNAP_*`` environment variables once, when the
singleton is first requested. Tests call ``reset_settings()`` after changing
the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal


def _env_str(name: str, default: str) -> str:
    return os.environ.get(name, default)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    """Container for all runtime configuration."""

    # --- OCR ---
    # Remote fallback is disabled when the URL is empty.
    ocr_service_url: str = field(default_factory=lambda: _env_str("SPLITSNAP_OCR_SERVICE_URL", ""))
    ocr_timeout: float = field(default_factory=lambda: _env_float("SPLITSNAP_OCR_TIMEOUT", 60.0))
    tesseract_lang: str = field(default_factory=lambda: _env_str("SPLITSNAP_TESSERACT_LANG", "eng"))
    tesseract_psm: int = field(default_factory=lambda: _env_int("SPLITSNAP_TESSERACT_PSM", 6))
    tesseract_oem: int = field(default_factory=lambda: _env_int("SPLITSNAP_TESSERACT_OEM", 3))

    # --- Extraction ---
    max_candidates: int = field(default_factory=lambda: _env_int("SPLITSNAP_MAX_CANDIDATES", 20))
    min_selection_size: int = field(default_factory=lambda: _env_int("SPLITSNAP_MIN_SELECTION_SIZE", 20))
    point_window_width: int = field(default_factory=lambda: _env_int("SPLITSNAP_POINT_WINDOW_WIDTH", 240))
    point_window_height: int = field(default_factory=lambda: _env_int("SPLITSNAP_POINT_WINDOW_HEIGHT", 80))
    enhance_images: bool = field(default_factory=lambda: _env_bool("SPLITSNAP_ENHANCE_IMAGES", True))
    upscale_min_width: int = field(default_factory=lambda: _env_int("SPLITSNAP_UPSCALE_MIN_WIDTH", 1200))

    # --- Bill ---
    person_a_label: str = field(default_factory=lambda: _env_str("SPLITSNAP_PERSON_A", "You"))
    person_b_label: str = field(default_factory=lambda: _env_str("SPLITSNAP_PERSON_B", "Your Partner"))
    assumed_tax_rate: Decimal = field(
        default_factory=lambda: Decimal(_env_str("SPLITSNAP_ASSUMED_TAX_RATE", "9"))
    )

    # --- Server ---
    host: str = field(default_factory=lambda: _env_str("SPLITSNAP_HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: _env_int("SPLITSNAP_PORT", 8080))

    @property
    def remote_ocr_enabled(self) -> bool:
        return bool(self.ocr_service_url.strip())


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the singleton Settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
