"""Shared pytest fixtures for splitsnap tests."""

from __future__ import annotations

import io
import os

import pytest
from PIL import Image

from splitsnap.runtime.settings import reset_settings


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch):
    """Run every test against default settings, whatever the developer's shell exports."""
    for name in list(os.environ):
        if name.startswith("SPLITSNAP_") and name != "SPLITSNAP_LOG_LEVEL":
            monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def png_bytes() -> bytes:
    """A small decodable bill image."""
    buffer = io.BytesIO()
    Image.new("RGB", (200, 200), (255, 255, 255)).save(buffer, format="PNG")
    return buffer.getvalue()
