"""OCR collaborators: local Tesseract (primary) and a remote OCR service (fallback)."""

from __future__ import annotations

import asyncio
import time
from collections import defaultdict
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Protocol

import httpx
import pytesseract
from PIL import Image

from splitsnap.domain.bill import OCRWord, RecognitionResult, Region
from splitsnap.domain.errors import RecognitionFailure
from splitsnap.receipt.image_enhancer import prepare_for_remote_ocr
from splitsnap.receipt.ocr_helpers import OCR_IMAGE_PADDING, transform_detections
from splitsnap.runtime.logging import get_logger
from splitsnap.runtime.settings import Settings, get_settings

logger = get_logger(__name__)

# Characters kept for price-only passes
NUMERIC_WHITELIST = "0123456789.$ "


class PageSegmentationMode(IntEnum):
    AUTO = 3
    SINGLE_COLUMN = 4
    SINGLE_BLOCK = 6
    SINGLE_LINE = 7
    SPARSE_TEXT = 11


class EngineMode(IntEnum):
    LEGACY = 0
    LSTM = 1
    COMBINED = 2
    DEFAULT = 3


@dataclass(frozen=True)
class RecognitionOptions:
    """Per-call OCR tuning. None means the engine's configured default."""

    character_whitelist: str | None = None
    page_segmentation_mode: PageSegmentationMode | None = None
    engine_mode: EngineMode | None = None


NUMERIC_ONLY = RecognitionOptions(character_whitelist=NUMERIC_WHITELIST)


class OCREngine(Protocol):
    """Anything that can turn an image into recognized text and words."""

    name: str

    async def recognize(self, image: Image.Image, options: RecognitionOptions | None = None) -> RecognitionResult:
        ...


def _words_from_tesseract(data: dict[str, list[Any]]) -> tuple[str, list[OCRWord]]:
    """Rebuild lines from ``image_to_data`` output keyed by (block, paragraph, line)."""
    lines: dict[tuple[int, int, int], list[OCRWord]] = defaultdict(list)
    for index, raw_text in enumerate(data.get("text", [])):
        text = str(raw_text).strip()
        if not text:
            continue
        try:
            confidence = float(data["conf"][index])
        except (TypeError, ValueError):
            confidence = -1.0
        if confidence < 0:
            continue
        key = (int(data["block_num"][index]), int(data["par_num"][index]), int(data["line_num"][index]))
        lines[key].append(
            OCRWord(
                text=text,
                bbox=Region(
                    int(data["left"][index]),
                    int(data["top"][index]),
                    int(data["width"][index]),
                    int(data["height"][index]),
                ),
                confidence=confidence / 100,
            )
        )

    ordered = [lines[key] for key in sorted(lines)]
    full_text = "\n".join(" ".join(word.text for word in line) for line in ordered)
    return full_text, [word for line in ordered for word in line]


class TesseractEngine:
    """Local OCR through the ``tesseract`` binary."""

    name = "tesseract"

    def __init__(
        self,
        lang: str = "eng",
        psm: int = PageSegmentationMode.SINGLE_BLOCK,
        oem: int = EngineMode.DEFAULT,
        timeout: float = 60.0,
    ) -> None:
        self.lang = lang
        self.psm = int(psm)
        self.oem = int(oem)
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> TesseractEngine:
        settings = settings or get_settings()
        return cls(
            lang=settings.tesseract_lang,
            psm=settings.tesseract_psm,
            oem=settings.tesseract_oem,
            timeout=settings.ocr_timeout,
        )

    def build_config(self, options: RecognitionOptions | None = None) -> str:
        options = options or RecognitionOptions()
        psm = options.page_segmentation_mode if options.page_segmentation_mode is not None else self.psm
        oem = options.engine_mode if options.engine_mode is not None else self.oem
        config = f"--oem {int(oem)} --psm {int(psm)}"
        if options.character_whitelist:
            # Quoted so a space in the whitelist survives pytesseract's shlex split
            config += f' -c "tessedit_char_whitelist={options.character_whitelist}"'
        return config

    def recognize_sync(self, image: Image.Image, options: RecognitionOptions | None = None) -> RecognitionResult:
        config = self.build_config(options)
        start_time = time.time()
        try:
            data = pytesseract.image_to_data(
                image,
                lang=self.lang,
                config=config,
                timeout=self.timeout,
                output_type=pytesseract.Output.DICT,
            )
        except (pytesseract.TesseractError, OSError, RuntimeError) as exc:
            # TesseractNotFoundError is an OSError; timeouts surface as RuntimeError
            logger.error("Tesseract failed: %s", exc)
            raise RecognitionFailure(f"Tesseract OCR failed: {exc}") from exc

        text, words = _words_from_tesseract(data)
        logger.info("Tesseract returned %d words in %.2f seconds (%s)", len(words), time.time() - start_time, config)
        return RecognitionResult(text=text, words=words, provider=self.name)

    async def recognize(self, image: Image.Image, options: RecognitionOptions | None = None) -> RecognitionResult:
        return await asyncio.to_thread(self.recognize_sync, image, options)


class RemoteOCREngine:
    """HTTP OCR service returning PaddleOCR-style detections."""

    name = "remote"

    def __init__(
        self,
        base_url: str,
        timeout: float = 60.0,
        padding: int = OCR_IMAGE_PADDING,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.padding = padding
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> RemoteOCREngine | None:
        """Build the fallback engine, or None when no service URL is configured."""
        settings = settings or get_settings()
        if not settings.remote_ocr_enabled:
            return None
        return cls(settings.ocr_service_url, timeout=settings.ocr_timeout)

    async def recognize(self, image: Image.Image, options: RecognitionOptions | None = None) -> RecognitionResult:
        # The remote service has no character whitelist; options are accepted for interface parity.
        payload, scale = prepare_for_remote_ocr(image, padding=self.padding)
        logger.info("Sending bill image to OCR service at %s...", self.base_url)
        start_time = time.time()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self.base_url}/ocr",
                    files={"file": ("bill.jpg", payload, "image/jpeg")},
                )
        except httpx.RequestError as exc:
            logger.error("Failed to connect to OCR service: %s", exc)
            raise RecognitionFailure(f"Failed to connect to OCR service: {exc}") from exc

        logger.info("OCR service returned in %.2f seconds", time.time() - start_time)
        if response.status_code != 200:
            logger.error("OCR service error: %s", response.status_code)
            raise RecognitionFailure(f"OCR service error: {response.status_code}")

        try:
            raw_result = response.json()
        except ValueError as exc:
            raise RecognitionFailure("OCR service returned invalid JSON") from exc
        try:
            return transform_detections(raw_result, padding=self.padding, provider=self.name, scale=scale)
        except (KeyError, TypeError, ValueError) as exc:
            raise RecognitionFailure(f"OCR service returned an unexpected payload: {exc}") from exc
