"""Image preparation for OCR: decoding, upscaling, contrast and brightness."""

from __future__ import annotations

import io

from PIL import Image, ImageOps, ImageStat, UnidentifiedImageError

from splitsnap.domain.errors import DecodeFailure, ImageProcessingFailure

from .ocr_helpers import OCR_IMAGE_PADDING

MIN_OCR_WIDTH = 1200  # OCR accuracy degrades below this width
UPSCALE_TOLERANCE = 0.8  # Only upscale when well under MIN_OCR_WIDTH
TARGET_BRIGHTNESS = 128
BRIGHTNESS_DAMPING = 0.3
MAX_REMOTE_DIMENSION = 3000


def load_image(data: bytes) -> Image.Image:
    """
    Decode image bytes and normalize EXIF orientation.

    Raises:
        DecodeFailure: if the bytes are not a readable image.
    """
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise DecodeFailure(f"Could not decode image: {exc}") from exc
    return ImageOps.exif_transpose(image)


def upscale_if_needed(image: Image.Image, min_width: int = MIN_OCR_WIDTH) -> Image.Image:
    """Upscale small images to ``min_width`` with high-quality interpolation."""
    width, height = image.size
    if width >= min_width * UPSCALE_TOLERANCE:
        return image
    scale = min_width / width
    return image.resize((round(width * scale), round(height * scale)), Image.Resampling.LANCZOS)


def _enhancement_table(low: int, high: int, mean: float) -> list[int]:
    """Lookup table: stretch [low, high] to [0, 255], then nudge toward mid-gray."""
    shift = (TARGET_BRIGHTNESS - mean) * BRIGHTNESS_DAMPING
    table = []
    for value in range(256):
        if high > low:
            value = round((value - low) / (high - low) * 255)
        table.append(min(255, max(0, round(value + shift))))
    return table


def enhance(image: Image.Image, *, upscale: bool = True, min_width: int = MIN_OCR_WIDTH) -> Image.Image:
    """
    Enhance a photo for OCR.

    Converts to luminance (ITU-R 601: 0.299 R + 0.587 G + 0.114 B), stretches
    contrast to the full [0, 255] range using the observed min/max, and moves
    brightness toward 128 by a damped correction based on the mean.

    Raises:
        ImageProcessingFailure: if the decoded image cannot be processed.
    """
    try:
        if upscale:
            image = upscale_if_needed(image, min_width)
        gray = image.convert("L")
        low, high = gray.getextrema()
        mean = ImageStat.Stat(gray).mean[0]
        return gray.point(_enhancement_table(low, high, mean))
    except (OSError, ValueError, ZeroDivisionError) as exc:
        raise ImageProcessingFailure(f"Image enhancement failed: {exc}") from exc


def to_jpeg_bytes(image: Image.Image, quality: int = 95) -> bytes:
    buffer = io.BytesIO()
    image.convert("RGB").save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def prepare_for_remote_ocr(
    image: Image.Image, max_dimension: int = MAX_REMOTE_DIMENSION, padding: int = OCR_IMAGE_PADDING
) -> tuple[bytes, float]:
    """
    Encode an image for the remote OCR service.

    Shrinks images whose longer side exceeds ``max_dimension`` and adds white
    padding so text at the edges is not truncated.

    Returns:
        The JPEG payload and the scale applied before padding (1.0 when the
        image was not shrunk). ``transform_detections`` takes both the scale
        and the padding to map service coordinates back onto ``image``.
    """
    width, height = image.size
    scale = 1.0
    if width > max_dimension or height > max_dimension:
        scale = max_dimension / max(width, height)
        image = image.resize((int(width * scale), int(height * scale)), Image.Resampling.LANCZOS)
    if padding > 0:
        image = ImageOps.expand(image.convert("RGB"), border=padding, fill="white")
    return to_jpeg_bytes(image), scale
