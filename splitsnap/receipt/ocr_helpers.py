"""Pure helpers for turning raw OCR service output into recognition results."""

from typing import Any

from splitsnap.domain.bill import OCRWord, RecognitionResult, Region

OCR_IMAGE_PADDING = 50  # White padding the remote service expects around the image
MIN_DETECTION_CONFIDENCE = 0.5
MIN_LINE_OVERLAP = 0.5


def _detection_region(points: list[list[float]], padding: int, scale: float = 1.0) -> Region:
    """Axis-aligned box around a detection polygon, with padding and downscaling undone."""
    xs = [(p[0] - padding) / scale for p in points]
    ys = [(p[1] - padding) / scale for p in points]
    left, top = int(round(min(xs))), int(round(min(ys)))
    return Region(left, top, int(round(max(xs))) - left, int(round(max(ys))) - top)


def _overlap_ratio(box: Region, line: list[OCRWord]) -> float:
    """Vertical overlap between a box and a line span, relative to the smaller height."""
    line_top = min(w.bbox.y for w in line if w.bbox)
    line_bottom = max(w.bbox.bottom for w in line if w.bbox)
    overlap = min(box.bottom, line_bottom) - max(box.y, line_top)
    if overlap <= 0:
        return 0.0
    smaller = min(box.height, line_bottom - line_top)
    # Degenerate boxes never join a line
    if smaller <= 0:
        return 0.0
    return overlap / smaller


def group_words_into_lines(words: list[OCRWord]) -> list[list[OCRWord]]:
    """
    Group positioned words into printed rows.

    Words are visited top to bottom; a word joins the first existing line it
    overlaps vertically by at least MIN_LINE_OVERLAP, otherwise it starts a
    new line. Lines are returned top to bottom, words left to right.
    """
    positioned = sorted((w for w in words if w.bbox is not None), key=lambda w: (w.bbox.center[1], w.bbox.x))
    lines: list[list[OCRWord]] = []
    for word in positioned:
        for line in lines:
            if _overlap_ratio(word.bbox, line) >= MIN_LINE_OVERLAP:
                line.append(word)
                break
        else:
            lines.append([word])

    for line in lines:
        line.sort(key=lambda w: w.bbox.x)
    lines.sort(key=lambda line: sum(w.bbox.center[1] for w in line) / len(line))
    return lines


def transform_detections(
    raw_result: dict[str, Any],
    padding: int = OCR_IMAGE_PADDING,
    min_confidence: float = MIN_DETECTION_CONFIDENCE,
    provider: str = "remote",
    scale: float = 1.0,
) -> RecognitionResult:
    """
    Convert a PaddleOCR-style service payload into a RecognitionResult.

    The payload carries ``detections`` as ``[polygon, [text, confidence]]``
    pairs measured on the padded image sent to the service. ``scale`` is the
    shrink factor applied before padding (see ``prepare_for_remote_ocr``).
    Coordinates are mapped back into the unscaled image, low-confidence
    detections dropped, and words grouped into lines to rebuild the text.
    """
    words: list[OCRWord] = []
    for detection in raw_result.get("detections") or []:
        points, (text, confidence) = detection
        if confidence < min_confidence or not str(text).strip():
            continue
        words.append(
            OCRWord(
                text=str(text).strip(),
                bbox=_detection_region(points, padding, scale),
                confidence=float(confidence),
            )
        )

    lines = group_words_into_lines(words)
    full_text = "\n".join(" ".join(w.text for w in line) for line in lines)
    ordered = [word for line in lines for word in line]
    return RecognitionResult(text=full_text, words=ordered, provider=provider)
