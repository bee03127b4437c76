"""Tests for OCR transformation helpers."""

from splitsnap.domain.bill import OCRWord, Region
from splitsnap.receipt.ocr_helpers import group_words_into_lines, transform_detections


def _bbox(x0: int, y0: int, x1: int, y1: int) -> list[list[int]]:
    return [[x0, y0], [x1, y0], [x1, y1], [x0, y1]]


def test_transform_groups_detections_into_rows_and_drops_low_confidence() -> None:
    raw_result = {
        "status": "success",
        "image_width": 1000,
        "image_height": 1200,
        "detections": [
            [_bbox(760, 324, 900, 356), ["16.99", 0.99]],
            [_bbox(120, 210, 500, 250), ["232952 COKE ZERO", 0.99]],
            [_bbox(40, 400, 300, 430), ["smudge", 0.2]],
            [_bbox(760, 212, 920, 248), ["17.19 H", 0.98]],
            [_bbox(120, 320, 550, 360), ["305882 *KS IBU 400M", 0.99]],
            [_bbox(60, 500, 90, 520), ["   ", 0.99]],
        ],
    }

    transformed = transform_detections(raw_result, padding=0)

    assert transformed.text == "232952 COKE ZERO 17.19 H\n305882 *KS IBU 400M 16.99"
    assert transformed.provider == "remote"
    assert [w.text for w in transformed.words] == ["232952 COKE ZERO", "17.19 H", "305882 *KS IBU 400M", "16.99"]
    assert "smudge" not in transformed.text


def test_transform_removes_padding_from_coordinates() -> None:
    raw_result = {"detections": [[_bbox(150, 80, 250, 110), ["9.99", 0.9]]]}

    word = transform_detections(raw_result, padding=50).words[0]

    assert word.bbox == Region(100, 30, 100, 30)
    assert word.confidence == 0.9


def test_transform_empty_payload() -> None:
    assert transform_detections({}).text == ""
    assert transform_detections({"detections": []}).words == []


def test_group_words_into_lines_orders_rows_and_columns() -> None:
    words = [
        OCRWord("b", Region(50, 0, 10, 10)),
        OCRWord("c", Region(0, 30, 10, 10)),
        OCRWord("a", Region(0, 2, 10, 10)),
        OCRWord("floating", None),
    ]

    lines = group_words_into_lines(words)

    assert [[w.text for w in line] for line in lines] == [["a", "b"], ["c"]]


def test_transform_undoes_downscaling_after_padding() -> None:
    raw_result = {"detections": [[_bbox(150, 80, 250, 110), ["9.99", 0.9]]]}

    word = transform_detections(raw_result, padding=50, scale=0.5).words[0]

    assert word.bbox == Region(200, 60, 200, 60)
