"""Mapping on-screen selections to native pixels and cropping them."""

from __future__ import annotations

from PIL import Image

from splitsnap.domain.bill import Region
from splitsnap.domain.errors import ImageProcessingFailure, InvalidSelection

MIN_SELECTION_SIZE = 20  # Smaller selections are treated as accidental clicks

Size = tuple[int, int]
Point = tuple[float, float]


def _scale(native_size: Size, display_size: Size | None) -> tuple[float, float]:
    if display_size is None:
        return 1.0, 1.0
    display_w, display_h = display_size
    if display_w <= 0 or display_h <= 0:
        raise InvalidSelection(f"Invalid display size: {display_w}x{display_h}")
    return native_size[0] / display_w, native_size[1] / display_h


def display_to_native(point: Point, native_size: Size, display_size: Size | None) -> tuple[int, int]:
    """
    Convert a point on a resized rendering to native image pixels.

    E.g. a 2000x1000 image shown at 500x250 maps (100, 100) to (400, 400).
    """
    sx, sy = _scale(native_size, display_size)
    return round(point[0] * sx), round(point[1] * sy)


def region_from_display(region: Region, native_size: Size, display_size: Size | None) -> Region:
    """Convert a dragged rectangle from display space and clip it to the image."""
    left, top = display_to_native((region.x, region.y), native_size, display_size)
    right, bottom = display_to_native((region.right, region.bottom), native_size, display_size)
    return Region(left, top, right - left, bottom - top).clamp(*native_size)


def region_around_point(point: tuple[int, int], native_size: Size, width: int, height: int) -> Region:
    """Return a ``width`` x ``height`` window centred on a native point, clipped to the image."""
    x, y = point
    if not (0 <= x <= native_size[0] and 0 <= y <= native_size[1]):
        raise InvalidSelection(f"Point ({x}, {y}) is outside the {native_size[0]}x{native_size[1]} image")
    return Region(x - width // 2, y - height // 2, width, height).clamp(*native_size)


def ensure_selection_size(region: Region, minimum: int = MIN_SELECTION_SIZE) -> Region:
    """Reject selections smaller than ``minimum`` native pixels on either side."""
    if region.width < minimum or region.height < minimum:
        raise InvalidSelection(
            f"Selection {region.width}x{region.height} is smaller than {minimum}x{minimum} pixels"
        )
    return region


def sample(image: Image.Image, region: Region) -> Image.Image:
    """Crop a native-pixel region into a standalone image."""
    clipped = region.clamp(*image.size)
    if clipped.area == 0:
        raise InvalidSelection(f"Region {region} does not overlap the image")
    try:
        return image.crop(clipped.as_box())
    except (OSError, ValueError) as exc:
        raise ImageProcessingFailure(f"Could not crop region {region}: {exc}") from exc
