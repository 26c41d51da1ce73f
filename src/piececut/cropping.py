"""
Region cropping.
Maps percentage boxes onto padded, clamped pixel rects and cuts them out.
"""
import logging
import math
from typing import Tuple

import numpy as np

from .constants import (
    DEFAULT_PADDING_RATIO,
    FACE_CROP_TOP_RATIO,
    FACE_CROP_WIDTH_RATIO,
    MIN_CROP_PIXELS,
)
from .errors import ImageTooSmall
from .models import BoundingBoxPercent, PixelRect, SourceImage

logger = logging.getLogger(__name__)


def _pad_and_clamp(start: float, size: float, padding_ratio: float, limit: int) -> Tuple[int, int]:
    pad = padding_ratio * size
    # rounding keeps float noise from spilling an extra pixel
    lo = math.floor(round(start - pad, 6))
    hi = math.ceil(round(start + size + pad, 6))
    lo = max(0, min(lo, limit - 1))
    hi = max(lo + 1, min(hi, limit))
    return lo, hi


def _enforce_floor(lo: int, hi: int, min_pixels: int, limit: int) -> Tuple[int, int]:
    if limit <= min_pixels:
        return 0, limit
    if hi - lo >= min_pixels:
        return lo, hi
    lo -= (min_pixels - (hi - lo)) // 2
    hi = lo + min_pixels
    if lo < 0:
        lo, hi = 0, min_pixels
    elif hi > limit:
        lo, hi = limit - min_pixels, limit
    return lo, hi


def crop_rect(
    width: int,
    height: int,
    box: BoundingBoxPercent,
    padding_ratio: float = DEFAULT_PADDING_RATIO,
    min_pixels: int = MIN_CROP_PIXELS,
) -> PixelRect:
    """
    Convert a percentage box into a padded pixel rect inside a width x height image.

    Order of operations: unpad -> pad -> clamp -> floor. Padding is applied
    per axis as ``padding_ratio * size`` on each side; at image edges it is
    clamped rather than shifted. The floor then grows the rect to
    ``min_pixels`` per side, or to the full dimension when the image is
    smaller than that.

    Args:
        width: Image width in pixels
        height: Image height in pixels
        box: Normalized BoundingBoxPercent
        padding_ratio: Fraction of the box size added on every side
        min_pixels: Minimum rect size per side

    Returns:
        PixelRect within [0, width) x [0, height)

    Raises:
        ImageTooSmall: if width or height is zero
    """
    if width <= 0 or height <= 0:
        raise ImageTooSmall(width, height)

    padding_ratio = max(0.0, padding_ratio)
    left = box.x * width / 100.0
    top = box.y * height / 100.0
    box_w = box.width * width / 100.0
    box_h = box.height * height / 100.0

    x0, x1 = _pad_and_clamp(left, box_w, padding_ratio, width)
    y0, y1 = _pad_and_clamp(top, box_h, padding_ratio, height)

    x0, x1 = _enforce_floor(x0, x1, min_pixels, width)
    y0, y1 = _enforce_floor(y0, y1, min_pixels, height)
    return PixelRect(x=x0, y=y0, width=x1 - x0, height=y1 - y0)


def crop(
    image: SourceImage,
    box: BoundingBoxPercent,
    padding_ratio: float = DEFAULT_PADDING_RATIO,
    min_pixels: int = MIN_CROP_PIXELS,
) -> PixelRect:
    """crop_rect against the dimensions of a decoded image."""
    rect = crop_rect(image.width, image.height, box, padding_ratio, min_pixels)
    logger.debug(f"crop {box.as_dict()} on {image.width}x{image.height} -> {rect.as_dict()}")
    return rect


def cut_region(image: SourceImage, rect: PixelRect) -> np.ndarray:
    """Return a private, writable copy of the pixels under ``rect``."""
    rows, cols = rect.as_slices()
    return image.pixels[rows, cols].copy()


def avoid_face_box(
    width: int,
    height: int,
    width_ratio: float = FACE_CROP_WIDTH_RATIO,
    top_ratio: float = FACE_CROP_TOP_RATIO,
) -> PixelRect:
    """
    Whole-image crop that skips the top of the frame where faces usually are.

    Keeps a horizontally centered band ``width_ratio`` wide, starting
    ``top_ratio`` of the way down and running to the bottom edge.
    """
    if width <= 0 or height <= 0:
        raise ImageTooSmall(width, height)
    crop_w = min(width, max(1, int(width * width_ratio)))
    top = min(max(0, int(height * top_ratio)), height - 1)
    left = (width - crop_w) // 2
    crop_h = height - top
    return PixelRect(x=left, y=top, width=crop_w, height=crop_h)
