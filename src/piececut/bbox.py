"""
Bounding box normalization.
Turns whatever the vision model reported into a box that lies inside the frame.
"""
import math
from typing import Any, Mapping, Union

from .constants import DEFAULT_BOX_PERCENT, MAX_PERCENT, MIN_BOX_PERCENT
from .models import BoundingBoxPercent, coerce_number

RawBox = Union[BoundingBoxPercent, Mapping[str, Any], None]


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _fit_axis(position: float, size: float, min_size: float) -> tuple[float, float]:
    if position + size > MAX_PERCENT:
        size = MAX_PERCENT - position
    if size < min_size:
        # Box starts too close to the far edge: keep the minimum size and slide back.
        size = min_size
        position = MAX_PERCENT - min_size
    return position, size


def normalize_box(
    raw: RawBox,
    min_size: float = MIN_BOX_PERCENT,
    default_size: float = DEFAULT_BOX_PERCENT,
) -> BoundingBoxPercent:
    """
    Sanitize raw percentage coordinates into a valid box. Never raises.

    Position is clamped first, then size, then the box is shrunk to fit the
    frame. Missing or NaN positions become 0, missing or NaN sizes become
    ``default_size``.

    Args:
        raw: BoundingBoxPercent, mapping with x/y/width/height keys, or None
        min_size: Minimum width/height in percent
        default_size: Size used when a width/height is missing

    Returns:
        BoundingBoxPercent satisfying 0 <= x, y and x + width, y + height <= 100
        with width, height >= min_size
    """
    min_size = _clamp(min_size, 0.0, MAX_PERCENT)
    if raw is None:
        box = BoundingBoxPercent(math.nan, math.nan, math.nan, math.nan)
    elif isinstance(raw, BoundingBoxPercent):
        box = raw
    else:
        box = BoundingBoxPercent.from_mapping(raw)

    x = coerce_number(box.x)
    y = coerce_number(box.y)
    width = coerce_number(box.width)
    height = coerce_number(box.height)

    x = 0.0 if math.isnan(x) else _clamp(x, 0.0, MAX_PERCENT)
    y = 0.0 if math.isnan(y) else _clamp(y, 0.0, MAX_PERCENT)
    width = default_size if math.isnan(width) else width
    height = default_size if math.isnan(height) else height
    width = _clamp(width, min_size, MAX_PERCENT)
    height = _clamp(height, min_size, MAX_PERCENT)

    x, width = _fit_axis(x, width, min_size)
    y, height = _fit_axis(y, height, min_size)
    return BoundingBoxPercent(x=x, y=y, width=width, height=height)

