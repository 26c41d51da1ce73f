"""Core data types shared across the extraction pipeline."""
import enum
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class BoundingBoxPercent:
    """
    Rectangle expressed as percentages of image width/height.

    Raw boxes coming from the vision collaborator may hold NaN in any field,
    meaning the value was missing or non-numeric. Use ``bbox.normalize_box``
    before deriving pixels from a raw box.
    """

    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BoundingBoxPercent":
        return cls(
            x=coerce_number(data.get("x")),
            y=coerce_number(data.get("y")),
            width=coerce_number(data.get("width")),
            height=coerce_number(data.get("height")),
        )

    def as_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


def coerce_number(value: Any) -> float:
    """Return ``value`` as a float, or NaN when it is missing or non-numeric."""
    if value is None or isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return math.nan
    return math.nan


@dataclass(frozen=True)
class PieceDescriptor:
    """One garment as described by the vision collaborator."""

    type: str = ""
    name: str = ""
    color: str = ""
    style: str = ""
    details: str = ""
    location: Optional[BoundingBoxPercent] = None
    extra: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def metadata(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data.update(
            type=self.type,
            name=self.name,
            color=self.color,
            style=self.style,
            details=self.details,
        )
        return data


@dataclass(frozen=True)
class PixelRect:
    """Absolute pixel rectangle inside an image."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def as_slices(self) -> Tuple[slice, slice]:
        """Row/column slices for indexing an (H, W, C) buffer."""
        return slice(self.y, self.bottom), slice(self.x, self.right)

    def as_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


class SourceImage:
    """
    Decoded RGBA pixel buffer owned by one extraction call.

    The buffer is flagged read-only so it can be shared by concurrent piece
    tasks; every stage that writes works on its own copy.
    """

    def __init__(self, pixels: np.ndarray):
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"SourceImage expects an (H, W, 4) buffer, got shape {pixels.shape}")
        pixels = np.array(pixels, dtype=np.uint8, copy=True)
        pixels.setflags(write=False)
        self._pixels = pixels

    @property
    def pixels(self) -> np.ndarray:
        return self._pixels

    @property
    def width(self) -> int:
        return int(self._pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self._pixels.shape[0])

    def __repr__(self) -> str:
        return f"SourceImage({self.width}x{self.height})"


class PieceStatus(str, enum.Enum):
    MATTED = "matted"
    CROPPED_UNMATTED = "cropped_unmatted"
    FAILED = "failed"


@dataclass(frozen=True)
class ProcessedPiece:
    """Result for one descriptor, index-aligned with the input list."""

    descriptor: PieceDescriptor
    status: PieceStatus
    box: Optional[BoundingBoxPercent] = None
    pixel_rect: Optional[PixelRect] = None
    image: Optional[np.ndarray] = field(default=None, repr=False, compare=False)
    encoded: Optional[str] = field(default=None, repr=False, compare=False)
    format: Optional[str] = None
    error: Optional[str] = None

    @property
    def matted(self) -> bool:
        return self.status is PieceStatus.MATTED
