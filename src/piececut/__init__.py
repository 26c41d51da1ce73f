"""
PieceCut - garment region extraction and background matting package.
"""

__version__ = "0.1.0"

from .bbox import normalize_box
from .config import ExtractionOptions, load_options
from .cropping import crop, crop_rect
from .descriptors import parse_vision_response
from .matting import matte
from .models import (
    BoundingBoxPercent,
    PieceDescriptor,
    PieceStatus,
    PixelRect,
    ProcessedPiece,
    SourceImage,
)
from .pipeline import decode_image, extract

__all__ = [
    "BoundingBoxPercent",
    "ExtractionOptions",
    "PieceDescriptor",
    "PieceStatus",
    "PixelRect",
    "ProcessedPiece",
    "SourceImage",
    "crop",
    "crop_rect",
    "decode_image",
    "extract",
    "load_options",
    "matte",
    "normalize_box",
    "parse_vision_response",
]
