"""
Error taxonomy for the extraction pipeline.

Per-piece errors (CropError, MattingUnsupported) are recovered inside the
orchestrator and recorded on the piece. DecodeFailure aborts a whole call.
"""


class PieceCutError(Exception):
    """Base class for all pipeline errors."""


class GeometryDegenerate(PieceCutError):
    """Degenerate box geometry. Normalization clamps instead of raising this."""


class CropError(PieceCutError):
    """A pixel rect could not be derived for a piece."""


class ImageTooSmall(CropError):
    """The source image has zero width or height."""

    def __init__(self, width: int, height: int):
        super().__init__(f"Image has no pixels to crop: {width}x{height}")
        self.width = width
        self.height = height


class MattingUnsupported(PieceCutError):
    """Background removal cannot be applied or its output cannot carry alpha."""


class DecodeFailure(PieceCutError):
    """The source image bytes could not be decoded."""


class EncodeFailure(PieceCutError):
    """A processed buffer could not be encoded for the display layer."""


class ExtractionCancelled(PieceCutError):
    """Extraction was abandoned by the caller between pieces."""
