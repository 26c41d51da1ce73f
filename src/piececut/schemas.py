"""HTTP response schemas."""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class BoxPercent(BaseModel):
    x: float
    y: float
    width: float
    height: float


class PixelBox(BaseModel):
    x: int
    y: int
    width: int
    height: int


class PieceResult(BaseModel):
    """One extracted piece, in the same position as its descriptor."""
    index: int = Field(..., description="Position of the descriptor in the request")
    piece: Dict[str, Any] = Field(..., description="Descriptor metadata (type, name, color, style, details)")
    location: Optional[BoxPercent] = Field(None, description="Normalized percentage box")
    pixel_rect: Optional[PixelBox] = Field(None, description="Padded crop in source pixels")
    image: Optional[str] = Field(None, description="Cut-out image (base64), null when the piece failed")
    format: Optional[str] = Field(None, description="Encoding of image")
    matted: bool = Field(..., description="Whether the background was removed")
    status: str = Field(..., description="matted, cropped_unmatted or failed")
    error: Optional[str] = Field(None, description="Reason for a degraded piece")


class ExtractionResponse(BaseModel):
    success: bool = True
    count: int
    width: int = Field(..., description="Source image width")
    height: int = Field(..., description="Source image height")
    pieces: List[PieceResult]


class BackgroundRemovalResponse(BaseModel):
    success: bool = True
    image: str = Field(..., description="Image with transparent background (base64 PNG)")
    format: str = "png"


class HealthResponse(BaseModel):
    status: str
    max_workers: int
    options: Dict[str, Any]
