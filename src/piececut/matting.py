"""
Background matting.
Estimates a flat backdrop color from the corners of a crop and fades out the
pixels that match it, producing an RGBA cut-out.
"""
import base64
import logging
from typing import Tuple

import cv2
import numpy as np

from .constants import (
    ALPHA_FORMATS,
    DEFAULT_LIGHT_CUTOFF,
    DEFAULT_MATTE_THRESHOLD,
    DEFAULT_OUTPUT_FORMAT,
    JPEG_QUALITY,
    SUPPORTED_FORMATS,
)
from .errors import EncodeFailure, MattingUnsupported
from .models import SourceImage

logger = logging.getLogger(__name__)


def to_rgba(pixels: np.ndarray) -> np.ndarray:
    """Return an RGBA copy of an (H, W, 3) or (H, W, 4) buffer."""
    if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
        raise MattingUnsupported(f"Expected an RGB or RGBA buffer, got shape {pixels.shape}")
    if pixels.shape[0] == 0 or pixels.shape[1] == 0:
        raise MattingUnsupported("Cannot matte an empty buffer")
    if pixels.shape[2] == 4:
        return pixels.astype(np.uint8, copy=True)
    return cv2.cvtColor(pixels.astype(np.uint8), cv2.COLOR_RGB2RGBA)


def estimate_background(pixels: np.ndarray) -> Tuple[float, float, float]:
    """Average R, G, B of the four corner pixels."""
    h, w = pixels.shape[:2]
    corners = pixels[[0, 0, h - 1, h - 1], [0, w - 1, 0, w - 1], :3].astype(np.float64)
    bg = corners.mean(axis=0)
    return float(bg[0]), float(bg[1]), float(bg[2])


def matte(
    pixels: np.ndarray,
    threshold: float = DEFAULT_MATTE_THRESHOLD,
    light_cutoff: float = DEFAULT_LIGHT_CUTOFF,
) -> np.ndarray:
    """
    Remove a flat backdrop from a crop.

    Pixels whose RGB distance to the corner-sampled background is below
    ``threshold``, or whose mean channel value is above ``light_cutoff``, get
    ``alpha = clamp(distance / threshold, 0, 1) * 255`` so edges fade instead
    of being cut hard. Every other pixel is fully opaque.

    Args:
        pixels: (H, W, 3) or (H, W, 4) uint8 buffer, left untouched
        threshold: Euclidean distance in 0-255 channel units, must be > 0
        light_cutoff: Mean channel value above which a pixel counts as very light

    Returns:
        New (H, W, 4) uint8 RGBA buffer

    Raises:
        MattingUnsupported: if the buffer is not a non-empty RGB/RGBA image
    """
    if threshold <= 0:
        raise ValueError(f"threshold must be positive, got {threshold}")

    rgba = to_rgba(pixels)
    bg = np.array(estimate_background(rgba), dtype=np.float64)

    rgb = rgba[:, :, :3].astype(np.float64)
    distance = np.sqrt(np.sum((rgb - bg) ** 2, axis=2))
    luminance = rgb.sum(axis=2) / 3.0

    faded = (distance < threshold) | (luminance > light_cutoff)
    soft_alpha = np.rint(np.clip(distance / threshold, 0.0, 1.0) * 255.0)
    rgba[:, :, 3] = np.where(faded, soft_alpha, 255.0).astype(np.uint8)
    return rgba


def remove_background(
    image: SourceImage,
    threshold: float = DEFAULT_MATTE_THRESHOLD,
    light_cutoff: float = DEFAULT_LIGHT_CUTOFF,
) -> np.ndarray:
    """Matte a whole decoded image, keeping only what differs from its corners."""
    logger.info(f"[STEP] removing background from {image.width}x{image.height} image")
    return matte(image.pixels, threshold=threshold, light_cutoff=light_cutoff)


def supports_alpha(fmt: str) -> bool:
    return fmt.lower() in ALPHA_FORMATS


def white_bg(rgba: np.ndarray) -> np.ndarray:
    """Flatten an RGBA buffer onto white, returning RGB."""
    alpha = rgba[:, :, 3:4].astype(np.float32) / 255.0
    rgb = rgba[:, :, :3].astype(np.float32)
    flat = rgb * alpha + 255.0 * (1.0 - alpha)
    return np.rint(flat).astype(np.uint8)


def encode_image(pixels: np.ndarray, fmt: str = DEFAULT_OUTPUT_FORMAT) -> str:
    """
    Encode an RGBA buffer as base64.

    PNG and WEBP keep the alpha channel; JPEG is flattened onto white.

    Raises:
        MattingUnsupported: if an alpha-capable encoder rejects the buffer
        EncodeFailure: if the format is unknown or the JPEG encoder rejects the buffer
    """
    fmt = fmt.lower()
    if fmt not in SUPPORTED_FORMATS:
        raise EncodeFailure(f"Unsupported output format: {fmt}")

    failure = MattingUnsupported if fmt in ALPHA_FORMATS else EncodeFailure
    try:
        if fmt == "jpeg":
            bgr = cv2.cvtColor(white_bg(to_rgba(pixels)), cv2.COLOR_RGB2BGR)
            ok, buf = cv2.imencode(".jpg", bgr, [cv2.IMWRITE_JPEG_QUALITY, JPEG_QUALITY])
        else:
            bgra = cv2.cvtColor(to_rgba(pixels), cv2.COLOR_RGBA2BGRA)
            ok, buf = cv2.imencode(f".{fmt}", bgra)
    except (cv2.error, MattingUnsupported) as e:
        raise failure(f"Cannot encode {fmt}: {e}") from e

    if not ok:
        raise failure(f"Encoder returned no data for {fmt}")
    return base64.b64encode(buf.tobytes()).decode("utf-8")
