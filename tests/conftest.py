"""Shared fixtures: synthetic images, no files on disk."""

from __future__ import annotations

import io

import numpy as np
import pytest
from PIL import Image

from piececut.models import SourceImage


def solid_rgba(width: int, height: int, color: tuple[int, int, int]) -> np.ndarray:
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[:, :, :3] = color
    pixels[:, :, 3] = 255
    return pixels


def garment_on_backdrop(width: int = 200, height: int = 160) -> np.ndarray:
    """Light grey backdrop with a dark navy rectangle in the middle."""
    pixels = solid_rgba(width, height, (200, 200, 200))
    pixels[height // 4 : 3 * height // 4, width // 4 : 3 * width // 4, :3] = (20, 30, 90)
    return pixels


def png_bytes(pixels: np.ndarray) -> bytes:
    buffer = io.BytesIO()
    Image.fromarray(pixels).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def source_image() -> SourceImage:
    return SourceImage(garment_on_backdrop())


@pytest.fixture
def large_image() -> SourceImage:
    return SourceImage(solid_rgba(1000, 800, (240, 240, 240)))
