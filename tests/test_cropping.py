"""Tests for pixel rect derivation and region cutting."""

from __future__ import annotations

import itertools

import numpy as np
import pytest

from piececut.bbox import normalize_box
from piececut.cropping import avoid_face_box, crop, crop_rect, cut_region
from piececut.errors import CropError, ImageTooSmall
from piececut.models import BoundingBoxPercent, PixelRect, SourceImage

BOXES = [
    BoundingBoxPercent(20, 10, 60, 40),
    BoundingBoxPercent(0, 0, 100, 100),
    BoundingBoxPercent(0, 0, 5, 5),
    BoundingBoxPercent(95, 95, 5, 5),
    BoundingBoxPercent(47.3, 12.9, 5.1, 80.2),
    normalize_box({"x": -20, "y": 300, "width": 1e6, "height": -4}),
]
SIZES = [(1, 1), (3, 7), (49, 51), (50, 50), (640, 480), (1000, 800), (4032, 3024)]


def test_documented_fixture(large_image: SourceImage) -> None:
    rect = crop(large_image, BoundingBoxPercent(20, 10, 60, 40), padding_ratio=0.15)

    # unpadded (200, 80, 600, 320), pad (90, 48)
    assert rect == PixelRect(x=110, y=32, width=780, height=416)


@pytest.mark.parametrize("box,size", list(itertools.product(BOXES, SIZES)))
def test_rect_stays_inside_image(box: BoundingBoxPercent, size: tuple[int, int]) -> None:
    width, height = size

    rect = crop_rect(width, height, box)

    assert 0 <= rect.x and rect.x + rect.width <= width
    assert 0 <= rect.y and rect.y + rect.height <= height
    assert rect.width >= 1 and rect.height >= 1


@pytest.mark.parametrize("box", BOXES)
def test_padding_never_shrinks_rect(box: BoundingBoxPercent) -> None:
    unpadded = crop_rect(1000, 800, box, padding_ratio=0.0, min_pixels=1)
    padded = crop_rect(1000, 800, box, padding_ratio=0.15, min_pixels=1)

    assert padded.width >= unpadded.width
    assert padded.height >= unpadded.height
    assert padded.x <= unpadded.x and padded.right >= unpadded.right
    assert padded.y <= unpadded.y and padded.bottom >= unpadded.bottom


def test_padding_is_clamped_at_edges() -> None:
    rect = crop_rect(1000, 800, BoundingBoxPercent(0, 0, 50, 50), padding_ratio=0.15)

    assert rect == PixelRect(x=0, y=0, width=575, height=460)


def test_negative_padding_is_ignored() -> None:
    box = BoundingBoxPercent(20, 10, 60, 40)

    assert crop_rect(1000, 800, box, padding_ratio=-0.5) == crop_rect(1000, 800, box, padding_ratio=0.0)


def test_small_box_grows_to_pixel_floor() -> None:
    rect = crop_rect(2000, 2000, BoundingBoxPercent(50, 50, 1, 1), padding_ratio=0.0, min_pixels=50)

    assert rect.width == 50
    assert rect.height == 50
    assert rect.x <= 1000 and rect.right >= 1020


def test_floor_shifts_back_inside_image() -> None:
    rect = crop_rect(1000, 1000, BoundingBoxPercent(99, 99, 1, 1), padding_ratio=0.0, min_pixels=50)

    assert rect == PixelRect(x=950, y=950, width=50, height=50)


def test_image_smaller_than_floor_gives_full_image() -> None:
    rect = crop_rect(30, 20, BoundingBoxPercent(10, 10, 20, 20), min_pixels=50)

    assert rect == PixelRect(x=0, y=0, width=30, height=20)


@pytest.mark.parametrize("size", [(0, 100), (100, 0), (0, 0)])
def test_zero_sized_image_raises(size: tuple[int, int]) -> None:
    with pytest.raises(ImageTooSmall):
        crop_rect(*size, BoundingBoxPercent(0, 0, 50, 50))


def test_image_too_small_is_a_crop_error() -> None:
    image = SourceImage(np.zeros((0, 10, 4), dtype=np.uint8))

    with pytest.raises(CropError):
        crop(image, BoundingBoxPercent(0, 0, 50, 50))


def test_cut_region_returns_private_copy(source_image: SourceImage) -> None:
    rect = PixelRect(x=10, y=20, width=30, height=40)

    region = cut_region(source_image, rect)
    region[:] = 0

    assert region.shape == (40, 30, 4)
    assert region.flags.writeable
    assert source_image.pixels[20:60, 10:40].any()


def test_avoid_face_box_skips_top_of_frame() -> None:
    rect = avoid_face_box(1000, 800)

    assert rect == PixelRect(x=100, y=240, width=800, height=560)


def test_avoid_face_box_on_tiny_image() -> None:
    rect = avoid_face_box(1, 1)

    assert rect == PixelRect(x=0, y=0, width=1, height=1)
