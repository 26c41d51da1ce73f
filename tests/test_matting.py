"""Tests for corner-sampled background matting."""

from __future__ import annotations

import base64
import io

import numpy as np
import pytest
from PIL import Image

from piececut.errors import EncodeFailure, MattingUnsupported
from piececut.matting import encode_image, estimate_background, matte, remove_background
from piececut.models import SourceImage

from conftest import garment_on_backdrop, solid_rgba


def test_solid_image_becomes_fully_transparent() -> None:
    pixels = solid_rgba(64, 48, (123, 45, 67))

    result = matte(pixels)

    assert result.shape == (48, 64, 4)
    assert np.all(result[:, :, 3] == 0)


def test_background_is_average_of_corners() -> None:
    pixels = solid_rgba(10, 10, (0, 0, 0))
    pixels[0, 0, :3] = (100, 0, 0)
    pixels[0, -1, :3] = (0, 100, 0)
    pixels[-1, 0, :3] = (0, 0, 100)
    pixels[-1, -1, :3] = (100, 100, 100)

    assert estimate_background(pixels) == pytest.approx((50.0, 50.0, 50.0))


def test_garment_stays_opaque_and_backdrop_clears() -> None:
    pixels = garment_on_backdrop(200, 160)

    result = matte(pixels)

    assert np.all(result[80, 100] == [20, 30, 90, 255])
    assert result[5, 5, 3] == 0
    assert np.array_equal(result[:, :, :3], pixels[:, :, :3])


def test_alpha_fades_with_distance() -> None:
    pixels = solid_rgba(3, 3, (100, 100, 100))
    pixels[1, 1, :3] = (115, 100, 100)

    result = matte(pixels, threshold=30)

    # distance 15 of 30 -> half opacity
    assert result[1, 1, 3] == 128


def test_alpha_is_monotonic_in_distance() -> None:
    pixels = solid_rgba(64, 3, (60, 60, 60))
    for i in range(1, 63):
        pixels[1, i, :3] = (60 + i, 60, 60)

    alphas = matte(pixels, threshold=30)[1, 1:63, 3].astype(int)

    assert np.all(np.diff(alphas) >= 0)
    assert alphas[-1] == 255


def test_very_light_pixels_far_from_backdrop_stay_opaque() -> None:
    pixels = solid_rgba(5, 5, (10, 10, 10))
    pixels[2, 2, :3] = (250, 250, 250)
    pixels[2, 3, :3] = (200, 200, 200)

    result = matte(pixels, threshold=30)

    assert result[2, 2, 3] == 255
    assert result[2, 3, 3] == 255


def test_input_is_not_mutated() -> None:
    pixels = garment_on_backdrop(40, 40)
    before = pixels.copy()

    matte(pixels)

    assert np.array_equal(pixels, before)


def test_rgb_input_is_promoted_to_rgba() -> None:
    pixels = solid_rgba(8, 8, (30, 30, 30))[:, :, :3]

    result = matte(pixels)

    assert result.shape == (8, 8, 4)


def test_matting_is_deterministic() -> None:
    pixels = garment_on_backdrop(50, 40)

    assert np.array_equal(matte(pixels), matte(pixels))


@pytest.mark.parametrize(
    "pixels",
    [
        np.zeros((10, 10), dtype=np.uint8),
        np.zeros((10, 10, 2), dtype=np.uint8),
        np.zeros((0, 10, 4), dtype=np.uint8),
    ],
)
def test_unsupported_buffers_raise(pixels: np.ndarray) -> None:
    with pytest.raises(MattingUnsupported):
        matte(pixels)


def test_threshold_must_be_positive() -> None:
    with pytest.raises(ValueError):
        matte(solid_rgba(4, 4, (0, 0, 0)), threshold=0)


def test_remove_background_mattes_whole_image() -> None:
    image = SourceImage(garment_on_backdrop(100, 80))

    result = remove_background(image)

    assert result.shape == (80, 100, 4)
    assert result[0, 0, 3] == 0
    assert result[40, 50, 3] == 255


def test_png_encoding_keeps_alpha() -> None:
    result = matte(garment_on_backdrop(60, 40))

    decoded = Image.open(io.BytesIO(base64.b64decode(encode_image(result, "png"))))

    assert decoded.mode == "RGBA"
    assert decoded.size == (60, 40)
    assert decoded.getpixel((0, 0))[3] == 0


def test_jpeg_encoding_flattens_onto_white() -> None:
    result = matte(solid_rgba(16, 16, (0, 0, 0)))

    decoded = Image.open(io.BytesIO(base64.b64decode(encode_image(result, "jpeg"))))

    assert decoded.mode == "RGB"
    assert min(decoded.getpixel((8, 8))) > 240


def test_unknown_format_raises() -> None:
    with pytest.raises(EncodeFailure):
        encode_image(solid_rgba(4, 4, (0, 0, 0)), "gif")


def test_alpha_encoder_rejection_raises_matting_unsupported() -> None:
    with pytest.raises(MattingUnsupported):
        encode_image(solid_rgba(17000, 2, (0, 0, 0)), "webp")
