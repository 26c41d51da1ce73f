"""Tests for bounding box normalization."""

from __future__ import annotations

import math

import pytest

from piececut.bbox import normalize_box
from piececut.models import BoundingBoxPercent

RAW_BOXES = [
    {"x": 20, "y": 10, "width": 60, "height": 40},
    {"x": -50, "y": -1, "width": -10, "height": 0},
    {"x": 150, "y": 300, "width": 500, "height": 1000},
    {"x": math.nan, "y": math.nan, "width": math.nan, "height": math.nan},
    {"x": math.inf, "y": -math.inf, "width": math.inf, "height": -math.inf},
    {"x": 99.9, "y": 97, "width": 30, "height": 30},
    {"x": 100, "y": 100, "width": 100, "height": 100},
    {"x": "30", "y": "abc", "width": None, "height": [1, 2]},
    {"x": True, "y": False},
    {},
    None,
    BoundingBoxPercent(40, 40, 80, 3),
]


@pytest.mark.parametrize("raw", RAW_BOXES)
def test_output_always_inside_frame(raw) -> None:
    box = normalize_box(raw)

    assert 0 <= box.x <= 100
    assert 0 <= box.y <= 100
    assert box.width >= 5
    assert box.height >= 5
    assert box.x + box.width <= 100
    assert box.y + box.height <= 100


def test_all_zero_box_is_minimum_size_at_origin() -> None:
    box = normalize_box({"x": 0, "y": 0, "width": 0, "height": 0})

    assert box == BoundingBoxPercent(0, 0, 5, 5)


def test_missing_size_uses_default() -> None:
    box = normalize_box({"x": 10, "y": 10})

    assert box.width == 20
    assert box.height == 20


def test_overflowing_box_is_shrunk_not_moved() -> None:
    box = normalize_box({"x": 70, "y": 80, "width": 50, "height": 50})

    assert box == BoundingBoxPercent(70, 80, 30, 20)


def test_box_at_far_edge_slides_back_to_keep_minimum() -> None:
    box = normalize_box({"x": 99, "y": 100, "width": 20, "height": 20})

    assert box == BoundingBoxPercent(95, 95, 5, 5)


def test_numeric_strings_are_accepted() -> None:
    box = normalize_box({"x": "12.5", "y": " 30 ", "width": "25", "height": "40"})

    assert box == BoundingBoxPercent(12.5, 30, 25, 40)


def test_booleans_are_not_numbers() -> None:
    box = normalize_box({"x": True, "y": 10, "width": True, "height": 30})

    assert box.x == 0
    assert box.width == 20


def test_custom_minimum_size() -> None:
    box = normalize_box({"x": 10, "y": 10, "width": 1, "height": 1}, min_size=10)

    assert box.width == 10
    assert box.height == 10


def test_valid_box_is_unchanged() -> None:
    raw = BoundingBoxPercent(20, 10, 60, 40)

    assert normalize_box(raw) == raw
