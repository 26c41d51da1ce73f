"""
Tunable extraction options.
Defaults come from constants; every value can be overridden through the environment.
"""
import multiprocessing
import os
from dataclasses import dataclass, replace
from typing import Callable, Mapping, Optional, TypeVar

from .constants import (
    DEFAULT_BOX_PERCENT,
    DEFAULT_LIGHT_CUTOFF,
    DEFAULT_MATTE_THRESHOLD,
    DEFAULT_OUTPUT_FORMAT,
    DEFAULT_PADDING_RATIO,
    MIN_BOX_PERCENT,
    MIN_CROP_PIXELS,
    SUPPORTED_FORMATS,
)

T = TypeVar("T")


@dataclass(frozen=True)
class ExtractionOptions:
    padding_ratio: float = DEFAULT_PADDING_RATIO
    min_box_percent: float = MIN_BOX_PERCENT
    default_box_percent: float = DEFAULT_BOX_PERCENT
    min_crop_pixels: int = MIN_CROP_PIXELS
    matte_threshold: float = DEFAULT_MATTE_THRESHOLD
    light_cutoff: float = DEFAULT_LIGHT_CUTOFF
    output_format: str = DEFAULT_OUTPUT_FORMAT
    max_workers: int = 0

    def __post_init__(self):
        if not self.padding_ratio >= 0:
            raise ValueError(f"padding_ratio must be >= 0, got {self.padding_ratio}")
        if not 0 < self.min_box_percent <= 100:
            raise ValueError(f"min_box_percent must be in (0, 100], got {self.min_box_percent}")
        if not self.min_box_percent <= self.default_box_percent <= 100:
            raise ValueError(
                f"default_box_percent must be in [{self.min_box_percent}, 100], got {self.default_box_percent}"
            )
        if self.min_crop_pixels < 1:
            raise ValueError(f"min_crop_pixels must be >= 1, got {self.min_crop_pixels}")
        if not self.matte_threshold > 0:
            raise ValueError(f"matte_threshold must be > 0, got {self.matte_threshold}")
        if self.output_format.lower() not in SUPPORTED_FORMATS:
            raise ValueError(
                f"output_format must be one of {', '.join(SUPPORTED_FORMATS)}, got {self.output_format!r}"
            )
        if self.max_workers < 0:
            raise ValueError(f"max_workers must be >= 0, got {self.max_workers}")
        object.__setattr__(self, "output_format", self.output_format.lower())

    def with_overrides(self, **overrides) -> "ExtractionOptions":
        """Copy with the non-None overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self


def _read(env: Mapping[str, str], key: str, cast: Callable[[str], T], default: T) -> T:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip())
    except ValueError as e:
        raise ValueError(f"Invalid value for {key}: {raw!r}") from e


def load_options(env: Optional[Mapping[str, str]] = None) -> ExtractionOptions:
    """Build ExtractionOptions from PIECECUT_* environment variables."""
    env = os.environ if env is None else env
    return ExtractionOptions(
        padding_ratio=_read(env, "PIECECUT_PADDING_RATIO", float, DEFAULT_PADDING_RATIO),
        min_box_percent=_read(env, "PIECECUT_MIN_BOX_PERCENT", float, MIN_BOX_PERCENT),
        default_box_percent=_read(env, "PIECECUT_DEFAULT_BOX_PERCENT", float, DEFAULT_BOX_PERCENT),
        min_crop_pixels=_read(env, "PIECECUT_MIN_CROP_PIXELS", int, MIN_CROP_PIXELS),
        matte_threshold=_read(env, "PIECECUT_MATTE_THRESHOLD", float, DEFAULT_MATTE_THRESHOLD),
        light_cutoff=_read(env, "PIECECUT_LIGHT_CUTOFF", float, DEFAULT_LIGHT_CUTOFF),
        output_format=_read(env, "PIECECUT_OUTPUT_FORMAT", str, DEFAULT_OUTPUT_FORMAT),
        max_workers=_read(env, "MAX_WORKERS", int, 0),
    )


def resolve_max_workers(requested: int = 0) -> int:
    """Thread pool size: the requested count, or min(cpu_count, 4) when unset."""
    if requested > 0:
        return requested
    return max(1, min(multiprocessing.cpu_count(), 4))
