from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Union

import cv2
import numpy as np

from clarity.utils.logging import setup_logger


logger = setup_logger()

# Laplacian variance at or below this is treated as "featureless" and the
# score falls back to Tenengrad.
DEFAULT_VARIANCE_THRESHOLD = 1e-6

Luminance = Union[bytes, bytearray, memoryview, np.ndarray, Sequence[int]]


class InvalidInputError(ValueError):
    """Luminance buffer does not describe a width x height grid."""


class ScoringMethod(str, Enum):
    LAPLACIAN = "laplacian"
    TENENGRAD = "tenengrad"


@dataclass(frozen=True)
class LuminanceGrid:
    width: int
    height: int
    samples: Any  # bytes for extracted images; any integer buffer is accepted

    def __post_init__(self) -> None:
        _check_dimensions(self.width, self.height)
        size = _sample_count(self.samples)
        if size != self.width * self.height:
            raise InvalidInputError(
                f"Luminance size mismatch: {size} samples for {self.width}x{self.height}"
            )


@dataclass(frozen=True)
class SharpnessScore:
    value: float
    method: ScoringMethod
    laplacian_value: float
    tenengrad_value: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "value": self.value,
            "method": self.method.value,
            "laplacian": self.laplacian_value,
            "tenengrad": self.tenengrad_value,
        }


def sanitize_score(value: float) -> float:
    """Clamp NaN, infinities and negatives to 0.0."""
    value = float(value)
    if not math.isfinite(value) or value < 0.0:
        return 0.0
    return value


def _check_dimensions(width: int, height: int) -> None:
    for name, dim in (("width", width), ("height", height)):
        if isinstance(dim, bool) or not isinstance(dim, (int, np.integer)):
            raise InvalidInputError(f"{name} must be an integer, got {dim!r}")
        if dim < 1:
            raise InvalidInputError(f"{name} must be positive, got {dim}")


def _sample_count(luminance: Luminance) -> int:
    if isinstance(luminance, (bytes, bytearray)):
        return len(luminance)
    return int(np.asarray(luminance).size)


def _luminance_plane(width: int, height: int, luminance: Luminance) -> np.ndarray:
    """
    Validate a row-major luminance buffer and return it as a (height, width)
    float64 plane.

    bytes, bytearray and uint8/int8 arrays are read as unsigned samples in
    [0, 255]; integer sequences and wider integer arrays are taken as-is. A
    memoryview is read per element in its own format, so a view over an int32
    array yields int32 samples. Both metrics run on the returned plane so the
    stencils are written once regardless of element width.
    """
    _check_dimensions(width, height)
    if isinstance(luminance, (bytes, bytearray)):
        samples = np.frombuffer(luminance, dtype=np.uint8)
    else:
        samples = np.asarray(luminance)
        if samples.dtype == np.int8:
            samples = samples.view(np.uint8)

    expected = int(width) * int(height)
    if samples.size != expected:
        raise InvalidInputError(
            f"Luminance size mismatch: {samples.size} samples for {width}x{height}"
        )
    if samples.ndim != 1 and samples.shape != (height, width):
        raise InvalidInputError(
            f"Luminance array of shape {samples.shape} is not a {width}x{height} grid"
        )
    if not np.issubdtype(samples.dtype, np.integer):
        raise InvalidInputError(f"Luminance samples must be integers, got dtype {samples.dtype}")

    return samples.astype(np.float64).reshape(int(height), int(width))


def _has_interior(plane: np.ndarray) -> bool:
    h, w = plane.shape[:2]
    return w >= 3 and h >= 3


def _laplacian_variance(plane: np.ndarray) -> float:
    if not _has_interior(plane):
        return 0.0
    # ksize=1 is the 4-neighbour stencil with the opposite sign of
    # 4*center - neighbours.
    lap = -cv2.Laplacian(plane, cv2.CV_64F, ksize=1)[1:-1, 1:-1]
    count = lap.size
    mean = float(lap.sum()) / count
    variance = float((lap * lap).sum()) / count - mean * mean
    return variance if math.isfinite(variance) else 0.0


def _tenengrad(plane: np.ndarray) -> float:
    if not _has_interior(plane):
        return 0.0
    gx = cv2.Sobel(plane, cv2.CV_64F, 1, 0, ksize=3)[1:-1, 1:-1]
    gy = cv2.Sobel(plane, cv2.CV_64F, 0, 1, ksize=3)[1:-1, 1:-1]
    average = float(np.sqrt(gx * gx + gy * gy).sum()) / gx.size
    return average if math.isfinite(average) else 0.0


def variance_of_laplacian(width: int, height: int, luminance: Luminance) -> float:
    """Variance of the 4-neighbour Laplacian over interior pixels (0.0 below 3x3)."""
    return _laplacian_variance(_luminance_plane(width, height, luminance))


def tenengrad(width: int, height: int, luminance: Luminance) -> float:
    """Mean Sobel gradient magnitude over interior pixels (0.0 below 3x3)."""
    return _tenengrad(_luminance_plane(width, height, luminance))


def compute_sharpness(
    width: int,
    height: int,
    luminance: Luminance,
    variance_threshold: float = DEFAULT_VARIANCE_THRESHOLD,
) -> SharpnessScore:
    """
    Score a luminance grid.

    Variance of Laplacian is the primary measure. When it does not exceed
    `variance_threshold` the image is too flat for it to be informative and
    the mean Tenengrad gradient magnitude is reported instead; the Laplacian
    value is kept for diagnostics. Tenengrad is only computed on that path.
    """
    plane = _luminance_plane(width, height, luminance)
    laplacian_value = sanitize_score(_laplacian_variance(plane))
    if laplacian_value > variance_threshold:
        logger.debug(f"{width}x{height} laplacian={laplacian_value:.4f}")
        return SharpnessScore(
            value=laplacian_value,
            method=ScoringMethod.LAPLACIAN,
            laplacian_value=laplacian_value,
        )

    tenengrad_value = sanitize_score(_tenengrad(plane))
    logger.debug(
        f"{width}x{height} laplacian={laplacian_value:.4g} <= {variance_threshold:g}, "
        f"tenengrad={tenengrad_value:.4f}"
    )
    return SharpnessScore(
        value=tenengrad_value,
        method=ScoringMethod.TENENGRAD,
        laplacian_value=laplacian_value,
        tenengrad_value=tenengrad_value,
    )


def score_grid(grid: LuminanceGrid, variance_threshold: float = DEFAULT_VARIANCE_THRESHOLD) -> SharpnessScore:
    return compute_sharpness(grid.width, grid.height, grid.samples, variance_threshold)
