from __future__ import annotations

import math

import numpy as np
import pytest

from clarity.quality.sharpness import (
    DEFAULT_VARIANCE_THRESHOLD,
    InvalidInputError,
    LuminanceGrid,
    ScoringMethod,
    compute_sharpness,
    sanitize_score,
    score_grid,
    tenengrad,
    variance_of_laplacian,
)


def generate_pattern(width, height, fn):
    return [fn(x, y) for y in range(height) for x in range(width)]


class TestVarianceOfLaplacian:
    def test_known_value(self) -> None:
        # Interior pixels: L(1,1) = 40, L(2,1) = -10 -> mean 15, variance 625
        grid = [0, 0, 0, 0, 0, 10, 0, 0, 0, 0, 0, 0]
        assert variance_of_laplacian(4, 3, grid) == pytest.approx(625.0)

    def test_uniform_is_zero(self) -> None:
        grid = [128] * 25
        assert variance_of_laplacian(5, 5, grid) == pytest.approx(0.0, abs=1e-12)

    def test_byte_and_word_buffers_agree(self) -> None:
        rng = np.random.default_rng(7)
        values = rng.integers(0, 256, size=8 * 6)
        words = [int(v) for v in values]
        raw = bytes(words)
        assert variance_of_laplacian(8, 6, raw) == pytest.approx(variance_of_laplacian(8, 6, words))
        assert variance_of_laplacian(8, 6, bytearray(raw)) == pytest.approx(variance_of_laplacian(8, 6, words))

    def test_signed_bytes_read_as_unsigned(self) -> None:
        values = np.arange(0, 256, 7, dtype=np.uint8)[:25]
        signed = values.view(np.int8)
        assert variance_of_laplacian(5, 5, signed) == pytest.approx(variance_of_laplacian(5, 5, values))

    def test_accepts_two_dimensional_array(self) -> None:
        arr = np.arange(20, dtype=np.int32).reshape(4, 5) * 13 % 256
        assert variance_of_laplacian(5, 4, arr) == pytest.approx(variance_of_laplacian(5, 4, arr.ravel()))


class TestTenengrad:
    def test_known_value(self) -> None:
        # gx = -20 at (2,1), 0 elsewhere in the interior -> mean magnitude 10
        grid = [0, 0, 0, 0, 0, 10, 0, 0, 0, 0, 0, 0]
        assert tenengrad(4, 3, grid) == pytest.approx(10.0)

    def test_vertical_edge(self) -> None:
        grid = generate_pattern(5, 5, lambda x, y: 140 if x == 2 else 128)
        # Columns 1 and 3 see a +-48 horizontal gradient, column 2 sees none
        assert tenengrad(5, 5, grid) == pytest.approx(48.0 * 6 / 9)

    def test_uniform_is_zero(self) -> None:
        assert tenengrad(6, 4, [90] * 24) == 0.0


class TestComputeSharpness:
    @pytest.mark.parametrize("width,height", [(1, 1), (2, 2), (2, 7), (9, 2), (1, 12)])
    def test_grids_without_interior_score_zero(self, width: int, height: int) -> None:
        rng = np.random.default_rng(width * 31 + height)
        grid = rng.integers(0, 256, size=width * height)
        score = compute_sharpness(width, height, grid)
        assert score.value == 0.0
        assert score.laplacian_value == 0.0
        assert score.method is ScoringMethod.TENENGRAD
        assert score.tenengrad_value == 0.0

    def test_sharper_pattern_scores_higher(self) -> None:
        sharp = generate_pattern(5, 5, lambda x, y: 32 if (x + y) % 2 == 0 else 224)
        soft = generate_pattern(5, 5, lambda x, y: 96 if (x + y) % 2 == 0 else 160)

        sharp_score = compute_sharpness(5, 5, sharp)
        soft_score = compute_sharpness(5, 5, soft)

        assert sharp_score.method is ScoringMethod.LAPLACIAN
        assert soft_score.method is ScoringMethod.LAPLACIAN
        assert sharp_score.value > soft_score.value

    def test_identical_patterns_score_the_same(self) -> None:
        pattern = generate_pattern(6, 6, lambda x, y: (x * y * 17 + 64) % 256)

        first = compute_sharpness(6, 6, pattern)
        second = compute_sharpness(6, 6, list(pattern))

        assert first.method is ScoringMethod.LAPLACIAN
        assert second.method is ScoringMethod.LAPLACIAN
        assert abs(first.value - second.value) < 1e-6

    def test_low_detail_falls_back_to_tenengrad(self) -> None:
        flat = generate_pattern(5, 5, lambda x, y: 128)
        subtle = generate_pattern(5, 5, lambda x, y: 140 if x == 2 else 128)

        flat_score = compute_sharpness(5, 5, flat, variance_threshold=math.inf)
        subtle_score = compute_sharpness(5, 5, subtle, variance_threshold=math.inf)

        assert flat_score.method is ScoringMethod.TENENGRAD
        assert subtle_score.method is ScoringMethod.TENENGRAD
        assert flat_score.value <= 1e-9
        assert subtle_score.value > flat_score.value
        assert subtle_score.tenengrad_value is not None
        assert subtle_score.tenengrad_value > 0.0
        # Laplacian stays available for diagnostics
        assert subtle_score.laplacian_value > 0.0

    def test_laplacian_path_skips_tenengrad(self) -> None:
        grid = generate_pattern(5, 5, lambda x, y: 0 if (x + y) % 2 == 0 else 255)
        score = compute_sharpness(5, 5, grid)
        assert score.method is ScoringMethod.LAPLACIAN
        assert score.tenengrad_value is None
        assert score.value == score.laplacian_value

    def test_flat_image_uses_tenengrad_at_default_threshold(self) -> None:
        score = compute_sharpness(8, 8, bytes([200]) * 64)
        assert score.method is ScoringMethod.TENENGRAD
        assert score.laplacian_value <= DEFAULT_VARIANCE_THRESHOLD
        assert score.value == 0.0

    def test_laplacian_value_is_finite_and_non_negative(self) -> None:
        rng = np.random.default_rng(0)
        for width, height in [(3, 3), (4, 9), (17, 5), (32, 32)]:
            grid = rng.integers(0, 256, size=width * height)
            score = compute_sharpness(width, height, grid)
            assert math.isfinite(score.laplacian_value)
            assert score.laplacian_value >= 0.0
            assert math.isfinite(score.value)
            assert score.value >= 0.0

    def test_wide_integer_samples(self) -> None:
        grid = generate_pattern(4, 4, lambda x, y: 1_000_000 if (x + y) % 2 else -1_000_000)
        score = compute_sharpness(4, 4, grid)
        assert score.method is ScoringMethod.LAPLACIAN
        assert math.isfinite(score.value)

    def test_score_grid_matches_compute_sharpness(self) -> None:
        samples = bytes(generate_pattern(6, 6, lambda x, y: (x * 40 + y * 3) % 256))
        grid = LuminanceGrid(width=6, height=6, samples=samples)
        assert score_grid(grid) == compute_sharpness(6, 6, samples)

    def test_to_dict(self) -> None:
        score = compute_sharpness(3, 3, [5] * 9)
        assert score.to_dict() == {"value": 0.0, "method": "tenengrad", "laplacian": 0.0, "tenengrad": 0.0}


class TestInvalidInput:
    def test_length_mismatch(self) -> None:
        with pytest.raises(InvalidInputError):
            compute_sharpness(3, 3, [0] * 8)

    def test_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            variance_of_laplacian(4, 4, bytes(15))

    @pytest.mark.parametrize("width,height", [(0, 0), (0, 4), (4, -1)])
    def test_non_positive_dimensions(self, width: int, height: int) -> None:
        with pytest.raises(InvalidInputError):
            tenengrad(width, height, [])

    def test_float_samples_rejected(self) -> None:
        with pytest.raises(InvalidInputError):
            compute_sharpness(3, 3, np.zeros(9, dtype=np.float32))

    def test_transposed_array_rejected(self) -> None:
        with pytest.raises(InvalidInputError):
            compute_sharpness(4, 3, np.zeros((4, 3), dtype=np.uint8))

    def test_grid_validates_on_construction(self) -> None:
        with pytest.raises(InvalidInputError):
            LuminanceGrid(width=2, height=2, samples=b"\x00\x01\x02")


@pytest.mark.parametrize(
    "raw,expected",
    [
        (3.5, 3.5),
        (0.0, 0.0),
        (-1e-12, 0.0),
        (float("nan"), 0.0),
        (float("inf"), 0.0),
        (float("-inf"), 0.0),
    ],
)
def test_sanitize_score(raw: float, expected: float) -> None:
    assert sanitize_score(raw) == expected


def test_sanitize_score_rejects_non_numbers() -> None:
    with pytest.raises(TypeError):
        sanitize_score(None)


class TestMemoryview:
    def test_byte_view_matches_bytes(self) -> None:
        raw = bytes(generate_pattern(5, 5, lambda x, y: (x * 50 + y * 7) % 256))
        assert variance_of_laplacian(5, 5, memoryview(raw)) == pytest.approx(variance_of_laplacian(5, 5, raw))

    def test_int_view_read_per_element(self) -> None:
        samples = np.array([0, 0, 0, 0, 0, 10, 0, 0, 0, 0, 0, 0], dtype=np.int32)
        assert variance_of_laplacian(4, 3, memoryview(samples)) == pytest.approx(625.0)
        assert tenengrad(4, 3, memoryview(samples)) == pytest.approx(10.0)

    def test_int_view_size_is_element_count(self) -> None:
        view = memoryview(np.zeros(9, dtype=np.int32))
        assert LuminanceGrid(width=3, height=3, samples=view).width == 3
        with pytest.raises(InvalidInputError, match="8 samples"):
            compute_sharpness(3, 3, memoryview(np.zeros(8, dtype=np.int32)))
