"""Tests for prediction post-processing and timing helpers."""

import math

import numpy as np
import pytest

from dnnclassify.utils.metrics import TimingSample, per_image_latency_ms, ticks_to_ms, top_class


class TestTopClass:
    """Arg-max over flattened network output."""

    def test_unique_maximum(self) -> None:
        assert top_class([0.1, 0.9, 0.05]) == (1, pytest.approx(0.9))

    def test_tie_picks_first_index(self) -> None:
        class_id, confidence = top_class([0.2, 0.7, 0.7, 0.1])
        assert class_id == 1
        assert confidence == pytest.approx(0.7)

    def test_batched_output_is_scanned_row_major(self) -> None:
        scores = np.array([[0.1, 0.3, 0.2], [0.1, 0.3, 0.2]], dtype=np.float32)
        assert top_class(scores)[0] == 1

    def test_spatial_output_is_flattened(self) -> None:
        scores = np.zeros((1, 4, 1, 1), dtype=np.float32)
        scores[0, 3, 0, 0] = 5.0
        assert top_class(scores) == (3, 5.0)

    def test_negative_scores(self) -> None:
        assert top_class([-3.0, -1.0, -2.0]) == (1, -1.0)

    def test_empty_scores_raise(self) -> None:
        with pytest.raises(ValueError):
            top_class([])


class TestPerImageLatency:
    """Benchmark time divided over batch and repetitions."""

    def test_divides_by_batch_and_repetitions(self) -> None:
        # 2 s over 100 passes of 4 images -> 5 ms per image
        assert per_image_latency_ms(2.0, 4, 100) == pytest.approx(5.0)

    def test_zero_elapsed(self) -> None:
        assert per_image_latency_ms(0.0, 1, 1) == 0.0

    @pytest.mark.parametrize("batch_size,repetitions", [(0, 1), (1, 0), (-1, 5)])
    def test_rejects_counts_below_one(self, batch_size: int, repetitions: int) -> None:
        with pytest.raises(ValueError):
            per_image_latency_ms(1.0, batch_size, repetitions)

    @pytest.mark.parametrize("elapsed", [-0.1, math.inf, math.nan])
    def test_rejects_invalid_elapsed(self, elapsed: float) -> None:
        with pytest.raises(ValueError):
            per_image_latency_ms(elapsed, 1, 1)

    def test_timing_sample_property(self) -> None:
        sample = TimingSample(elapsed_s=0.3, repetitions=100, batch_size=3)
        assert sample.per_image_ms == pytest.approx(1.0)
        assert math.isfinite(sample.per_image_ms)


class TestTicksToMs:
    def test_explicit_frequency(self) -> None:
        assert ticks_to_ms(2000, tick_frequency=1_000_000) == pytest.approx(2.0)

    def test_uses_opencv_frequency(self) -> None:
        import cv2

        freq = cv2.getTickFrequency()
        assert ticks_to_ms(freq) == pytest.approx(1000.0)
