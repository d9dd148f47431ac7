"""Prediction post-processing and timing metrics."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import cv2
import numpy as np


def top_class(scores: Union[np.ndarray, list]) -> Tuple[int, float]:
    """Pick the highest scoring class from a network output.

    The output is flattened to a single row first, so any leading batch or
    spatial dimensions are scanned in row-major order.

    Args:
        scores: Array-like of class scores, any shape.

    Returns:
        ``(class_id, confidence)`` where ``class_id`` is the first index
        holding the maximum value.

    Raises:
        ValueError: If ``scores`` is empty.
    """
    flat = np.asarray(scores, dtype=np.float64).reshape(-1)
    if flat.size == 0:
        raise ValueError("Cannot pick a class from an empty score vector")
    class_id = int(np.argmax(flat))
    return class_id, float(flat[class_id])


def per_image_latency_ms(elapsed_s: float, batch_size: int, repetitions: int) -> float:
    """Average milliseconds per image over ``repetitions`` passes of ``batch_size`` images.

    Raises:
        ValueError: On a negative or non-finite elapsed time, or a batch size
            or repetition count below 1.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    if repetitions < 1:
        raise ValueError(f"repetitions must be >= 1, got {repetitions}")
    if not math.isfinite(elapsed_s) or elapsed_s < 0:
        raise ValueError(f"elapsed time must be a non-negative finite number, got {elapsed_s}")
    return elapsed_s * 1000.0 / (batch_size * repetitions)


@dataclass(frozen=True)
class TimingSample:
    """Wall-clock time of a run of repeated forward passes."""

    elapsed_s: float
    repetitions: int
    batch_size: int

    @property
    def per_image_ms(self) -> float:
        return per_image_latency_ms(self.elapsed_s, self.batch_size, self.repetitions)


def ticks_to_ms(ticks: float, tick_frequency: Optional[float] = None) -> float:
    """Convert OpenCV tick counts (e.g. from ``Net.getPerfProfile``) to milliseconds."""
    if tick_frequency is None:
        tick_frequency = cv2.getTickFrequency()
    return float(ticks) / (tick_frequency / 1000.0)
