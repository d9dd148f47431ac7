"""OpenCV DNN classification utilities.

This module wraps a ``cv2.dnn.Net`` in a reusable ``Classifier`` that turns a
BGR frame into a prediction. Each frame goes through four phases:

1. blob construction (``batch_size`` copies of the frame, scaled, mean
   subtracted, optionally RB-swapped, resized),
2. warm-up forward passes whose output is discarded,
3. one measured forward pass whose output is the prediction,
4. a benchmark of repeated forward passes used for the latency estimate.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any

import cv2
import numpy as np

from dnnclassify.utils.config import BACKENDS, TARGETS, ClassifierConfig
from dnnclassify.utils.metrics import TimingSample, ticks_to_ms, top_class

DEFAULT_WARMUP_PASSES = 1
DEFAULT_TIMING_REPETITIONS = 100

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Prediction:
    """Result of classifying one frame."""

    class_id: int
    confidence: float
    engine_ms: float
    timing: TimingSample


def read_network(config: ClassifierConfig) -> cv2.dnn.Net:
    """Load the network described by ``config`` and select its backend and target.

    ``cv2.error`` from the loader propagates unchanged.
    """
    net = cv2.dnn.readNet(config.model, config.config, config.framework)
    net.setPreferableBackend(config.backend)
    net.setPreferableTarget(config.target)
    logger.info(
        "Loaded network %s (backend: %s, target: %s)",
        config.model,
        BACKENDS[config.backend],
        TARGETS[config.target],
    )
    return net


class Classifier:
    """Classify BGR frames with an OpenCV DNN network.

    Args:
        net: A loaded ``cv2.dnn.Net`` (or any object with the same
            ``setInput``/``forward``/``getPerfProfile`` methods).
        config: Preprocessing and batching parameters.
        warmup_passes: Forward passes run and discarded before the measured one.
        timing_repetitions: Forward passes timed per frame for the latency estimate.
    """

    def __init__(
        self,
        net: Any,
        config: ClassifierConfig,
        warmup_passes: int = DEFAULT_WARMUP_PASSES,
        timing_repetitions: int = DEFAULT_TIMING_REPETITIONS,
    ) -> None:
        if warmup_passes < 0:
            raise ValueError("warmup_passes must be >= 0")
        if timing_repetitions < 1:
            raise ValueError("timing_repetitions must be >= 1")

        self.net = net
        self.config = config
        self.warmup_passes = int(warmup_passes)
        self.timing_repetitions = int(timing_repetitions)

    @classmethod
    def from_config(
        cls,
        config: ClassifierConfig,
        warmup_passes: int = DEFAULT_WARMUP_PASSES,
        timing_repetitions: int = DEFAULT_TIMING_REPETITIONS,
    ) -> "Classifier":
        return cls(read_network(config), config, warmup_passes, timing_repetitions)

    def make_blob(self, frame: np.ndarray) -> np.ndarray:
        """Build an (N, C, height, width) input tensor from ``batch_size`` copies of ``frame``."""
        cfg = self.config
        images = [frame] * cfg.batch_size
        return cv2.dnn.blobFromImages(
            images,
            cfg.scale,
            (cfg.width, cfg.height),
            cfg.mean,
            cfg.swap_rb,
            False,
        )

    def _forward(self) -> np.ndarray:
        if self.config.output_layer:
            return self.net.forward(self.config.output_layer)
        return self.net.forward()

    def warm_up(self, blob: np.ndarray) -> None:
        """Run the warm-up passes on ``blob`` and discard their output."""
        self.net.setInput(blob)
        for _ in range(self.warmup_passes):
            self._forward()

    def forward(self, blob: np.ndarray) -> np.ndarray:
        """Run the measured forward pass and return the network output."""
        self.net.setInput(blob)
        return self._forward()

    def benchmark(self) -> TimingSample:
        """Time ``timing_repetitions`` forward passes on the current input."""
        start = time.perf_counter()
        for _ in range(self.timing_repetitions):
            self._forward()
        elapsed = time.perf_counter() - start
        return TimingSample(
            elapsed_s=elapsed,
            repetitions=self.timing_repetitions,
            batch_size=self.config.batch_size,
        )

    def engine_time_ms(self) -> float:
        """Total time of the last forward pass as reported by the engine's profiler."""
        ticks, _ = self.net.getPerfProfile()
        return ticks_to_ms(ticks)

    def classify(self, frame: np.ndarray) -> Prediction:
        """Run all phases on ``frame`` and return the top class with timings."""
        blob = self.make_blob(frame)
        self.warm_up(blob)
        scores = self.forward(blob)
        timing = self.benchmark()
        class_id, confidence = top_class(scores)
        logger.debug("Predicted class %d (%.4f)", class_id, confidence)
        return Prediction(
            class_id=class_id,
            confidence=confidence,
            engine_ms=self.engine_time_ms(),
            timing=timing,
        )
