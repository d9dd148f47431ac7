"""Shared test doubles for the network, the frame source and the window."""

from typing import List, Optional, Sequence

import numpy as np
import pytest

from dnnclassify.utils.config import ClassifierConfig


class FakeNet:
    """Stands in for cv2.dnn.Net and records every call."""

    def __init__(self, scores: Sequence[float], perf_ticks: float = 0.0) -> None:
        self.scores = np.asarray(scores, dtype=np.float32).reshape(1, -1)
        self.perf_ticks = perf_ticks
        self.inputs: List[np.ndarray] = []
        self.forward_calls: List[tuple] = []

    def setInput(self, blob: np.ndarray) -> None:
        self.inputs.append(blob)

    def forward(self, *layer_names: str) -> np.ndarray:
        self.forward_calls.append(layer_names)
        return self.scores.copy()

    def getPerfProfile(self):
        return self.perf_ticks, np.zeros((1, 1))


class FakeCapture:
    """Yields the given frames, then reports end of stream."""

    def __init__(self, frames: Sequence[Optional[np.ndarray]]) -> None:
        self._frames = list(frames)
        self.released = False

    def read(self):
        if not self._frames:
            return False, None
        frame = self._frames.pop(0)
        return frame is not None, frame

    def release(self) -> None:
        self.released = True


class FakeDisplay:
    """Records shown frames and key polls; returns queued keys, then -1."""

    def __init__(self, keys: Sequence[int] = ()) -> None:
        self.keys = list(keys)
        self.shown: List[np.ndarray] = []
        self.delays: List[int] = []
        self.closed = False

    def show(self, frame: np.ndarray) -> None:
        self.shown.append(frame.copy())

    def wait_key(self, delay_ms: int) -> int:
        self.delays.append(delay_ms)
        return self.keys.pop(0) if self.keys else -1

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def frame() -> np.ndarray:
    img = np.zeros((48, 64, 3), dtype=np.uint8)
    img[:] = (10, 20, 30)
    return img


@pytest.fixture
def small_config() -> ClassifierConfig:
    return ClassifierConfig(model="net.onnx", width=16, height=12)


@pytest.fixture
def class_names_file(tmp_path):
    path = tmp_path / "classes.txt"
    path.write_text("cat\ndog\nbird\n", encoding="utf-8")
    return path
