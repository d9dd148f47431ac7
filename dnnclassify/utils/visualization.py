"""Overlay rendering and the display window."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

import cv2
import numpy as np

from dnnclassify.utils.data import label_for
from dnnclassify.utils.dnn_utils import Prediction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OverlayStyle:
    """Where and how the overlay lines are drawn."""

    origin_x: int = 0
    line_y: Tuple[int, ...] = (15, 40, 65)
    font_face: int = cv2.FONT_HERSHEY_SIMPLEX
    font_scale: float = 0.5
    color: Tuple[int, int, int] = (0, 255, 0)
    thickness: int = 1

    @classmethod
    def from_config(cls, overlay: Dict[str, Any]) -> "OverlayStyle":
        """Build a style from the validated ``overlay`` settings section."""
        return cls(
            origin_x=int(overlay["origin_x"]),
            line_y=tuple(int(y) for y in overlay["line_y"]),
            font_scale=float(overlay["font_scale"]),
            color=tuple(int(c) for c in overlay["color"]),
            thickness=int(overlay["thickness"]),
        )

    def positions(self, count: int) -> List[Tuple[int, int]]:
        """Baseline origins of the first ``count`` lines."""
        if count > len(self.line_y):
            raise ValueError(f"Style defines {len(self.line_y)} line positions, {count} requested")
        return [(self.origin_x, y) for y in self.line_y[:count]]


def format_overlay_lines(
    prediction: Prediction, batch_size: int, class_names: Sequence[str]
) -> List[str]:
    """Engine time, per-image latency and predicted label, one string per line."""
    label = label_for(prediction.class_id, class_names)
    return [
        f"Inference time: {prediction.engine_ms:.2f} ms",
        f"bs: {batch_size}, Time/image: {prediction.timing.per_image_ms:.2f} ms",
        f"{label}: {prediction.confidence:.4f}",
    ]


def draw_overlay(frame: np.ndarray, lines: Sequence[str], style: OverlayStyle) -> np.ndarray:
    """Draw ``lines`` onto ``frame`` in place and return it."""
    for text, org in zip(lines, style.positions(len(lines))):
        cv2.putText(
            frame,
            text,
            org,
            style.font_face,
            style.font_scale,
            style.color,
            thickness=style.thickness,
        )
    return frame


class OpenCVWindow:
    """A resizable HighGUI window the loop shows frames in."""

    def __init__(self, name: str) -> None:
        self.name = name
        cv2.namedWindow(self.name, cv2.WINDOW_NORMAL)

    def show(self, frame: np.ndarray) -> None:
        cv2.imshow(self.name, frame)

    def wait_key(self, delay_ms: int) -> int:
        """Poll for a key press; ``delay_ms`` of 0 waits indefinitely. Returns -1 when none."""
        return cv2.waitKey(delay_ms)

    def close(self) -> None:
        cv2.destroyWindow(self.name)
