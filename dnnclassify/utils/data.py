"""Input data helpers for the classification demo.

This module loads the class names shown next to predictions and opens the
frame source the loop reads from.

Key functions:
    - load_class_names(): Read a newline-delimited class names file
    - label_for(): Resolve a class id to its display name
    - open_capture(): Open an image/video file or a camera
"""

import logging
from pathlib import Path
from typing import Optional, Sequence, Tuple

import cv2

logger = logging.getLogger(__name__)

DEFAULT_CAMERA_INDEX = 0


def load_class_names(path: Optional[str]) -> Tuple[str, ...]:
    """Load class names, one per line, line index = class id.

    Args:
        path: Path to the class names file. ``None`` or ``""`` means no file.

    Returns:
        Tuple of class names; empty when no file was given.

    Raises:
        FileNotFoundError: If ``path`` is given but cannot be read.
    """
    if not path:
        logger.debug("No class names file given, predictions will show class ids.")
        return ()

    p = Path(path)
    try:
        with p.open("r", encoding="utf-8") as f:
            names = tuple(line.rstrip("\r\n") for line in f)
    except OSError as e:
        raise FileNotFoundError(f"File {path} not found") from e

    logger.info(f"Loaded {len(names)} class names from {path}")
    return names


def label_for(class_id: int, class_names: Sequence[str]) -> str:
    """Return the display name for ``class_id``, or ``"Class #<id>"`` when unnamed."""
    if 0 <= class_id < len(class_names):
        return class_names[class_id]
    return f"Class #{class_id}"


def open_capture(source: Optional[str] = None) -> cv2.VideoCapture:
    """Open a frame source.

    Args:
        source: Path to an image or video file, or a camera index as a string.
            ``None`` opens the default camera.

    Returns:
        An opened ``cv2.VideoCapture``.

    Raises:
        OSError: If the source cannot be opened.
    """
    if source is None or source == "":
        target = DEFAULT_CAMERA_INDEX
    elif source.isdigit():
        target = int(source)
    else:
        target = source

    cap = cv2.VideoCapture(target)
    if not cap.isOpened():
        cap.release()
        what = f"camera {target}" if isinstance(target, int) else target
        raise OSError(f"Failed to open frame source: {what}")

    logger.info(f"Opened frame source: {target}")
    return cap


def is_empty_frame(frame) -> bool:
    """True for a missing or zero-size frame, which marks the end of the stream."""
    return frame is None or getattr(frame, "size", 0) == 0
