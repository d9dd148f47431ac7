"""Configuration for the DNN classification demo.

Two kinds of configuration live here:

- Application settings (logging directory, timing policy, window and overlay
  style) loaded from a YAML file by ``load_config()`` and checked by
  ``validate_config()``.
- ``ClassifierConfig``, the immutable record of network and preprocessing
  parameters resolved from the command line and the model catalog.
"""

from __future__ import annotations

import copy
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

DEFAULT_CONFIG_PATH = "config/config.yaml"

# Computation backends and targets accepted by cv2.dnn.Net, keyed by the
# integer value OpenCV uses for them.
BACKENDS: Dict[int, str] = {
    0: "automatic",
    1: "Halide",
    2: "Intel Inference Engine",
    3: "OpenCV",
    5: "CUDA",
}
TARGETS: Dict[int, str] = {
    0: "CPU",
    1: "OpenCL",
    2: "OpenCL fp16",
    3: "VPU",
    6: "CUDA",
    7: "CUDA fp16",
}

DEFAULT_CONFIG: Dict[str, Any] = {
    "paths": {"logs": "logs"},
    "inference": {
        "warmup_passes": 1,
        "timing_repetitions": 100,
    },
    "display": {
        "window_name": "Deep learning image classification in OpenCV",
        "wait_key_ms": 1,
        "hold_last_frame": True,
    },
    "overlay": {
        "origin_x": 0,
        "line_y": [15, 40, 65],
        "font_scale": 0.5,
        "color": [0, 255, 0],
        "thickness": 1,
    },
}


@dataclass(frozen=True)
class ClassifierConfig:
    """Network and preprocessing parameters for one run."""

    model: str
    config: str = ""
    framework: str = ""
    classes: str = ""
    scale: float = 1.0
    mean: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    swap_rb: bool = False
    width: int = 224
    height: int = 224
    backend: int = 0
    target: int = 0
    batch_size: int = 1
    input: Optional[str] = None
    output_layer: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.model:
            raise ValueError("Model path is empty. Pass --model or a catalog alias that defines one.")
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Invalid input size {self.width}x{self.height}: expected positive width and height")
        if self.batch_size < 1:
            raise ValueError(f"Invalid batch size {self.batch_size}: expected integer >= 1")
        if self.backend not in BACKENDS:
            raise ValueError(f"Invalid backend {self.backend}: expected one of {sorted(BACKENDS)}")
        if self.target not in TARGETS:
            raise ValueError(f"Invalid target {self.target}: expected one of {sorted(TARGETS)}")
        if len(self.mean) != 3:
            raise ValueError(f"Invalid mean {self.mean}: expected three per-channel values")


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """Load and validate application settings from a YAML file.

    Keys missing from the file are filled from ``DEFAULT_CONFIG`` one section
    at a time, so a settings file only needs the values it changes.

    Args:
        config_path: Relative or absolute path to the YAML settings file.

    Returns:
        A validated settings dictionary.

    Raises:
        FileNotFoundError: If the settings file cannot be found.
        yaml.YAMLError: If parsing the YAML fails.
        ValueError: If validation fails.
    """
    p = Path(config_path)
    if not p.exists():
        raise FileNotFoundError(f"Settings file not found at {config_path}.")

    try:
        with p.open("r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Invalid YAML syntax in settings file {config_path}: {e}")

    if cfg is None:
        cfg = {}
    if not isinstance(cfg, dict):
        raise ValueError("Settings file did not contain a mapping at top level.")

    merged = default_config()
    for section, values in cfg.items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict):
            merged[section].update(values)
        else:
            merged[section] = values

    validate_config(merged)
    return merged


def default_config() -> Dict[str, Any]:
    """Return a fresh copy of the built-in settings."""
    return copy.deepcopy(DEFAULT_CONFIG)


def validate_config(config: Dict[str, Any]) -> None:
    """Validate a settings dictionary and raise ValueError on issues."""
    for key in ("paths", "inference", "display", "overlay"):
        if key not in config:
            raise ValueError(f"Missing required configuration key: {key}")
        if not isinstance(config[key], dict):
            raise ValueError(f"Invalid configuration for '{key}': expected a mapping")

    logs = config["paths"].get("logs")
    if not isinstance(logs, str) or not logs.strip():
        raise ValueError(f"Invalid value for paths.logs: expected non-empty string, got {logs!r}")

    inf = config["inference"]
    for key in ("warmup_passes", "timing_repetitions"):
        if key not in inf:
            raise ValueError(f"Missing required configuration key: inference.{key}")
    if not _is_int(inf["warmup_passes"]) or inf["warmup_passes"] < 0:
        raise ValueError("Invalid value for inference.warmup_passes: expected non-negative integer")
    if not _is_int(inf["timing_repetitions"]) or inf["timing_repetitions"] < 1:
        raise ValueError("Invalid value for inference.timing_repetitions: expected positive integer")

    disp = config["display"]
    for key in ("window_name", "wait_key_ms", "hold_last_frame"):
        if key not in disp:
            raise ValueError(f"Missing required configuration key: display.{key}")
    if not isinstance(disp["window_name"], str) or not disp["window_name"].strip():
        raise ValueError("Invalid value for display.window_name: expected non-empty string")
    if not _is_int(disp["wait_key_ms"]) or disp["wait_key_ms"] < 1:
        # waitKey(0) blocks until a key press
        raise ValueError("Invalid value for display.wait_key_ms: expected positive integer")
    if not isinstance(disp["hold_last_frame"], bool):
        raise ValueError("Invalid value for display.hold_last_frame: expected boolean")

    ov = config["overlay"]
    for key in ("origin_x", "line_y", "font_scale", "color", "thickness"):
        if key not in ov:
            raise ValueError(f"Missing required configuration key: overlay.{key}")
    if not _is_int(ov["origin_x"]) or ov["origin_x"] < 0:
        raise ValueError("Invalid value for overlay.origin_x: expected non-negative integer")
    if not isinstance(ov["line_y"], list) or len(ov["line_y"]) != 3 or not all(_is_int(y) for y in ov["line_y"]):
        raise ValueError("Invalid value for overlay.line_y: expected list of three integers")
    if not isinstance(ov["font_scale"], (int, float)) or ov["font_scale"] <= 0:
        raise ValueError("Invalid value for overlay.font_scale: expected positive number")
    color = ov["color"]
    if not isinstance(color, list) or len(color) != 3 or not all(_is_int(c) and 0 <= c <= 255 for c in color):
        raise ValueError(f"Invalid value for overlay.color: expected [B, G, R] in 0..255, got {color}")
    if not _is_int(ov["thickness"]) or ov["thickness"] < 1:
        raise ValueError("Invalid value for overlay.thickness: expected positive integer")


def create_directories(config: Dict[str, Any]) -> None:
    """Create directories listed in the config['paths'] mapping.

    Any OSError raised while creating directories will be caught and a warning will be emitted.
    """
    paths = config.get("paths", {})
    for key, rel in paths.items():
        try:
            Path(rel).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            warnings.warn(f"Could not create directory for paths.{key} at {rel}: {e}")


def _is_int(value: Any) -> bool:
    # bool is an int subclass
    return isinstance(value, int) and not isinstance(value, bool)
