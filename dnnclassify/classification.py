#!/usr/bin/env python3
"""Real-time image classification with OpenCV's DNN module.

Reads frames from an image, a video file or a camera, classifies each frame
with a pretrained network and shows it with the predicted class and timing
information drawn on top.

Preprocessing parameters come from a model catalog (``models.yml``) entry
selected by alias; any of them can be overridden on the command line::

    dnn-classify squeezenet --input cat.jpg
    dnn-classify --model net.onnx --width 224 --height 224 --classes names.txt
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from dnnclassify.utils.config import (
    BACKENDS,
    DEFAULT_CONFIG_PATH,
    TARGETS,
    ClassifierConfig,
    create_directories,
    default_config,
    load_config,
)
from dnnclassify.utils.data import is_empty_frame, load_class_names, open_capture
from dnnclassify.utils.dnn_utils import Classifier
from dnnclassify.utils.logger import setup_logger
from dnnclassify.utils.visualization import (
    OpenCVWindow,
    OverlayStyle,
    draw_overlay,
    format_overlay_lines,
)
from dnnclassify.utils.zoo import (
    find_file,
    get_preprocessing_defaults,
    load_model_zoo,
    parse_mean,
)

ABOUT = "Use this script to run classification deep learning networks using OpenCV."
DEFAULT_ZOO = "models.yml"
HELP_FLAGS = {"-h", "--help"}

logger = logging.getLogger(__name__)


class ArgumentParser(argparse.ArgumentParser):
    """Argument parser that exits with status 1 on invalid arguments."""

    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _choices_help(choices: Dict[int, str]) -> str:
    return ", ".join(f"{k}: {v}" for k, v in choices.items())


def build_parser(defaults: Optional[Dict[str, Any]] = None, add_help: bool = True) -> ArgumentParser:
    """Build the command line parser.

    Args:
        defaults: Values from the selected catalog entry, used as defaults of
            the preprocessing flags.
        add_help: Whether to register ``-h/--help``.
    """
    defaults = defaults or {}
    parser = ArgumentParser(description=ABOUT, add_help=add_help)

    parser.add_argument("alias", nargs="?", default=None,
                        help="An alias name of model to extract preprocessing parameters from models.yml file.")
    parser.add_argument("--zoo", default=DEFAULT_ZOO,
                        help="An optional path to file with preprocessing parameters.")
    parser.add_argument("--input", "-i", default=None,
                        help="Path to input image or video file, or a camera index. "
                             "Skip this argument to capture frames from the default camera.")
    parser.add_argument("--framework", "-f", default="",
                        help="Optional name of an origin framework of the model. "
                             "Detect it automatically if it does not set.")
    parser.add_argument("--classes", default=defaults.get("classes", ""),
                        help="Optional path to a text file with names of classes.")
    parser.add_argument("--backend", type=int, default=0, choices=sorted(BACKENDS),
                        help=f"Choose one of computation backends: {_choices_help(BACKENDS)}")
    parser.add_argument("--target", type=int, default=0, choices=sorted(TARGETS),
                        help=f"Choose one of target computation devices: {_choices_help(TARGETS)}")
    parser.add_argument("--batch_size", type=int, default=1,
                        help="Number of copies of each frame passed through the network at once.")
    parser.add_argument("--settings", default=None,
                        help=f"Path to the application settings file (default: {DEFAULT_CONFIG_PATH}).")

    pre = parser.add_argument_group("preprocessing", "Defaults come from the selected models.yml entry.")
    pre.add_argument("--model", default=defaults.get("model", ""),
                     help="Path to a binary file of model contains trained weights.")
    pre.add_argument("--config", default=defaults.get("config", ""),
                     help="Path to a text file of model contains network configuration.")
    pre.add_argument("--mean", type=float, nargs="+", default=defaults.get("mean", (0.0, 0.0, 0.0)),
                     help="Preprocess input image by subtracting mean values. Mean values should be in BGR order.")
    pre.add_argument("--scale", type=float, default=defaults.get("scale", 1.0),
                     help="Preprocess input image by multiplying on a scale factor.")
    pre.add_argument("--width", type=int, default=defaults.get("width"),
                     help="Preprocess input image by resizing to a specific width.")
    pre.add_argument("--height", type=int, default=defaults.get("height"),
                     help="Preprocess input image by resizing to a specific height.")
    pre.add_argument("--rgb", action=argparse.BooleanOptionalAction, default=bool(defaults.get("rgb", False)),
                     help="Indicate that model works with RGB input images instead BGR ones.")
    pre.add_argument("--output_layer", default=defaults.get("output_layer"),
                     help="Name of the layer to read scores from. Defaults to the network output.")
    return parser


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    """Parse ``argv`` in two passes so the catalog entry can supply defaults."""
    bootstrap = build_parser(add_help=False)
    known, _ = bootstrap.parse_known_args(argv)

    defaults: Dict[str, Any] = {}
    if known.alias:
        try:
            zoo = load_model_zoo(known.zoo)
            defaults = get_preprocessing_defaults(known.alias, zoo)
        except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
            # help wins over a bad alias; the full parser prints it and exits 0
            if not HELP_FLAGS.intersection(argv):
                bootstrap.error(str(e))

    args = build_parser(defaults).parse_args(argv)
    args.zoo_dir = str(Path(args.zoo).resolve().parent)
    return args


def build_classifier_config(args: argparse.Namespace) -> ClassifierConfig:
    """Resolve file names and build the immutable run configuration.

    Raises:
        FileNotFoundError: If the model, config or classes file cannot be found.
        ValueError: If a parameter is missing or out of range.
    """
    if args.width is None or args.height is None:
        raise ValueError("Input width and height are required. Pass --width/--height or a catalog alias.")

    search_dirs = [args.zoo_dir]
    return ClassifierConfig(
        model=find_file(args.model, search_dirs),
        config=find_file(args.config, search_dirs),
        framework=args.framework,
        classes=find_file(args.classes, search_dirs),
        scale=args.scale,
        mean=parse_mean(args.mean),
        swap_rb=args.rgb,
        width=args.width,
        height=args.height,
        backend=args.backend,
        target=args.target,
        batch_size=args.batch_size,
        input=args.input,
        output_layer=args.output_layer or None,
    )


def load_settings(path: Optional[str]) -> Dict[str, Any]:
    """Load settings from ``path``; without one, the default file if present, else built-ins."""
    if path is not None:
        return load_config(path)
    if Path(DEFAULT_CONFIG_PATH).exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return default_config()


def run_classification_loop(
    capture,
    classifier: Classifier,
    class_names: Sequence[str],
    display,
    style: OverlayStyle,
    wait_key_ms: int = 1,
    hold_last_frame: bool = True,
) -> int:
    """Read, classify, annotate and show frames until the stream ends or a key is pressed.

    Args:
        capture: Frame source with a ``read() -> (ok, frame)`` method.
        classifier: Classifier applied to every frame.
        class_names: Names indexed by class id; may be empty.
        display: Window with ``show(frame)`` and ``wait_key(delay_ms)``.
        style: Overlay text placement and look.
        wait_key_ms: Key poll timeout after each frame.
        hold_last_frame: Wait for a key before returning when the stream ends.

    Returns:
        Process exit status (0).
    """
    session_start = time.time()
    frame_count = 0

    logger.info("Starting classification. Press any key in the window to stop.")

    while True:
        ok, frame = capture.read()
        if not ok or is_empty_frame(frame):
            logger.info("End of stream.")
            if hold_last_frame and frame_count > 0:
                display.wait_key(0)
            break

        prediction = classifier.classify(frame)
        lines = format_overlay_lines(prediction, classifier.config.batch_size, class_names)

        draw_overlay(frame, lines, style)
        display.show(frame)
        frame_count += 1

        if display.wait_key(wait_key_ms) >= 0:
            logger.info("Stopped by user.")
            break

    # Session logging
    session_duration = time.time() - session_start
    avg_fps = frame_count / session_duration if session_duration > 0 else 0.0
    logger.info(f"Frames processed: {frame_count}")
    logger.info(f"Session duration: {session_duration:.2f} seconds")
    logger.info(f"Average FPS: {avg_fps:.2f}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    if not argv:
        build_parser().print_help()
        return 0

    args = parse_args(argv)

    # Load settings
    try:
        settings = load_settings(args.settings)
        create_directories(settings)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        print(f"ERROR: Failed to load settings: {e}")
        return 1

    # Setup logging
    try:
        log = setup_logger(log_dir=settings["paths"]["logs"])
    except OSError as e:
        print(f"WARNING: Could not setup logging: {e}")
        log = logging.getLogger("dnnclassify")
        log.setLevel(logging.INFO)

    try:
        config = build_classifier_config(args)
        class_names = load_class_names(config.classes)
    except (FileNotFoundError, ValueError) as e:
        log.error(str(e))
        return 1

    inference = settings["inference"]
    classifier = Classifier.from_config(
        config,
        warmup_passes=inference["warmup_passes"],
        timing_repetitions=inference["timing_repetitions"],
    )

    try:
        cap = open_capture(config.input)
    except OSError as e:
        log.error(str(e))
        return 1

    display_cfg = settings["display"]
    window = None
    try:
        window = OpenCVWindow(display_cfg["window_name"])
        return run_classification_loop(
            cap,
            classifier,
            class_names,
            window,
            OverlayStyle.from_config(settings["overlay"]),
            wait_key_ms=display_cfg["wait_key_ms"],
            hold_last_frame=display_cfg["hold_last_frame"],
        )
    finally:
        cap.release()
        if window is not None:
            window.close()


if __name__ == "__main__":
    sys.exit(main())
