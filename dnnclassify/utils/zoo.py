"""Model catalog helpers.

The catalog (``models.yml``) maps a short model alias to the files and
preprocessing parameters the network expects::

    squeezenet:
      model: "squeezenet_v1.1.caffemodel"
      config: "squeezenet_v1.1.prototxt"
      mean: [0, 0, 0]
      scale: 1.0
      width: 227
      height: 227
      rgb: false
      classes: "classification_classes_ILSVRC2012.txt"
      sample: "classification"

Catalogs written for ``cv::FileStorage`` start with a ``%YAML:1.0`` line,
which is not a valid YAML directive; it is skipped before parsing.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence, Tuple, Union

import cv2
import yaml

logger = logging.getLogger(__name__)

SAMPLE_NAME = "classification"

# Catalog keys that become defaults of the matching command line flags
PREPROCESSING_KEYS = (
    "model",
    "config",
    "mean",
    "scale",
    "width",
    "height",
    "rgb",
    "classes",
    "output_layer",
)

# Environment variables pointing at OpenCV test data checkouts
DATA_PATH_ENV_VARS = ("OPENCV_DNN_TEST_DATA_PATH", "OPENCV_TEST_DATA_PATH")


def load_model_zoo(zoo_path: Union[str, Path]) -> Dict[str, Dict[str, Any]]:
    """Read a model catalog and return its entries keyed by alias.

    Raises:
        FileNotFoundError: If the catalog does not exist.
        yaml.YAMLError: If the catalog is not valid YAML.
        ValueError: If the top level is not a mapping.
    """
    p = Path(zoo_path)
    if not p.is_file():
        raise FileNotFoundError(f"Model catalog not found at {zoo_path}")

    text = p.read_text(encoding="utf-8")
    lines = text.splitlines()
    if lines and lines[0].startswith("%YAML:"):
        text = "\n".join(lines[1:])

    data = yaml.safe_load(text)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Model catalog {zoo_path} did not contain a mapping at top level.")

    zoo = {str(name): entry for name, entry in data.items() if isinstance(entry, dict)}
    logger.debug("Loaded %d catalog entries from %s", len(zoo), zoo_path)
    return zoo


def classification_aliases(zoo: Dict[str, Dict[str, Any]]) -> List[str]:
    """Aliases usable by this demo: entries for the classification sample or with no sample tag."""
    return sorted(
        name for name, entry in zoo.items()
        if entry.get("sample", SAMPLE_NAME) == SAMPLE_NAME
    )


def get_preprocessing_defaults(alias: str, zoo: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    """Return the flag defaults a catalog entry defines.

    Raises:
        ValueError: If ``alias`` is not a classification entry of ``zoo``.
    """
    aliases = classification_aliases(zoo)
    if alias not in aliases:
        raise ValueError(f"Unknown model alias '{alias}'. Known aliases: {aliases}")

    entry = zoo[alias]
    defaults = {key: entry[key] for key in PREPROCESSING_KEYS if key in entry}
    if "mean" in defaults:
        defaults["mean"] = parse_mean(defaults["mean"])
    return defaults


def parse_mean(value: Union[float, int, Sequence[float]]) -> Tuple[float, float, float]:
    """Normalize a per-channel mean to a 3-tuple.

    Follows ``cv::Scalar`` semantics: missing channels are zero, so a single
    value subtracts from the first channel only.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        values = [float(value)]
    elif isinstance(value, (list, tuple)):
        values = [float(v) for v in value]
    else:
        raise ValueError(f"Invalid mean {value!r}: expected a number or a list of numbers")

    if not 1 <= len(values) <= 3:
        raise ValueError(f"Invalid mean {value!r}: expected 1 to 3 values")
    values += [0.0] * (3 - len(values))
    return (values[0], values[1], values[2])


def find_file(filename: str, search_dirs: Iterable[Union[str, Path]] = ()) -> str:
    """Resolve a model, config or classes file name to an existing path.

    Lookup order: the name itself, ``<root>/dnn/<name>`` and ``<root>/<name>``
    for each OpenCV data path environment variable, each of ``search_dirs``,
    then OpenCV's own sample data search.

    Returns:
        The resolved path, or ``""`` for an empty name.

    Raises:
        FileNotFoundError: If the file cannot be located.
    """
    if not filename:
        return ""
    if os.path.exists(filename):
        return filename

    candidates: List[Path] = []
    for var in DATA_PATH_ENV_VARS:
        root = os.environ.get(var)
        if root:
            candidates.append(Path(root) / "dnn" / filename)
            candidates.append(Path(root) / filename)
    candidates.extend(Path(d) / filename for d in search_dirs)

    for candidate in candidates:
        if candidate.exists():
            logger.debug("Resolved %s to %s", filename, candidate)
            return str(candidate)

    found = cv2.samples.findFile(filename, False, True)
    if found:
        return found

    raise FileNotFoundError(
        f"File {filename} not found! Set OPENCV_DNN_TEST_DATA_PATH to a directory "
        f"containing it or pass a full path."
    )
