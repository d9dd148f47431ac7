"""Logging setup for the DNN classification demo.

``setup_logger()`` configures the ``dnnclassify`` package logger once per
process. Every module logger obtained with ``logging.getLogger(__name__)``
inside the package hands its records up to it, so the per-frame debug output
of the classifier ends up in the session file while the console only shows
what the operator needs.

Log files are written to ``log_dir`` as ``{logger_name}_{YYYYMMDD_HHMMSS}.log``.

Usage:
    from dnnclassify.utils.logger import setup_logger
    logger = setup_logger(log_dir="logs", console_level=logging.WARNING)
"""

from datetime import datetime
from pathlib import Path
import logging

PACKAGE_LOGGER = "dnnclassify"
CONSOLE_FORMAT = "%(levelname)s: %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def session_log_path(log_dir: str, name: str = PACKAGE_LOGGER) -> Path:
    """Return the file a session started now would log to."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return Path(log_dir) / f"{name}_{timestamp}.log"


def setup_logger(
    name: str = PACKAGE_LOGGER,
    log_dir: str = "logs",
    console_level: int = logging.INFO,
) -> logging.Logger:
    """Attach a console handler and a session file handler to ``name``.

    Calling it again for an already configured logger only updates the
    console level; no second file is opened.

    Args:
        name: Logger name. Defaults to the package logger.
        log_dir: Directory for the session log file. Created if missing.
        console_level: Threshold of the console handler. The file always
            records DEBUG and above.

    Returns:
        Configured ``logging.Logger`` instance.

    Raises:
        OSError: If the log directory cannot be created.
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    if logger.handlers:
        for h in logger.handlers:
            if not isinstance(h, logging.FileHandler):
                h.setLevel(console_level)
        return logger

    Path(log_dir).mkdir(parents=True, exist_ok=True)

    ch = logging.StreamHandler()
    ch.setLevel(console_level)
    ch.setFormatter(logging.Formatter(CONSOLE_FORMAT))

    fh = logging.FileHandler(str(session_log_path(log_dir, name)))
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter(FILE_FORMAT))

    logger.addHandler(ch)
    logger.addHandler(fh)
    return logger
