from __future__ import annotations

import logging
from pathlib import Path
from typing import Tuple

from .lib.env import PATHS

DEFAULT_LOG_PATH = PATHS.log_default
FALLBACK_LOG_NAME = "ai-premise-setup.log"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"


def open_log_file(log_path: str) -> Tuple[logging.FileHandler, str]:
    """Open the provisioning log, or ./ai-premise-setup.log when that fails.

    /var/log is only writable as root; a `--dry-run` as a normal user still
    gets a complete log next to where it was started.
    """

    try:
        Path(log_path).parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(log_path), log_path
    except OSError as e:
        fallback = str(Path.cwd() / FALLBACK_LOG_NAME)
        logging.getLogger(__name__).debug("Cannot open %s (%s); using %s", log_path, e, fallback)
        return logging.FileHandler(fallback), fallback


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    also_console: bool = True,
) -> str:
    """Send every record to the log file and `level` and above to the console.

    The file always gets DEBUG, so command stdout/stderr is on disk even
    without `--verbose`. Safe to call more than once per process: later
    calls only adjust the console level. Returns the file actually in use.
    """

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    if getattr(root, "_ai_premise_configured", False):
        console = getattr(root, "_ai_premise_console", None)
        if console is not None:
            console.setLevel(level)
        return getattr(root, "_ai_premise_log_path", log_path)

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    file_handler, chosen_path = open_log_file(log_path)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    console = None
    if also_console:
        console = logging.StreamHandler()
        console.setLevel(level)
        console.setFormatter(fmt)
        root.addHandler(console)

    setattr(root, "_ai_premise_configured", True)
    setattr(root, "_ai_premise_console", console)
    setattr(root, "_ai_premise_log_path", chosen_path)

    logging.getLogger(__name__).info("Logging to %s (requested %s)", chosen_path, log_path)
    return chosen_path
