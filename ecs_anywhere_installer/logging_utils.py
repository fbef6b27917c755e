from __future__ import annotations

import logging
import os
import sys
import time
from pathlib import Path
from typing import Optional


class UTCFormatter(logging.Formatter):
    converter = time.gmtime


def configure_logging(
    log_path: Optional[str] = None,
    level: int = logging.INFO,
) -> Optional[str]:
    """Configure logging.

    Every record goes to stdout as one line prefixed with a UTC ISO-8601
    timestamp. When ``log_path`` is given the same lines are also written
    there; if that location is not writable we fall back to a file in the
    current working directory.

    Returns the actual file path being used (None without a log file).
    """

    logger = logging.getLogger()
    logger.setLevel(level)

    # Avoid duplicate handlers if configure_logging() is called multiple times.
    if getattr(logger, "_ecs_anywhere_configured", False):
        return getattr(logger, "_ecs_anywhere_log_path", log_path)

    fmt = UTCFormatter(
        fmt="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )

    handlers: list[logging.Handler] = []

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(fmt)
    handlers.append(console)

    chosen_path = log_path
    if log_path:
        try:
            Path(os.path.dirname(log_path) or ".").mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path)
        except OSError:
            chosen_path = str(Path.cwd() / "ecs-anywhere-install.log")
            file_handler = logging.FileHandler(chosen_path)
        file_handler.setFormatter(fmt)
        handlers.append(file_handler)

    for h in handlers:
        logger.addHandler(h)

    setattr(logger, "_ecs_anywhere_configured", True)
    setattr(logger, "_ecs_anywhere_log_path", chosen_path)

    if chosen_path:
        logging.getLogger(__name__).info(
            "Logging initialized (requested=%s, actual=%s)", log_path, chosen_path
        )
    return chosen_path
