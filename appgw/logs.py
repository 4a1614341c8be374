"""
Run logging.

One named logger for the whole tool. Each CLI run attaches a colored console
handler and an append-only log file under the log directory.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Tuple

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "appgw"
FILE_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
FILE_DATEFMT = "%Y-%m-%dT%H:%M:%S"


def log_file_path(log_dir: Path, environment: str, action: str, now: datetime) -> Path:
    stamp = now.strftime("%Y%m%d-%H%M%S")
    return log_dir / f"appgw-{environment}-{action.lower()}-{stamp}.log"


def setup_logging(
    *,
    log_dir: Path,
    environment: str,
    action: str,
    verbose: bool = False,
    console: Console | None = None,
) -> Tuple[logging.Logger, Path]:
    """Configure the tool logger for one run and return (logger, log_file)."""
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_file_path(log_dir, environment, action, datetime.now())

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False

    console_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATEFMT))
    logger.addHandler(file_handler)

    logger.debug("Logging to %s", log_file)
    return logger, log_file
