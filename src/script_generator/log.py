"""Console logging for script generation runs, rendered with Rich."""

import logging
from typing import Optional

from rich.logging import RichHandler

from .config import get_settings

# HTTP clients log every image request; font subsetting and CSS warnings flood PDF rendering.
QUIET_LOGGERS = {
    "httpx": logging.WARNING,
    "openai": logging.WARNING,
    "fontTools": logging.WARNING,
    "weasyprint": logging.ERROR,
}


def setup_logging(level: Optional[str] = None):
    logging.basicConfig(
        level=level or get_settings().LOG_LEVEL,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )
    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)


def get_logger(name: str):
    return logging.getLogger(name)
