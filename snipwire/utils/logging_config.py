"""
Logging setup for SnipWire.

All webhook activity is written below the ``snipwire`` logger; the
pipeline itself logs under the stable category ``snipwire.webhooks``.
"""
import logging
import sys
from pathlib import Path
from typing import Optional

WEBHOOKS_LOG_NAME = "snipwire.webhooks"

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the ``snipwire`` logger.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ...), defaults to INFO
        log_file: Optional path of a log file written in addition to stdout
        format_string: Custom format string for log records

    Returns:
        Configured ``snipwire`` logger
    """
    level_num = getattr(logging, (level or "INFO").upper(), logging.INFO)
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)

    logger = logging.getLogger("snipwire")
    logger.setLevel(level_num)
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level_num)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level_num)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
