"""
Loguru logging configuration.

Development logs are colorized for the console; every other environment
writes one JSON object per line. Each record carries the request
correlation ID in `extra`.
"""

import sys
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from core.correlation import get_correlation_id

if TYPE_CHECKING:
    from loguru import Record

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[correlation_id]}</cyan> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


def correlation_filter(record: "Record") -> bool:
    """Stamp the correlation ID on the record; never drops anything."""
    record["extra"]["correlation_id"] = get_correlation_id() or "-"
    return True


def configure_logging(environment: str = "development", log_dir: str = "logs") -> None:
    """
    Configure Loguru for the application.

    Args:
        environment: "development" for console output, anything else for JSON.
            "test" skips the log file.
        log_dir: Directory of the rotating log file.
    """
    logger.remove()

    is_dev = environment == "development"
    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT if is_dev else "{message}",
        level="DEBUG" if is_dev else "INFO",
        filter=correlation_filter,
        colorize=is_dev,
        serialize=not is_dev,
    )

    if environment == "test":
        return

    Path(log_dir).mkdir(parents=True, exist_ok=True)
    logger.add(
        str(Path(log_dir) / "app.log"),
        format=CONSOLE_FORMAT if is_dev else "{message}",
        level="INFO",
        filter=correlation_filter,
        rotation="10 MB",
        retention="7 days",
        serialize=not is_dev,
    )
