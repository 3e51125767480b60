"""
Logging configuration for the task tracker.

Provides:
- Colored console output for development
- JSON lines for log aggregation (TRACKER_JSON_LOGS=1)
- Level taken from settings unless passed explicitly
"""

import json
import logging
import sys
from typing import Optional, TextIO

from tracker.config import get_settings


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


# ANSI color codes for terminal output
class Colors:
    GREY = "\x1b[38;20m"
    GREEN = "\x1b[32;20m"
    YELLOW = "\x1b[33;20m"
    RED = "\x1b[31;20m"
    BOLD_RED = "\x1b[31;1m"
    RESET = "\x1b[0m"


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the whole line by level."""

    LEVEL_COLORS = {
        logging.DEBUG: Colors.GREY,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD_RED,
    }

    def __init__(self):
        super().__init__(LOG_FORMAT, datefmt=DATE_FORMAT)

    def format(self, record):
        color = self.LEVEL_COLORS.get(record.levelno, Colors.RESET)
        return color + super().format(record) + Colors.RESET


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record):
        log_record = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record, ensure_ascii=False)


def setup_logging(
    level: Optional[str] = None,
    json_format: Optional[bool] = None,
    stream: TextIO = sys.stdout,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Log level name; defaults to settings.log_level, then DEBUG/INFO
            depending on settings.debug
        json_format: Emit JSON lines instead of colored text; defaults to
            settings.json_logs
        stream: Where the console handler writes
    """
    settings = get_settings()

    log_level = level or settings.log_level or ("DEBUG" if settings.debug else "INFO")
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    if json_format is None:
        json_format = settings.json_logs

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(stream)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(JsonFormatter() if json_format else ColoredFormatter())
    root_logger.addHandler(console_handler)

    # Silence noisy loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logging.getLogger("tracker").setLevel(numeric_level)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the ``tracker`` namespace.

    Usage:
        from tracker.logging_config import get_logger
        logger = get_logger(__name__)
    """
    if not name.startswith("tracker"):
        name = f"tracker.{name}"
    return logging.getLogger(name)
