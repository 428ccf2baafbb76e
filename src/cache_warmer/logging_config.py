"""Logging configuration for the cache warmer."""

import json
import logging
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from .constants import DEFAULT_LOG_DIR, LOG_FILE_TEMPLATE
from .exceptions import FatalStartupError
from .models import Statistics


class WarmerFormatter(logging.Formatter):
    """Render records as '[ISO timestamp] message', prefixing errors with 'ERROR:'."""

    def __init__(self, fmt: Optional[str] = None):
        super().__init__(fmt or "[%(asctime)s] %(message)s")

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        return datetime.fromtimestamp(record.created).isoformat(timespec="milliseconds")

    def formatMessage(self, record: logging.LogRecord) -> str:
        if record.levelno >= logging.ERROR:
            record = logging.makeLogRecord(record.__dict__)
            record.message = f"ERROR: {record.message}"
        return super().formatMessage(record)


def log_file_for(log_dir: str, day: Optional[date] = None) -> Path:
    """Path of the per-day log file inside log_dir."""
    day = day or date.today()
    return Path(log_dir).expanduser() / LOG_FILE_TEMPLATE.format(date=day.isoformat())


def setup_logging(
    level: str = "INFO",
    log_dir: Optional[str] = DEFAULT_LOG_DIR,
    format_string: Optional[str] = None
) -> Optional[Path]:
    """Configure logging for the cache warmer.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for the per-day log file; None logs to stdout only
        format_string: Optional custom format string

    Returns:
        Path of the log file, or None when file logging is disabled

    Raises:
        FatalStartupError: If the log directory or file cannot be created
    """
    # Get numeric level
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    formatter = WarmerFormatter(format_string)

    # Create handlers
    handlers = [logging.StreamHandler(sys.stdout)]

    log_file = None
    if log_dir:
        log_file = log_file_for(log_dir)
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
        except OSError as e:
            raise FatalStartupError(f"Cannot initialize log file {log_file}: {e}") from e
        handlers.append(file_handler)

    for handler in handlers:
        handler.setFormatter(formatter)

    # Configure root logger
    logging.basicConfig(
        level=numeric_level,
        handlers=handlers,
        force=True  # Override any existing configuration
    )

    # Set levels for noisy third-party libraries
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.WARNING)

    return log_file


def log_stats(logger: logging.Logger, stats: Statistics, **extra) -> None:
    """Emit the single 'STATS:' line for a run."""
    payload = dict(extra)
    payload.update(stats.to_dict())
    logger.info("STATS: %s", json.dumps(payload, ensure_ascii=False))
