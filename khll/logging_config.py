"""Logging configuration utilities for khll.

The library is silent by default: importing khll only installs a
NullHandler on the ``khll`` logger. Estimation code logs through
per-module loggers (``khll.sketching.kmv``, ``khll.trials.harness``, ...),
so the helpers below control everything from one place.

Example usage:
    import khll

    # Trial progress on stderr
    khll.enable_console_logging(level="DEBUG")

    # Long experiment runs into a rotating file
    khll.enable_file_logging("logs/trials.log", max_bytes=10_000_000)

    # Structured output for log aggregation
    khll.enable_json_logging()

    # Configure from environment variables
    khll.configure_from_env()

Environment variables:
    KHLL_LOGGING: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    KHLL_LOG_FILE: Path to log file (enables rotating file logging)
    KHLL_LOG_JSON: Set to "1" for JSON output
"""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Literal

__all__ = [
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_logging",
    "set_level",
    "set_module_level",
]

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
DEFAULT_BACKUP_COUNT = 5

LOGGER_NAME = "khll"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class JsonFormatter(logging.Formatter):
    """Formats log records as one JSON object per line.

    Example output:
        {"timestamp": "2024-01-15T10:30:00.123456+00:00", "level": "INFO",
         "logger": "khll.trials.harness", "message": "Completed 101 trials"}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data)


def _get_level(level: str | int) -> int:
    """Convert a level string or int to a logging level constant."""
    if isinstance(level, int):
        return level
    return getattr(logging, level.upper(), logging.INFO)


def _get_logger() -> logging.Logger:
    """Get the khll root logger."""
    return logging.getLogger(LOGGER_NAME)


def _clear_handlers() -> None:
    """Remove and close every non-null handler on the khll logger."""
    logger = _get_logger()
    for handler in logger.handlers[:]:
        if not isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)
            handler.close()


def _install(handler: logging.Handler, level: LogLevel | int, formatter: logging.Formatter) -> None:
    logger = _get_logger()
    logger.setLevel(_get_level(level))
    handler.setLevel(_get_level(level))
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def _rotating_handler(path: str | Path, max_bytes: int, backup_count: int) -> RotatingFileHandler:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count)


def enable_console_logging(
    level: LogLevel | int = "INFO",
    format: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> logging.StreamHandler:
    """Enable console (stderr) logging for khll.

    Args:
        level: Log level name or int.
        format: Log message format string.
        date_format: Date format string for %(asctime)s.

    Returns:
        The created StreamHandler.
    """
    handler = logging.StreamHandler()
    _install(handler, level, logging.Formatter(format, date_format))
    return handler


def enable_file_logging(
    path: str | Path,
    level: LogLevel | int = "INFO",
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    format: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> RotatingFileHandler:
    """Enable rotating file logging for khll.

    Trial runs over many seeds can log a lot at DEBUG level; the file is
    rotated once it reaches ``max_bytes`` and ``backup_count`` old files
    are kept. Parent directories are created automatically.

    Returns:
        The created RotatingFileHandler.
    """
    handler = _rotating_handler(path, max_bytes, backup_count)
    _install(handler, level, logging.Formatter(format, date_format))
    return handler


def enable_json_logging(
    level: LogLevel | int = "INFO",
    path: str | Path | None = None,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
) -> logging.Handler:
    """Enable JSON logging, to stderr or to a rotating file when ``path`` is given.

    Returns:
        The created handler with a JsonFormatter attached.
    """
    if path is None:
        handler: logging.Handler = logging.StreamHandler()
    else:
        handler = _rotating_handler(path, max_bytes, backup_count)
    _install(handler, level, JsonFormatter())
    return handler


def configure_from_env() -> None:
    """Configure logging from the KHLL_LOGGING, KHLL_LOG_FILE and KHLL_LOG_JSON variables.

    Does nothing when neither a level nor a log file is set.
    """
    level = os.environ.get("KHLL_LOGGING", "").upper()
    log_file = os.environ.get("KHLL_LOG_FILE", "")
    use_json = os.environ.get("KHLL_LOG_JSON", "") == "1"

    if not level and not log_file:
        return

    level = level or "INFO"

    if use_json:
        enable_json_logging(level=level, path=log_file or None)
    elif log_file:
        enable_file_logging(log_file, level=level)
    else:
        enable_console_logging(level=level)


def set_level(level: LogLevel | int) -> None:
    """Set the global log level for khll."""
    _get_logger().setLevel(_get_level(level))


def set_module_level(module: str, level: LogLevel | int) -> None:
    """Set the log level for one khll submodule.

    Example:
        >>> import khll
        >>> khll.enable_console_logging(level="INFO")
        >>> khll.set_module_level("trials.harness", "DEBUG")  # per-seed progress
        >>> khll.set_module_level("sketching", "WARNING")
    """
    logging.getLogger(f"{LOGGER_NAME}.{module}").setLevel(_get_level(level))


def disable_logging() -> None:
    """Remove all handlers and silence the khll logger."""
    logger = _get_logger()
    _clear_handlers()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.CRITICAL + 1)
