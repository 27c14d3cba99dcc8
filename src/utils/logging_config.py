"""Structured logging configuration for the top-stories loader."""

import json
import logging
import sys
from typing import Any

from src.utils.config import get_settings

# Attributes passed through ``extra=`` by the loader modules
CONTEXT_FIELDS = ("location", "generation", "story_id", "status_code", "attempt")


class JsonFormatter(logging.Formatter):
    """JSON formatter emitting one object per record."""

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON string with log data
        """
        settings = get_settings()

        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "app_name": settings.APP_NAME,
            "environment": settings.ENVIRONMENT,
        }

        for field in CONTEXT_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


class StandardFormatter(logging.Formatter):
    """Plain text formatter: ``[time] LEVEL - logger - message``."""

    def __init__(self) -> None:
        fmt = "[%(asctime)s] %(levelname)s - %(name)s - %(message)s"
        datefmt = "%Y-%m-%d %H:%M:%S"
        super().__init__(fmt=fmt, datefmt=datefmt)


_logging_configured = False


def setup_logging(use_json: bool = False, force_reconfigure: bool = False) -> None:
    """
    Configure application logging.

    Installs a single stdout handler at the LOG_LEVEL from settings.
    Repeated calls are no-ops unless ``force_reconfigure`` is set.

    Args:
        use_json: If True, use JSON format. If False, use standard text format.
        force_reconfigure: If True, force reconfiguration even if already set up.
    """
    global _logging_configured

    if _logging_configured and not force_reconfigure:
        return

    settings = get_settings()
    root_logger = logging.getLogger()

    # Only drop our own stdout handler; pytest's caplog handler stays
    handlers_to_remove = [
        h for h in root_logger.handlers
        if isinstance(h, logging.StreamHandler) and h.stream == sys.stdout
    ]
    for handler in handlers_to_remove:
        root_logger.removeHandler(handler)

    log_level = getattr(logging, settings.LOG_LEVEL)
    root_logger.setLevel(log_level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(JsonFormatter() if use_json else StandardFormatter())
    root_logger.addHandler(console_handler)

    # httpx logs every request at INFO
    if log_level > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)

    _logging_configured = True

    logging.getLogger(__name__).debug(
        "Logging configured: level=%s, format=%s",
        settings.LOG_LEVEL,
        "json" if use_json else "standard",
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Ensures logging is set up before returning the logger.

    Args:
        name: Name for the logger (typically __name__ from calling module)

    Returns:
        Logger instance
    """
    if not _logging_configured:
        setup_logging()

    return logging.getLogger(name)


def reset_logging() -> None:
    """Reset logging configuration. Useful for testing."""
    global _logging_configured

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.NOTSET)

    _logging_configured = False
