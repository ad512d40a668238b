"""Logging configuration for NanoMon."""

import json
import logging
import sys
from datetime import UTC, datetime

from rich.console import Console
from rich.logging import RichHandler

from nanomon.common.config import LoggingSettings


class JsonFormatter(logging.Formatter):
    """Emit one JSON object per log record."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_obj)


def setup_logging(level: str = "INFO", log_format: str = "console") -> None:
    """Configure root logging for the monitor.

    Log records go to stderr; stdout carries command output.

    Parameters
    ----------
    level : str
        Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_format : str
        "console" for rich console output, "json" for structured lines on stderr
    """
    handler: logging.Handler
    if log_format == "json":
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(JsonFormatter())
    else:
        handler = RichHandler(
            level=level.upper(),
            console=Console(stderr=True),
            rich_tracebacks=True,
            markup=False,
            show_time=True,
            show_path=False,
        )

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        handlers=[handler],
        force=True,
    )
    # aiohttp access/client chatter is not useful at INFO
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


def setup_logging_from_settings(settings: LoggingSettings) -> None:
    """Configure logging from a LoggingSettings section."""
    setup_logging(level=settings.log_level, log_format=settings.log_format)
