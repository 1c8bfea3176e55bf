"""
Logging configuration for the application.

Supports per-module log levels via environment variables:
- LOG_LEVEL: Global log level (default: INFO)
- LOG_FORMAT: Log format - simple or structured (default: structured)
- LOG_LEVEL_<MODULE>: Per-module override (e.g., LOG_LEVEL_POLLER=DEBUG)
"""

import logging
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from brewdream.config import Settings


# Module name mapping: settings field suffix -> logger name
MODULE_LOGGERS = {
    "clients": "brewdream.services.clients",
    "providers": "brewdream.services.providers",
    "pipeline": "brewdream.services.pipeline",
    "poller": "brewdream.services.asset_poller",
    "sessions": "brewdream.services.session_initializer",
}


class StructuredFormatter(logging.Formatter):
    """
    Structured log formatter for easy parsing.

    Format: timestamp | level | logger | message
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record in structured format."""
        # services.asset_poller -> asset_poller
        logger_name = record.name
        if logger_name.startswith("brewdream.services."):
            logger_name = logger_name.replace("brewdream.services.", "")
        elif logger_name.startswith("brewdream."):
            logger_name = logger_name.replace("brewdream.", "")

        timestamp = self.formatTime(record, "%Y-%m-%d %H:%M:%S")

        message = (
            f"{timestamp} | "
            f"{record.levelname:8} | "
            f"{logger_name:20} | "
            f"{record.getMessage()}"
        )

        # Add exception traceback if present
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)

        return message


def setup_logging(settings: "Settings") -> None:
    """
    Configure logging based on settings.

    Log lines go to stderr: the CLI writes its JSON results to stdout.

    Args:
        settings: Application settings with log configuration
    """
    # Unknown level names fall back to INFO
    root_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "structured":
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    # setup_logging may run more than once (tests, repeated CLI calls)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(root_level)
    root_logger.addHandler(handler)

    # LOG_LEVEL_CLIENTS, LOG_LEVEL_POLLER, ...
    _configure_module_loggers(settings, root_level)

    # Request lines from httpx and SDK retries are noise at INFO
    for noisy in ("httpx", "httpcore", "anthropic"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def _configure_module_loggers(settings: "Settings", default_level: int) -> None:
    """
    Configure individual module log levels.

    Args:
        settings: Application settings
        default_level: Default log level to use
    """
    for module_key, logger_name in MODULE_LOGGERS.items():
        # e.g. settings.log_level_poller
        level_str = getattr(settings, f"log_level_{module_key}", None)

        if level_str:
            level = getattr(logging, level_str.upper(), default_level)
            logging.getLogger(logger_name).setLevel(level)
