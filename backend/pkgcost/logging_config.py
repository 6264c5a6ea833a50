"""Structured logging configuration for the application."""

import logging
import logging.config
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

from pkgcost.config import settings


def setup_logging() -> None:
    """Configure structured logging with per-run files and appropriate levels."""

    log_dir = Path("./logs")

    extra_handlers: list[str] = []
    # File logging is only disabled during automated tests.
    disable_file_handlers = settings.is_testing
    handlers: dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": "DEBUG" if settings.is_development else "INFO",
            "formatter": "json" if settings.is_production else "detailed",
            "stream": sys.stderr,
        },
    }

    if not disable_file_handlers:
        log_dir.mkdir(exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        info_log = log_dir / f"pkgcost-{timestamp}.log"
        error_log = log_dir / f"error-{timestamp}.log"
        handlers.update(
            {
                "file": {
                    "class": "logging.FileHandler",
                    "level": "INFO",
                    "formatter": "detailed",
                    "filename": str(info_log),
                    "encoding": "utf-8",
                },
                "error_file": {
                    "class": "logging.FileHandler",
                    "level": "ERROR",
                    "formatter": "detailed",
                    "filename": str(error_log),
                    "encoding": "utf-8",
                },
            }
        )
        extra_handlers = ["file", "error_file"]

    handler_names = ["console"] + extra_handlers

    log_config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "detailed": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "json": {
                "()": "pythonjsonlogger.json.JsonFormatter",
                "format": "%(asctime)s %(name)s %(levelname)s %(filename)s %(lineno)d %(message)s",
            },
        },
        "handlers": handlers,
        "loggers": {
            "pkgcost": {
                "level": settings.log_level,
                "handlers": handler_names,
                "propagate": False,
            },
            "asyncio": {
                "level": "WARNING",
                "handlers": handler_names,
                "propagate": False,
            },
        },
        "root": {
            "level": settings.log_level,
            "handlers": handler_names,
        },
    }

    logging.config.dictConfig(log_config)

    logger = logging.getLogger("pkgcost")
    logger.info(
        f"Logging initialized - Environment: {settings.environment}, "
        f"Level: {settings.log_level}"
    )

    if settings.is_development:
        logger.debug("Running in development mode with verbose logging")


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the specified name.

    Args:
        name: Logger name, typically __name__ of the calling module

    Returns:
        Configured logger instance
    """
    if name == "pkgcost" or name.startswith("pkgcost."):
        return logging.getLogger(name)
    return logging.getLogger(f"pkgcost.{name}")
