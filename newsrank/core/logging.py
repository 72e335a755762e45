"""Structured logging configuration using dictConfig.

Production runs emit one JSON object per line; other environments use a
readable console line. The ``newsrank`` logger tree carries the engine's
records; ``httpx`` is kept at WARNING so embedding retries do not flood the
output.
"""
import logging
import logging.config
import sys
from typing import Any, Dict, Optional

from .settings import Settings, get_settings

JSON_FORMATTER_CLASS = "pythonjsonlogger.json.JsonFormatter"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _formats(service_name: Optional[str]) -> Dict[str, str]:
    tag = f" [{service_name}]" if service_name else ""
    return {
        "json": "%(asctime)s %(levelname)s %(name)s %(message)s" if not service_name
        else f"%(asctime)s %(levelname)s {service_name} %(name)s %(message)s",
        "console": f"%(asctime)s{tag} [%(levelname)s] %(name)s: %(message)s",
    }


def get_logging_config(service_name: Optional[str] = None,
                       settings: Optional[Settings] = None) -> Dict[str, Any]:
    """
    Build the dictConfig mapping for the engine.

    Args:
        service_name: Tag added to every line, defaults to the app name
        settings: Settings to read level and environment from

    Returns:
        Configuration dictionary for logging.config.dictConfig
    """
    settings = settings or get_settings()
    formats = _formats(service_name or settings.app_name)
    formatter = "json" if settings.environment == "production" else "console"

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "format": formats["json"],
                "datefmt": DATE_FORMAT,
                "class": JSON_FORMATTER_CLASS,
            },
            "console": {
                "format": formats["console"],
                "datefmt": DATE_FORMAT,
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": settings.log_level,
                "formatter": formatter,
                "stream": sys.stdout,
            }
        },
        "loggers": {
            "newsrank": {
                "level": settings.log_level,
                "handlers": ["console"],
                "propagate": False,
            },
            "httpx": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
        },
        "root": {
            "level": settings.log_level,
            "handlers": ["console"],
        },
    }


def setup_logging(service_name: Optional[str] = None, settings: Optional[Settings] = None) -> None:
    """Configure structured logging using dictConfig."""
    logging.config.dictConfig(get_logging_config(service_name, settings))


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)
