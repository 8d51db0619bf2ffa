"""
Structured logging for keyvault_config.

This module provides:
- Structured logging with JSON or console output
- Reconciliation pass IDs attached to every record of a pass
- Configurable log levels and an optional rotating log file
"""

import contextvars
import logging
import logging.config
import sys
import time
import traceback
import uuid
from enum import Enum

import structlog
from pythonjsonlogger.json import JsonFormatter

from ..exceptions import ConfigurationError

# Context variable for the reconciliation pass currently running
reconciliation_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "reconciliation_id", default=None
)


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ReconciliationIDProcessor:
    """Processor to add the reconciliation pass ID to log records."""

    def __call__(self, logger, method_name, event_dict):
        reconciliation_id = reconciliation_id_var.get()
        if reconciliation_id:
            event_dict["reconciliation_id"] = reconciliation_id
        return event_dict


class TimestampProcessor:
    """Processor to add timestamps to log records."""

    def __call__(self, logger, method_name, event_dict):
        event_dict["timestamp"] = time.time()
        return event_dict


class ExceptionProcessor:
    """Processor to format exceptions in log records."""

    def __call__(self, logger, method_name, event_dict):
        exc_info = event_dict.pop("exc_info", None)
        if exc_info:
            if exc_info is True:
                exc_info = sys.exc_info()
            elif isinstance(exc_info, BaseException):
                exc_info = (type(exc_info), exc_info, exc_info.__traceback__)

            if exc_info[0] is not None:
                event_dict["exception"] = {
                    "type": exc_info[0].__name__,
                    "message": str(exc_info[1]),
                    "traceback": "".join(traceback.format_tb(exc_info[2]))
                    if exc_info[2]
                    else "",
                }
        return event_dict


class LogConfig:
    """Configuration class for logging setup."""

    def __init__(
        self,
        level: LogLevel = LogLevel.INFO,
        format_type: str = "json",
        log_file: str | None = None,
    ):
        self.level = level
        self.format_type = format_type
        self.log_file = log_file


def setup_logging(config: LogConfig) -> None:
    """
    Setup structured logging with the given configuration.

    Args:
        config: LogConfig instance with logging configuration
    """
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        TimestampProcessor(),
        ReconciliationIDProcessor(),
        ExceptionProcessor(),
    ]

    if config.format_type == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": JsonFormatter,
                "format": "%(asctime)s %(name)s %(levelname)s %(message)s",
            },
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": config.level.value,
                "formatter": "json" if config.format_type == "json" else "standard",
                "stream": sys.stdout,
            },
        },
        "loggers": {
            "keyvault_config": {
                "handlers": ["console"],
                "level": config.level.value,
                "propagate": False,
            },
        },
    }

    if config.log_file:
        logging_config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": config.level.value,
            "formatter": "json" if config.format_type == "json" else "standard",
            "filename": config.log_file,
            "maxBytes": 10 * 1024 * 1024,  # 10MB
            "backupCount": 5,
        }
        logging_config["loggers"]["keyvault_config"]["handlers"].append("file")

    try:
        logging.config.dictConfig(logging_config)
    except Exception as e:
        raise ConfigurationError(f"Failed to configure logging: {e}")


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name, typically __name__

    Returns:
        structlog logger bound to ``name``
    """
    return structlog.get_logger(name)


def set_reconciliation_id(reconciliation_id: str | None = None) -> str:
    """
    Set the reconciliation pass ID for the current context.

    Args:
        reconciliation_id: ID to set, or None to generate a new one

    Returns:
        The ID that was set
    """
    if reconciliation_id is None:
        reconciliation_id = uuid.uuid4().hex[:12]

    reconciliation_id_var.set(reconciliation_id)
    return reconciliation_id


def get_reconciliation_id() -> str | None:
    """Get the current reconciliation pass ID."""
    return reconciliation_id_var.get()


def clear_reconciliation_id() -> None:
    reconciliation_id_var.set(None)
