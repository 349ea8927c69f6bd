"""
Structured logging for pyclassic using structlog
Flow: get_logger(__name__) → stdlib logger "pyclassic.*" → handlers chosen by the host application

Importing pyclassic configures nothing. Library loggers sit on top of the
standard logging hierarchy, so the host's logging setup decides what is
shown. Applications that want pyclassic's own setup call setup_logging().
"""

import logging
import sys
from typing import Any, Optional

import structlog
from structlog.processors import CallsiteParameter

from pyclassic.config.settings import Settings, get_settings


def setup_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure structured logging for an application using pyclassic.

    Args:
        settings: Settings to read LOG_LEVEL and LOG_FORMAT from; defaults to get_settings()
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.LOG_LEVEL.upper())

    # Configure standard logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level,
    )
    logging.getLogger("pyclassic").setLevel(level)

    # Processors for structlog
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                CallsiteParameter.FILENAME,
                CallsiteParameter.LINENO,
                CallsiteParameter.FUNC_NAME,
            ]
        ),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    # Add appropriate renderer based on format setting
    if settings.LOG_FORMAT == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
    )


def get_logger(name: str | None = None, **kwargs: Any) -> structlog.stdlib.BoundLogger:
    """
    Get a structlog logger backed by the stdlib logger of the same name.

    Records go through the standard logging hierarchy whether or not
    structlog has been configured, so an unconfigured host only sees
    warnings and errors.
    """
    logger = structlog.wrap_logger(
        logging.getLogger(name),
        wrapper_class=structlog.stdlib.BoundLogger,
    )
    if kwargs:
        logger = logger.bind(**kwargs)
    return logger
