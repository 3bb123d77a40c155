"""Loguru setup.

Application code logs structured events:

    logger.bind(tracker_id=tracker.id).info("tracker_created")

stdlib loggers (uvicorn, sqlalchemy, alembic) are routed through loguru so
everything ends up on one sink.
"""

import logging
import sys
from typing import Any

from loguru import logger

from scrolltracker.config import get_settings

DEBUG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level> | {extra}"
)
PLAIN_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message} | {extra}"

# Access-log lines that would drown everything else at INFO
QUIET_PATHS = ("/health", "POST /track", "OPTIONS /track", "/tracker-script")

ROUTED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "sqlalchemy.engine", "alembic")


class InterceptHandler(logging.Handler):
    """Forward stdlib log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk out of the logging module so loguru reports the real caller
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back  # type: ignore[assignment]
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _quiet_paths_filter(record: dict[str, Any]) -> bool:
    message = record.get("message", "")
    if any(path in message for path in QUIET_PATHS):
        return bool(record["level"].no <= logging.DEBUG)
    return True


def setup_logging() -> None:
    """
    Configure the loguru sink.

    - debug: colored, DEBUG level, full tracebacks with variables
    - production: JSON lines on stderr for the log collector
    - otherwise: plain text at INFO
    """
    settings = get_settings()
    logger.remove()

    if settings.debug:
        logger.add(
            sys.stderr,
            level="DEBUG",
            format=DEBUG_FORMAT,
            backtrace=True,
            diagnose=True,
        )
    elif settings.is_production:
        logger.add(
            sys.stderr,
            level="INFO",
            serialize=True,
            filter=_quiet_paths_filter,
            backtrace=False,
            diagnose=False,
        )
    else:
        logger.add(
            sys.stderr,
            level="INFO",
            format=PLAIN_FORMAT,
            filter=_quiet_paths_filter,
            diagnose=False,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in ROUTED_LOGGERS:
        stdlib_logger = logging.getLogger(name)
        stdlib_logger.handlers = [InterceptHandler()]
        stdlib_logger.propagate = False

    # SQL echo is only wanted in debug
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.debug else logging.WARNING
    )


def get_logger(name: str) -> Any:
    """Loguru logger with the module name bound."""
    return logger.bind(name=name)
