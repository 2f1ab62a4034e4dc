"""Logging for the storefront.

Level, format and log directory all come from ``StorefrontSettings``:
production and staging emit one JSON object per line, every other
environment gets structlog's coloured console with Rich tracebacks. Log
lines written while serving a request carry that request's bound context.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any

import structlog

from ordering.config import StorefrontSettings

JSON_ENVIRONMENTS = ("production", "staging")

LEVEL_BY_ENVIRONMENT = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

QUIET_LOGGERS = ("protean", "uvicorn.access", "sqlalchemy.engine")


def get_log_level(settings: StorefrontSettings) -> str:
    """An explicit level wins; otherwise the environment decides."""
    return settings.log_level or LEVEL_BY_ENVIRONMENT.get(settings.environment, "INFO")


def _handlers(settings: StorefrontSettings) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if settings.log_dir:
        log_dir = Path(settings.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                filename=log_dir / "storefront.log",
                maxBytes=10 * 1024 * 1024,
                backupCount=5,
                encoding="utf-8",
            )
        )
    return handlers


def _processors(settings: StorefrontSettings) -> list:
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.environment in JSON_ENVIRONMENTS:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stdout.isatty(),
                exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=4),
            )
        )
    return processors


def configure_logging(settings: StorefrontSettings | None = None) -> None:
    """Configure stdlib handlers and structlog once, at application start."""
    settings = settings or StorefrontSettings.from_env()
    level = get_log_level(settings)

    logging.basicConfig(level=level, format="%(message)s", handlers=_handlers(settings), force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=_processors(settings),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_request_context(**kwargs: Any) -> None:
    """Add context variables included in every log line of the current request."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
