"""
structlog setup shared by the API, Alembic and the load scripts.

Production emits one JSON object per line; every other environment gets
the console renderer. Stdlib loggers (uvicorn, sqlalchemy, aiohttp) are
routed through the same ProcessorFormatter so their records carry the
request_id bound by RequestLoggingMiddleware.
"""

import logging
import sys

import structlog
from structlog.types import EventDict, WrappedLogger

from flashvote.core.config import get_settings

_NOISY_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "httpx": logging.WARNING,
    "aiohttp.access": logging.WARNING,
}

_handler: logging.Handler | None = None


def _add_service(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    settings = get_settings()
    event_dict.setdefault("service", settings.APP_NAME)
    event_dict.setdefault("env", settings.ENVIRONMENT)
    return event_dict


def _drop_empty(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    return {key: value for key, value in event_dict.items() if value is not None}


def setup_logging() -> None:
    """Configure structlog and the root logger. Safe to call more than once."""
    global _handler
    settings = get_settings()

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _drop_empty,
    ]
    if settings.is_production:
        processors += [_add_service, structlog.processors.format_exc_info]
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    if _handler is not None:
        root.removeHandler(_handler)
    _handler = logging.StreamHandler(sys.stdout)
    _handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=processors,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    ))
    root.addHandler(_handler)
    root.setLevel(settings.LOG_LEVEL)

    for name, level in _NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
