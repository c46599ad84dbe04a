"""Logging configuration for the storefront domain.

Standard library logging owns the outputs (stdout plus rotating files) and
structlog builds the event dictionaries. Checkout code binds the session and
order identifiers through ``add_context`` so every line emitted during a
commit carries them.

``STOREFRONT_LOG_DIR`` picks the directory for the log files; set it to an
empty string to log to stdout only.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog

LEVELS_BY_ENVIRONMENT = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

_NOISY_LOGGERS = ("protean", "asyncio", "urllib3")
_MAX_LOG_BYTES = 10 * 1024 * 1024


def current_environment() -> str:
    return (os.getenv("ENV") or os.getenv("ENVIRONMENT") or os.getenv("PROTEAN_ENV") or "development").lower()


def get_log_level() -> str:
    """Resolve the log level from LOG_LEVEL or the active environment."""
    return os.getenv("LOG_LEVEL", LEVELS_BY_ENVIRONMENT.get(current_environment(), "INFO")).upper()


def _rotating_handler(path: Path, level) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=_MAX_LOG_BYTES,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def _build_handlers(level: str, log_dir: Path | None) -> list[logging.Handler]:
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    handlers = [console]

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(_rotating_handler(log_dir / "storefront.log", level))
        handlers.append(_rotating_handler(log_dir / "storefront_error.log", logging.ERROR))
    return handlers


def _processors(renderer) -> list:
    return [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.MODULE,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ]
        ),
        renderer,
    ]


def _renderer_for(environment: str):
    """JSON lines where logs are shipped, a coloured console with rich tracebacks elsewhere."""
    if environment in ("production", "staging"):
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(
        colors=sys.stdout.isatty(),
        exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=3),
    )


def configure_logging(level: str | None = None, log_dir: str | Path | None = None) -> None:
    """Configure stdlib handlers and the structlog pipeline in one go.

    ``level`` defaults to ``get_log_level()``. ``log_dir`` defaults to
    ``STOREFRONT_LOG_DIR`` (``logs`` when unset); an empty value disables the
    file handlers.
    """
    level = (level or get_log_level()).upper()
    if log_dir is None:
        log_dir = os.getenv("STOREFRONT_LOG_DIR", "logs")
    log_path = Path(log_dir) if str(log_dir) else None

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = _build_handlers(level, log_path)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=_processors(_renderer_for(current_environment())),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def add_context(**kwargs: Any) -> None:
    """Bind values that will be included in all subsequent log lines."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context(*keys: str) -> None:
    """Unbind the given keys, or every bound value when none are given."""
    if keys:
        structlog.contextvars.unbind_contextvars(*keys)
    else:
        structlog.contextvars.clear_contextvars()
