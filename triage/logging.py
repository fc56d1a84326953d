"""Structured logging configuration for the Issue Triage Engine."""

import logging
import os
import sys
import time
from collections.abc import Callable, MutableMapping
from functools import wraps
from typing import Any, TypeVar

import structlog
from structlog.types import Processor

F = TypeVar("F", bound=Callable[..., Any])

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def _tag_engine(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    event_dict.setdefault("app", "triage")
    return event_dict


def _renderer() -> Processor:
    """Readable console lines while debugging, JSON lines otherwise."""
    from .config import get_settings

    if get_settings().debug or os.getenv("ENV", "development") == "development":
        return structlog.dev.ConsoleRenderer(
            colors=False, exception_formatter=structlog.dev.plain_traceback
        )
    return structlog.processors.JSONRenderer()


def get_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        _tag_engine,
        _renderer(),
    ]


def configure_logging(level: str | None = None) -> None:
    """
    Route structlog through stdlib logging at the given level.

    Safe to call more than once: structlog is configured on the first call,
    and every call applies its level to the root logger, so a later CLI
    override wins over the level chosen when the first logger was created.
    """
    if level is None:
        from .config import get_settings

        level = get_settings().log_level

    # basicConfig is a no-op once the root logger has handlers
    logging.basicConfig(format="%(message)s", stream=sys.stderr)
    logging.getLogger().setLevel(_LEVELS.get(level.strip().upper(), logging.INFO))

    if not structlog.is_configured():
        structlog.configure(
            processors=get_processors(),
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(name)  # type: ignore[no-any-return]


class LogContext:
    """
    Bind keys to every log line emitted inside the block.

    Usage:
        with LogContext(batch_id="a1b2"):
            batch_logger.info("batch_started")
    """

    def __init__(self, **kwargs: Any):
        self.kwargs = kwargs

    def __enter__(self):
        structlog.contextvars.bind_contextvars(**self.kwargs)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        structlog.contextvars.unbind_contextvars(*self.kwargs)
        return False


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


def log_timing(
    operation: str, logger: structlog.stdlib.BoundLogger | None = None
) -> Callable[[F], F]:
    """Log how long the wrapped call took, at debug on success and error on failure."""

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args, **kwargs):
            log = logger or get_logger(func.__module__)
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                log.error(
                    "operation_failed",
                    operation=operation,
                    duration_ms=_elapsed_ms(started),
                    error=str(e),
                )
                raise
            log.debug("operation_complete", operation=operation, duration_ms=_elapsed_ms(started))
            return result

        return wrapper  # type: ignore

    return decorator


class _ComponentLogger:
    """Named logger that configures logging on its first call, not at import."""

    def __init__(self, name: str):
        self.name = name

    def __getattr__(self, method: str):
        return getattr(get_logger(self.name), method)


config_logger = _ComponentLogger("configuration")
engine_logger = _ComponentLogger("classification")
cache_logger = _ComponentLogger("cache")
batch_logger = _ComponentLogger("batch")
cli_logger = _ComponentLogger("cli")


__all__ = [
    "configure_logging",
    "get_logger",
    "LogContext",
    "log_timing",
    "config_logger",
    "engine_logger",
    "cache_logger",
    "batch_logger",
    "cli_logger",
]
