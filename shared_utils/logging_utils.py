"""
Structured logging for the meeting insights service.

Every module logs through a structlog logger bound to a ``LogScope``; event
names are snake_case and context travels as keyword arguments::

    logger = get_scoped_logger(LogScope.ANALYSIS)
    logger.info("analysis_step_started", kind="summary", step="1/4")

Request-level context (request id, route) is carried in contextvars so every
line emitted while a request is handled can be correlated.
"""

import functools
import inspect
import logging
import sys
import time
from enum import Enum
from typing import Any, Callable, Dict, Optional

import structlog

from shared_utils.constants import LogScope


class LogLevel(str, Enum):
    """Log level names accepted by ``configure_logging``."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def _processors(json_output: bool) -> list:
    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ]


def _configure_structlog(json_output: bool) -> None:
    structlog.configure(
        processors=_processors(json_output),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def configure_logging(level: str = LogLevel.INFO.value, json_output: bool = True) -> None:
    """Configure structlog and route stdlib logging to stdout at *level*.

    JSON lines are the default; ``json_output=False`` switches to the
    coloured console renderer for local development. Safe to call repeatedly.
    """
    _configure_structlog(json_output)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level.upper())
    logging.getLogger().setLevel(level.upper())


# JSON until the application configures otherwise
_configure_structlog(json_output=True)


def get_scoped_logger(scope: str) -> structlog.stdlib.BoundLogger:
    """Logger whose every event carries ``scope=<scope>``."""
    return structlog.get_logger(scope=scope)


# ---------------------------------------------------------------------------
# Request context
# ---------------------------------------------------------------------------

def bind_request_context(**values: Any) -> None:
    """Attach *values* to every log line emitted in the current context."""
    structlog.contextvars.bind_contextvars(**values)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()


# ---------------------------------------------------------------------------
# Decorator
# ---------------------------------------------------------------------------

def log_execution(scope: str = LogScope.API):
    """Log start, completion (with elapsed time) and failure of a call.

    Applies to plain functions and coroutine functions::

        @log_execution(scope=LogScope.ANALYSIS)
        async def process_audio(self, audio_bytes, mime_type, filename):
            ...
    """
    def decorator(func: Callable) -> Callable:
        name = func.__name__

        def started(logger) -> float:
            logger.info(f"{name}_started", func_name=name)
            return time.perf_counter()

        def completed(logger, started_at: float, result: Any) -> None:
            logger.info(
                f"{name}_completed",
                func_name=name,
                elapsed_ms=round((time.perf_counter() - started_at) * 1000, 1),
                result_type=type(result).__name__,
            )

        def failed(logger, started_at: float, exc: Exception) -> None:
            logger.error(
                f"{name}_failed",
                func_name=name,
                elapsed_ms=round((time.perf_counter() - started_at) * 1000, 1),
                error_type=type(exc).__name__,
                error_message=str(exc),
            )

        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs) -> Any:
                logger = get_scoped_logger(scope)
                started_at = started(logger)
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    failed(logger, started_at, e)
                    raise
                completed(logger, started_at, result)
                return result

            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            logger = get_scoped_logger(scope)
            started_at = started(logger)
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                failed(logger, started_at, e)
                raise
            completed(logger, started_at, result)
            return result

        return wrapper
    return decorator


class ContextualLogger:
    """Scoped logger that can carry extra context between calls.

    ``bind`` returns a new instance; the original is left untouched.
    """

    def __init__(self, scope: str, context: Optional[Dict[str, Any]] = None):
        self.scope = scope
        self.context: Dict[str, Any] = dict(context or {})
        self.logger = get_scoped_logger(scope)

    def bind(self, **context: Any) -> "ContextualLogger":
        return ContextualLogger(self.scope, {**self.context, **context})

    def _emit(self, level: str, event_name: str, fields: Dict[str, Any]) -> None:
        getattr(self.logger, level)(event_name, **{**self.context, **fields})

    def debug(self, event_name: str, **kwargs):
        self._emit("debug", event_name, kwargs)

    def info(self, event_name: str, **kwargs):
        self._emit("info", event_name, kwargs)

    def warning(self, event_name: str, **kwargs):
        self._emit("warning", event_name, kwargs)

    def error(self, event_name: str, **kwargs):
        self._emit("error", event_name, kwargs)

    def critical(self, event_name: str, **kwargs):
        self._emit("critical", event_name, kwargs)
