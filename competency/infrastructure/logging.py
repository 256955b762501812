"""
Logging for the competency evaluation engine.

All engine loggers live under the ``competency`` namespace. Records carry
the evaluation context (operation, profile, survey, dimension, respondent)
set through ``LogContext``, and the structured formatter emits them as one
JSON object per line together with any error details attached by the
application layer.

Handlers are built from ``LoggingConfig``; ``auto_configure_logging`` picks
a profile from the ``ENVIRONMENT`` variable and lets ``LOG_*`` variables
override individual settings.
"""

from __future__ import annotations

import json
import logging
import logging.config
import os
import time
from collections.abc import Callable
from datetime import UTC, datetime
from functools import wraps
from pathlib import Path
from types import TracebackType
from typing import Any, ParamSpec, TypeVar

from .config import LoggingConfig

P = ParamSpec("P")
R = TypeVar("R")

ROOT_LOGGER = "competency"
CONTEXT_KEYS = ("operation", "profile_id", "survey_id", "dimension_id", "respondent_id")
# Attached by log_error_details() through ``extra=``
ERROR_KEYS = ("error_type", "user_message", "error_details")

_ENVIRONMENT_PROFILES: dict[str, dict[str, Any]] = {
    "production": {
        "level": "INFO",
        "file_path": "./logs/production.log",
        "structured": True,
        "console_enabled": False,
    },
    "test": {"level": "WARNING", "file_path": None, "structured": False, "console_enabled": False},
    "development": {
        "level": "DEBUG",
        "file_path": "./logs/development.log",
        "structured": False,
        "console_enabled": True,
    },
}


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: message, source, evaluation context and error details."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for key in CONTEXT_KEYS + ERROR_KEYS:
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)

        if record.exc_info:
            exc_type, exc_value, exc_tb = record.exc_info
            if exc_type is not None and exc_value is not None:
                log_entry["exception"] = {
                    "type": exc_type.__name__,
                    "message": str(exc_value),
                    "traceback": self.formatException((exc_type, exc_value, exc_tb)),
                }

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class ContextFilter(logging.Filter):
    """Copies the current evaluation context onto every record it sees."""

    def __init__(self):
        super().__init__()
        self.context: dict[str, Any] = {}

    def set_context(self, **kwargs: Any) -> None:
        self.context.update(kwargs)

    def clear_context(self) -> None:
        self.context.clear()

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.context.items():
            setattr(record, key, value)
        return True


context_filter = ContextFilter()


def _handler_configs(config: LoggingConfig) -> dict[str, dict[str, Any]]:
    handlers: dict[str, dict[str, Any]] = {}
    if config.console_enabled:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "level": config.level,
            "formatter": "structured" if config.structured else "standard",
            "filters": ["context"],
            "stream": "ext://sys.stdout",
        }

    file_handler = config.get_file_handler_config()
    if file_handler:
        Path(config.file_path).parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            **file_handler,
            "level": config.level,
            "formatter": "structured",
            "filters": ["context"],
        }

    # Records must not fall through to logging.lastResort when nothing is enabled
    if not handlers:
        handlers["null"] = {"class": "logging.NullHandler"}
    return handlers


def setup_logging(config: LoggingConfig | None = None) -> None:
    """
    Configure the ``competency`` logger tree from a LoggingConfig.

    Example:
        >>> setup_logging(LoggingConfig(level="DEBUG", file_path=None, structured=False))
    """
    config = config or LoggingConfig()
    handlers = _handler_configs(config)
    handler_names = list(handlers)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structured": {"()": StructuredFormatter},
                "standard": {
                    "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "filters": {"context": {"()": lambda: context_filter}},
            "handlers": handlers,
            "loggers": {
                ROOT_LOGGER: {"level": config.level, "handlers": handler_names, "propagate": False},
                "sqlalchemy.engine": {
                    "level": "WARNING",
                    "handlers": handler_names,
                    "propagate": False,
                },
                "alembic": {"level": "INFO", "handlers": handler_names, "propagate": False},
            },
            "root": {"level": config.level, "handlers": handler_names},
        }
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger namespaced under the engine's root logger.

    Example:
        >>> get_logger("evaluator").name
        'competency.evaluator'
    """
    if name == ROOT_LOGGER or name.startswith(f"{ROOT_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def set_context(**kwargs: Any) -> None:
    """
    Example:
        >>> set_context(profile_id=12, survey_id=4)
    """
    context_filter.set_context(**kwargs)


def clear_context() -> None:
    context_filter.clear_context()


class LogContext:
    """
    Temporarily add evaluation context; the previous context is restored on exit.

    Example:
        >>> with LogContext(profile_id=12):
        ...     logger.info("evaluating")
    """

    def __init__(self, **kwargs: Any):
        self.context: dict[str, Any] = kwargs
        self.previous_context: dict[str, Any] = {}

    def __enter__(self) -> LogContext:
        self.previous_context = context_filter.context.copy()
        context_filter.set_context(**self.context)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        context_filter.context = self.previous_context


def log_operation(
    operation: str, logger: logging.Logger | None = None
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Log start, completion time and failure of an application operation.

    Example:
        >>> @log_operation("evaluate_profile")
        ... def evaluate_profile(session, profile_id, observations):
        ...     pass
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            func_logger = logger or get_logger(func.__module__)

            with LogContext(operation=operation):
                func_logger.info(f"Starting {operation}")
                start = time.perf_counter()
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    func_logger.error(f"Failed {operation}: {str(e)}", exc_info=True)
                    raise
                func_logger.info(
                    f"Completed {operation} in {time.perf_counter() - start:.3f}s"
                )
                return result

        return wrapper

    return decorator


def log_database_operation(operation: str) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Debug-level timing for repository methods; failures are logged at error level.

    Example:
        >>> @log_database_operation("survey.save_state")
        ... def save_state(self, row, survey):
        ...     pass
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            logger = get_logger("database")

            with LogContext(operation=f"db_{operation}"):
                start = time.perf_counter()
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    logger.error(
                        f"Database operation {operation} failed after "
                        f"{time.perf_counter() - start:.3f}s: {str(e)}",
                        exc_info=True,
                    )
                    raise
                logger.debug(
                    f"Database operation {operation} completed in {time.perf_counter() - start:.3f}s"
                )
                return result

        return wrapper

    return decorator


def logging_config_for(environment: str) -> LoggingConfig:
    """
    LoggingConfig for an environment profile; explicit ``LOG_*`` variables win.

    Unknown environments use the development profile.
    """
    env = "test" if environment.lower() in ("test", "testing") else environment.lower()
    profile = _ENVIRONMENT_PROFILES.get(env, _ENVIRONMENT_PROFILES["development"])
    overrides = {k: v for k, v in profile.items() if f"LOG_{k.upper()}" not in os.environ}
    return LoggingConfig(**overrides)


def auto_configure_logging() -> None:
    """Configure logging from the ENVIRONMENT variable (development, test or production)."""
    env = os.getenv("ENVIRONMENT", "development")
    setup_logging(logging_config_for(env))
    get_logger(__name__).info(f"Logging configured for {env} environment")


if not logging.getLogger().handlers:
    auto_configure_logging()
