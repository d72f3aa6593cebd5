"""
Structured logging configuration for Labcoat.

Library modules only emit events; call :func:`setup_logging` from the
embedding application to choose where they go. While an experiment runs,
its name is bound as ``experiment`` on every event, including events
logged from the worker threads that run synchronous behaviors.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator

import structlog
from structlog.types import Processor

from labcoat.core.config import get_settings

EXPERIMENT_KEY = "experiment"


def setup_logging(
    level: str | None = None,
    json_format: bool | None = None,
) -> None:
    """
    Configure structured logging for experiment events.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Defaults to the ``log_level`` setting.
        json_format: Use JSON output. Defaults to ``log_format == "json"``.
    """
    settings = get_settings()
    level = (level or settings.log_level).upper()
    if json_format is None:
        json_format = settings.log_format == "json"

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_format:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


@contextmanager
def experiment_context(name: str, **context: Any) -> Iterator[None]:
    """
    Bind an experiment name (and any extra keys) to events logged inside.

    Bindings live in context variables, so they follow the run into
    coroutines and into executor threads started with a copied context.
    They are removed again on exit.
    """
    with structlog.contextvars.bound_contextvars(**{EXPERIMENT_KEY: name}, **context):
        yield


def current_experiment() -> str | None:
    """Name of the experiment bound by the innermost experiment_context."""
    return structlog.contextvars.get_contextvars().get(EXPERIMENT_KEY)


def get_logger(name: str | None = None, **context: Any) -> structlog.BoundLogger:
    """
    Get a logger instance.

    Args:
        name: Optional logger name
        **context: Key/value pairs bound to every event
    """
    logger = structlog.get_logger(name)
    if context:
        logger = logger.bind(**context)
    return logger
