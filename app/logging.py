"""Centralised structlog configuration shared by the API and the AI bridge."""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator

import structlog
from structlog import stdlib
from structlog.contextvars import bound_contextvars, clear_contextvars


_LOGGING_CONFIGURED = False


def configure_logging(level: int = logging.INFO) -> None:
    """Initialise structlog with a JSON formatter and contextvars support."""

    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.add_log_level,
            structlog.stdlib.filter_by_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=stdlib.BoundLogger,
        logger_factory=stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _LOGGING_CONFIGURED = True


def get_logger(name: str | None = None):
    """Return a structlog logger ensuring the configuration is ready."""

    configure_logging()
    return structlog.get_logger(name)


@contextmanager
def invocation_context(**values: Any) -> Iterator[None]:
    """Bind context variables for the duration of one capability call.

    Context variables are task-local under asyncio, so concurrent invocations
    never see each other's bindings. Values bound before entering are restored
    on exit.
    """

    configure_logging()
    with bound_contextvars(**values):
        yield


def reset_context() -> None:
    """Remove all bound context variables."""

    configure_logging()
    clear_contextvars()


__all__ = ["configure_logging", "get_logger", "invocation_context", "reset_context"]
