"""
Structured logging for the fulfillment core, built on structlog.

Events are key/value pairs; order-scoped fields (order_id, action) are bound
through structlog contextvars so every event emitted while a dispatch runs
carries them.
"""
import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import structlog


def _processors(json_format: bool) -> list[Any]:
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    return processors


def setup_logging(log_level: str = "INFO", json_format: bool = True) -> None:
    """
    Configure structlog over the standard library logging module.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        json_format: JSON lines when True, colored console output otherwise
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )
    structlog.configure(
        processors=_processors(json_format),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def setup_logging_from_settings() -> None:
    """Configure logging from the LOG_LEVEL / LOG_JSON settings."""
    from fulfillment.app.core.settings import get_settings

    settings = get_settings()
    setup_logging(settings.LOG_LEVEL, json_format=settings.LOG_JSON)


@contextmanager
def order_log_context(order_id: str, action: Optional[str] = None) -> Iterator[None]:
    """Bind order_id (and action) to every event logged inside the block."""
    fields = {"order_id": order_id}
    if action is not None:
        fields["action"] = action
    with structlog.contextvars.bound_contextvars(**fields):
        yield


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    """Logger for `name`, usually the caller's __name__."""
    return structlog.get_logger(name)
