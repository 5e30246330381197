"""
Hitch logging - structured logging built on structlog.

Manifesto:
    Lifecycle events (container rebuilt, gateway fallback, relation bound
    to an unknown gateway) must be greppable in production and readable in
    a terminal.  Every module logs through :func:`get_logger` with a
    snake_case event name and key/value fields.

Architecture:
    ::

        configure_logging(level="INFO", json_format=None, service="hitch")
            │
            ▼
        structlog processor chain:
            filter_by_level → add_log_level → add_logger_name →
            TimeStamper → contextvars → service metadata →
            JSONRenderer | ConsoleRenderer
            │
            ▼
        stdlib logging ("hitch" logger tree)

    Because structlog is routed through stdlib logging, the console hook
    (:func:`configure_console_logger`) can attach a stderr handler to the
    ``hitch`` logger without touching structlog's configuration.

Examples:
    >>> from hitch.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> logger = get_logger(__name__)
    >>> logger.info("container_built", gateways=2)

Tags:
    logging, structlog, observability, json-logging, hitch

Doc-Types:
    api-reference
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# "service" field stamped on every event
_SERVICE_NAME = "hitch"

_console_handler: logging.Handler | None = None


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Stamp the service name unless the event already carries one."""
    event_dict.setdefault("service", _SERVICE_NAME)
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "hitch",
    add_timestamp: bool = True,
) -> None:
    """Route structlog through stdlib logging and pick a renderer.

    Args:
        level: Threshold for the root and ``hitch`` loggers
        json_format: JSON lines when true, coloured console output when false;
            ``None`` chooses JSON unless stderr is a terminal
        service: Value of the ``service`` field on every event
        add_timestamp: Prefix events with a UTC ISO timestamp
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if json_format is None:
        json_format = not sys.stderr.isatty()

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _add_service_metadata,
    ]

    if add_timestamp:
        processors.insert(1, structlog.processors.TimeStamper(fmt="iso", utc=True))

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper()),
        force=True,
    )
    logging.getLogger("hitch").setLevel(getattr(logging, level.upper()))


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (usually ``get_logger(__name__)``)."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context to include in all subsequent logs."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove specific keys from logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Clear all bound context."""
    structlog.contextvars.clear_contextvars()


# ── Console ──────────────────────────────────────────────────────────────


def _logs_to_std_stream(logger: logging.Logger) -> bool:
    """True when *logger* (or an ancestor it propagates to) writes to stdout/stderr."""
    current: logging.Logger | None = logger
    while current is not None:
        for handler in current.handlers:
            stream = getattr(handler, "stream", None)
            if stream is not None and stream in (sys.stderr, sys.stdout, sys.__stderr__, sys.__stdout__):
                return True
        if not current.propagate:
            break
        current = current.parent
    return False


def configure_console_logger(other_orm_active: bool = False) -> bool:
    """Echo hitch logs to stderr in an interactive console.

    Skipped when another ORM is active (it wires its own console output)
    or when hitch logs already reach a terminal stream.  Returns ``True``
    when a handler was attached.
    """
    global _console_handler

    hitch_logger = logging.getLogger("hitch")
    if other_orm_active or _logs_to_std_stream(hitch_logger):
        return False

    _console_handler = logging.StreamHandler(sys.stderr)
    _console_handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    hitch_logger.addHandler(_console_handler)
    if hitch_logger.level == logging.NOTSET:
        hitch_logger.setLevel(logging.INFO)
    return True


def remove_console_logger() -> None:
    """Detach the handler added by :func:`configure_console_logger`."""
    global _console_handler
    if _console_handler is not None:
        logging.getLogger("hitch").removeHandler(_console_handler)
        _console_handler = None


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "configure_console_logger",
    "remove_console_logger",
]
