"""Structured logging for the booking client.

Every event is a key/value record rendered as one JSON line on stderr.
A per-flow ``trace_id`` (one day lookup, one booking) is bound through
``structlog.contextvars`` so the lines of a fallback chain can be grouped.
"""
import logging
import sys
import uuid
from typing import Optional

import structlog

TRACE_KEY = "trace_id"

SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]


def setup_structured_logging(log_level: str = "INFO", json_logs: bool = True):
    """
    Route structlog through the standard library at ``log_level``.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR
        json_logs: JSON lines (default) or structlog's console renderer
    """
    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=SHARED_PROCESSORS + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # stdout belongs to the terminal client
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level.upper()),
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def generate_trace_id() -> str:
    """``flow-`` followed by 12 hex characters."""
    return f"flow-{uuid.uuid4().hex[:12]}"


def bind_trace_id(trace_id: Optional[str] = None) -> str:
    trace_id = trace_id or generate_trace_id()
    structlog.contextvars.bind_contextvars(**{TRACE_KEY: trace_id})
    return trace_id


def clear_trace_id():
    structlog.contextvars.unbind_contextvars(TRACE_KEY)
