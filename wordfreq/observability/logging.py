"""
Structured logging for the worker and its tools.

Standard library loggers are rendered through structlog, so modules keep
using ``logging.getLogger(__name__)`` with ``extra=`` fields. Values bound
with :func:`log_context` are attached to every record emitted in the same
asyncio task, which is how worker and job identifiers reach the output.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from opentelemetry import trace

# Chatty third-party loggers held at WARNING.
QUIET_LOGGERS = ("botocore", "boto3", "urllib3", "s3transfer")


def add_trace_context(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Attach the current trace and span ids, if a span is recording."""
    span = trace.get_current_span()
    if span.is_recording():
        ctx = span.get_span_context()
        event_dict["trace_id"] = format(ctx.trace_id, "032x")
        event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict


def _renderer(log_format: str) -> Any:
    if log_format == "console":
        return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    return structlog.processors.JSONRenderer()


def setup_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """
    Route all logging to stdout through structlog.

    Args:
        log_level: Name of the root log level; unknown names mean INFO.
        log_format: "console" for human readable output, anything else
            renders one JSON object per line.
    """
    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        add_trace_context,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ExtraAdder(),
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_format),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_context(**kwargs: Any) -> None:
    """Bind values to every later record of the current task."""
    structlog.contextvars.bind_contextvars(**kwargs)


@contextmanager
def log_context(**kwargs: Any) -> Iterator[None]:
    """Bind values for the duration of the block, restoring previous ones after."""
    with structlog.contextvars.bound_contextvars(**kwargs):
        yield
