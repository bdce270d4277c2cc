"""
Structured Logging - structlog rendering for every economy log record.

Records from plain ``logging.getLogger(__name__)`` loggers and from
structlog loggers go through one processor chain, so both carry:
- the service name
- actor/action context bound with LogContext
- ISO timestamps and the log level

Output is one JSON object per line, or a plain console line for local runs.
"""
import logging
import sys
from typing import Any, Iterable, List, Optional, TextIO

import structlog
from structlog.contextvars import bound_contextvars

# Library loggers kept at WARNING regardless of the service level.
QUIET_LOGGERS = ("asyncio", "urllib3")


def _stamp_service(service_name: str):
    def processor(logger, method_name, event_dict):
        event_dict.setdefault("service", service_name)
        return event_dict
    return processor


def _processor_chain(service_name: str) -> List[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _stamp_service(service_name),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def configure_logging(
    service_name: str,
    log_level: str = "INFO",
    json_output: bool = True,
    stream: Optional[TextIO] = None,
    quiet_loggers: Iterable[str] = QUIET_LOGGERS,
) -> None:
    """
    Route all logging for ``service_name`` through structlog.

    Replaces the root logger's handlers with a single stream handler
    (stdout unless ``stream`` is given). Unknown level names fall back
    to INFO.
    """
    chain = _processor_chain(service_name)
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=chain + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=chain)
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)


class LogContext:
    """
    Scoped context fields, restored on exit (nesting-safe).

    Usage:
        with LogContext(actor_id="steve", action="claim"):
            logger.info("Quote issued")
    """

    def __init__(self, **fields):
        self.fields = fields
        self._scope = None

    def __enter__(self):
        self._scope = bound_contextvars(**self.fields)
        self._scope.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        scope, self._scope = self._scope, None
        if scope is not None:
            scope.__exit__(exc_type, exc_val, exc_tb)
        return False
