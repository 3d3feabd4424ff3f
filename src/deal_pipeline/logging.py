"""
Structured logging configuration for the Deal Pipeline engine.

Uses structlog for structured, context-aware logging with:
- JSON output for production
- Pretty console output for development
- Stage timing for report generation
- Trace ID and deal ID propagation via context variables
"""

import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Generator

import structlog
from structlog.types import Processor

from .config import config

_trace_id: ContextVar[str | None] = ContextVar('trace_id', default=None)
_deal_id: ContextVar[int | None] = ContextVar('deal_id', default=None)


def get_trace_id() -> str | None:
    """Get the current trace ID from context."""
    return _trace_id.get()


def get_deal_id() -> int | None:
    """Get the current deal ID from context."""
    return _deal_id.get()


def add_context_info(
    logger: structlog.types.WrappedLogger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Processor that adds context variables to log entries."""
    trace_id = get_trace_id()
    deal_id = get_deal_id()

    if trace_id:
        event_dict['trace_id'] = trace_id
    if deal_id is not None:
        event_dict.setdefault('deal_id', deal_id)

    return event_dict


def configure_logging(
    json_output: bool | None = None,
    log_level: str | None = None,
) -> None:
    """
    Configure structlog for the application.

    Args:
        json_output: If True, output JSON logs. Defaults to config.LOG_JSON.
        log_level: Override log level (defaults to config.LOG_LEVEL)
    """
    if json_output is None:
        json_output = config.LOG_JSON
    level = log_level or config.LOG_LEVEL
    level_num = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        format='%(message)s',
        stream=sys.stdout,
        level=level_num,
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_context_info,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt='iso'),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


@contextmanager
def logging_context(
    trace_id: str | None = None,
    deal_id: int | None = None,
) -> Generator[None, None, None]:
    """
    Context manager for setting logging context variables.

    Usage:
        with logging_context(trace_id="abc123", deal_id=7):
            logger.info("deal_updated")  # Includes trace_id and deal_id
    """
    trace_token = _trace_id.set(trace_id) if trace_id is not None else None
    deal_token = _deal_id.set(deal_id) if deal_id is not None else None
    try:
        yield
    finally:
        if deal_token is not None:
            _deal_id.reset(deal_token)
        if trace_token is not None:
            _trace_id.reset(trace_token)


class PipelineTimer:
    """
    Timer for tracking report stage durations.

    Usage:
        timer = PipelineTimer()
        with timer.stage("snapshot"):
            deals = await store.list()
        with timer.stage("funnel"):
            funnel = compute_funnel(deals)
        logger.info("report_built", **timer.summary())
    """

    def __init__(self):
        self.stages: dict[str, float] = {}
        self.start_time: float = time.perf_counter()

    @contextmanager
    def stage(self, name: str) -> Generator[None, None, None]:
        """Time a named stage."""
        started = time.perf_counter()
        try:
            yield
        finally:
            self.stages[name] = (time.perf_counter() - started) * 1000

    def record(self, name: str, duration_ms: float) -> None:
        """Manually record a stage duration."""
        self.stages[name] = duration_ms

    @property
    def total_ms(self) -> float:
        """Total elapsed time since timer creation in milliseconds."""
        return (time.perf_counter() - self.start_time) * 1000

    def summary(self) -> dict[str, Any]:
        """Get timing summary as a dictionary."""
        return {
            'total_ms': round(self.total_ms, 2),
            'stages': {k: round(v, 2) for k, v in self.stages.items()},
        }


# Development mode by default; call configure_logging(json_output=True) in production
configure_logging()
