"""Structured logging with per-run context using structlog and contextvars."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

import structlog

# Context variables for the current pipeline run
current_run_id: ContextVar[str | None] = ContextVar("current_run_id", default=None)
current_pipeline: ContextVar[str | None] = ContextVar("current_pipeline", default=None)

_configured = False


def setup_structured_logging(level: str = "INFO", json_output: bool = True) -> None:
    """Configure structlog with per-run context.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_output: Render JSON lines (server) or human-readable lines (CLI)
    """
    global _configured
    if _configured:
        return

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=False)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
    )

    _configured = True


def bind_run_context(run_id: str, pipeline: str) -> None:
    """Bind run context for all subsequent logs in this async context."""
    current_run_id.set(run_id)
    current_pipeline.set(pipeline)
    structlog.contextvars.bind_contextvars(run_id=run_id, pipeline=pipeline)


def clear_run_context() -> None:
    """Clear run context after the run finishes."""
    current_run_id.set(None)
    current_pipeline.set(None)
    structlog.contextvars.clear_contextvars()


@contextmanager
def run_context(run_id: str, pipeline: str) -> Iterator[structlog.stdlib.BoundLogger]:
    """Bind run context for the duration of a ``with`` block and yield a logger."""
    bind_run_context(run_id, pipeline)
    try:
        yield get_run_logger()
    finally:
        clear_run_context()


def get_run_logger(name: str = "mcp_server_assistant") -> structlog.stdlib.BoundLogger:
    """Get a structlog logger carrying the bound run context."""
    return structlog.get_logger(name)


def get_current_run_id() -> str | None:
    """Get the current run ID from context."""
    return current_run_id.get()


def get_current_pipeline() -> str | None:
    """Get the current pipeline name from context."""
    return current_pipeline.get()
