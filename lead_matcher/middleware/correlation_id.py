"""
Correlation IDs for match runs

HTTP requests get their id from CorrelationIdMiddleware (X-Request-ID header).
A match run binds that id plus a short run id into the structlog context, so
every ingestion, engine and aggregator event of the run carries both.
"""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional
from uuid import uuid4

import structlog
from asgi_correlation_id import CorrelationIdMiddleware
from asgi_correlation_id.context import correlation_id

__all__ = [
    "CorrelationIdMiddleware",
    "get_correlation_id",
    "get_match_run_id",
    "match_run_scope",
]

_match_run_id: ContextVar[Optional[str]] = ContextVar("match_run_id", default=None)


def get_correlation_id() -> str:
    """Request correlation id, or 'none' outside a request."""
    return correlation_id.get() or 'none'


def get_match_run_id() -> str:
    """Id of the match run in progress, or 'none'."""
    return _match_run_id.get() or 'none'


@contextmanager
def match_run_scope(**fields) -> Iterator[str]:
    """
    Bind a fresh run id (and the request correlation id) for one match run.

    Args:
        **fields: Extra key/values bound to every event inside the scope

    Yields:
        The run id

    Example:
        >>> with match_run_scope(sale_count=120) as run_id:
        ...     logger.info("match_started")  # carries match_run_id, correlation_id
    """
    run_id = uuid4().hex[:12]
    token = _match_run_id.set(run_id)
    try:
        with structlog.contextvars.bound_contextvars(
            correlation_id=get_correlation_id(),
            match_run_id=run_id,
            **fields,
        ):
            yield run_id
    finally:
        _match_run_id.reset(token)
