"""
JSON logging for stdlib loggers

structlog renders its own events as JSON (configured in main). Everything
that still goes through the stdlib logging module (uvicorn, fastapi,
third-party libraries) is formatted here so the whole process emits one
JSON shape, tagged with the request correlation id and the match run id.
"""

import logging
import sys

from pythonjsonlogger import jsonlogger

from lead_matcher.config import settings
from lead_matcher.middleware.correlation_id import get_correlation_id, get_match_run_id

SERVICE_NAME = "lead-sales-matcher"

# Libraries whose INFO chatter drowns out match-run events
QUIET_LOGGERS = ("uvicorn.access", "httpx")


class CorrelationJsonFormatter(jsonlogger.JsonFormatter):
    """Adds correlation_id, match_run_id, service and environment to every record."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        log_record['correlation_id'] = get_correlation_id()
        log_record['match_run_id'] = get_match_run_id()
        log_record['service'] = SERVICE_NAME
        log_record['environment'] = settings.environment


def setup_logging(level: str = "INFO") -> logging.Handler:
    """
    Route the root logger to stdout as JSON.

    Safe to call more than once: a handler installed by an earlier call is
    replaced, not duplicated.

    Args:
        level: Root log level name (unknown names fall back to INFO)

    Returns:
        logging.Handler: The installed handler
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CorrelationJsonFormatter(
        '%(timestamp)s %(level)s %(name)s %(message)s',
        rename_fields={
            'timestamp': 'asctime',
            'level': 'levelname'
        }
    ))

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if isinstance(existing.formatter, CorrelationJsonFormatter):
            root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return handler
