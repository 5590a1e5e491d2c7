"""Tests for match-run log scoping and the JSON formatter."""

import json
import logging

import structlog

from lead_matcher.middleware.correlation_id import get_match_run_id, match_run_scope
from lead_matcher.services.monitoring import CorrelationJsonFormatter, setup_logging


class TestMatchRunScope:

    def test_run_id_bound_inside_scope(self):
        assert get_match_run_id() == "none"

        with match_run_scope(sale_count=3) as run_id:
            assert get_match_run_id() == run_id
            bound = structlog.contextvars.get_contextvars()
            assert bound["match_run_id"] == run_id
            assert bound["sale_count"] == 3
            assert bound["correlation_id"] == "none"

        assert get_match_run_id() == "none"
        assert "match_run_id" not in structlog.contextvars.get_contextvars()

    def test_each_run_gets_a_new_id(self):
        with match_run_scope() as first:
            pass
        with match_run_scope() as second:
            pass

        assert first != second


class TestSetupLogging:

    def test_repeated_setup_installs_one_handler(self):
        setup_logging("DEBUG")
        handler = setup_logging("WARNING")

        root_logger = logging.getLogger()
        ours = [h for h in root_logger.handlers if isinstance(h.formatter, CorrelationJsonFormatter)]
        assert ours == [handler]
        assert root_logger.level == logging.WARNING

    def test_formatter_adds_run_fields(self):
        formatter = CorrelationJsonFormatter('%(levelname)s %(name)s %(message)s')
        record = logging.LogRecord("lead_matcher", logging.INFO, __file__, 1, "hello", None, None)

        with match_run_scope() as run_id:
            payload = json.loads(formatter.format(record))

        assert payload["message"] == "hello"
        assert payload["match_run_id"] == run_id
        assert payload["correlation_id"] == "none"
        assert payload["service"] == "lead-sales-matcher"
