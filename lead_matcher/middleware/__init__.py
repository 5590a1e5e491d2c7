"""
Middleware Module
Request correlation and match-run log scoping
"""

from lead_matcher.middleware.correlation_id import (
    CorrelationIdMiddleware,
    get_correlation_id,
    get_match_run_id,
    match_run_scope,
)

__all__ = ["CorrelationIdMiddleware", "get_correlation_id", "get_match_run_id", "match_run_scope"]
