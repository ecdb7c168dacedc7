"""Service layer: report re-scrub, workflow status, and rate limiting."""

from adas_scrub.services.rate_limit import RateLimitDecision, RateLimiter, RateLimitRule
from adas_scrub.services.rescrub import ReportNotFoundError, ReportRescrubService
from adas_scrub.services.report_status import ReportStatusService

__all__ = [
    "RateLimitDecision",
    "RateLimitRule",
    "RateLimiter",
    "ReportNotFoundError",
    "ReportRescrubService",
    "ReportStatusService",
]
