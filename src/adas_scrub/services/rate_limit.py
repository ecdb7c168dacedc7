"""Fixed-window rate limiting for callers of the scrub services.

One limiter instance is constructed per process and passed to whatever
handles requests; it holds no module-level state. Buckets are keyed by
``"{rule id}:{caller}"`` and reset when their window expires.
"""

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitRule:
    """A named limit: at most ``limit`` calls per ``window_seconds``."""

    id: str
    limit: int
    window_seconds: float


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of one rate-limit check."""

    limited: bool
    remaining: int
    reset_at: float
    retry_after_seconds: Optional[int] = None


@dataclass
class _Bucket:
    count: int
    reset_at: float


# Defaults for the report endpoints
REPORT_DETAIL = RateLimitRule(id="report-detail", limit=120, window_seconds=60)
REPORT_RESCRUB = RateLimitRule(id="report-rescrub", limit=80, window_seconds=60)


class RateLimiter:
    """Fixed-window counter per (rule, caller).

    Args:
        clock: Monotonic time source in seconds; injectable for tests.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._buckets: Dict[str, _Bucket] = {}
        self._lock = threading.Lock()

    def _clean_expired(self, now: float) -> None:
        expired = [key for key, bucket in self._buckets.items() if bucket.reset_at <= now]
        for key in expired:
            del self._buckets[key]

    def check(self, rule: RateLimitRule, caller: str) -> RateLimitDecision:
        """Count one call and decide whether it is allowed.

        Args:
            rule: The limit to apply.
            caller: Caller identity (client IP, user id); blank means "unknown".

        Returns:
            RateLimitDecision; when limited, ``retry_after_seconds`` is at least 1.
        """
        key = f"{rule.id}:{caller or 'unknown'}"

        with self._lock:
            now = self._clock()
            self._clean_expired(now)

            bucket = self._buckets.get(key)
            if bucket is None:
                bucket = _Bucket(count=1, reset_at=now + rule.window_seconds)
                self._buckets[key] = bucket
                return RateLimitDecision(
                    limited=False, remaining=rule.limit - 1, reset_at=bucket.reset_at
                )

            bucket.count += 1
            if bucket.count > rule.limit:
                retry_after = max(1, math.ceil(bucket.reset_at - now))
                logger.warning(f"Rate limit '{rule.id}' exceeded by {caller or 'unknown'}")
                return RateLimitDecision(
                    limited=True,
                    remaining=0,
                    reset_at=bucket.reset_at,
                    retry_after_seconds=retry_after,
                )

            return RateLimitDecision(
                limited=False,
                remaining=max(0, rule.limit - bucket.count),
                reset_at=bucket.reset_at,
            )
