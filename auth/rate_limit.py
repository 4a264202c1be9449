"""
auth/rate_limit.py -- Sliding-window attempt limiter with temporary blocks.

Each (identifier, endpoint) key moves through an explicit state machine:

    CLEAN --failure--> ACCUMULATING --count >= max_attempts--> BLOCKED
      ^                     |                                     |
      +--- success / window expiry observed ---+---- success / block expiry observed

CLEAN is represented by the absence of a record. Only record_failure() and
record_success() change counts; check() may delete a record whose window or
block has lapsed, but never counts as an attempt itself.

A record lapses when its block has ended or when its counting window has
ended, whichever comes first. A lapsed record is treated as CLEAN.

Concurrency: one lock guards the record map. Every public method holds it for
a handful of dict operations only, so it never serializes slow work.

Layer rule: no imports from api/. Limits arrive through the constructor.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections.abc import Callable

from auth.models import AttemptRecord, AttemptState, RateLimitStatus

logger = logging.getLogger("authgate.ratelimit")

DEFAULT_ENDPOINT = "auth"


class RateLimiter:
    """Per-key failure counter with sliding windows and temporary blocks.

    Usage:
        limiter = RateLimiter(max_attempts=5, window_seconds=900, block_seconds=1800)
        if limiter.check(ip, "login").allowed:
            ...
            limiter.record_failure(ip, "login")   # or record_success(ip, "login")
    """

    def __init__(
        self,
        max_attempts: int,
        window_seconds: float,
        block_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_attempts <= 0 or window_seconds <= 0 or block_seconds <= 0:
            raise ValueError("rate limit parameters must be positive")
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.block_seconds = block_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._records: dict[tuple[str, str], AttemptRecord] = {}

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def record_failure(self, identifier: str, endpoint: str = DEFAULT_ENDPOINT) -> RateLimitStatus:
        """Count one failed attempt and return the resulting status."""
        key = (identifier, endpoint)
        now = self._clock()
        with self._lock:
            record = self._records.get(key)
            if record is None or self._is_expired(record, now):
                record = AttemptRecord(state=AttemptState.ACCUMULATING, count=0, window_start=now)
                self._records[key] = record

            record.count = min(record.count + 1, self.max_attempts)
            if record.count >= self.max_attempts:
                if record.state is not AttemptState.BLOCKED:
                    logger.warning(
                        "Blocking %s on %s for %ss after %d failed attempts",
                        identifier,
                        endpoint,
                        self.block_seconds,
                        record.count,
                    )
                record.state = AttemptState.BLOCKED
                record.blocked_until = now + self.block_seconds
            return self._status(record, now)

    def record_success(self, identifier: str, endpoint: str = DEFAULT_ENDPOINT) -> None:
        """Forget every prior failure for the key, whatever its state."""
        with self._lock:
            self._records.pop((identifier, endpoint), None)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def check(self, identifier: str, endpoint: str = DEFAULT_ENDPOINT) -> RateLimitStatus:
        """Report whether the key may attempt now. Clears lapsed records."""
        key = (identifier, endpoint)
        now = self._clock()
        with self._lock:
            record = self._records.get(key)
            if record is None:
                return self._full_quota()
            if self._is_expired(record, now):
                del self._records[key]
                return self._full_quota()
            return self._status(record, now)

    def state(self, identifier: str, endpoint: str = DEFAULT_ENDPOINT) -> AttemptState:
        """Current state of the key as last recorded (lapse is not applied)."""
        with self._lock:
            record = self._records.get((identifier, endpoint))
            return record.state if record is not None else AttemptState.CLEAN

    def purge_expired(self) -> int:
        """Drop every lapsed record. Returns the number removed."""
        now = self._clock()
        with self._lock:
            stale = [key for key, record in self._records.items() if self._is_expired(record, now)]
            for key in stale:
                del self._records[key]
        if stale:
            logger.debug("Purged %d expired rate-limit records", len(stale))
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    # ------------------------------------------------------------------
    # Helpers (caller holds the lock)
    # ------------------------------------------------------------------

    def _is_expired(self, record: AttemptRecord, now: float) -> bool:
        if now - record.window_start > self.window_seconds:
            return True
        blocked_until = record.blocked_until
        return record.state is AttemptState.BLOCKED and blocked_until is not None and now > blocked_until

    def _full_quota(self) -> RateLimitStatus:
        return RateLimitStatus(allowed=True, remaining=self.max_attempts, limit=self.max_attempts)

    def _status(self, record: AttemptRecord, now: float) -> RateLimitStatus:
        blocked = record.state is AttemptState.BLOCKED
        remaining = max(0, self.max_attempts - record.count)
        allowed = not blocked and remaining > 0
        reset_time = record.window_start + self.window_seconds
        retry_after = 0
        if not allowed:
            until = reset_time if record.blocked_until is None else min(record.blocked_until, reset_time)
            retry_after = max(1, math.ceil(until - now))
        return RateLimitStatus(
            allowed=allowed,
            remaining=remaining,
            limit=self.max_attempts,
            blocked=blocked,
            blocked_until=record.blocked_until,
            reset_time=reset_time,
            retry_after=retry_after,
        )
