"""
Fixed-window rate limiting for form submissions.

The store is injected into the gateway. The in-memory store only protects a
single process; swap in a shared implementation of ``RateLimitStore`` for
multi-instance deployments.
"""
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class RateLimitEntry:
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    reset_at: float


class RateLimitStore(ABC):
    """Abstract rate-limit storage"""

    @abstractmethod
    def hit(self, key: str, limit: int, window_seconds: float) -> RateLimitDecision:
        """Record one attempt for ``key`` and decide whether it is allowed."""

    @abstractmethod
    def reset(self) -> None:
        """Clear all state (for tests)."""


class InMemoryRateLimitStore(RateLimitStore):
    """Thread-safe in-memory store (single-process only, lost on restart)"""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._lock = Lock()
        self._entries: Dict[str, RateLimitEntry] = {}
        self._clock = clock

    def hit(self, key: str, limit: int, window_seconds: float) -> RateLimitDecision:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)

            # Start a new window when there is none or the old one expired
            if entry is None or now > entry.reset_at:
                entry = RateLimitEntry(count=1, reset_at=now + window_seconds)
                self._entries[key] = entry
                return RateLimitDecision(True, limit - 1, entry.reset_at)

            if entry.count >= limit:
                logger.warning(f"Rate limit exceeded for {key} ({entry.count}/{limit})")
                return RateLimitDecision(False, 0, entry.reset_at)

            entry.count += 1
            return RateLimitDecision(True, limit - entry.count, entry.reset_at)

    def get(self, key: str) -> Optional[RateLimitEntry]:
        """Current entry for ``key`` (None when untracked)"""
        with self._lock:
            return self._entries.get(key)

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()
