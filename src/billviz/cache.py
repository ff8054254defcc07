from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import date as Date
from typing import Callable, Optional

from .config import CURRENT_MONTH_TTL, HISTORICAL_TTL
from .models import YieldsResult

logger = logging.getLogger(__name__)


def cache_key(year: int, month: Optional[int] = None) -> str:
    return f"treasury:yields:{year}:{month if month else 'all'}"


def is_current_month(year: int, month: Optional[int], today: Date) -> bool:
    # A whole-year query is never "current month", even for this year
    return month is not None and year == today.year and month == today.month


def ttl_for(
    year: int,
    month: Optional[int],
    today: Date,
    *,
    current_month_ttl: float = CURRENT_MONTH_TTL,
    historical_ttl: float = HISTORICAL_TTL,
) -> float:
    """Seconds a result may be cached: short for the month still being published, long otherwise."""
    return current_month_ttl if is_current_month(year, month, today) else historical_ttl


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: YieldsResult
    expires_at: float

    def expired(self, now: float) -> bool:
        return now >= self.expires_at


class YieldsCache:
    """In-memory TTL cache of query results.

    Entries are replaced whole and never mutated. The size bound only matters
    once every realistic (year, month) key is present; when it is hit, expired
    entries go first, then the one closest to expiry.
    """

    def __init__(self, max_entries: int = 1024, clock: Callable[[], float] = time.monotonic):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def lookup(self, key: str) -> Optional[YieldsResult]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.expired(self._clock()):
                return None
            return entry.value

    def store(self, key: str, result: YieldsResult, ttl: float) -> CacheEntry:
        with self._lock:
            now = self._clock()
            entry = CacheEntry(key=key, value=result, expires_at=now + ttl)
            if key not in self._entries and len(self._entries) >= self.max_entries:
                self._make_room(now)
            self._entries[key] = entry
        logger.debug("cached %s for %.0fs", key, ttl)
        return entry

    def entry(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(key)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _make_room(self, now: float) -> None:
        expired = [k for k, e in self._entries.items() if e.expired(now)]
        for k in expired:
            del self._entries[k]
        if len(self._entries) >= self.max_entries:
            victim = min(self._entries.values(), key=lambda e: e.expires_at)
            del self._entries[victim.key]
            logger.debug("evicted %s to stay under %d entries", victim.key, self.max_entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.lookup(key) is not None
