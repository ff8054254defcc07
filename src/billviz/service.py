from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from datetime import date as Date
from typing import Callable, Optional, Protocol

from .cache import YieldsCache, cache_key, ttl_for
from .config import MAX_YEAR, MIN_YEAR, Settings
from .errors import InputError, UpstreamUnavailableError
from .models import YieldsResult
from .normalize import filter_month, normalize_entries
from .treasury import FeedClient, parse_feed

logger = logging.getLogger(__name__)


class FeedSource(Protocol):
    def fetch(self, year: int) -> str: ...


@dataclass
class ServiceStats:
    cache_hits: int = 0
    cache_misses: int = 0
    upstream_fetches: int = 0
    upstream_failures: int = 0
    dropped_rows: int = 0


def _as_int(value, name: str) -> int:
    if isinstance(value, bool):
        raise InputError(f"{name} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise InputError(f"{name} must be an integer, got {value!r}")


def validate_query(year, month=None) -> tuple[int, Optional[int]]:
    """Check and coerce a (year, month) query. Query-string digits are accepted."""
    if year is None or year == "":
        raise InputError("Query must include a valid year.")
    y = _as_int(year, "year")
    if not MIN_YEAR <= y <= MAX_YEAR:
        raise InputError(f"year must be between {MIN_YEAR} and {MAX_YEAR}, got {y}")

    if month is None or month == "":
        return y, None
    m = _as_int(month, "month")
    if not 1 <= m <= 12:
        raise InputError(f"month must be between 1 and 12, got {m}")
    return y, m


class YieldsService:
    """Answers "bill rates for year [and month]" from cache or the Treasury feed.

    Concurrent misses on the same key wait on a per-key lock and re-check the
    cache, so one upstream call serves all of them.
    """

    def __init__(
        self,
        client: Optional[FeedSource] = None,
        cache: Optional[YieldsCache] = None,
        settings: Optional[Settings] = None,
        today: Callable[[], Date] = Date.today,
    ):
        self.settings = settings if settings is not None else Settings()
        self.client = client if client is not None else FeedClient(self.settings)
        # YieldsCache defines __len__, so an empty injected cache is falsy
        if cache is None:
            cache = YieldsCache(max_entries=self.settings.cache_max_entries)
        self.cache = cache
        self._today = today
        self._stats = ServiceStats()
        self._stats_lock = threading.Lock()
        self._key_locks: dict[str, threading.Lock] = {}
        self._key_locks_guard = threading.Lock()

    @property
    def stats(self) -> ServiceStats:
        with self._stats_lock:
            return replace(self._stats)

    def _count(self, **deltas: int) -> None:
        with self._stats_lock:
            for name, n in deltas.items():
                setattr(self._stats, name, getattr(self._stats, name) + n)

    def _key_lock(self, key: str) -> threading.Lock:
        with self._key_locks_guard:
            return self._key_locks.setdefault(key, threading.Lock())

    def get_yields(self, year, month=None) -> YieldsResult:
        year, month = validate_query(year, month)
        key = cache_key(year, month)

        cached = self.cache.lookup(key)
        if cached is not None:
            self._count(cache_hits=1)
            logger.debug("cache hit %s", key)
            return cached

        with self._key_lock(key):
            # another caller may have filled it while we waited
            cached = self.cache.lookup(key)
            if cached is not None:
                self._count(cache_hits=1)
                return cached

            self._count(cache_misses=1)
            logger.debug("cache miss %s", key)
            result = self._load(year, month)
            ttl = ttl_for(
                year,
                month,
                self._today(),
                current_month_ttl=self.settings.current_month_ttl,
                historical_ttl=self.settings.historical_ttl,
            )
            self.cache.store(key, result, ttl)
        return result

    def _load(self, year: int, month: Optional[int]) -> YieldsResult:
        self._count(upstream_fetches=1)
        logger.info("Fetching Treasury bill rates for %s", year)
        try:
            records = parse_feed(self.client.fetch(year))
        except UpstreamUnavailableError:
            self._count(upstream_failures=1)
            raise

        report = normalize_entries(records)
        if report.dropped:
            self._count(dropped_rows=report.dropped)

        rows = report.rows if month is None else filter_month(report.rows, month)
        return YieldsResult(year=year, month=month, rows=rows)
