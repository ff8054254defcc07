from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Iterable, Optional

import pandas as pd

from .models import TENORS, YieldRow
from .treasury import FeedRecord, FeedValue, TextNode

logger = logging.getLogger(__name__)

# Treasury bill feeds use INDEX_DATE; older releases carry QUOTE_DATE
DATE_KEYS = ("INDEX_DATE", "QUOTE_DATE")

# a full calendar date, optionally followed by a time part
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}(?:[T ]|$)")


@dataclass(frozen=True)
class NormalizeReport:
    rows: tuple[YieldRow, ...]
    dropped: int = 0


def unwrap(value: FeedValue) -> Optional[str]:
    if isinstance(value, TextNode):
        return value.text
    return value


def parse_rate(value: FeedValue) -> Optional[float]:
    """'4.170%' -> 4.17; anything that is not a finite number -> None."""
    raw = unwrap(value)
    if raw is None:
        return None
    text = str(raw).strip()
    if text.endswith("%"):
        text = text[:-1].strip()
    if not text:
        return None
    n = pd.to_numeric(text, errors="coerce")
    if pd.isna(n) or not math.isfinite(n):
        return None
    return float(n)


def parse_date(value: FeedValue) -> Optional[str]:
    """ISO date (time of day dropped) or None; partial and relative dates are rejected."""
    raw = unwrap(value)
    if raw is None:
        return None
    text = str(raw).strip()
    if not _ISO_DATE.match(text):
        return None
    ts = pd.to_datetime(text, format="ISO8601", errors="coerce")
    if pd.isna(ts):
        return None
    return ts.date().isoformat()


def normalize_entry(record: FeedRecord) -> Optional[YieldRow]:
    raw_date = next((record[k] for k in DATE_KEYS if unwrap(record.get(k)) is not None), None)
    iso = parse_date(raw_date)
    if iso is None:
        return None
    return YieldRow(date=iso, **{name: parse_rate(record.get(prop)) for name, prop in TENORS.items()})


def normalize_entries(records: Iterable[FeedRecord]) -> NormalizeReport:
    """Map feed records to rows sorted by date.

    Entries without a usable date are dropped. When two entries share a date
    the later one in feed order wins and the earlier counts as dropped.
    """
    by_date: dict[str, YieldRow] = {}
    dropped = 0
    for rec in records:
        row = normalize_entry(rec)
        if row is None:
            dropped += 1
            continue
        if row.date in by_date:
            dropped += 1
        by_date[row.date] = row

    rows = tuple(by_date[d] for d in sorted(by_date))
    if dropped:
        logger.info("Dropped %d feed entries without a usable date", dropped)
    return NormalizeReport(rows=rows, dropped=dropped)


def filter_month(rows: Iterable[YieldRow], month: int) -> tuple[YieldRow, ...]:
    return tuple(r for r in rows if r.month == month)
