from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

TREASURY_XML = (
    "https://home.treasury.gov/resource-center/data-chart-center/"
    "interest-rates/pages/xml"
)
BILL_RATES_DATASET = "daily_treasury_bill_rates"

# Accepted query range for `year`
MIN_YEAR = 1990
MAX_YEAR = 2100

CURRENT_MONTH_TTL = 60 * 60  # 1 hour
HISTORICAL_TTL = 24 * 60 * 60  # 24 hours


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


@dataclass(frozen=True)
class Settings:
    endpoint: str = TREASURY_XML
    dataset: str = BILL_RATES_DATASET
    timeout: float = 10.0
    max_redirects: int = 3
    user_agent: str = "billviz/0.1 (treasury bill rates)"
    current_month_ttl: float = CURRENT_MONTH_TTL
    historical_ttl: float = HISTORICAL_TTL
    cache_max_entries: int = 1024

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from BILLVIZ_* environment variables (a local .env is honoured)."""
        load_dotenv()
        return cls(
            endpoint=os.getenv("BILLVIZ_ENDPOINT", TREASURY_XML),
            dataset=os.getenv("BILLVIZ_DATASET", BILL_RATES_DATASET),
            timeout=_env_float("BILLVIZ_TIMEOUT", 10.0),
            max_redirects=_env_int("BILLVIZ_MAX_REDIRECTS", 3),
            user_agent=os.getenv("BILLVIZ_USER_AGENT", cls.user_agent),
            current_month_ttl=_env_float("BILLVIZ_CURRENT_MONTH_TTL", CURRENT_MONTH_TTL),
            historical_ttl=_env_float("BILLVIZ_HISTORICAL_TTL", HISTORICAL_TTL),
            cache_max_entries=_env_int("BILLVIZ_CACHE_MAX_ENTRIES", 1024),
        )


def setup_logging(level: Optional[str] = None) -> None:
    level = level or os.getenv("BILLVIZ_LOG_LEVEL", "WARNING")
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
