from __future__ import annotations

import pandas as pd
from datetime import date as Date
from typing import Optional

from .models import TENOR_LABELS, YieldsResult
from .service import YieldsService


def result_frame(result: YieldsResult) -> pd.DataFrame:
    """
    One row per trading day, indexed by DATE, one column per tenor label
    ("4WK" ... "52WK"). Absent rates become NaN.
    """
    cols = list(TENOR_LABELS.values())
    if not result.rows:
        return pd.DataFrame(columns=cols, index=pd.DatetimeIndex([], name="DATE"), dtype=float)

    records = [
        {TENOR_LABELS[name]: value for name, value in row.tenors().items()}
        for row in result.rows
    ]
    df = pd.DataFrame.from_records(records, columns=cols).astype(float)
    df.index = pd.DatetimeIndex(pd.to_datetime([r.date for r in result.rows]), name="DATE")
    return df


def latest_curve_table(result: YieldsResult) -> tuple[pd.Series, Date, pd.DataFrame]:
    """
    Pick the most recent day that has at least one published rate.

    Returns a tuple of:
      - that day's rates as a Series (tenor label -> percent)
      - the date of the observation
      - a DataFrame with columns ["Maturity", "Yield (%)"], absent tenors left out
    """
    df = result_frame(result).dropna(how="all")
    if df.empty:
        raise ValueError(f"No published bill rates for {result.year}")

    latest = df.iloc[-1]
    obs_date = latest.name.date()
    present = latest.dropna()
    table = pd.DataFrame(
        {
            "Maturity": list(present.index),
            "Yield (%)": list(present.values),
        }
    )
    return latest, obs_date, table


def latest_bill_rates(service: YieldsService, today: Optional[Date] = None) -> YieldsResult:
    """This year's rates, or last year's when nothing has been published yet."""
    year = (today or Date.today()).year
    result = service.get_yields(year)
    if not result.rows:
        result = service.get_yields(year - 1)
    return result
