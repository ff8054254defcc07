from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Optional

# tenor attribute -> upstream property name, shortest maturity first
TENORS = {
    "wk4": "ROUND_B1_YIELD_4WK_2",
    "wk6": "ROUND_B1_YIELD_6WK_2",
    "wk8": "ROUND_B1_YIELD_8WK_2",
    "wk13": "ROUND_B1_YIELD_13WK_2",
    "wk17": "ROUND_B1_YIELD_17WK_2",
    "wk26": "ROUND_B1_YIELD_26WK_2",
    "wk52": "ROUND_B1_YIELD_52WK_2",
}

TENOR_LABELS = {
    "wk4": "4WK",
    "wk6": "6WK",
    "wk8": "8WK",
    "wk13": "13WK",
    "wk17": "17WK",
    "wk26": "26WK",
    "wk52": "52WK",
}


@dataclass(frozen=True)
class YieldRow:
    """One trading day of published bill rates (percent)."""

    date: str  # YYYY-MM-DD
    wk4: Optional[float] = None
    wk6: Optional[float] = None
    wk8: Optional[float] = None
    wk13: Optional[float] = None
    wk17: Optional[float] = None
    wk26: Optional[float] = None
    wk52: Optional[float] = None

    @property
    def month(self) -> int:
        return int(self.date[5:7])

    def tenors(self) -> dict[str, Optional[float]]:
        return {name: getattr(self, name) for name in TENORS}

    def to_dict(self) -> dict:
        out: dict = {"date": self.date}
        for f in fields(self):
            if f.name == "date":
                continue
            value = getattr(self, f.name)
            if value is not None:
                out[f.name] = value
        return out


@dataclass(frozen=True)
class YieldsResult:
    year: int
    month: Optional[int]
    rows: tuple[YieldRow, ...] = ()

    def to_dict(self) -> dict:
        out: dict = {"year": self.year}
        if self.month is not None:
            out["month"] = self.month
        out["rows"] = [r.to_dict() for r in self.rows]
        return out
