import matplotlib.pyplot as plt
import pandas as pd

from .models import TENOR_LABELS


def plot_bill_curve(latest_row: pd.Series):
    tenors = []
    yields = []
    for label in TENOR_LABELS.values():
        if label in latest_row.index and pd.notna(latest_row[label]):
            tenors.append(label)
            yields.append(latest_row[label])
    fig, ax = plt.subplots()
    ax.plot(tenors, yields, marker="o")
    ax.set_title(f"Treasury Bill Rates — {pd.to_datetime(latest_row.name).date()}")
    ax.set_xlabel("Maturity")
    ax.set_ylabel("Yield (%)")
    ax.grid(True, which="both", linestyle="--", alpha=0.4)
    return fig


def plot_yield_history(frame: pd.DataFrame, tenors=None):
    cols = [c for c in (tenors or TENOR_LABELS.values()) if c in frame.columns]
    fig, ax = plt.subplots()
    for col in cols:
        series = frame[col].dropna()
        if not series.empty:
            ax.plot(series.index, series.values, label=col)
    ax.set_title("Treasury Bill Rates by Tenor")
    ax.set_xlabel("Date")
    ax.set_ylabel("Yield (%)")
    ax.grid(True, linestyle="--", alpha=0.4)
    if ax.get_lines():
        ax.legend(loc="best")
    fig.autofmt_xdate()
    return fig
