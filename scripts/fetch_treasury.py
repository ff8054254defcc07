import argparse
import sys

from billviz.app_logic import latest_bill_rates, latest_curve_table, result_frame
from billviz.config import Settings, setup_logging
from billviz.errors import InputError, UpstreamUnavailableError
from billviz.plots import plot_yield_history
from billviz.service import YieldsService

p = argparse.ArgumentParser(description="Fetch daily Treasury bill rates")
p.add_argument("--year", default=None, help="calendar year, e.g. 2024 (default: latest published)")
p.add_argument("--month", default=None, help="optional month 1-12")
p.add_argument("--plot", default=None, help="save a history chart to this path")
args = p.parse_args()

setup_logging()
service = YieldsService(settings=Settings.from_env())

try:
    if args.year is None and args.month is None:
        result = latest_bill_rates(service)
    else:
        result = service.get_yields(args.year, args.month)
except InputError as e:
    print(f"error: {e}", file=sys.stderr)
    sys.exit(2)
except UpstreamUnavailableError as e:
    print(f"error: {e}", file=sys.stderr)
    sys.exit(1)

df = result_frame(result)
if df.empty:
    print("No rows published for this period.")
    sys.exit(0)

print(df.to_string())
try:
    _, obs_date, table = latest_curve_table(result)
except ValueError as e:
    print(e)
else:
    print(f"\nLatest ({obs_date}):")
    print(table.to_string(index=False))

if args.plot:
    fig = plot_yield_history(df)
    fig.savefig(args.plot, dpi=144, bbox_inches="tight")
    print(f"Saved: {args.plot}")
