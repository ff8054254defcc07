from datetime import date

import pytest

from billviz.cache import YieldsCache
from billviz.errors import UpstreamUnavailableError
from billviz.service import YieldsService

ATOM = "http://www.w3.org/2005/Atom"
META = "http://schemas.microsoft.com/ado/2007/08/dataservices/metadata"
DATA = "http://schemas.microsoft.com/ado/2007/08/dataservices"


def entry_xml(date, typed=True, **rates):
    """One feed entry. ``rates`` maps a tenor suffix (e.g. ``4WK``) to its text."""
    date_attr = ' m:type="Edm.DateTime"' if typed else ""
    props = [f"<d:INDEX_DATE{date_attr}>{date}</d:INDEX_DATE>"]
    for suffix, value in rates.items():
        attr = ' m:type="Edm.Double"' if typed else ""
        props.append(f"<d:ROUND_B1_YIELD_{suffix}_2{attr}>{value}</d:ROUND_B1_YIELD_{suffix}_2>")
    return (
        "<entry><title type=\"text\"></title>"
        '<content type="application/xml"><m:properties>'
        + "".join(props)
        + "</m:properties></content></entry>"
    )


def feed_xml(*entries):
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        f'<feed xmlns="{ATOM}" xmlns:m="{META}" xmlns:d="{DATA}">'
        "<title type=\"text\">DailyTreasuryBillRateData</title>"
        + "".join(entries)
        + "</feed>"
    )


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeFeedClient:
    """Serves canned bodies per year and records every call."""

    def __init__(self, bodies=None, error=None):
        self.bodies = dict(bodies or {})
        self.error = error
        self.calls = []

    def fetch(self, year):
        self.calls.append(year)
        if self.error is not None:
            raise self.error
        if year not in self.bodies:
            raise UpstreamUnavailableError("Treasury API unavailable")
        return self.bodies[year]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return YieldsCache(clock=clock)


@pytest.fixture
def january_feed():
    return feed_xml(
        entry_xml("2024-01-05T00:00:00", **{"4WK": "5.28", "13WK": "5.24"}),
        entry_xml("2024-02-01T00:00:00", **{"4WK": "5.27", "13WK": "5.22"}),
        entry_xml("2024-01-02T00:00:00", **{"4WK": "5.29", "13WK": "5.25"}),
        entry_xml("2024-01-09T00:00:00", **{"4WK": "5.30", "13WK": "5.23"}),
    )


@pytest.fixture
def make_service(cache):
    def _make(bodies=None, error=None, today=None):
        client = FakeFeedClient(bodies, error)
        svc = YieldsService(client=client, cache=cache, today=lambda: today or date(2026, 10, 19))
        return svc, client

    return _make
