"""Tests for the feed client and feed parser."""

import pytest
import requests

from billviz.config import Settings
from billviz.errors import FeedParseError, UpstreamUnavailableError
from billviz.treasury import FeedClient, TextNode, parse_feed

from conftest import entry_xml, feed_xml


class FakeResponse:
    def __init__(self, status_code=200, text=""):
        self.status_code = status_code
        self.text = text

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.max_redirects = 30
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


class TestParseFeed:
    def test_strips_namespaces(self):
        records = parse_feed(feed_xml(entry_xml("2024-01-02T00:00:00", **{"4WK": "5.29"})))
        assert len(records) == 1
        rec = records[0]
        assert "INDEX_DATE" in rec
        assert "ROUND_B1_YIELD_4WK_2" in rec

    def test_attributed_elements_become_text_nodes(self):
        rec = parse_feed(feed_xml(entry_xml("2024-01-02T00:00:00", **{"4WK": "4.170%"})))[0]
        node = rec["ROUND_B1_YIELD_4WK_2"]
        assert isinstance(node, TextNode)
        assert node.text == "4.170%"
        assert node.attributes == {"type": "Edm.Double"}

    def test_bare_elements_stay_scalar(self):
        rec = parse_feed(feed_xml(entry_xml("2024-01-02", typed=False, **{"13WK": "5.25"})))[0]
        assert rec["INDEX_DATE"] == "2024-01-02"
        assert rec["ROUND_B1_YIELD_13WK_2"] == "5.25"

    def test_singleton_feed_is_still_a_list(self):
        records = parse_feed(feed_xml(entry_xml("2024-01-02T00:00:00")))
        assert isinstance(records, list)
        assert len(records) == 1

    def test_empty_feed_is_empty_list(self):
        assert parse_feed(feed_xml()) == []

    def test_unprefixed_feed(self):
        xml = (
            "<feed><entry><content><properties>"
            "<INDEX_DATE>2024-03-01</INDEX_DATE>"
            "<ROUND_B1_YIELD_26WK_2>5.10</ROUND_B1_YIELD_26WK_2>"
            "</properties></content></entry></feed>"
        )
        assert parse_feed(xml) == [{"INDEX_DATE": "2024-03-01", "ROUND_B1_YIELD_26WK_2": "5.10"}]

    def test_falls_back_to_entry_descendants(self):
        xml = "<feed><entry><QUOTE_DATE>2024-03-01</QUOTE_DATE></entry></feed>"
        assert parse_feed(xml) == [{"QUOTE_DATE": "2024-03-01"}]

    def test_empty_elements_are_skipped(self):
        xml = (
            "<feed><entry><content><properties>"
            "<INDEX_DATE>2024-03-01</INDEX_DATE><ROUND_B1_YIELD_6WK_2></ROUND_B1_YIELD_6WK_2>"
            "</properties></content></entry></feed>"
        )
        assert parse_feed(xml) == [{"INDEX_DATE": "2024-03-01"}]

    def test_undeclared_prefixes(self):
        xml = (
            "<feed><entry><content><m:properties>"
            "<ns:INDEX_DATE>2024-01-02</ns:INDEX_DATE>"
            '<d:ROUND_B1_YIELD_4WK_2 m:type="Edm.Double">5.29</d:ROUND_B1_YIELD_4WK_2>'
            "</m:properties></content></entry></feed>"
        )
        records = parse_feed(xml)
        assert records == [
            {
                "INDEX_DATE": "2024-01-02",
                "ROUND_B1_YIELD_4WK_2": TextNode("5.29", {"type": "Edm.Double"}),
            }
        ]

    def test_undeclared_prefix_in_broken_feed_still_fails(self):
        with pytest.raises(FeedParseError):
            parse_feed("<feed><ns:entry></feed>")

    def test_accepts_bytes(self):
        body = feed_xml(entry_xml("2024-01-02T00:00:00")).encode("utf-8")
        assert len(parse_feed(body)) == 1

    @pytest.mark.parametrize("body", ["<feed><entry>", "not xml at all", ""])
    def test_malformed_raises(self, body):
        with pytest.raises(FeedParseError):
            parse_feed(body)

    def test_parse_error_is_upstream_unavailable(self):
        with pytest.raises(UpstreamUnavailableError):
            parse_feed("<feed>")


class TestFeedClient:
    def test_fetch_returns_body_and_sends_query(self):
        session = FakeSession(FakeResponse(200, "<feed/>"))
        client = FeedClient(Settings(timeout=5.0, max_redirects=2), session=session)

        assert client.fetch(2024) == "<feed/>"

        url, kwargs = session.calls[0]
        assert url.endswith("/interest-rates/pages/xml")
        assert kwargs["params"] == {"data": "daily_treasury_bill_rates", "field_tdr_date_value": "2024"}
        assert kwargs["timeout"] == 5.0
        assert "xml" in kwargs["headers"]["Accept"]
        assert session.max_redirects == 30

    def test_own_session_gets_redirect_limit(self):
        client = FeedClient(Settings(max_redirects=2))
        assert isinstance(client.session, requests.Session)
        assert client.session.max_redirects == 2

    @pytest.mark.parametrize(
        "error",
        [
            requests.ConnectionError("refused"),
            requests.Timeout("slow"),
            requests.TooManyRedirects("loop"),
        ],
    )
    def test_transport_errors_become_upstream_unavailable(self, error):
        client = FeedClient(session=FakeSession(error=error))
        with pytest.raises(UpstreamUnavailableError) as exc_info:
            client.fetch(2024)
        assert exc_info.value.__cause__ is error

    @pytest.mark.parametrize("status", [404, 500, 503])
    def test_error_status(self, status):
        client = FeedClient(session=FakeSession(FakeResponse(status)))
        with pytest.raises(UpstreamUnavailableError):
            client.fetch(2024)

    def test_non_2xx_success_status(self):
        client = FeedClient(session=FakeSession(FakeResponse(304)))
        with pytest.raises(UpstreamUnavailableError):
            client.fetch(2024)

    def test_single_attempt(self):
        session = FakeSession(error=requests.ConnectionError("refused"))
        client = FeedClient(session=session)
        with pytest.raises(UpstreamUnavailableError):
            client.fetch(2024)
        assert len(session.calls) == 1
