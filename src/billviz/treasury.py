from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Optional, Union

import requests

from .config import Settings
from .errors import FeedParseError, UpstreamUnavailableError

logger = logging.getLogger(__name__)

# Elements that may repeat under the feed root; always returned as a list
REPEATABLE = frozenset({"entry"})

_CONTAINERS = {"content", "properties", "entry"}

# "<m:properties" -> "<properties", ' m:type=' -> ' type=' (xmlns declarations left alone)
_TAG_PREFIX = re.compile(r"<(/?)[A-Za-z_][\w.-]*:")
_ATTR_PREFIX = re.compile(r"(\s)(?!xmlns\b)[A-Za-z_][\w.-]*:([A-Za-z_][\w.-]*\s*=)")


@dataclass(frozen=True)
class TextNode:
    """A property element that carried attributes alongside its text, e.g.
    ``<d:ROUND_B1_YIELD_4WK_2 m:type="Edm.Double">4.17</d:ROUND_B1_YIELD_4WK_2>``.
    """

    text: Optional[str]
    attributes: dict = field(default_factory=dict)


Scalar = Optional[str]
FeedValue = Union[Scalar, TextNode]
FeedRecord = dict  # property name -> FeedValue


def _strip(tag: str) -> str:
    # remove XML namespace: "{ns}TAG" -> "TAG", "m:TAG" -> "TAG"
    if "}" in tag:
        tag = tag.split("}", 1)[-1]
    if ":" in tag:
        tag = tag.rsplit(":", 1)[-1]
    return tag


def _value(el: ET.Element) -> FeedValue:
    text = (el.text or "").strip() or None
    if el.attrib:
        attrs = {_strip(k): v for k, v in el.attrib.items()}
        return TextNode(text, attrs)
    return text


def _entry_to_record(entry: ET.Element) -> FeedRecord:
    # Prefer nested properties: entry/content/m:properties/*
    props = entry.findall(".//{*}content/{*}properties/*")
    nodes = props if props else [el for el in entry.iter() if len(el) == 0]  # fallback: leaf descendants
    rec: FeedRecord = {}
    for el in nodes:
        tag = _strip(el.tag)
        if not tag or tag.lower() in _CONTAINERS:
            continue
        value = _value(el)
        if value is None:
            continue
        rec[tag] = value
    return rec


def _parse_without_prefixes(xml: Union[str, bytes]) -> ET.Element:
    # feeds sometimes use prefixes they never declare; treat them as plain names
    text = xml.decode("utf-8", errors="replace") if isinstance(xml, bytes) else xml
    text = _ATTR_PREFIX.sub(r"\1\2", _TAG_PREFIX.sub(r"<\1", text))
    try:
        return ET.fromstring(text)
    except ET.ParseError as e:
        raise FeedParseError(f"Treasury feed is not well-formed XML: {e}") from e


def parse_feed(xml: Union[str, bytes]) -> list[FeedRecord]:
    """Parse a Treasury Atom feed into one loosely-typed record per ``entry``.

    A well-formed feed without entries yields ``[]``; a body that is not
    well-formed raises :class:`FeedParseError`.
    """
    try:
        root = ET.fromstring(xml)
    except ET.ParseError as e:
        if "unbound prefix" not in str(e):
            raise FeedParseError(f"Treasury feed is not well-formed XML: {e}") from e
        root = _parse_without_prefixes(xml)

    entries = [el for el in root.iter() if _strip(el.tag) in REPEATABLE]
    return [_entry_to_record(e) for e in entries]


class FeedClient:
    """Single-attempt HTTP client for the Treasury bill rates XML feed."""

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        self.settings = settings if settings is not None else Settings()
        if session is None:
            session = requests.Session()
            session.max_redirects = self.settings.max_redirects
        # a caller-supplied session keeps its own redirect limit
        self.session = session

    def fetch(self, year: int) -> str:
        params = {
            "data": self.settings.dataset,
            "field_tdr_date_value": str(year),
        }
        headers = {
            "Accept": "application/xml,text/xml",
            "User-Agent": self.settings.user_agent,
        }
        logger.debug("GET %s params=%s", self.settings.endpoint, params)
        try:
            r = self.session.get(
                self.settings.endpoint,
                params=params,
                headers=headers,
                timeout=self.settings.timeout,
            )
            r.raise_for_status()
        except requests.RequestException as e:
            logger.warning("Treasury feed request for %s failed: %s", year, e)
            raise UpstreamUnavailableError("Treasury API unavailable") from e

        if not 200 <= r.status_code < 300:
            logger.warning("Treasury feed for %s answered HTTP %s", year, r.status_code)
            raise UpstreamUnavailableError("Treasury API unavailable")
        return r.text
