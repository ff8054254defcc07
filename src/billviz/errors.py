from __future__ import annotations


class BillvizError(Exception):
    """Base class for errors raised by billviz."""


class InputError(BillvizError, ValueError):
    """The caller asked for something invalid (missing or out-of-range year/month)."""


class UpstreamUnavailableError(BillvizError, RuntimeError):
    """The Treasury feed could not be fetched or read."""


class FeedParseError(UpstreamUnavailableError):
    """The feed body is not well-formed XML."""
