from .cache import YieldsCache, cache_key, ttl_for
from .config import Settings
from .errors import BillvizError, FeedParseError, InputError, UpstreamUnavailableError
from .models import YieldRow, YieldsResult
from .service import YieldsService

__all__ = [
    "BillvizError",
    "FeedParseError",
    "InputError",
    "Settings",
    "UpstreamUnavailableError",
    "YieldRow",
    "YieldsCache",
    "YieldsResult",
    "YieldsService",
    "cache_key",
    "ttl_for",
]
