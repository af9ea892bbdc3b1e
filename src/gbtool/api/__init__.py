"""Rate-limited, cached access to the Giant Bomb API."""

from .cache import ResponseCache
from .client import ApiClient
from .endpoints import GiantBombApi
from .filters import DateRange, Query
from .models import Listing, Video, VideoShow
from .rate_gate import RateGate

__all__ = [
    "ApiClient",
    "GiantBombApi",
    "ResponseCache",
    "RateGate",
    "Query",
    "DateRange",
    "Video",
    "VideoShow",
    "Listing",
]
