"""Market data client modules"""

from grid_estimator.api.exceptions import (
    InvalidSymbolError,
    MarketDataError,
    NetworkError,
    NoDataError,
    RateLimitError,
)
from grid_estimator.api.klines_client import KlinesClient

__all__ = [
    "KlinesClient",
    "MarketDataError",
    "InvalidSymbolError",
    "NoDataError",
    "NetworkError",
    "RateLimitError",
]
