"""Custom exceptions for market data retrieval"""


class MarketDataError(Exception):
    """Base exception for all market data errors"""

    pass


class InvalidSymbolError(MarketDataError):
    """Raised when the symbol is unknown to the market data source"""

    pass


class NoDataError(MarketDataError):
    """Raised when the source returns no bars for the query"""

    pass


class NetworkError(MarketDataError):
    """Raised when network communication with the source fails"""

    pass


class RateLimitError(MarketDataError):
    """Raised when the source rate limit is exceeded"""

    pass
