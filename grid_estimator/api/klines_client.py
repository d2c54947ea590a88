"""
Klines REST client — bar series provider for the volatility estimator.

Fetches OHLCV bars and ticker prices from a klines-style HTTP API
(Binance ``/api/v3/klines`` by default). The API answers a valid query with
an array of fixed-width tuples per bar:

    [open_time, open, high, low, close, volume, close_time, ...]

and an invalid one with an error object ``{"code": int, "msg": str}`` in
place of the array. Error objects are mapped to typed exceptions; transient
failures are retried here so the estimator core never has to.
"""

import asyncio
from typing import Any

import aiohttp
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from grid_estimator.api.exceptions import (
    InvalidSymbolError,
    MarketDataError,
    NetworkError,
    NoDataError,
    RateLimitError,
)
from grid_estimator.core.models import PriceBar
from grid_estimator.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_KLINES_URL = "https://api.binance.com/api/v3/klines"
DEFAULT_TICKER_URL = "https://api.binance.com/api/v3/ticker/price"

INVALID_SYMBOL_CODE = -1121
TOO_MANY_REQUESTS_CODE = -1003
DEFAULT_MAX_RETRIES = 3


class KlinesClient:
    """
    Async HTTP client for klines-style market data.

    Features:
    - Single aiohttp session per client (initialize/close or ``async with``)
    - Error-object detection and mapping to typed exceptions
    - Retry with exponential backoff on network errors and rate limits
    - Request statistics
    """

    def __init__(
        self,
        klines_url: str = DEFAULT_KLINES_URL,
        ticker_url: str = DEFAULT_TICKER_URL,
        timeout_seconds: float = 10.0,
        max_retries: int = DEFAULT_MAX_RETRIES,
    ) -> None:
        self.klines_url = klines_url
        self.ticker_url = ticker_url
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries

        self._session: aiohttp.ClientSession | None = None

        # Statistics
        self._request_count = 0
        self._error_count = 0

    @property
    def is_initialized(self) -> bool:
        return self._session is not None

    async def initialize(self) -> None:
        """Create the HTTP session."""
        if not self._session:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds)
            )
            logger.info("Klines client initialized", klines_url=self.klines_url)

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None
            logger.info(
                "Klines client closed",
                total_requests=self._request_count,
                total_errors=self._error_count,
            )

    async def __aenter__(self) -> "KlinesClient":
        await self.initialize()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _get(self, url: str, params: dict[str, Any]) -> Any:
        """
        GET ``url`` and return the decoded JSON payload.

        Error objects are returned as-is for the caller to map; only
        transport failures and rate-limit statuses raise here.
        """
        if not self._session:
            raise MarketDataError("Client not initialized")

        self._request_count += 1
        logger.debug("klines_api_request", url=url, params=params)

        try:
            async with self._session.get(url, params=params) as response:
                if response.status in (418, 429):
                    self._error_count += 1
                    raise RateLimitError(
                        f"Rate limit exceeded (HTTP {response.status}) for {params.get('symbol')}"
                    )
                try:
                    payload = await response.json(content_type=None)
                except ValueError as e:
                    self._error_count += 1
                    raise MarketDataError(
                        f"Unreadable response (HTTP {response.status}) for {params.get('symbol')}"
                    ) from e

                if response.status >= 400 and not isinstance(payload, dict):
                    self._error_count += 1
                    raise MarketDataError(
                        f"HTTP {response.status} for symbol {params.get('symbol')}"
                    )
                return payload

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self._error_count += 1
            logger.error("Network error", url=url, error=str(e))
            raise NetworkError(
                f"Network error: no response received for symbol {params.get('symbol')}: {e}"
            ) from e

    def _map_error(self, payload: dict[str, Any], symbol: str) -> MarketDataError:
        """Map an error object ``{"code", "msg"}`` to a typed exception."""
        code = payload.get("code")
        msg = str(payload.get("msg", "Unknown error"))

        if code == INVALID_SYMBOL_CODE or "invalid symbol" in msg.lower():
            return InvalidSymbolError(f"Symbol '{symbol}' not found or invalid")
        if code == TOO_MANY_REQUESTS_CODE:
            return RateLimitError(f"Market data API error: {msg} (Code: {code})")
        return MarketDataError(f"Market data API error: {msg} (Code: {code}, Symbol: {symbol})")

    def _retrying(self) -> AsyncRetrying:
        """Retry policy for transient failures, ``max_retries`` attempts in total."""
        return AsyncRetrying(
            retry=retry_if_exception_type((NetworkError, RateLimitError)),
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            reraise=True,
        )

    async def fetch_bars(self, symbol: str, interval: str, limit: int) -> list[PriceBar]:
        """
        Fetch OHLCV bars, oldest first.

        Args:
            symbol: Trading pair (e.g. 'BTCUSDT'); case-insensitive
            interval: Bar interval (e.g. '1m', '1h', '1d')
            limit: Number of bars to return

        Raises:
            InvalidSymbolError: If the symbol is unknown
            NoDataError: If no bars are returned
            RateLimitError: If the rate limit persists after retries
            NetworkError: If the source stays unreachable after retries
            MarketDataError: On any other error object or malformed payload
        """
        return await self._retrying()(self._fetch_bars_once, symbol, interval, limit)

    async def _fetch_bars_once(self, symbol: str, interval: str, limit: int) -> list[PriceBar]:
        normalized_symbol = symbol.replace("/", "").upper()
        payload = await self._get(
            self.klines_url,
            {"symbol": normalized_symbol, "interval": interval, "limit": limit},
        )

        if isinstance(payload, dict) and "msg" in payload:
            self._error_count += 1
            error = self._map_error(payload, symbol)
            logger.error(
                "Klines API error",
                symbol=symbol,
                code=payload.get("code"),
                msg=payload.get("msg"),
            )
            raise error

        if not isinstance(payload, list):
            raise MarketDataError(
                f"Unexpected data format for symbol {symbol}. Expected array."
            )

        if not payload:
            raise NoDataError(
                f"No candle data returned for symbol {symbol}. It might be an invalid "
                f"symbol or no data available for the requested period."
            )

        try:
            bars = [PriceBar.from_kline(row) for row in payload]
        except (TypeError, ValueError, IndexError) as e:
            raise MarketDataError(f"Malformed kline row for symbol {symbol}: {e}") from e

        logger.debug("Fetched bars", symbol=symbol, interval=interval, count=len(bars))
        return bars

    async def fetch_ticker_price(self, symbol: str) -> float:
        """Fetch the latest traded price for ``symbol``."""
        return await self._retrying()(self._fetch_ticker_price_once, symbol)

    async def _fetch_ticker_price_once(self, symbol: str) -> float:
        normalized_symbol = symbol.replace("/", "").upper()
        payload = await self._get(self.ticker_url, {"symbol": normalized_symbol})

        if isinstance(payload, dict) and "msg" in payload:
            self._error_count += 1
            raise self._map_error(payload, symbol)

        try:
            price = float(payload["price"])
        except (KeyError, TypeError, ValueError) as e:
            raise MarketDataError(f"Unexpected ticker format for symbol {symbol}") from e

        logger.debug("Fetched ticker price", symbol=symbol, price=price)
        return price

    def get_statistics(self) -> dict[str, Any]:
        """Request and error counters."""
        return {
            "klines_url": self.klines_url,
            "max_retries": self.max_retries,
            "total_requests": self._request_count,
            "total_errors": self._error_count,
            "error_rate": (
                self._error_count / self._request_count if self._request_count > 0 else 0
            ),
        }
