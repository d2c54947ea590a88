"""
Volatility estimation from OHLC price bars.

Average True Range (ATR) over a trailing window, using Wilder's True Range
definition with a simple (non-smoothed) mean:

    TR_i = max(high_i - low_i, |high_i - close_{i-1}|, |low_i - close_{i-1}|)
    ATR  = mean(TR) over the last ``period`` bars

Daily ATR divided by the minutes in a day gives the per-minute rate the
grid profit calculator uses for crossing frequency.
"""

from collections.abc import Awaitable, Callable, Sequence

from grid_estimator.api.exceptions import MarketDataError
from grid_estimator.core.exceptions import (
    DataIntegrityError,
    InsufficientDataError,
    InvalidParameterError,
)
from grid_estimator.core.models import DEFAULT_ATR_PERIOD, MINUTES_IN_DAY, PriceBar
from grid_estimator.utils.logger import LoggerMixin, log_context

# Bar Series Provider: (symbol, interval, limit) -> bars, oldest first
BarFetcher = Callable[[str, str, int], Awaitable[list[PriceBar]]]


def compute_true_range_average(bars: Sequence[PriceBar], period: int) -> float:
    """
    Average True Range over the last ``period`` bars.

    Args:
        bars: Price bars ordered oldest to newest
        period: Number of True Range values to average (> 0)

    Returns:
        ATR in price units (0.0 for a flat window)

    Raises:
        InvalidParameterError: If period is not a positive integer
        InsufficientDataError: If fewer than ``period + 1`` bars are given
        DataIntegrityError: If any bar has high < low
    """
    if isinstance(period, bool) or not isinstance(period, int) or period <= 0:
        raise InvalidParameterError(f"ATR period must be a positive integer, got {period!r}")

    n = len(bars)
    if n < period + 1:
        raise InsufficientDataError(
            f"Not enough candle data for ATR calculation. "
            f"Need {period + 1} candles, got {n}."
        )

    for i, bar in enumerate(bars):
        if bar.high < bar.low:
            raise DataIntegrityError(
                f"Bar {i}: high ({bar.high}) is less than low ({bar.low})"
            )

    total = 0.0
    for i in range(n - period, n):
        current = bars[i]
        prev_close = bars[i - 1].close
        total += max(
            current.high - current.low,
            abs(current.high - prev_close),
            abs(current.low - prev_close),
        )

    return total / period


class VolatilityEstimator(LoggerMixin):
    """
    Fetches bars through an injected provider and computes ATR.

    This is the only part of the core that touches market data; the provider
    owns networking, retries and timeouts. Provider failures are logged with
    context and re-raised unchanged.
    """

    def __init__(self, fetch_bars: BarFetcher) -> None:
        self._fetch_bars = fetch_bars

    async def estimate_average_true_range(
        self,
        symbol: str,
        interval: str = "1d",
        period: int = DEFAULT_ATR_PERIOD,
    ) -> float:
        """ATR in price units for ``period`` bars of ``interval``."""
        if isinstance(period, bool) or not isinstance(period, int) or period <= 0:
            raise InvalidParameterError(f"ATR period must be a positive integer, got {period!r}")

        with log_context(symbol=symbol, interval=interval):
            try:
                bars = await self._fetch_bars(symbol, interval, period + 1)
            except MarketDataError as e:
                self.logger.error(
                    "Bar retrieval failed",
                    error_type=type(e).__name__,
                    error=str(e),
                )
                raise

            atr = compute_true_range_average(bars, period)
            self.logger.debug("ATR computed", period=period, bars=len(bars), atr=atr)
            return atr

    async def estimate_volatility_per_minute(
        self,
        symbol: str,
        period: int = DEFAULT_ATR_PERIOD,
    ) -> float:
        """Daily ATR over ``period`` days, normalized to a per-minute rate."""
        daily_atr = await self.estimate_average_true_range(symbol, "1d", period)
        return daily_atr / MINUTES_IN_DAY
