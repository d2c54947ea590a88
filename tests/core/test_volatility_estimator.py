"""Tests for ATR computation and the VolatilityEstimator wrapper."""

from unittest.mock import AsyncMock

import pytest

from grid_estimator.api.exceptions import InvalidSymbolError, NoDataError
from grid_estimator.core.exceptions import (
    DataIntegrityError,
    InsufficientDataError,
    InvalidParameterError,
)
from grid_estimator.core.models import MINUTES_IN_DAY, PriceBar
from grid_estimator.core.volatility import VolatilityEstimator, compute_true_range_average


class TestComputeTrueRangeAverage:
    def test_known_values(self, sample_bars):
        # TRs of the last three bars: 6, 6, 7
        assert compute_true_range_average(sample_bars, 3) == pytest.approx(19 / 3)

    def test_uses_trailing_window_only(self, sample_bars):
        # TRs of the last four bars: 8, 6, 6, 7
        assert compute_true_range_average(sample_bars, 4) == pytest.approx(6.75)

    def test_gap_uses_previous_close(self, bars_factory):
        bars = bars_factory([(100, 101, 99, 100), (120, 121, 119, 120)])
        assert compute_true_range_average(bars, 1) == pytest.approx(21)

    def test_flat_bars_exactly_zero(self, flat_bars):
        atr = compute_true_range_average(flat_bars, 2)
        assert atr == 0
        assert isinstance(atr, float)

    def test_tiny_prices_finite_and_positive(self, bars_factory):
        bars = bars_factory([
            (0.000001, 0.000002, 0.0000005, 0.0000015),
            (0.0000015, 0.000003, 0.000001, 0.0000025),
            (0.0000025, 0.000004, 0.000002, 0.0000035),
        ])
        atr = compute_true_range_average(bars, 2)
        assert atr > 0

    def test_insufficient_bars(self, sample_bars):
        with pytest.raises(InsufficientDataError, match="Need 4 candles, got 2"):
            compute_true_range_average(sample_bars[:2], 3)

    def test_exactly_period_bars_insufficient(self, sample_bars):
        with pytest.raises(InsufficientDataError):
            compute_true_range_average(sample_bars, 5)

    def test_empty_series(self):
        with pytest.raises(InsufficientDataError, match="got 0"):
            compute_true_range_average([], 1)

    @pytest.mark.parametrize("period", [0, -1])
    def test_invalid_period(self, sample_bars, period):
        with pytest.raises(InvalidParameterError, match="period"):
            compute_true_range_average(sample_bars, period)

    def test_high_below_low(self, bars_factory):
        bars = bars_factory([(100, 105, 95, 102), (102, 90, 105, 106)])
        with pytest.raises(DataIntegrityError, match=r"high.*less than low"):
            compute_true_range_average(bars, 1)

    def test_high_below_low_names_bar(self, bars_factory):
        bars = bars_factory([(100, 105, 95, 102), (102, 108, 100, 106), (1, 1, 2, 1)])
        with pytest.raises(DataIntegrityError, match="Bar 2"):
            compute_true_range_average(bars, 2)

    def test_bad_bar_before_trailing_window_rejected(self, bars_factory):
        bars = bars_factory([(1, 1, 2, 1), (100, 105, 95, 102), (102, 108, 100, 106)])
        with pytest.raises(DataIntegrityError, match="Bar 0"):
            compute_true_range_average(bars, 1)


class TestVolatilityEstimator:
    async def test_per_minute_divides_daily_atr(self, sample_bars):
        fetch = AsyncMock(return_value=sample_bars[1:])
        estimator = VolatilityEstimator(fetch)

        result = await estimator.estimate_volatility_per_minute("BTCUSDT", period=3)

        fetch.assert_awaited_once_with("BTCUSDT", "1d", 4)
        assert result == pytest.approx((19 / 3) / MINUTES_IN_DAY)

    async def test_average_true_range_interval(self, sample_bars):
        fetch = AsyncMock(return_value=sample_bars)
        estimator = VolatilityEstimator(fetch)

        atr = await estimator.estimate_average_true_range("ETHUSDT", "1h", period=4)

        fetch.assert_awaited_once_with("ETHUSDT", "1h", 5)
        assert atr == pytest.approx(6.75)

    async def test_invalid_symbol_propagates(self):
        fetch = AsyncMock(side_effect=InvalidSymbolError("Symbol 'NOPE' not found or invalid"))
        estimator = VolatilityEstimator(fetch)

        with pytest.raises(InvalidSymbolError):
            await estimator.estimate_volatility_per_minute("NOPE")

    async def test_no_data_propagates(self):
        fetch = AsyncMock(side_effect=NoDataError("No candle data returned"))
        estimator = VolatilityEstimator(fetch)

        with pytest.raises(NoDataError):
            await estimator.estimate_volatility_per_minute("BTCUSDT")

    async def test_short_series_from_provider(self, sample_bars):
        fetch = AsyncMock(return_value=sample_bars[:2])
        estimator = VolatilityEstimator(fetch)

        with pytest.raises(InsufficientDataError):
            await estimator.estimate_volatility_per_minute("BTCUSDT", period=14)

    async def test_invalid_period_does_not_fetch(self):
        fetch = AsyncMock()
        estimator = VolatilityEstimator(fetch)

        with pytest.raises(InvalidParameterError):
            await estimator.estimate_volatility_per_minute("BTCUSDT", period=0)
        fetch.assert_not_awaited()


class TestPriceBar:
    def test_from_kline_parses_strings(self):
        row = [
            1700000000000, "100.5", "105.0", "95.25", "102.0", "1234.5",
            1700086399999, "0", 42, "0", "0", "0",
        ]
        bar = PriceBar.from_kline(row)
        assert bar.open_time == 1700000000000
        assert bar.open == 100.5
        assert bar.high == 105.0
        assert bar.low == 95.25
        assert bar.close == 102.0
        assert bar.volume == 1234.5

    def test_immutable(self, sample_bars):
        with pytest.raises(AttributeError):
            sample_bars[0].close = 1.0  # type: ignore[misc]
