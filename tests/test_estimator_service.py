"""Tests for GridEstimatorService wiring."""

import logging
from dataclasses import replace
from unittest.mock import AsyncMock, patch

import pytest
import structlog

from grid_estimator.api.exceptions import InvalidSymbolError
from grid_estimator.api.klines_client import KlinesClient
from grid_estimator.config.schemas import EstimatorConfig
from grid_estimator.core.exceptions import InvalidParameterError
from grid_estimator.core.models import MINUTES_IN_DAY, GridShape
from grid_estimator.core.optimizer import suggest
from grid_estimator.service import GridEstimatorService


@pytest.fixture
def service() -> GridEstimatorService:
    return GridEstimatorService(KlinesClient())


class TestFromConfig:
    def test_client_built_from_market_data(self):
        config = EstimatorConfig(
            market_data={"klines_url": "https://example.test/klines", "timeout_seconds": 3}
        )
        service = GridEstimatorService.from_config(config)
        assert service.client.klines_url == "https://example.test/klines"
        assert service.client.timeout_seconds == 3
        assert service.client.max_retries == 3
        assert service.config is config

    def test_max_retries_passed_to_client(self):
        config = EstimatorConfig(market_data={"max_retries": 5})
        assert GridEstimatorService.from_config(config).client.max_retries == 5

    def test_log_settings_applied(self):
        GridEstimatorService.from_config(EstimatorConfig(log_level="WARNING"))
        assert logging.getLogger().level == logging.WARNING

        GridEstimatorService.from_config(EstimatorConfig(log_level="DEBUG"))
        assert logging.getLogger().level == logging.DEBUG

    def test_estimator_reads_from_client(self, service):
        assert service.estimator._fetch_bars == service.client.fetch_bars


class TestProject:
    async def test_volatility_looked_up_through_client(self, service, base_params, sample_bars):
        params = replace(base_params, volatility_per_minute=None, symbol="BTCUSDT", atr_period=3)

        fetch = AsyncMock(return_value=sample_bars)
        service.estimator._fetch_bars = fetch
        result = await service.project(params)

        fetch.assert_awaited_once_with("BTCUSDT", "1d", 4)
        assert result.volatility_per_minute_used == pytest.approx((19 / 3) / MINUTES_IN_DAY)

    async def test_supplied_volatility_needs_no_network(self, service, base_params):
        fetch = AsyncMock()
        service.estimator._fetch_bars = fetch
        result = await service.project(base_params)
        fetch.assert_not_awaited()
        assert result.investment_per_grid_level == 1000


class TestSuggestForSymbol:
    async def test_uses_ticker_price_and_optimizer_period(self, service, bars_factory):
        bars = bars_factory([(50000, 50000, 50000, 50000)] * 201)
        service.estimator._fetch_bars = AsyncMock(return_value=bars)

        with patch.object(
            service.client, "fetch_ticker_price", new_callable=AsyncMock, return_value=50000.0
        ):
            result = await service.suggest_for_symbol("BTCUSDT", fee_rate_percent=0.1)

        service.estimator._fetch_bars.assert_awaited_once_with("BTCUSDT", "1d", 201)
        assert result.lower_bound == pytest.approx(47500)
        assert result.upper_bound == pytest.approx(52500)
        assert result.grid_count == 17

    async def test_geometric_with_overrides(self, service, bars_factory):
        service.estimator._fetch_bars = AsyncMock(
            return_value=bars_factory([(100, 100, 100, 100)] * 201)
        )
        with patch.object(
            service.client, "fetch_ticker_price", new_callable=AsyncMock, return_value=100.0
        ):
            result = await service.suggest_for_symbol(
                "ETHUSDT",
                fee_rate_percent=0.1,
                grid_shape=GridShape.GEOMETRIC,
                lower_override=90,
                upper_override=110,
            )
        assert result.lower_bound == 90
        assert result.upper_bound == 110
        assert result.grid_count >= 1

    async def test_invalid_symbol_propagates(self, service):
        with patch.object(
            service.client,
            "fetch_ticker_price",
            new_callable=AsyncMock,
            side_effect=InvalidSymbolError("Symbol 'NOPE' not found or invalid"),
        ):
            with pytest.raises(InvalidSymbolError):
                await service.suggest_for_symbol("NOPE", fee_rate_percent=0.1)


class TestEstimateVolatility:
    async def test_default_period_from_config(self, sample_bars):
        config = EstimatorConfig(volatility={"atr_period": 3})
        service = GridEstimatorService(KlinesClient(), config)
        service.estimator._fetch_bars = AsyncMock(return_value=sample_bars)

        result = await service.estimate_volatility_per_minute("BTCUSDT")

        service.estimator._fetch_bars.assert_awaited_once_with("BTCUSDT", "1d", 4)
        assert result == pytest.approx((19 / 3) / MINUTES_IN_DAY)

    async def test_explicit_zero_period_rejected(self, service):
        service.estimator._fetch_bars = AsyncMock()
        with pytest.raises(InvalidParameterError):
            await service.estimate_volatility_per_minute("BTCUSDT", period=0)
        service.estimator._fetch_bars.assert_not_awaited()


class TestConfiguredAtrPeriod:
    async def test_project_uses_configured_period(self, base_params, sample_bars):
        config = EstimatorConfig(volatility={"atr_period": 3})
        service = GridEstimatorService(KlinesClient(), config)
        service.estimator._fetch_bars = AsyncMock(return_value=sample_bars)
        params = replace(base_params, volatility_per_minute=None, symbol="BTCUSDT")

        result = await service.project(params)

        service.estimator._fetch_bars.assert_awaited_once_with("BTCUSDT", "1d", 4)
        assert result.volatility_per_minute_used == pytest.approx((19 / 3) / MINUTES_IN_DAY)

    async def test_explicit_params_period_wins(self, base_params, bars_factory):
        config = EstimatorConfig(volatility={"atr_period": 3})
        service = GridEstimatorService(KlinesClient(), config)
        service.estimator._fetch_bars = AsyncMock(
            return_value=bars_factory([(100, 100, 100, 100)] * 6)
        )
        params = replace(base_params, volatility_per_minute=None, symbol="BTCUSDT", atr_period=5)

        await service.project(params)

        service.estimator._fetch_bars.assert_awaited_once_with("BTCUSDT", "1d", 6)


class TestSuggestionLogContext:
    async def test_symbol_still_bound_after_volatility_lookup(self, service, bars_factory):
        service.estimator._fetch_bars = AsyncMock(
            return_value=bars_factory([(100, 100, 100, 100)] * 201)
        )
        seen = {}

        def recording_suggest(ctx):
            seen.update(structlog.contextvars.get_contextvars())
            return suggest(ctx)

        with patch.object(
            service.client, "fetch_ticker_price", new_callable=AsyncMock, return_value=100.0
        ), patch("grid_estimator.service.suggest", side_effect=recording_suggest):
            await service.suggest_for_symbol("ETHUSDT", fee_rate_percent=0.1)

        assert seen["symbol"] == "ETHUSDT"
        assert "interval" not in seen
