"""
GridEstimatorService — entry point for UI callers.

Wires the klines client into the volatility estimator, and the estimator into
the calculator as its volatility source. The calculator and optimizer stay
independent; this service is the only place that composes them with market
data.
"""

from grid_estimator.api.klines_client import KlinesClient
from grid_estimator.config.schemas import EstimatorConfig
from grid_estimator.core.calculator import GridProfitCalculator
from grid_estimator.core.models import (
    GridShape,
    OptimizerContext,
    OptimizerResult,
    ProjectionResult,
    StrategyParameters,
)
from grid_estimator.core.optimizer import suggest
from grid_estimator.core.volatility import VolatilityEstimator
from grid_estimator.utils.logger import LoggerMixin, log_context, setup_logging


class GridEstimatorService(LoggerMixin):
    """Projection and suggestion backed by live market data."""

    def __init__(self, client: KlinesClient, config: EstimatorConfig | None = None) -> None:
        self.client = client
        self.config = config or EstimatorConfig()
        self.estimator = VolatilityEstimator(client.fetch_bars)
        self.calculator = GridProfitCalculator(
            self.estimator.estimate_volatility_per_minute,
            default_atr_period=self.config.volatility.atr_period,
        )

    @classmethod
    def from_config(cls, config: EstimatorConfig) -> "GridEstimatorService":
        """Apply the log settings and build a service around a configured client."""
        setup_logging(
            log_level=config.log_level,
            log_to_console=config.log_to_console,
            log_to_file=config.log_to_file,
            json_logs=config.json_logs,
        )
        client = KlinesClient(
            klines_url=config.market_data.klines_url,
            ticker_url=config.market_data.ticker_url,
            timeout_seconds=config.market_data.timeout_seconds,
            max_retries=config.market_data.max_retries,
        )
        return cls(client, config)

    async def estimate_volatility_per_minute(
        self,
        symbol: str,
        period: int | None = None,
    ) -> float:
        return await self.estimator.estimate_volatility_per_minute(
            symbol, period if period is not None else self.config.volatility.atr_period
        )

    async def project(self, params: StrategyParameters) -> ProjectionResult:
        """Project ``params``, looking up volatility for ``params.symbol`` if omitted."""
        return await self.calculator.project(params)

    async def suggest_for_symbol(
        self,
        symbol: str,
        fee_rate_percent: float,
        grid_shape: GridShape = GridShape.ARITHMETIC,
        lower_override: float | None = None,
        upper_override: float | None = None,
    ) -> OptimizerResult:
        """
        Suggest bounds and grid count from the current price and recent volatility.

        Uses the longer optimizer ATR window so suggestions reflect more than
        the last couple of weeks.
        """
        with log_context(symbol=symbol):
            price = await self.client.fetch_ticker_price(symbol)
            volatility = await self.estimator.estimate_volatility_per_minute(
                symbol, self.config.volatility.optimizer_atr_period
            )

            result = suggest(
                OptimizerContext(
                    current_price=price,
                    volatility=volatility,
                    fee_rate_percent=fee_rate_percent,
                    lower_override=lower_override,
                    upper_override=upper_override,
                    grid_shape=grid_shape,
                )
            )
            self.logger.info(
                "Grid parameters suggested",
                price=price,
                volatility_per_minute=volatility,
                **result.to_dict(),
            )
            return result
