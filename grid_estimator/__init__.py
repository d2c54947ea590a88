"""
Grid Estimator — economics of grid trading strategies.

Provides:
- Average True Range volatility from OHLCV bars
- Grid profit projection (arithmetic/geometric, long/short/neutral, leverage, fees)
- Grid bound and count suggestions from price, volatility and fees
- Klines REST client as the market data source
"""

from grid_estimator.core import (
    GridProfitCalculator,
    GridShape,
    OptimizerContext,
    OptimizerResult,
    PositionDirection,
    PriceBar,
    ProjectionResult,
    StrategyParameters,
    VolatilityEstimator,
    compute_true_range_average,
    project,
    suggest,
)

__version__ = "1.0.0"

__all__ = [
    "GridProfitCalculator",
    "GridShape",
    "OptimizerContext",
    "OptimizerResult",
    "PositionDirection",
    "PriceBar",
    "ProjectionResult",
    "StrategyParameters",
    "VolatilityEstimator",
    "compute_true_range_average",
    "project",
    "suggest",
]
