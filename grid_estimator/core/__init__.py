"""Estimator core — volatility estimator, grid profit calculator, parameter optimizer."""

from grid_estimator.core.exceptions import (
    DataIntegrityError,
    DegenerateGridError,
    EstimatorError,
    InsufficientDataError,
    InvalidParameterError,
    MissingInputError,
)
from grid_estimator.core.models import (
    EntryExitOutcome,
    GridShape,
    OptimizerContext,
    OptimizerResult,
    PositionDirection,
    PriceBar,
    ProjectionResult,
    StrategyParameters,
)
from grid_estimator.core.calculator import GridProfitCalculator, project
from grid_estimator.core.optimizer import suggest
from grid_estimator.core.volatility import VolatilityEstimator, compute_true_range_average

__all__ = [
    "EstimatorError",
    "InvalidParameterError",
    "MissingInputError",
    "DegenerateGridError",
    "InsufficientDataError",
    "DataIntegrityError",
    "PriceBar",
    "GridShape",
    "PositionDirection",
    "StrategyParameters",
    "ProjectionResult",
    "EntryExitOutcome",
    "OptimizerContext",
    "OptimizerResult",
    "GridProfitCalculator",
    "project",
    "suggest",
    "VolatilityEstimator",
    "compute_true_range_average",
]
