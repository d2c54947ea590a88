"""
Grid estimator data models — enums, parameters, results.

Defines all value objects exchanged with the estimator core:
- Price bars as returned by the bar series provider
- Grid shape and position direction enums
- Strategy parameters and projection results
- Optimizer context and suggestion
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence


# =============================================================================
# Constants
# =============================================================================

MINUTES_IN_DAY = 1440

# Trailing window for daily ATR when volatility is looked up
DEFAULT_ATR_PERIOD = 14

# Symmetric band (±5%) used by the optimizer when no bounds are supplied
DEFAULT_PRICE_RANGE_PERCENTAGE = 0.05

# Added to the fee rate so suggested spacing stays profitable after fees
FEE_SAFETY_BUFFER_PERCENTAGE = 0.002

# Geometric ratios closer to 1 than this are rejected
GEOMETRIC_RATIO_EPSILON = 1e-9


# =============================================================================
# Enums
# =============================================================================


class GridShape(str, Enum):
    """Grid spacing type."""

    ARITHMETIC = "arithmetic"  # constant price delta
    GEOMETRIC = "geometric"  # constant multiplicative ratio


class PositionDirection(str, Enum):
    """Directional bias of the grid position."""

    LONG = "long"
    SHORT = "short"
    NEUTRAL = "neutral"


# =============================================================================
# Market data
# =============================================================================


@dataclass(frozen=True)
class PriceBar:
    """A single OHLCV bar. Series are ordered oldest to newest."""

    open_time: int  # ms since epoch
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @classmethod
    def from_kline(cls, row: Sequence[Any]) -> "PriceBar":
        """
        Build a bar from a klines tuple.

        Only the first six fields are used:
        [open_time, open, high, low, close, volume, close_time, ...]
        Prices arrive as strings and are parsed to floats.
        """
        return cls(
            open_time=int(row[0]),
            open=float(row[1]),
            high=float(row[2]),
            low=float(row[3]),
            close=float(row[4]),
            volume=float(row[5]),
        )


# =============================================================================
# Calculator
# =============================================================================


@dataclass(frozen=True)
class StrategyParameters:
    """Inputs to a grid profit projection."""

    principal: float
    lower_bound: float
    upper_bound: float
    grid_count: int
    leverage: float = 1.0
    fee_rate_percent: float = 0.0  # percent per side, 0.1 = 0.1%
    duration_days: int = 1
    volatility_per_minute: float | None = None
    symbol: str | None = None
    grid_shape: GridShape = GridShape.ARITHMETIC
    position_direction: PositionDirection = PositionDirection.LONG
    entry_price: float | None = None
    exit_price: float | None = None
    atr_period: int | None = None  # None: the calculator default


@dataclass(frozen=True)
class EntryExitOutcome:
    """Buy-and-hold style P&L on the full leveraged principal."""

    profit: float
    total_portfolio_value: float


@dataclass(frozen=True)
class ProjectionResult:
    """Profit/loss projection for one set of strategy parameters."""

    grid_shape: GridShape
    position_direction: PositionDirection
    grid_spacing: float  # price delta (arithmetic) or ratio (geometric)
    estimated_trades_per_day: float
    investment_per_grid_level: float
    gross_profit_per_round_trip: float
    fee_per_round_trip: float
    net_profit_per_round_trip: float
    daily_net_profit: float
    daily_gross_profit: float
    total_net_profit: float
    total_gross_profit: float
    volatility_per_minute_used: float
    duration_days: int
    entry_exit: EntryExitOutcome | None = None
    range_warning: str | None = None

    @property
    def entry_exit_profit(self) -> float | None:
        return self.entry_exit.profit if self.entry_exit else None

    @property
    def total_portfolio_value(self) -> float | None:
        return self.entry_exit.total_portfolio_value if self.entry_exit else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "grid_shape": self.grid_shape.value,
            "position_direction": self.position_direction.value,
            "grid_spacing": self.grid_spacing,
            "estimated_trades_per_day": self.estimated_trades_per_day,
            "investment_per_grid_level": self.investment_per_grid_level,
            "gross_profit_per_round_trip": self.gross_profit_per_round_trip,
            "fee_per_round_trip": self.fee_per_round_trip,
            "net_profit_per_round_trip": self.net_profit_per_round_trip,
            "daily_net_profit": self.daily_net_profit,
            "daily_gross_profit": self.daily_gross_profit,
            "total_net_profit": self.total_net_profit,
            "total_gross_profit": self.total_gross_profit,
            "volatility_per_minute_used": self.volatility_per_minute_used,
            "duration_days": self.duration_days,
            "entry_exit_profit": self.entry_exit_profit,
            "total_portfolio_value": self.total_portfolio_value,
            "range_warning": self.range_warning,
        }


# =============================================================================
# Optimizer
# =============================================================================


@dataclass(frozen=True)
class OptimizerContext:
    """Market snapshot the optimizer builds a suggestion from."""

    current_price: float
    volatility: float
    fee_rate_percent: float
    lower_override: float | None = None
    upper_override: float | None = None
    grid_shape: GridShape = GridShape.ARITHMETIC


@dataclass(frozen=True)
class OptimizerResult:
    """Suggested grid bounds and count."""

    lower_bound: float
    upper_bound: float
    grid_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "lower_bound": self.lower_bound,
            "upper_bound": self.upper_bound,
            "grid_count": self.grid_count,
        }
