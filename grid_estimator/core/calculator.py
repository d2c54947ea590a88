"""
GridProfitCalculator — grid trading profit projection.

Turns strategy parameters plus a per-minute volatility rate into trade
frequency, per-round-trip profit and daily/total returns.

Supports:
- Arithmetic grids (constant price delta between lines)
- Geometric grids (constant ratio between lines)
- Long / Short / Neutral position direction
- Optional entry/exit price P&L on the full leveraged principal
- Volatility lookup through an injected source when none is supplied

Crossing frequency uses the average arithmetic step
``(upper - lower) / grid_count`` for both shapes. This does not model how
price crossings distribute across the uneven lines of a geometric grid.
"""

import math
from collections.abc import Awaitable, Callable

from grid_estimator.core.exceptions import (
    DegenerateGridError,
    InvalidParameterError,
    MissingInputError,
)
from grid_estimator.core.models import (
    GEOMETRIC_RATIO_EPSILON,
    DEFAULT_ATR_PERIOD,
    MINUTES_IN_DAY,
    EntryExitOutcome,
    GridShape,
    PositionDirection,
    ProjectionResult,
    StrategyParameters,
)
from grid_estimator.utils.logger import LoggerMixin

# (symbol, atr_period) -> volatility per minute
VolatilitySource = Callable[[str, int], Awaitable[float]]

RANGE_WARNING = (
    "Entry price is outside the grid range. "
    "The grid may not open trades immediately."
)


def _finite_or_zero(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def _is_finite_number(value: object) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


class GridProfitCalculator(LoggerMixin):
    """
    Projects grid trading economics.

    The projection itself is pure. Only :meth:`project` may suspend, and only
    when ``volatility_per_minute`` is omitted and has to be fetched through
    ``volatility_source``.

    ``default_atr_period`` is the lookup window for parameters that leave
    ``atr_period`` unset.
    """

    def __init__(
        self,
        volatility_source: VolatilitySource | None = None,
        default_atr_period: int = DEFAULT_ATR_PERIOD,
    ) -> None:
        self._volatility_source = volatility_source
        self._default_atr_period = default_atr_period

    # =========================================================================
    # Validation
    # =========================================================================

    @staticmethod
    def validate(params: StrategyParameters) -> None:
        """Check every input rule. Raises InvalidParameterError on the first failure."""
        if not _is_finite_number(params.principal) or params.principal <= 0:
            raise InvalidParameterError("Principal must be a positive number")
        if (
            isinstance(params.grid_count, bool)
            or not isinstance(params.grid_count, int)
            or params.grid_count < 1
        ):
            raise InvalidParameterError("Grid count must be an integer greater than or equal to 1")
        if not _is_finite_number(params.leverage) or params.leverage < 1:
            raise InvalidParameterError("Leverage must be greater than or equal to 1")
        if not _is_finite_number(params.fee_rate_percent) or params.fee_rate_percent < 0:
            raise InvalidParameterError("Fee rate percent must be a non-negative number")
        if not _is_finite_number(params.duration_days) or params.duration_days <= 0:
            raise InvalidParameterError("Duration days must be a positive number")
        if not _is_finite_number(params.lower_bound):
            raise InvalidParameterError("Lower bound must be a valid number")
        if not _is_finite_number(params.upper_bound):
            raise InvalidParameterError("Upper bound must be a valid number")
        if params.upper_bound <= params.lower_bound:
            raise InvalidParameterError("Upper bound must be greater than lower bound")

        if params.volatility_per_minute is not None and (
            not _is_finite_number(params.volatility_per_minute)
            or params.volatility_per_minute < 0
        ):
            raise InvalidParameterError(
                f"Volatility per minute must be a non-negative finite number, "
                f"got {params.volatility_per_minute!r}"
            )

        for name, price in (("Entry price", params.entry_price), ("Exit price", params.exit_price)):
            if price is not None and (not _is_finite_number(price) or price <= 0):
                raise InvalidParameterError(f"{name} must be a positive number")

        try:
            shape = GridShape(params.grid_shape)
            PositionDirection(params.position_direction)
        except ValueError as e:
            raise InvalidParameterError(f"Unknown grid shape or position direction: {e}") from e

        if shape == GridShape.GEOMETRIC:
            if params.lower_bound <= 0:
                raise InvalidParameterError("Lower bound must be positive for geometric grids")
            ratio = (params.upper_bound / params.lower_bound) ** (1.0 / params.grid_count)
            if not math.isfinite(ratio) or abs(ratio - 1.0) <= GEOMETRIC_RATIO_EPSILON:
                raise DegenerateGridError(
                    f"Geometric grid ratio too close to 1 ({ratio!r}). "
                    f"Widen the bounds or reduce the grid count."
                )

    # =========================================================================
    # Projection
    # =========================================================================

    @staticmethod
    def project_with_volatility(
        params: StrategyParameters,
        volatility_per_minute: float,
    ) -> ProjectionResult:
        """
        Pure projection for a known volatility rate.

        Args:
            params: Strategy parameters
            volatility_per_minute: Price movement per minute (ATR / 1440)

        Returns:
            ProjectionResult with all values finite
        """
        GridProfitCalculator.validate(params)
        if not _is_finite_number(volatility_per_minute) or volatility_per_minute < 0:
            raise InvalidParameterError(
                f"Volatility per minute must be a non-negative finite number, "
                f"got {volatility_per_minute!r}"
            )

        principal = float(params.principal)
        lower = float(params.lower_bound)
        upper = float(params.upper_bound)
        count = params.grid_count
        leverage = float(params.leverage)
        fee_rate = params.fee_rate_percent / 100
        shape = GridShape(params.grid_shape)
        direction = PositionDirection(params.position_direction)

        investment_per_grid = principal / count
        average_step = (upper - lower) / count

        if shape == GridShape.GEOMETRIC:
            ratio = (upper / lower) ** (1.0 / count)
            grid_spacing = ratio
            if direction == PositionDirection.SHORT:
                gross_per_trip = investment_per_grid * (1 - 1 / ratio) * leverage
            else:
                gross_per_trip = investment_per_grid * (ratio - 1) * leverage
        else:
            grid_spacing = average_step
            mid_price = (lower + upper) / 2
            if mid_price > 0:
                # quantity per level approximated at the middle of the range
                gross_per_trip = investment_per_grid * average_step / mid_price * leverage
            else:
                gross_per_trip = 0.0
        gross_per_trip = _finite_or_zero(gross_per_trip)

        if volatility_per_minute > 0 and average_step > 0:
            crossings_per_day = (volatility_per_minute * MINUTES_IN_DAY) / average_step
        else:
            crossings_per_day = 0.0
        trades_per_day = _finite_or_zero(crossings_per_day / 2)

        fee_per_trip = investment_per_grid * fee_rate * leverage * 2  # entry + exit legs
        net_per_trip = gross_per_trip - fee_per_trip

        if trades_per_day > 0:
            daily_gross = gross_per_trip * trades_per_day
            daily_net = net_per_trip * trades_per_day
        else:
            daily_gross = 0.0
            daily_net = 0.0
        total_gross = daily_gross * params.duration_days
        total_net = daily_net * params.duration_days

        range_warning = None
        if params.entry_price is not None and not lower <= params.entry_price <= upper:
            range_warning = RANGE_WARNING

        entry_exit = None
        if params.entry_price is not None and params.exit_price is not None:
            entry_exit = GridProfitCalculator._entry_exit_outcome(
                principal=principal,
                leverage=leverage,
                fee_rate=fee_rate,
                entry_price=float(params.entry_price),
                exit_price=float(params.exit_price),
                direction=direction,
                grid_net_profit=total_net,
            )

        return ProjectionResult(
            grid_shape=shape,
            position_direction=direction,
            grid_spacing=grid_spacing,
            estimated_trades_per_day=trades_per_day,
            investment_per_grid_level=investment_per_grid,
            gross_profit_per_round_trip=gross_per_trip,
            fee_per_round_trip=fee_per_trip,
            net_profit_per_round_trip=net_per_trip,
            daily_net_profit=daily_net,
            daily_gross_profit=daily_gross,
            total_net_profit=total_net,
            total_gross_profit=total_gross,
            volatility_per_minute_used=float(volatility_per_minute),
            duration_days=params.duration_days,
            entry_exit=entry_exit,
            range_warning=range_warning,
        )

    @staticmethod
    def _entry_exit_outcome(
        principal: float,
        leverage: float,
        fee_rate: float,
        entry_price: float,
        exit_price: float,
        direction: PositionDirection,
        grid_net_profit: float,
    ) -> EntryExitOutcome | None:
        """P&L of holding the leveraged principal from entry to exit, net of fees."""
        entry_notional = principal * leverage
        quantity = entry_notional / entry_price
        if not math.isfinite(quantity):
            return None

        if direction == PositionDirection.SHORT:
            pnl = (entry_price - exit_price) * quantity
        else:
            pnl = (exit_price - entry_price) * quantity

        exit_notional = quantity * exit_price
        fees = (entry_notional + exit_notional) * fee_rate
        profit = pnl - fees
        if not math.isfinite(profit):
            return None

        return EntryExitOutcome(
            profit=profit,
            total_portfolio_value=principal + profit + grid_net_profit,
        )

    async def project(self, params: StrategyParameters) -> ProjectionResult:
        """
        Validate, look up volatility if omitted, and project.

        Raises:
            InvalidParameterError: On any invalid input (before any lookup)
            MissingInputError: If volatility is omitted and cannot be looked up
            MarketDataError: Propagated from the volatility source
        """
        self.validate(params)

        volatility = params.volatility_per_minute
        if volatility is None:
            if not params.symbol:
                raise MissingInputError(
                    "Symbol is required for volatility lookup when volatility per minute is not provided"
                )
            if self._volatility_source is None:
                raise MissingInputError(
                    "No volatility source configured and volatility per minute is not provided"
                )
            atr_period = (
                params.atr_period if params.atr_period is not None else self._default_atr_period
            )
            volatility = await self._volatility_source(params.symbol, atr_period)
            self.logger.debug(
                "Volatility looked up",
                symbol=params.symbol,
                atr_period=atr_period,
                volatility_per_minute=volatility,
            )

        result = self.project_with_volatility(params, volatility)

        self.logger.debug(
            "Grid projection calculated",
            shape=result.grid_shape.value,
            direction=result.position_direction.value,
            grid_count=params.grid_count,
            trades_per_day=result.estimated_trades_per_day,
            total_net_profit=result.total_net_profit,
        )
        return result


async def project(
    params: StrategyParameters,
    volatility_source: VolatilitySource | None = None,
) -> ProjectionResult:
    """Project ``params`` with an optional volatility source."""
    return await GridProfitCalculator(volatility_source).project(params)
