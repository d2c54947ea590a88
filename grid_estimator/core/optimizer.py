"""
Grid parameter optimizer.

Suggests a price band and grid count so that every grid step is at least as
wide as recent volatility and wide enough to stay profitable after fees.

Unlike the calculator, the optimizer never raises: invalid overrides or a
non-positive price fall back to safe defaults, so a UI can always prefill
its inputs.
"""

import math

from grid_estimator.core.models import (
    DEFAULT_PRICE_RANGE_PERCENTAGE,
    FEE_SAFETY_BUFFER_PERCENTAGE,
    GridShape,
    OptimizerContext,
    OptimizerResult,
)
from grid_estimator.utils.logger import get_logger

logger = get_logger(__name__)


def _positive(value: float | None) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
        and value > 0
    )


def _non_negative(value: float | None) -> float:
    return float(value) if _positive(value) else 0.0


def default_band(price: float) -> tuple[float, float]:
    """Symmetric ±5% band around ``price``."""
    return (
        price * (1 - DEFAULT_PRICE_RANGE_PERCENTAGE),
        price * (1 + DEFAULT_PRICE_RANGE_PERCENTAGE),
    )


def _resolve_bounds(ctx: OptimizerContext) -> tuple[float, float, bool]:
    """Returns (lower, upper, degraded)."""
    price_ok = _positive(ctx.current_price)
    has_override = ctx.lower_override is not None or ctx.upper_override is not None

    if price_ok:
        default_lower, default_upper = default_band(float(ctx.current_price))
        if has_override:
            lower = ctx.lower_override if ctx.lower_override is not None else default_lower
            upper = ctx.upper_override if ctx.upper_override is not None else default_upper
            if _positive(lower) and _positive(upper) and upper > lower:
                return float(lower), float(upper), False
            logger.debug(
                "Invalid bound overrides, using default band",
                lower_override=ctx.lower_override,
                upper_override=ctx.upper_override,
                current_price=ctx.current_price,
            )
        return default_lower, default_upper, False

    # No usable price: overrides are the only price signal left
    if (
        _positive(ctx.lower_override)
        and _positive(ctx.upper_override)
        and ctx.upper_override > ctx.lower_override
    ):
        return float(ctx.lower_override), float(ctx.upper_override), False

    anchor = next(
        (float(p) for p in (ctx.lower_override, ctx.upper_override) if _positive(p)),
        1.0,
    )
    logger.debug(
        "No usable current price, deriving band from fallback anchor",
        current_price=ctx.current_price,
        anchor=anchor,
    )
    lower, upper = default_band(anchor)
    return lower, upper, True


def _grid_count(lower: float, upper: float, spacing: float, shape: GridShape) -> int:
    if shape == GridShape.GEOMETRIC:
        # (upper / lower) = (1 + spacing / lower) ** N
        raw = math.log(upper / lower) / math.log1p(spacing / lower)
    else:
        raw = (upper - lower) / spacing

    if not math.isfinite(raw):
        return 1
    return max(1, math.floor(raw))


def suggest(ctx: OptimizerContext) -> OptimizerResult:
    """
    Suggest grid bounds and count for the given market snapshot.

    Minimum viable spacing is ``max(volatility, 2 * (fee + 0.2%) * lower)``:
    a round trip of fees plus a fixed safety buffer, scaled off the lower
    bound. Never raises; all outputs are finite.
    """
    lower, upper, degraded = _resolve_bounds(ctx)
    if degraded:
        return OptimizerResult(lower_bound=lower, upper_bound=upper, grid_count=1)

    volatility = _non_negative(ctx.volatility)
    fee_rate = _non_negative(ctx.fee_rate_percent) / 100
    fee_spacing = 2 * (fee_rate + FEE_SAFETY_BUFFER_PERCENTAGE) * lower
    spacing = max(volatility, fee_spacing)

    try:
        shape = GridShape(ctx.grid_shape)
    except ValueError:
        shape = GridShape.ARITHMETIC

    count = _grid_count(lower, upper, spacing, shape) if spacing > 0 else 1

    logger.debug(
        "Grid parameters suggested",
        shape=shape.value,
        lower=lower,
        upper=upper,
        spacing=spacing,
        grid_count=count,
    )
    return OptimizerResult(lower_bound=lower, upper_bound=upper, grid_count=count)
