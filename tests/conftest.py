"""Pytest configuration and shared fixtures"""

from pathlib import Path

import pytest

from grid_estimator.core.models import GridShape, PriceBar, StrategyParameters


def make_bars(rows: list[tuple[float, float, float, float]]) -> list[PriceBar]:
    """Build bars from (open, high, low, close) rows, one minute apart."""
    return [
        PriceBar(
            open_time=1_700_000_000_000 + i * 60_000,
            open=o,
            high=h,
            low=low,
            close=c,
            volume=1000.0,
        )
        for i, (o, h, low, c) in enumerate(rows)
    ]


@pytest.fixture
def sample_bars() -> list[PriceBar]:
    """Five steadily rising bars."""
    return make_bars([
        (100, 105, 95, 102),
        (102, 108, 100, 106),
        (106, 110, 104, 108),
        (108, 112, 106, 110),
        (110, 115, 108, 112),
    ])


@pytest.fixture
def flat_bars() -> list[PriceBar]:
    return make_bars([(100, 100, 100, 100)] * 3)


@pytest.fixture
def base_params() -> StrategyParameters:
    """BTC-like arithmetic grid: 10 levels across 45k-55k."""
    return StrategyParameters(
        principal=10000,
        lower_bound=45000,
        upper_bound=55000,
        grid_count=10,
        leverage=1,
        fee_rate_percent=0.1,
        duration_days=30,
        volatility_per_minute=0.5,
        grid_shape=GridShape.ARITHMETIC,
    )


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    """Create a temporary directory for test configs"""
    config_dir = tmp_path / "configs"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def bars_factory():
    return make_bars
