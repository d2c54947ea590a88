"""Configuration management modules"""

from grid_estimator.config.manager import ConfigManager
from grid_estimator.config.schemas import EstimatorConfig, MarketDataConfig, VolatilityConfig

__all__ = [
    "ConfigManager",
    "EstimatorConfig",
    "MarketDataConfig",
    "VolatilityConfig",
]
