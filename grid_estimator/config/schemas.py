"""
Pydantic schemas for estimator configuration.
Defines the structure and validation rules for the settings file.
"""

from pydantic import BaseModel, Field

from grid_estimator.api.klines_client import (
    DEFAULT_KLINES_URL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TICKER_URL,
)
from grid_estimator.core.models import DEFAULT_ATR_PERIOD


class MarketDataConfig(BaseModel):
    """Klines API connection settings"""

    klines_url: str = Field(default=DEFAULT_KLINES_URL, description="Klines endpoint URL")
    ticker_url: str = Field(default=DEFAULT_TICKER_URL, description="Ticker price endpoint URL")
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Total timeout per HTTP request",
    )
    max_retries: int = Field(
        default=DEFAULT_MAX_RETRIES,
        ge=1,
        le=10,
        description="Attempts per request on network errors and rate limits",
    )


class VolatilityConfig(BaseModel):
    """ATR windows used for volatility lookups"""

    atr_period: int = Field(
        default=DEFAULT_ATR_PERIOD,
        ge=1,
        le=1000,
        description="Daily bars averaged for calculator volatility",
    )
    optimizer_atr_period: int = Field(
        default=200,
        ge=1,
        le=1000,
        description="Daily bars averaged for optimizer suggestions",
    )


class EstimatorConfig(BaseModel):
    """Application-wide configuration"""

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )
    log_to_file: bool = Field(default=False, description="Enable file logging")
    log_to_console: bool = Field(default=True, description="Enable console logging")
    json_logs: bool = Field(default=False, description="Use JSON format for logs")

    market_data: MarketDataConfig = Field(default_factory=MarketDataConfig)
    volatility: VolatilityConfig = Field(default_factory=VolatilityConfig)

    class Config:
        json_schema_extra = {
            "example": {
                "log_level": "INFO",
                "log_to_file": False,
                "log_to_console": True,
                "json_logs": False,
                "market_data": {
                    "klines_url": DEFAULT_KLINES_URL,
                    "ticker_url": DEFAULT_TICKER_URL,
                    "timeout_seconds": 10,
                    "max_retries": 3,
                },
                "volatility": {
                    "atr_period": 14,
                    "optimizer_atr_period": 200,
                },
            }
        }
