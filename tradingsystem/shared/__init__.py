"""
Shared types, errors and defaults for the forecasting pipeline.

This module provides:
- TimeSeriesPoint dataclass and Position enum
- Error types (all ValueError subclasses)
- Centralized default values for every numeric constant
"""
from .types import TimeSeriesPoint, Position
from .errors import (
    InvalidArgumentError, InvalidWindowError, EmptyInputError,
    DivisionByZeroError, ConfigError, DataSourceError,
)
from .defaults import (
    SHORT_INDEX_INITIAL_VALUE, SHORT_INDEX_MAX_RETURN,
    STANDARD_DEVIATION_EWMA_HORIZON,
    BASE_SCALE, FORECAST_CAP_MULTIPLIER,
    EWMAC_SHORT_HORIZON, EWMAC_LONG_HORIZON, MIN_HORIZON,
    VOLATILITY_LOOKBACK_WINDOW, MIN_LOOKBACK_WINDOW,
    MAX_VARIATIONS, WEIGHTS_SUM_TOLERANCE,
)

__all__ = [
    'TimeSeriesPoint',
    'Position',
    'InvalidArgumentError', 'InvalidWindowError', 'EmptyInputError',
    'DivisionByZeroError', 'ConfigError', 'DataSourceError',
    'SHORT_INDEX_INITIAL_VALUE', 'SHORT_INDEX_MAX_RETURN',
    'STANDARD_DEVIATION_EWMA_HORIZON',
    'BASE_SCALE', 'FORECAST_CAP_MULTIPLIER',
    'EWMAC_SHORT_HORIZON', 'EWMAC_LONG_HORIZON', 'MIN_HORIZON',
    'VOLATILITY_LOOKBACK_WINDOW', 'MIN_LOOKBACK_WINDOW',
    'MAX_VARIATIONS', 'WEIGHTS_SUM_TOLERANCE',
]
