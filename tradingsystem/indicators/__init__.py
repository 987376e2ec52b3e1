"""
Indicators and statistics helpers.

Provides the Indicator interface, EWMA, the rolling volatility index,
and pure statistics functions for forecast normalization and scaling.
"""
from .base import Indicator
from .ewma import EWMA
from .volatility import VolatilityIndex, ewma_standard_deviation, squared_returns
from .statistics import (
    average,
    percentage_return,
    adjust_for_standard_deviation,
    forecast_scalar,
    scale_forecast,
    cap_forecast,
    correlation_matrix,
    correlation_of_rows,
    weights_for_three_correlations,
    position_from_forecast,
)

__all__ = [
    'Indicator',
    'EWMA',
    'VolatilityIndex',
    'ewma_standard_deviation',
    'squared_returns',
    'average',
    'percentage_return',
    'adjust_for_standard_deviation',
    'forecast_scalar',
    'scale_forecast',
    'cap_forecast',
    'correlation_matrix',
    'correlation_of_rows',
    'weights_for_three_correlations',
    'position_from_forecast',
]
