"""
Forecast rules.

Provides the ForecastRule protocol, the Rule base class with its scaling
pipeline, and the EWMAC and VolatilityDifference rules.
"""
from .base import ForecastRule, Rule
from .ewmac import EWMAC
from .volatility_difference import VolatilityDifference, validate_lookback_window

__all__ = [
    'ForecastRule',
    'Rule',
    'EWMAC',
    'VolatilityDifference',
    'validate_lookback_window',
]
