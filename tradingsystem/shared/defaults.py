"""
Centralized default values for the forecasting pipeline.

This is the SINGLE SOURCE OF TRUTH for numeric constants.
All modules should import from here to ensure consistency.
"""

# Short index (synthetic inverse series)
SHORT_INDEX_INITIAL_VALUE = 1000.0  # First value of every derived short series
SHORT_INDEX_MAX_RETURN = 0.5  # Base value gains above 50% are capped per step

# Price volatility used to normalize raw forecasts
STANDARD_DEVIATION_EWMA_HORIZON = 25  # Span of the EWMA over squared returns

# Forecast scaling
BASE_SCALE = 10.0  # Target average absolute forecast
FORECAST_CAP_MULTIPLIER = 2.0  # Forecasts are capped at +/- 2 * base_scale

# EWMAC (exponentially weighted moving average crossover) defaults
EWMAC_SHORT_HORIZON = 16
EWMAC_LONG_HORIZON = 64
MIN_HORIZON = 2  # A span of 1 has no smoothing

# Volatility difference defaults
VOLATILITY_LOOKBACK_WINDOW = 25
MIN_LOOKBACK_WINDOW = 2  # A window of 1 has no sample variance

# Rule variations
MAX_VARIATIONS = 3

# Diversification multiplier
WEIGHTS_SUM_TOLERANCE = 1e-9  # Allowed deviation of sum(weights) from 1
