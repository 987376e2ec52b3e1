"""
Volatility indicators.

VolatilityIndex is the rolling sample standard deviation of values and
feeds the volatility difference rule. ewma_standard_deviation estimates
price volatility used to normalize raw forecasts.
"""
import numpy as np
import pandas as pd

from .base import Indicator
from .ewma import EWMA
from ..shared.defaults import MIN_LOOKBACK_WINDOW, STANDARD_DEVIATION_EWMA_HORIZON
from ..shared.errors import InvalidArgumentError


class VolatilityIndex(Indicator):
    """
    Rolling sample standard deviation over the trailing lookback window.

    The value at position i covers positions i - lookback + 1 through i.
    Positions with fewer than lookback values available are NaN.
    """

    def __init__(self, lookback_window: int):
        if lookback_window < MIN_LOOKBACK_WINDOW:
            raise InvalidArgumentError(
                f"Lookback window must be at least {MIN_LOOKBACK_WINDOW}, got {lookback_window}"
            )
        self.lookback_window = lookback_window

    def calculate(self, values: pd.Series) -> pd.Series:
        return values.astype(float).rolling(
            window=self.lookback_window,
            min_periods=self.lookback_window,
        ).std(ddof=1)


def squared_returns(values: pd.Series) -> pd.Series:
    """One-step percentage returns squared. First entry and returns from 0 are NaN."""
    previous = values.shift(1).replace(0, np.nan)
    returns = values / previous - 1.0
    return returns ** 2


def ewma_standard_deviation(values: pd.Series, horizon: int = STANDARD_DEVIATION_EWMA_HORIZON) -> pd.Series:
    """
    Price volatility in price units.

    sd_t = P_t * sqrt(EWMA_horizon(r^2)_t), where r are one-step returns.
    The first entry is NaN because it has no return.
    """
    variance = EWMA(horizon).calculate(squared_returns(values.astype(float)))
    return np.sqrt(variance) * values.astype(float)
