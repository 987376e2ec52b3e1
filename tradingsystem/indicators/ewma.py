"""
Exponentially weighted moving average.

E_t = A * P_t + E_{t-1} * (1 - A) with decay A = 2 / (horizon + 1) and
the recursion seeded at 0. A NaN input yields NaN and restarts the
recursion from 0.
"""
import numpy as np
import pandas as pd

from .base import Indicator
from ..shared.defaults import MIN_HORIZON
from ..shared.errors import InvalidArgumentError


class EWMA(Indicator):
    """Exponentially weighted moving average over a fixed horizon."""

    def __init__(self, horizon: int):
        if horizon < MIN_HORIZON:
            raise InvalidArgumentError(f"The horizon must not be < {MIN_HORIZON}, got {horizon}")
        self.horizon = horizon
        self.decay = 2.0 / (horizon + 1.0)

    def step(self, previous: float, value: float) -> float:
        """One recursion step from the previous average and the current value."""
        return self.decay * value + previous * (1.0 - self.decay)

    def calculate(self, values: pd.Series) -> pd.Series:
        raw = values.to_numpy(dtype=float)
        result = np.empty(len(raw))
        previous = 0.0
        for index, value in enumerate(raw):
            if np.isnan(value):
                result[index] = np.nan
                previous = 0.0
            else:
                previous = self.step(previous, value)
                result[index] = previous
        return pd.Series(result, index=values.index, name=values.name)

    def __eq__(self, other):
        if not isinstance(other, EWMA):
            return NotImplemented
        return self.horizon == other.horizon

    def __hash__(self):
        return hash(("EWMA", self.horizon))

    def __repr__(self):
        return f"EWMA(horizon={self.horizon})"
