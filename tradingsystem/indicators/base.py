"""
Base indicator interface.

All indicators should follow this pattern:
1. Calculate one value per input timestamp from a value series
2. Provide point lookups that rules use to build raw forecasts
"""
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np
import pandas as pd


class Indicator(ABC):
    """
    Base class for all indicators.

    Indicators calculate values from a value series that rules turn into
    raw forecasts. They do not produce forecasts themselves.
    """

    @abstractmethod
    def calculate(self, values: pd.Series) -> pd.Series:
        """
        Calculate indicator values from a value series.

        Args:
            values: Value series with datetime index

        Returns:
            Series with indicator values (same index as values)
        """
        pass

    def get_value_at(self, values: pd.Series, timestamp: pd.Timestamp) -> Optional[float]:
        """
        Get indicator value at a specific timestamp.

        Args:
            values: Value series (must include data up to timestamp)
            timestamp: Timestamp to get value for

        Returns:
            Indicator value at timestamp, or None if the timestamp is unknown
            or there is not enough data before it
        """
        if timestamp not in values.index:
            return None
        value = self.calculate(values.loc[:timestamp]).iloc[-1]
        if np.isnan(value):
            return None
        return float(value)
