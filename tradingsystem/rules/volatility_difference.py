"""
Volatility difference rule.

The raw forecast is the gap between the average volatility over the
reference window and the volatility at the forecast timestamp. It is
positive when the market is calmer than usual.
"""
import logging
from datetime import datetime
from functools import cached_property
from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .base import Rule
from ..indicators.volatility import VolatilityIndex
from ..series.points import get_position, to_pandas, validate_points
from ..series.price_series import PriceSeries
from ..shared.defaults import BASE_SCALE, MIN_LOOKBACK_WINDOW, VOLATILITY_LOOKBACK_WINDOW
from ..shared.errors import InvalidArgumentError
from ..shared.types import TimeSeriesPoint

logger = logging.getLogger(__name__)


def validate_lookback_window(lookback_window: int) -> None:
    if lookback_window < MIN_LOOKBACK_WINDOW:
        raise InvalidArgumentError(f"Lookback window must be at least {MIN_LOOKBACK_WINDOW}")


class VolatilityDifference(Rule):
    """Average volatility minus current volatility."""

    def __init__(
        self,
        price_series: PriceSeries,
        start_of_reference_window: datetime,
        end_of_reference_window: datetime,
        lookback_window: int = VOLATILITY_LOOKBACK_WINDOW,
        volatility_indices: Optional[Sequence[TimeSeriesPoint]] = None,
        base_scale: float = BASE_SCALE,
        variations: Optional[Sequence["VolatilityDifference"]] = None,
    ):
        """
        Args:
            price_series: Instrument the rule forecasts
            start_of_reference_window: First timestamp of the averaging window
            end_of_reference_window: Last timestamp of the averaging window
            lookback_window: Number of trailing values per volatility value (>= 2)
            volatility_indices: Precomputed volatility per timestamp of
                price_series. Calculated from the series if None.
            base_scale: Target average absolute forecast
            variations: Up to 3 VolatilityDifference rules to combine. The
                lookback window and volatility indices are unused then.

        Raises:
            InvalidArgumentError: If the lookback window, the volatility indices
                or any shared rule input is invalid
        """
        super().__init__(
            price_series,
            start_of_reference_window,
            end_of_reference_window,
            base_scale=base_scale,
            variations=variations,
        )
        self._lookback_window = lookback_window
        if variations is not None:
            if volatility_indices is not None:
                raise InvalidArgumentError(
                    "Volatility indices cannot be supplied to a rule with variations"
                )
            self._volatility_indices: Tuple[TimeSeriesPoint, ...] = ()
            return

        validate_lookback_window(lookback_window)
        if volatility_indices is None:
            indices = self._calculate_volatility_indices()
        else:
            indices = self._validate_volatility_indices(volatility_indices)
        self._volatility_indices = indices

    def _calculate_volatility_indices(self) -> Tuple[TimeSeriesPoint, ...]:
        if len(self.price_series) < self.lookback_window:
            raise InvalidArgumentError(
                f"The number of values ({len(self.price_series)}) must not be smaller "
                f"than the lookback window ({self.lookback_window})"
            )
        volatility = VolatilityIndex(self.lookback_window).calculate(self.price_series.as_pandas())
        logger.debug(
            f"Calculated volatility indices for {self.price_series.name} "
            f"with lookback {self.lookback_window}"
        )
        return tuple(
            TimeSeriesPoint(ts, float(value))
            for ts, value in zip(self.price_series.timestamps, volatility.to_numpy())
        )

    def _validate_volatility_indices(self, volatility_indices: Sequence[TimeSeriesPoint]) -> Tuple[TimeSeriesPoint, ...]:
        indices = validate_points(volatility_indices, name="volatility indices")
        start = self.start_of_reference_window
        end = self.end_of_reference_window
        start_position = get_position(indices, start)
        end_position = get_position(indices, end)
        if start_position < 0:
            raise InvalidArgumentError(
                f"Start of reference window {start} is not part of the volatility indices"
            )
        if end_position < 0:
            raise InvalidArgumentError(
                f"End of reference window {end} is not part of the volatility indices"
            )
        for point in indices[start_position:end_position + 1]:
            if np.isnan(point.value):
                raise InvalidArgumentError(
                    f"Volatility indices must not contain NaN inside the reference window, found at {point.timestamp}"
                )
        if tuple(point.timestamp for point in indices) != self.price_series.timestamps:
            raise InvalidArgumentError(
                "Price series and volatility indices are not properly aligned. "
                "Use align_series() before creating a VolatilityDifference."
            )
        return indices

    @property
    def lookback_window(self) -> int:
        return self._lookback_window

    @property
    def volatility_indices(self) -> Tuple[TimeSeriesPoint, ...]:
        return self._volatility_indices

    @cached_property
    def average_volatility(self) -> float:
        """
        Mean of the volatility indices inside the reference window, NaN excluded.

        Raises:
            InvalidArgumentError: If the rule combines variations or the
                window holds no finite volatility value
        """
        if self.has_variations():
            raise InvalidArgumentError("A rule with variations has no volatility of its own")
        values = np.array([
            point.value for point in self._volatility_indices
            if self.start_of_reference_window <= point.timestamp <= self.end_of_reference_window
        ])
        finite = values[~np.isnan(values)]
        if len(finite) == 0:
            raise InvalidArgumentError(
                "No volatility values available inside the reference window. Adjust reference window."
            )
        return float(np.mean(finite))

    def calculate_raw_forecast(self, current_volatility: float) -> float:
        """Average volatility minus current_volatility."""
        return self.average_volatility - current_volatility

    def calculate_raw_forecasts(self) -> pd.Series:
        volatility = to_pandas(self._volatility_indices)
        return self.calculate_raw_forecast(volatility)

    def parameters(self) -> Tuple:
        if self.has_variations():
            return ()
        return (self._lookback_window,)
