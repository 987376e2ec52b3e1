"""
Exponentially weighted moving average crossover (EWMAC).

Trend following rule: the raw forecast is the short horizon EWMA minus
the long horizon EWMA of the primary price series. Positive values
indicate an up trend.
"""
import logging
from datetime import datetime
from typing import Optional, Sequence, Tuple

import pandas as pd

from .base import Rule
from ..indicators.ewma import EWMA
from ..series.price_series import PriceSeries
from ..shared.defaults import BASE_SCALE, EWMAC_LONG_HORIZON, EWMAC_SHORT_HORIZON, MIN_HORIZON
from ..shared.errors import InvalidArgumentError

logger = logging.getLogger(__name__)


class EWMAC(Rule):
    """EWMA crossover rule over two horizons."""

    def __init__(
        self,
        price_series: PriceSeries,
        start_of_reference_window: datetime,
        end_of_reference_window: datetime,
        short_horizon: int = EWMAC_SHORT_HORIZON,
        long_horizon: int = EWMAC_LONG_HORIZON,
        base_scale: float = BASE_SCALE,
        variations: Optional[Sequence["EWMAC"]] = None,
    ):
        """
        Args:
            price_series: Instrument the rule forecasts
            start_of_reference_window: First timestamp used for the forecast scalar
            end_of_reference_window: Last timestamp used for the forecast scalar
            short_horizon: Span of the fast EWMA (>= 2)
            long_horizon: Span of the slow EWMA (> short_horizon). Horizons are
                not checked when variations are given.
            base_scale: Target average absolute forecast
            variations: Up to 3 EWMAC rules to combine

        Raises:
            InvalidArgumentError: If horizons or any shared rule input is invalid
        """
        super().__init__(
            price_series,
            start_of_reference_window,
            end_of_reference_window,
            base_scale=base_scale,
            variations=variations,
        )
        if variations is None:
            if short_horizon < MIN_HORIZON:
                raise InvalidArgumentError(
                    f"Short horizon must be >= {MIN_HORIZON}, got {short_horizon}"
                )
            if long_horizon <= short_horizon:
                raise InvalidArgumentError(
                    f"Long horizon ({long_horizon}) must be greater than short horizon ({short_horizon})"
                )
        self._short_horizon = short_horizon
        self._long_horizon = long_horizon

    @property
    def short_horizon(self) -> int:
        return self._short_horizon

    @property
    def long_horizon(self) -> int:
        return self._long_horizon

    @staticmethod
    def calculate_raw_forecast(short_horizon_value: float, long_horizon_value: float) -> float:
        """Difference of the two moving averages, e.g. (12, 15) gives -3."""
        return short_horizon_value - long_horizon_value

    def calculate_raw_forecasts(self) -> pd.Series:
        prices = self.price_series.as_pandas()
        short_ewma = EWMA(self.short_horizon).calculate(prices)
        long_ewma = EWMA(self.long_horizon).calculate(prices)
        logger.debug(
            f"Calculated EWMA {self.short_horizon}/{self.long_horizon} for {self.price_series.name}"
        )
        return self.calculate_raw_forecast(short_ewma, long_ewma)

    def parameters(self) -> Tuple:
        if self.has_variations():
            return ()
        return (self._short_horizon, self._long_horizon)
