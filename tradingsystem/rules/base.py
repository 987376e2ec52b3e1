"""
Forecast rule interface and the shared scaling pipeline.

Every rule turns a PriceSeries into raw forecasts, normalizes them by
price volatility, and scales them so that their average absolute value
over a reference window equals the base scale:

1. raw forecast per timestamp (rule specific)
2. sd-adjusted forecast = raw / price standard deviation
3. forecast scalar = base_scale / mean(|sd-adjusted within reference window|)
4. forecast = sd-adjusted * scalar, capped at +/- 2 * base_scale

A rule may instead be built from up to three variations of itself. Its
forecasts are then the weighted sum of the variations' forecasts.
All derived values are computed lazily, once.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from functools import cached_property
from typing import Optional, Protocol, Sequence, Tuple

import numpy as np
import pandas as pd

from ..indicators.statistics import (
    adjust_for_standard_deviation,
    cap_forecast,
    correlation_of_rows,
    forecast_scalar,
    scale_forecast,
    weights_for_three_correlations,
)
from ..series.points import get_position
from ..series.price_series import PriceSeries
from ..shared.defaults import BASE_SCALE, MAX_VARIATIONS
from ..shared.errors import DivisionByZeroError, InvalidArgumentError, InvalidWindowError
from ..shared.types import TimeSeriesPoint

logger = logging.getLogger(__name__)


class ForecastRule(Protocol):
    """Protocol for anything that produces forecasts from a price series."""

    def raw_forecast_at(self, timestamp: datetime) -> float:
        """Unscaled forecast at timestamp."""
        ...

    @property
    def forecasts(self) -> Tuple[TimeSeriesPoint, ...]:
        """Scaled forecasts from the start of the reference window onwards."""
        ...


def _validate_rule_inputs(
    *,
    price_series: Optional[PriceSeries],
    start_of_reference_window: Optional[datetime],
    end_of_reference_window: Optional[datetime],
    base_scale: float,
) -> None:
    """Validate series, reference window and base scale. Raises InvalidArgumentError on failure."""
    if price_series is None:
        raise InvalidArgumentError("Price series must not be None")
    if not isinstance(price_series, PriceSeries):
        raise InvalidArgumentError(f"Expected a PriceSeries, got {type(price_series).__name__}")
    if start_of_reference_window is None or end_of_reference_window is None:
        raise InvalidWindowError(
            f"Reference window bounds must not be None: "
            f"start={start_of_reference_window}, end={end_of_reference_window}"
        )
    if not end_of_reference_window > start_of_reference_window:
        raise InvalidWindowError(
            f"End of reference window ({end_of_reference_window}) must be after "
            f"start ({start_of_reference_window})"
        )
    values = price_series.values
    if get_position(values, start_of_reference_window) < 0:
        raise InvalidWindowError(
            f"Start of reference window {start_of_reference_window} is not part of {price_series.name}"
        )
    if get_position(values, end_of_reference_window) < 0:
        raise InvalidWindowError(
            f"End of reference window {end_of_reference_window} is not part of {price_series.name}"
        )
    if values[0].timestamp == start_of_reference_window:
        raise InvalidWindowError(
            "Reference window must not start on the first timestamp of the price series "
            f"({start_of_reference_window}): no standard deviation is available there"
        )
    if not base_scale > 0:
        raise InvalidArgumentError(f"base_scale must be > 0, got {base_scale}")


class Rule(ABC):
    """
    Base class for forecast rules.

    Subclasses implement calculate_raw_forecasts() and parameters();
    the scaling pipeline, variation weighting and equality live here.
    """

    def __init__(
        self,
        price_series: PriceSeries,
        start_of_reference_window: datetime,
        end_of_reference_window: datetime,
        base_scale: float = BASE_SCALE,
        variations: Optional[Sequence["Rule"]] = None,
    ):
        """
        Validate inputs and store them. Nothing is calculated yet.

        Args:
            price_series: Instrument the rule forecasts
            start_of_reference_window: First timestamp used for the forecast scalar
            end_of_reference_window: Last timestamp used for the forecast scalar
            base_scale: Target average absolute forecast
            variations: 1 to 3 rules of the same type on the same series and
                reference window. If given, this rule's forecasts are their
                weighted combination.

        Raises:
            InvalidArgumentError: If any input is invalid
        """
        _validate_rule_inputs(
            price_series=price_series,
            start_of_reference_window=start_of_reference_window,
            end_of_reference_window=end_of_reference_window,
            base_scale=base_scale,
        )
        if variations is not None:
            variations = tuple(variations)
            self._validate_variations(
                variations, price_series, start_of_reference_window, end_of_reference_window
            )

        self._price_series = price_series
        self._start = start_of_reference_window
        self._end = end_of_reference_window
        self._base_scale = float(base_scale)
        self._variations = variations

    def _validate_variations(
        self,
        variations: Tuple["Rule", ...],
        price_series: PriceSeries,
        start: datetime,
        end: datetime,
    ) -> None:
        if not 1 <= len(variations) <= MAX_VARIATIONS:
            raise InvalidArgumentError(
                f"A rule takes 1 to {MAX_VARIATIONS} variations, got {len(variations)}"
            )
        for index, variation in enumerate(variations):
            if type(variation) is not type(self):
                raise InvalidArgumentError(
                    f"Variation {index} is a {type(variation).__name__}, expected {type(self).__name__}"
                )
            if variation.price_series != price_series:
                raise InvalidArgumentError(f"Variation {index} uses a different price series")
            if variation.start_of_reference_window != start or variation.end_of_reference_window != end:
                raise InvalidArgumentError(f"Variation {index} uses a different reference window")

    @abstractmethod
    def calculate_raw_forecasts(self) -> pd.Series:
        """
        Raw forecasts for every timestamp of the price series.

        Returns:
            Series indexed by the price series' timestamps
        """
        pass

    @abstractmethod
    def parameters(self) -> Tuple:
        """Rule specific parameters that distinguish two rules of the same type."""
        pass

    @property
    def price_series(self) -> PriceSeries:
        return self._price_series

    @property
    def start_of_reference_window(self) -> datetime:
        return self._start

    @property
    def end_of_reference_window(self) -> datetime:
        return self._end

    @property
    def base_scale(self) -> float:
        return self._base_scale

    @property
    def variations(self) -> Optional[Tuple["Rule", ...]]:
        return self._variations

    def has_variations(self) -> bool:
        return self._variations is not None

    @cached_property
    def raw_forecasts(self) -> pd.Series:
        return self.calculate_raw_forecasts()

    def raw_forecast_at(self, timestamp: datetime) -> float:
        """
        Raw forecast at timestamp.

        Raises:
            InvalidArgumentError: If the rule has variations or timestamp is
                not part of the price series
        """
        if self.has_variations():
            raise InvalidArgumentError("A rule with variations has no raw forecast of its own")
        if timestamp not in self.raw_forecasts.index:
            raise InvalidArgumentError(
                f"Timestamp {timestamp} is not part of {self._price_series.name}"
            )
        return float(self.raw_forecasts.loc[timestamp])

    @cached_property
    def _forecast_timestamps(self) -> Tuple[datetime, ...]:
        start_position = get_position(self._price_series.values, self._start)
        return self._price_series.timestamps[start_position:]

    @cached_property
    def _window_mask(self) -> np.ndarray:
        timestamps = self._forecast_timestamps
        return np.array([self._start <= ts <= self._end for ts in timestamps])

    @cached_property
    def sd_adjusted_forecasts(self) -> Tuple[TimeSeriesPoint, ...]:
        """Raw forecasts divided by price volatility. NaN where volatility is 0 or unknown."""
        timestamps = self._forecast_timestamps
        if self.has_variations():
            return tuple(TimeSeriesPoint(ts, float('nan')) for ts in timestamps)
        offset = len(self._price_series) - len(timestamps)
        deviations = self._price_series.standard_deviation_values[offset:]
        raw = self.raw_forecasts.to_numpy(dtype=float)[offset:]
        adjusted = []
        for ts, raw_value, deviation in zip(timestamps, raw, deviations):
            if np.isnan(deviation.value) or deviation.value == 0:
                adjusted.append(TimeSeriesPoint(ts, float('nan')))
            else:
                adjusted.append(TimeSeriesPoint(ts, adjust_for_standard_deviation(raw_value, deviation.value)))
        return tuple(adjusted)

    @cached_property
    def variation_weights(self) -> Optional[Tuple[float, ...]]:
        """
        Weights of the variations, or None for a rule without variations.

        One variation gets [1], two get [0.5, 0.5], three are weighted by
        their correlations over the reference window.
        """
        if not self.has_variations():
            return None
        count = len(self._variations)
        if count == 1:
            return (1.0,)
        if count == 2:
            return (0.5, 0.5)
        rows = [variation.relevant_forecast_values() for variation in self._variations]
        try:
            correlations = correlation_of_rows(rows)
        except InvalidArgumentError as e:
            raise InvalidArgumentError(
                "Correlations cannot be calculated due to illegal values in given variations"
            ) from e
        weights = tuple(weights_for_three_correlations(correlations))
        logger.debug(f"Variation weights for {self!r}: {weights}")
        return weights

    @cached_property
    def _unscaled_values(self) -> np.ndarray:
        """Values the forecast scalar is derived from."""
        if self.has_variations():
            return self._combined_variation_values
        return np.array([point.value for point in self.sd_adjusted_forecasts])

    @cached_property
    def _combined_variation_values(self) -> np.ndarray:
        combined = np.zeros(len(self._forecast_timestamps))
        for weight, variation in zip(self.variation_weights, self._variations):
            combined += weight * np.array([point.value for point in variation.forecasts])
        return combined

    @cached_property
    def forecast_scalar(self) -> float:
        """
        Scalar bringing the average absolute forecast in the reference window to base_scale.

        Raises:
            InvalidArgumentError: If the reference window holds NaN or only zero forecasts
        """
        relevant = self._unscaled_values[self._window_mask]
        message = "Illegal values in calculated forecast values. Adjust reference window."
        if np.isnan(relevant).any():
            raise InvalidArgumentError(message)
        try:
            scalar = forecast_scalar(relevant, self._base_scale)
        except DivisionByZeroError as e:
            raise InvalidArgumentError(message) from e
        logger.debug(f"Forecast scalar for {self!r}: {scalar}")
        return scalar

    @cached_property
    def forecasts(self) -> Tuple[TimeSeriesPoint, ...]:
        """Scaled and capped forecasts from the start of the reference window onwards."""
        timestamps = self._forecast_timestamps
        if self.has_variations():
            # Variations are already scaled and capped.
            values = self._combined_variation_values
        else:
            scalar = self.forecast_scalar
            values = [
                cap_forecast(scale_forecast(value, scalar), self._base_scale)
                for value in self._unscaled_values
            ]
        return tuple(TimeSeriesPoint(ts, float(value)) for ts, value in zip(timestamps, values))

    def forecast_at(self, timestamp: datetime) -> float:
        position = get_position(self.forecasts, timestamp)
        if position < 0:
            raise InvalidArgumentError(
                f"No forecast at {timestamp}: forecasts start at {self._start}"
            )
        return self.forecasts[position].value

    def relevant_forecasts(self) -> Tuple[TimeSeriesPoint, ...]:
        """Forecasts within the reference window."""
        return tuple(
            point for point, inside in zip(self.forecasts, self._window_mask) if inside
        )

    def relevant_forecast_values(self) -> np.ndarray:
        return np.array([point.value for point in self.relevant_forecasts()])

    def _key(self) -> Tuple:
        return (
            type(self),
            self._price_series,
            self._start,
            self._end,
            self._base_scale,
            self.parameters(),
            self._variations,
        )

    def __eq__(self, other):
        if not isinstance(other, Rule):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        parts = [self._price_series.name, *(str(p) for p in self.parameters())]
        if self.has_variations():
            parts.append(f"variations={len(self._variations)}")
        return f"{type(self).__name__}({', '.join(parts)})"
