"""
Subsystem: all forecast rules trading a single instrument.

The combined forecast is the equally weighted sum of the rules'
forecasts, multiplied by the diversification multiplier and capped at
+/- 2 * base_scale. Its sign gives the position to hold.
"""
import logging
from datetime import datetime
from functools import cached_property
from typing import Sequence, Tuple

import numpy as np

from .diversification import DiversificationMultiplier
from ..indicators.statistics import cap_forecast, position_from_forecast
from ..rules.base import Rule
from ..series.points import get_position
from ..series.price_series import PriceSeries
from ..shared.errors import InvalidArgumentError
from ..shared.types import Position, TimeSeriesPoint

logger = logging.getLogger(__name__)


def _validate_subsystem(
    *,
    price_series: PriceSeries,
    rules: Sequence[Rule],
    capital: float,
) -> None:
    """Validate subsystem inputs. Raises InvalidArgumentError with a clear message on failure."""
    if price_series is None:
        raise InvalidArgumentError("Price series must not be None")
    if rules is None or len(rules) == 0:
        raise InvalidArgumentError("Rules must not be empty")
    for i, rule in enumerate(rules):
        if not isinstance(rule, Rule):
            raise InvalidArgumentError(f"Rule at position {i} is not a Rule: {rule!r}")
        for j in range(i):
            if rule == rules[j]:
                raise InvalidArgumentError(
                    f"The given rules are not unique: positions {j} and {i} are equal"
                )
        if rule.price_series != price_series:
            raise InvalidArgumentError(f"Rule at position {i} uses a different price series")
    first = rules[0]
    for i, rule in enumerate(rules[1:], start=1):
        if rule.base_scale != first.base_scale:
            raise InvalidArgumentError(
                f"All rules must share one base scale: {rule.base_scale} != {first.base_scale} at position {i}"
            )
        if (rule.start_of_reference_window, rule.end_of_reference_window) != (
            first.start_of_reference_window, first.end_of_reference_window
        ):
            raise InvalidArgumentError(f"Rule at position {i} uses a different reference window")
    if not capital > 0:
        raise InvalidArgumentError(f"capital must be > 0, got {capital}")


class SubSystem:
    """Combines the forecasts of several rules on one instrument."""

    def __init__(self, price_series: PriceSeries, rules: Sequence[Rule], capital: float):
        """
        Args:
            price_series: Instrument traded by this subsystem
            rules: Unique rules forecasting price_series with one base scale
                and one reference window
            capital: Capital allocated to the subsystem (> 0)

        Raises:
            InvalidArgumentError: If any input is invalid
        """
        rules = tuple(rules) if rules is not None else None
        _validate_subsystem(price_series=price_series, rules=rules, capital=capital)
        self._price_series = price_series
        self._rules = rules
        self._capital = float(capital)
        logger.info(
            f"Assembled subsystem for {price_series.name} with {len(rules)} rules, capital {capital}"
        )

    @property
    def price_series(self) -> PriceSeries:
        return self._price_series

    @property
    def rules(self) -> Tuple[Rule, ...]:
        return self._rules

    @property
    def capital(self) -> float:
        return self._capital

    @property
    def base_scale(self) -> float:
        return self._rules[0].base_scale

    @property
    def rule_weights(self) -> Tuple[float, ...]:
        """Equal weight per top level rule."""
        return tuple(1.0 / len(self._rules) for _ in self._rules)

    @cached_property
    def diversification_multiplier(self) -> DiversificationMultiplier:
        return DiversificationMultiplier.from_rules(self._rules)

    @cached_property
    def combined_forecasts(self) -> Tuple[TimeSeriesPoint, ...]:
        """DM * sum(weight * forecast) per timestamp, capped at +/- 2 * base_scale."""
        multiplier = self.diversification_multiplier.value
        timestamps = [point.timestamp for point in self._rules[0].forecasts]
        weighted = np.zeros(len(timestamps))
        for weight, rule in zip(self.rule_weights, self._rules):
            weighted += weight * np.array([point.value for point in rule.forecasts])
        return tuple(
            TimeSeriesPoint(ts, cap_forecast(multiplier * value, self.base_scale))
            for ts, value in zip(timestamps, weighted)
        )

    def combined_forecast_at(self, timestamp: datetime) -> float:
        position = get_position(self.combined_forecasts, timestamp)
        if position < 0:
            raise InvalidArgumentError(f"No combined forecast at {timestamp}")
        return self.combined_forecasts[position].value

    def position_at(self, timestamp: datetime) -> Position:
        return position_from_forecast(self.combined_forecast_at(timestamp))

    def __repr__(self):
        return (
            f"SubSystem({self._price_series.name}, rules={len(self._rules)}, "
            f"capital={self._capital})"
        )
