"""
Price history of a tradable instrument and its derived short index.

The short index is a synthetic series that moves inversely to the
primary series: every relative gain of the primary series is mirrored as
a loss of the same percentage, capped at SHORT_INDEX_MAX_RETURN per step.
It starts at SHORT_INDEX_INITIAL_VALUE and is computed once.
"""
import logging
import math
from datetime import datetime
from functools import cached_property
from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .points import slice_window, timestamps_of, to_pandas, validate_points, values_of, get_point
from ..indicators.statistics import percentage_return
from ..indicators.volatility import ewma_standard_deviation
from ..shared.defaults import SHORT_INDEX_INITIAL_VALUE, SHORT_INDEX_MAX_RETURN
from ..shared.errors import DivisionByZeroError, InvalidArgumentError
from ..shared.types import TimeSeriesPoint

logger = logging.getLogger(__name__)


def derive_short_index(points: Sequence[TimeSeriesPoint]) -> Tuple[TimeSeriesPoint, ...]:
    """
    Derive the short index from a primary series.

    s_0 = SHORT_INDEX_INITIAL_VALUE
    s_t = s_{t-1} - s_{t-1} * min(r_t, SHORT_INDEX_MAX_RETURN)

    where r_t is the return of the primary series from t-1 to t.
    Primary [200, 400, 500, 400] gives [1000, 500, 375, 450].

    Raises:
        InvalidArgumentError: If a primary value of 0 makes a return undefined
    """
    short = [TimeSeriesPoint(points[0].timestamp, SHORT_INDEX_INITIAL_VALUE)]
    for former, latter in zip(points, points[1:]):
        try:
            base_return = percentage_return(former.value, latter.value)
        except DivisionByZeroError as e:
            raise InvalidArgumentError(
                f"Cannot derive short index at {latter.timestamp}: previous value is 0"
            ) from e
        previous = short[-1].value
        short.append(TimeSeriesPoint(
            latter.timestamp,
            previous - previous * min(base_return, SHORT_INDEX_MAX_RETURN),
        ))
    return tuple(short)


class PriceSeries:
    """
    Immutable price history with a cached short index.

    Attributes are exposed read-only. Points are stored as tuples, so
    callers cannot mutate the series through returned references.
    """

    def __init__(
        self,
        name: str,
        points: Sequence[TimeSeriesPoint],
        short_points: Optional[Sequence[TimeSeriesPoint]] = None,
    ):
        """
        Validate inputs and build the series.

        Args:
            name: Instrument name (non-empty)
            points: Primary series, strictly ascending and NaN-free
            short_points: Precomputed short index aligned to points. If None,
                the short index is derived from points.

        Raises:
            InvalidArgumentError: On an empty name, an invalid primary series,
                or a short index that is invalid or not aligned with points
        """
        if not isinstance(name, str) or not name.strip():
            raise InvalidArgumentError(f"Name must be a non-empty string, got {name!r}")
        values = validate_points(points, name="primary series")
        for point in values:
            if math.isnan(point.value):
                raise InvalidArgumentError(f"primary series contains NaN at {point.timestamp}")

        if short_points is None:
            short = derive_short_index(values)
            logger.debug(f"Derived short index for {name} over {len(short)} points")
        else:
            short = validate_points(short_points, name="short series")
            if len(short) != len(values):
                raise InvalidArgumentError(
                    f"short series has {len(short)} points, primary series has {len(values)}"
                )
            for primary_point, short_point in zip(values, short):
                if primary_point.timestamp != short_point.timestamp:
                    raise InvalidArgumentError(
                        f"short series is not aligned with primary series: "
                        f"{short_point.timestamp} != {primary_point.timestamp}"
                    )

        self._name = name
        self._values = values
        self._short = short
        self._standard_deviations = self._calculate_standard_deviations()

    def _calculate_standard_deviations(self) -> Tuple[TimeSeriesPoint, ...]:
        sd = ewma_standard_deviation(self.as_pandas())
        return tuple(
            TimeSeriesPoint(point.timestamp, float(value))
            for point, value in zip(self._values, sd.to_numpy())
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def values(self) -> Tuple[TimeSeriesPoint, ...]:
        return self._values

    @property
    def short_index_values(self) -> Tuple[TimeSeriesPoint, ...]:
        return self._short

    @property
    def standard_deviation_values(self) -> Tuple[TimeSeriesPoint, ...]:
        """Price volatility per timestamp; the first entry is NaN."""
        return self._standard_deviations

    @property
    def timestamps(self) -> Tuple[datetime, ...]:
        return timestamps_of(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def value_at(self, timestamp: datetime) -> float:
        return get_point(self._values, timestamp).value

    def standard_deviation_at(self, timestamp: datetime) -> float:
        return get_point(self._standard_deviations, timestamp).value

    def window(self, start: datetime, end: datetime) -> Tuple[TimeSeriesPoint, ...]:
        """Primary points from start through end, inclusive."""
        return slice_window(self._values, start, end)

    def short_window(self, start: datetime, end: datetime) -> Tuple[TimeSeriesPoint, ...]:
        """Short index points from start through end, inclusive."""
        return slice_window(self._short, start, end)

    def as_pandas(self) -> pd.Series:
        """Primary values as a Series with a DatetimeIndex (a fresh copy per call)."""
        return self._pandas.copy()

    @cached_property
    def _pandas(self) -> pd.Series:
        return to_pandas(self._values, name=self._name)

    def to_frame(self) -> pd.DataFrame:
        """Primary, short and standard deviation values as one DataFrame."""
        return pd.DataFrame(
            {
                'value': values_of(self._values),
                'short': values_of(self._short),
                'standard_deviation': values_of(self._standard_deviations),
            },
            index=pd.DatetimeIndex(self.timestamps),
        )

    def __eq__(self, other):
        if not isinstance(other, PriceSeries):
            return NotImplemented
        return (
            self._name == other._name
            and self._values == other._values
            and self._short == other._short
        )

    def __hash__(self):
        return hash((self._name, self._values, self._short))

    def __repr__(self):
        first = self._values[0].timestamp.date()
        last = self._values[-1].timestamp.date()
        return f"PriceSeries(name={self._name!r}, points={len(self._values)}, {first}..{last})"


def price_series_from_values(name: str, timestamps: Sequence[datetime], values: Sequence[float]) -> PriceSeries:
    """Build a PriceSeries from parallel sequences of timestamps and values."""
    if len(timestamps) != len(values):
        raise InvalidArgumentError(
            f"Got {len(timestamps)} timestamps but {len(values)} values"
        )
    return PriceSeries(
        name,
        [TimeSeriesPoint(ts, float(v)) for ts, v in zip(timestamps, np.asarray(values, dtype=float))],
    )
