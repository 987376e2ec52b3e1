"""
Utilities for ordered sequences of TimeSeriesPoint.

A series is a tuple of points with strictly increasing, unique timestamps.
Helpers here validate, extend, slice, query and align such series, and
bridge them to pandas Series with a DatetimeIndex.
"""
import math
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..shared.errors import InvalidArgumentError, InvalidWindowError
from ..shared.types import TimeSeriesPoint


def is_sorted_ascending(points: Sequence[TimeSeriesPoint]) -> bool:
    """Return True if timestamps are strictly increasing."""
    return all(
        earlier.timestamp < later.timestamp
        for earlier, later in zip(points, points[1:])
    )


def validate_points(points: Optional[Sequence[TimeSeriesPoint]], name: str = "series") -> Tuple[TimeSeriesPoint, ...]:
    """
    Validate a series and freeze it into a tuple.

    Args:
        points: Candidate series
        name: Label used in error messages

    Returns:
        The points as an immutable tuple

    Raises:
        InvalidArgumentError: If the series is None, empty, holds a non-point
            entry, or its timestamps are not strictly increasing
    """
    if points is None:
        raise InvalidArgumentError(f"{name} must not be None")
    frozen = tuple(points)
    if not frozen:
        raise InvalidArgumentError(f"{name} must not be empty")
    for index, point in enumerate(frozen):
        if not isinstance(point, TimeSeriesPoint):
            raise InvalidArgumentError(
                f"{name} entry {index} is not a TimeSeriesPoint: {point!r}"
            )
    for earlier, later in zip(frozen, frozen[1:]):
        if not earlier.timestamp < later.timestamp:
            raise InvalidArgumentError(
                f"{name} is not sorted ascending: {later.timestamp} does not follow {earlier.timestamp}"
            )
    return frozen


def append_point(points: Sequence[TimeSeriesPoint], point: TimeSeriesPoint) -> Tuple[TimeSeriesPoint, ...]:
    """
    Return a new series with point appended.

    Raises:
        InvalidArgumentError: If point does not come strictly after the last point
    """
    if point is None:
        raise InvalidArgumentError("point must not be None")
    if points and not points[-1].timestamp < point.timestamp:
        raise InvalidArgumentError(
            f"Cannot append {point.timestamp}: series ends at {points[-1].timestamp}"
        )
    return tuple(points) + (point,)


def build_series(points: Iterable[TimeSeriesPoint]) -> Tuple[TimeSeriesPoint, ...]:
    """Collect points in order, rejecting out-of-order insertions, and freeze the result."""
    buffer: List[TimeSeriesPoint] = []
    for point in points:
        if point is None:
            raise InvalidArgumentError("point must not be None")
        if buffer and not buffer[-1].timestamp < point.timestamp:
            raise InvalidArgumentError(
                f"Cannot append {point.timestamp}: series ends at {buffer[-1].timestamp}"
            )
        buffer.append(point)
    return tuple(buffer)


def get_position(points: Sequence[TimeSeriesPoint], timestamp: datetime) -> int:
    """Return the index of timestamp in points, or -1 if absent."""
    for index, point in enumerate(points):
        if point.timestamp == timestamp:
            return index
    return -1


def contains_timestamp(points: Sequence[TimeSeriesPoint], timestamp: datetime) -> bool:
    return get_position(points, timestamp) >= 0


def get_point(points: Sequence[TimeSeriesPoint], timestamp: datetime) -> TimeSeriesPoint:
    """
    Return the point at timestamp.

    Raises:
        InvalidArgumentError: If timestamp is not part of the series
    """
    position = get_position(points, timestamp)
    if position < 0:
        raise InvalidArgumentError(f"Timestamp {timestamp} is not part of the series")
    return points[position]


def slice_window(
    points: Sequence[TimeSeriesPoint],
    start: Optional[datetime],
    end: Optional[datetime],
) -> Tuple[TimeSeriesPoint, ...]:
    """
    Extract the contiguous inclusive sub-series between two existing timestamps.

    Args:
        points: Source series
        start: First timestamp of the window
        end: Last timestamp of the window

    Returns:
        Points from start through end, inclusive

    Raises:
        InvalidWindowError: If a bound is None or absent from the series,
            or end precedes start
    """
    if start is None or end is None:
        raise InvalidWindowError(f"Window bounds must not be None: start={start}, end={end}")
    if end < start:
        raise InvalidWindowError(f"Window end {end} precedes start {start}")
    start_position = get_position(points, start)
    if start_position < 0:
        raise InvalidWindowError(f"Window start {start} is not part of the series")
    end_position = get_position(points, end)
    if end_position < 0:
        raise InvalidWindowError(f"Window end {end} is not part of the series")
    return tuple(points[start_position:end_position + 1])


def values_of(points: Sequence[TimeSeriesPoint]) -> np.ndarray:
    return np.array([point.value for point in points], dtype=float)


def timestamps_of(points: Sequence[TimeSeriesPoint]) -> Tuple[datetime, ...]:
    return tuple(point.timestamp for point in points)


def to_pandas(points: Sequence[TimeSeriesPoint], name: Optional[str] = None) -> pd.Series:
    """Convert points to a float Series indexed by a DatetimeIndex."""
    return pd.Series(
        values_of(points),
        index=pd.DatetimeIndex([point.timestamp for point in points]),
        name=name,
        dtype=float,
    )


def from_pandas(series: pd.Series) -> Tuple[TimeSeriesPoint, ...]:
    """Convert a Series with a datetime index back to a validated tuple of points."""
    points = [
        TimeSeriesPoint(pd.Timestamp(timestamp).to_pydatetime(), float(value))
        for timestamp, value in series.items()
    ]
    return validate_points(points, name=str(series.name or "series"))


def align_series(rows: Sequence[Sequence[TimeSeriesPoint]]) -> List[Tuple[TimeSeriesPoint, ...]]:
    """
    Bring several series onto the union of their timestamps.

    Missing leading values take the first available value, missing trailing
    values take the last available value, and interior gaps take the mean of
    the neighbouring available values.

    Args:
        rows: Non-empty, sorted, NaN-free series

    Returns:
        One series per input row, all sharing the same timestamps
    """
    if not rows:
        raise InvalidArgumentError("Rows to align must not be empty")
    validated = []
    for index, row in enumerate(rows):
        row = validate_points(row, name=f"row {index}")
        if any(math.isnan(point.value) for point in row):
            raise InvalidArgumentError(f"row {index} contains NaN values")
        validated.append(row)

    all_timestamps = sorted({point.timestamp for row in validated for point in row})
    aligned = []
    for row in validated:
        by_timestamp = {point.timestamp: point.value for point in row}
        known = [ts for ts in all_timestamps if ts in by_timestamp]
        values = []
        for timestamp in all_timestamps:
            if timestamp in by_timestamp:
                values.append(by_timestamp[timestamp])
            elif timestamp < known[0]:
                values.append(by_timestamp[known[0]])
            elif timestamp > known[-1]:
                values.append(by_timestamp[known[-1]])
            else:
                previous = max(ts for ts in known if ts < timestamp)
                following = min(ts for ts in known if ts > timestamp)
                values.append((by_timestamp[previous] + by_timestamp[following]) / 2)
        aligned.append(tuple(
            TimeSeriesPoint(timestamp, value)
            for timestamp, value in zip(all_timestamps, values)
        ))
    return aligned
