"""
Pure statistics helpers used to normalize, scale and combine forecasts.

None of these functions hold state or log; every failure is raised
immediately with the offending value in the message.
"""
from typing import List, Sequence

import numpy as np

from ..shared.defaults import FORECAST_CAP_MULTIPLIER
from ..shared.errors import DivisionByZeroError, EmptyInputError, InvalidArgumentError
from ..shared.types import Position


def average(values: Sequence[float]) -> float:
    """
    Arithmetic mean of values.

    Raises:
        EmptyInputError: If values is empty
    """
    if values is None or len(values) == 0:
        raise EmptyInputError("Cannot average an empty collection of values")
    return float(np.mean(np.asarray(values, dtype=float)))


def percentage_return(former: float, latter: float) -> float:
    """
    Relative change from former to latter, e.g. 200 -> 300 is 0.5.

    Raises:
        DivisionByZeroError: If former is 0
    """
    if former == 0:
        raise DivisionByZeroError(f"Cannot calculate return from former value 0 to {latter}")
    return (latter - former) / former


def adjust_for_standard_deviation(value: float, standard_deviation: float) -> float:
    """
    Normalize value by the price volatility, e.g. 100 with sd 2.5 is 40.

    Raises:
        DivisionByZeroError: If standard_deviation is 0
    """
    if standard_deviation == 0:
        raise DivisionByZeroError(f"Cannot adjust {value} for a standard deviation of 0")
    return value / standard_deviation


def forecast_scalar(values: Sequence[float], base_scale: float) -> float:
    """
    Factor that scales values so their average absolute value equals base_scale.

    Args:
        values: Volatility-adjusted forecasts over a reference window
        base_scale: Target average absolute forecast

    Returns:
        base_scale / mean(|values|)

    Raises:
        EmptyInputError: If values is empty
        DivisionByZeroError: If the average of absolute values is 0
    """
    if values is None or len(values) == 0:
        raise EmptyInputError("Cannot calculate a forecast scalar from an empty collection of values")
    average_of_absolutes = average(np.abs(np.asarray(values, dtype=float)))
    if average_of_absolutes == 0:
        raise DivisionByZeroError("Cannot calculate a forecast scalar: average of absolute values is 0")
    return base_scale / average_of_absolutes


def scale_forecast(unscaled: float, scalar: float) -> float:
    """
    Apply a forecast scalar.

    Raises:
        DivisionByZeroError: If scalar is 0 (a zero scalar is a configuration error)
    """
    if scalar == 0:
        raise DivisionByZeroError(f"Cannot scale forecast {unscaled} with a scalar of 0")
    return unscaled * scalar


def cap_forecast(value: float, base_scale: float) -> float:
    """Clip value to +/- FORECAST_CAP_MULTIPLIER * base_scale. NaN passes through."""
    cap = FORECAST_CAP_MULTIPLIER * base_scale
    if value > cap:
        return cap
    if value < -cap:
        return -cap
    return value


def correlation_matrix(rows: Sequence[Sequence[float]]) -> np.ndarray:
    """
    Pearson correlation matrix of equally long rows of values.

    Raises:
        InvalidArgumentError: If rows are empty, of differing length, contain
            NaN, or a row holds only identical values
    """
    if rows is None or len(rows) == 0:
        raise InvalidArgumentError("Rows to correlate must not be empty")
    if len({len(row) for row in rows}) != 1:
        raise InvalidArgumentError("Rows to correlate must all have the same length")
    matrix = np.asarray([np.asarray(row, dtype=float) for row in rows])
    if np.isnan(matrix).any():
        raise InvalidArgumentError("Rows to correlate must not contain NaN")
    for index, row in enumerate(matrix):
        if len(np.unique(row)) == 1:
            raise InvalidArgumentError(
                f"Correlations cannot be calculated caused by all identical values in row at position {index}"
            )
    return np.clip(np.atleast_2d(np.corrcoef(matrix)), -1.0, 1.0)


def correlation_of_rows(rows: Sequence[Sequence[float]]) -> List[float]:
    """
    Pairwise correlations of rows in lower-triangle order.

    For three rows A, B, C this is [corr_AB, corr_AC, corr_BC].
    """
    matrix = correlation_matrix(rows)
    return [
        float(matrix[row, column])
        for row in range(matrix.shape[0])
        for column in range(row)
    ]


def weights_for_three_correlations(correlations: Sequence[float]) -> List[float]:
    """
    Weights for three rows given their correlations [corr_AB, corr_AC, corr_BC].

    Negative correlations are floored at 0. Rows that are less correlated
    with the others receive more weight. Three equal correlations give
    equal weights.

    Raises:
        InvalidArgumentError: If there are not exactly three correlations
            or one lies outside [-1, 1]
    """
    if correlations is None or len(correlations) != 3:
        raise InvalidArgumentError(f"Exactly 3 correlations are required, got {correlations!r}")
    for value in correlations:
        if np.isnan(value) or not -1 <= value <= 1:
            raise InvalidArgumentError(f"Correlation {value} is outside [-1, 1]")

    floored = [max(float(value), 0.0) for value in correlations]
    if floored[0] == floored[1] == floored[2]:
        return [1 / 3, 1 / 3, 1 / 3]

    corr_ab, corr_ac, corr_bc = floored
    average_correlations = [
        (corr_ab + corr_ac) / 2,
        (corr_ab + corr_bc) / 2,
        (corr_ac + corr_bc) / 2,
    ]
    inverse = [1 - value for value in average_correlations]
    total = sum(inverse)
    return [value / total for value in inverse]


def position_from_forecast(forecast: float) -> Position:
    """LONG for positive, SHORT for negative, HOLD otherwise."""
    if forecast > 0:
        return Position.LONG
    if forecast < 0:
        return Position.SHORT
    return Position.HOLD
