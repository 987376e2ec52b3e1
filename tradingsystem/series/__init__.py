"""
Time series containers.

Provides series utilities over TimeSeriesPoint tuples and the PriceSeries
entity with its derived short index.
"""
from .points import (
    is_sorted_ascending,
    validate_points,
    append_point,
    build_series,
    get_position,
    contains_timestamp,
    get_point,
    slice_window,
    values_of,
    timestamps_of,
    to_pandas,
    from_pandas,
    align_series,
)
from .price_series import PriceSeries, derive_short_index, price_series_from_values

__all__ = [
    'is_sorted_ascending',
    'validate_points',
    'append_point',
    'build_series',
    'get_position',
    'contains_timestamp',
    'get_point',
    'slice_window',
    'values_of',
    'timestamps_of',
    'to_pandas',
    'from_pandas',
    'align_series',
    'PriceSeries',
    'derive_short_index',
    'price_series_from_values',
]
