"""
Tests for PriceSeries and the derived short index.
"""
import math
from datetime import datetime

import numpy as np
import pandas as pd
import pytest

from tradingsystem.series.price_series import PriceSeries, derive_short_index, price_series_from_values
from tradingsystem.shared.defaults import SHORT_INDEX_INITIAL_VALUE, STANDARD_DEVIATION_EWMA_HORIZON
from tradingsystem.shared.errors import InvalidArgumentError, InvalidWindowError
from tradingsystem.shared.types import TimeSeriesPoint

D1 = datetime(2020, 1, 1, 22)
D2 = datetime(2020, 1, 2, 22)
D3 = datetime(2020, 1, 3, 22)
D4 = datetime(2020, 1, 4, 22)


def _points(values, dates=(D1, D2, D3, D4)):
    return [TimeSeriesPoint(ts, float(v)) for ts, v in zip(dates, values)]


@pytest.fixture
def fixture_series():
    """Four point series used across the short index tests."""
    return PriceSeries("fixture", _points([200, 400, 500, 400]))


class TestShortIndex:
    """Derivation of the synthetic inverse series."""

    def test_reference_values(self, fixture_series):
        values = [point.value for point in fixture_series.short_index_values]
        assert values == pytest.approx([1000.0, 500.0, 375.0, 450.0])

    def test_short_index_shares_dates(self, fixture_series):
        short_dates = [point.timestamp for point in fixture_series.short_index_values]
        assert short_dates == [D1, D2, D3, D4]

    def test_single_point_starts_at_initial_value(self):
        series = PriceSeries("single", _points([123.0]))
        assert series.short_index_values == (TimeSeriesPoint(D1, SHORT_INDEX_INITIAL_VALUE),)

    def test_gains_above_cap_halve_short_index(self):
        short = derive_short_index(_points([100, 1000]))
        assert short[1].value == 500.0

    def test_losses_raise_short_index(self):
        short = derive_short_index(_points([100, 80]))
        assert short[1].value == pytest.approx(1200.0)

    def test_short_index_is_cached(self, fixture_series):
        assert fixture_series.short_index_values is fixture_series.short_index_values

    def test_zero_value_fails_with_timestamp(self):
        with pytest.raises(InvalidArgumentError, match="2020-01-03"):
            PriceSeries("zero", _points([100, 0, 50]))

    def test_explicit_short_series_is_used(self):
        short = _points([1, 2, 3, 4])
        series = PriceSeries("explicit", _points([200, 400, 500, 400]), short_points=short)
        assert series.short_index_values == tuple(short)

    def test_explicit_short_series_length_mismatch(self):
        with pytest.raises(InvalidArgumentError, match="short series has 3 points"):
            PriceSeries("bad", _points([200, 400, 500, 400]), short_points=_points([1, 2, 3]))

    def test_explicit_short_series_date_mismatch(self):
        shifted = _points([1, 2], dates=(D1, D3))
        with pytest.raises(InvalidArgumentError, match="not aligned"):
            PriceSeries("bad", _points([200, 400]), short_points=shifted)


class TestValidation:
    def test_empty_name(self):
        with pytest.raises(InvalidArgumentError, match="Name"):
            PriceSeries("", _points([1, 2]))

    def test_empty_points(self):
        with pytest.raises(InvalidArgumentError, match="must not be empty"):
            PriceSeries("empty", [])

    def test_none_points(self):
        with pytest.raises(InvalidArgumentError, match="must not be None"):
            PriceSeries("none", None)

    def test_unsorted_points(self):
        with pytest.raises(InvalidArgumentError, match="not sorted"):
            PriceSeries("unsorted", _points([1, 2], dates=(D2, D1)))

    def test_nan_value(self):
        with pytest.raises(InvalidArgumentError, match="NaN"):
            PriceSeries("nan", _points([1, math.nan]))


class TestStandardDeviation:
    def test_first_value_is_nan(self, fixture_series):
        assert math.isnan(fixture_series.standard_deviation_values[0].value)

    def test_second_value(self, fixture_series):
        decay = 2 / (STANDARD_DEVIATION_EWMA_HORIZON + 1)
        # Return of 1.0 from 200 to 400, EWMA seeded at 0.
        expected = math.sqrt(decay * 1.0) * 400
        assert fixture_series.standard_deviation_at(D2) == pytest.approx(expected)

    def test_one_value_per_timestamp(self, fixture_series):
        assert len(fixture_series.standard_deviation_values) == len(fixture_series)


class TestAccessors:
    def test_values_are_tuples(self, fixture_series):
        assert isinstance(fixture_series.values, tuple)
        assert isinstance(fixture_series.short_index_values, tuple)

    def test_window(self, fixture_series):
        window = fixture_series.window(D2, D3)
        assert [point.value for point in window] == [400.0, 500.0]

    def test_short_window(self, fixture_series):
        window = fixture_series.short_window(D3, D4)
        assert [point.value for point in window] == pytest.approx([375.0, 450.0])

    def test_window_with_missing_bound(self, fixture_series):
        with pytest.raises(InvalidWindowError):
            fixture_series.window(D2, datetime(2021, 1, 1))

    def test_value_at(self, fixture_series):
        assert fixture_series.value_at(D3) == 500.0

    def test_as_pandas_returns_copy(self, fixture_series):
        prices = fixture_series.as_pandas()
        prices.iloc[0] = -1
        assert fixture_series.as_pandas().iloc[0] == 200.0

    def test_to_frame(self, fixture_series):
        frame = fixture_series.to_frame()
        assert list(frame.columns) == ['value', 'short', 'standard_deviation']
        assert isinstance(frame.index, pd.DatetimeIndex)
        assert frame['short'].tolist() == pytest.approx([1000.0, 500.0, 375.0, 450.0])


class TestEquality:
    """PriceSeries compare by content."""

    def test_same_content_is_equal(self):
        first = PriceSeries("dax", _points([200, 400, 500, 400]))
        second = PriceSeries("dax", _points([200, 400, 500, 400]))
        assert first == second
        assert first is not second
        assert hash(first) == hash(second)

    def test_different_name_is_not_equal(self):
        assert PriceSeries("dax", _points([1, 2])) != PriceSeries("djia", _points([1, 2]))

    def test_different_values_are_not_equal(self):
        assert PriceSeries("dax", _points([1, 2])) != PriceSeries("dax", _points([1, 3]))

    def test_from_values(self):
        series = price_series_from_values("dax", [D1, D2], np.array([1.0, 2.0]))
        assert series == PriceSeries("dax", _points([1, 2]))

    def test_from_values_length_mismatch(self):
        with pytest.raises(InvalidArgumentError, match="2 timestamps but 1 values"):
            price_series_from_values("dax", [D1, D2], [1.0])
