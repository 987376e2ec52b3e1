"""
Tests for the exponentially weighted moving average.
"""
import numpy as np
import pandas as pd
import pytest

from tradingsystem.indicators.ewma import EWMA
from tradingsystem.shared.errors import InvalidArgumentError


def _series(values):
    return pd.Series(values, index=pd.date_range('2020-01-01', periods=len(values), freq='D'), dtype=float)


class TestEWMA:
    def test_decay(self):
        assert EWMA(3).decay == 0.5
        assert EWMA(25).decay == pytest.approx(2 / 26)

    def test_horizon_below_two_fails(self):
        with pytest.raises(InvalidArgumentError, match="horizon"):
            EWMA(1)

    def test_seeded_at_zero(self):
        result = EWMA(3).calculate(_series([2.0, 4.0]))
        assert result.tolist() == [1.0, 2.5]

    def test_step(self):
        assert EWMA(3).step(previous=1.0, value=4.0) == 2.5

    def test_nan_resets_recursion(self):
        result = EWMA(3).calculate(_series([2.0, np.nan, 4.0]))
        assert result.iloc[0] == 1.0
        assert np.isnan(result.iloc[1])
        assert result.iloc[2] == 2.0

    def test_keeps_index(self):
        values = _series([1.0, 2.0, 3.0])
        assert EWMA(5).calculate(values).index.equals(values.index)

    def test_converges_to_constant(self):
        result = EWMA(4).calculate(_series([50.0] * 200))
        assert result.iloc[-1] == pytest.approx(50.0)

    def test_equality_by_horizon(self):
        assert EWMA(8) == EWMA(8)
        assert EWMA(8) != EWMA(16)
        assert hash(EWMA(8)) == hash(EWMA(8))
