"""
Tests for SubSystem forecast combination.
"""
import numpy as np
import pandas as pd
import pytest

from tradingsystem.combination.subsystem import SubSystem
from tradingsystem.rules.ewmac import EWMAC
from tradingsystem.rules.volatility_difference import VolatilityDifference
from tradingsystem.series.price_series import price_series_from_values
from tradingsystem.shared.errors import InvalidArgumentError
from tradingsystem.shared.types import Position


def _synthetic_series(days: int = 150, name: str = "DAX", seed: int = 42):
    """Synthetic price series for testing."""
    dates = pd.date_range("2020-01-01", periods=days, freq="B")
    rng = np.random.RandomState(seed)
    prices = 100 + np.cumsum(rng.randn(days)) + np.linspace(0, 10, days)
    return price_series_from_values(name, [d.to_pydatetime() for d in dates], np.maximum(prices, 1.0))


@pytest.fixture
def series():
    return _synthetic_series()


@pytest.fixture
def window(series):
    return series.timestamps[30], series.timestamps[120]


@pytest.fixture
def rules(series, window):
    return [
        EWMAC(series, *window, short_horizon=4, long_horizon=16),
        VolatilityDifference(series, *window, lookback_window=10),
    ]


class TestCombinedForecast:
    def test_combined_forecast(self, series, rules):
        subsystem = SubSystem(series, rules, capital=100_000)
        multiplier = subsystem.diversification_multiplier.get_value()
        timestamp = series.timestamps[60]
        mean = (rules[0].forecast_at(timestamp) + rules[1].forecast_at(timestamp)) / 2
        expected = max(-20.0, min(20.0, multiplier * mean))
        assert subsystem.combined_forecast_at(timestamp) == pytest.approx(expected)

    def test_combined_forecasts_are_capped(self, series, rules):
        subsystem = SubSystem(series, rules, capital=100_000)
        values = np.array([p.value for p in subsystem.combined_forecasts])
        assert np.all(np.abs(values) <= 20.0)
        assert len(values) == len(rules[0].forecasts)

    def test_rule_weights(self, series, rules):
        assert SubSystem(series, rules, capital=1).rule_weights == (0.5, 0.5)

    def test_position_follows_sign(self, series, rules):
        subsystem = SubSystem(series, rules, capital=100_000)
        for point in subsystem.combined_forecasts:
            position = subsystem.position_at(point.timestamp)
            if point.value > 0:
                assert position == Position.LONG
            elif point.value < 0:
                assert position == Position.SHORT
            else:
                assert position == Position.HOLD

    def test_unknown_timestamp(self, series, rules):
        subsystem = SubSystem(series, rules, capital=100_000)
        with pytest.raises(InvalidArgumentError, match="No combined forecast"):
            subsystem.combined_forecast_at(series.timestamps[0])

    def test_single_rule_uses_rule_forecasts(self, series, rules):
        subsystem = SubSystem(series, rules[:1], capital=100_000)
        assert subsystem.diversification_multiplier.get_value() == 1.0
        assert subsystem.combined_forecasts == rules[0].forecasts


class TestValidation:
    def test_duplicate_rules(self, series, window):
        rule = EWMAC(series, *window, short_horizon=4, long_horizon=16)
        twin = EWMAC(series, *window, short_horizon=4, long_horizon=16)
        with pytest.raises(InvalidArgumentError, match="not unique"):
            SubSystem(series, [rule, twin], capital=100_000)

    def test_empty_rules(self, series):
        with pytest.raises(InvalidArgumentError, match="Rules must not be empty"):
            SubSystem(series, [], capital=100_000)

    def test_non_positive_capital(self, series, rules):
        with pytest.raises(InvalidArgumentError, match="capital must be > 0"):
            SubSystem(series, rules, capital=0)

    def test_rule_on_other_series(self, series, rules, window):
        other = EWMAC(_synthetic_series(name="DJIA"), *window, short_horizon=4, long_horizon=16)
        with pytest.raises(InvalidArgumentError, match="different price series"):
            SubSystem(series, [rules[0], other], capital=100_000)

    def test_different_base_scale(self, series, rules, window):
        other = EWMAC(series, *window, short_horizon=8, long_horizon=32, base_scale=5)
        with pytest.raises(InvalidArgumentError, match="base scale"):
            SubSystem(series, [rules[0], other], capital=100_000)

    def test_different_reference_window(self, series, rules, window):
        other = EWMAC(series, series.timestamps[40], window[1], short_horizon=8, long_horizon=32)
        with pytest.raises(InvalidArgumentError, match="different reference window"):
            SubSystem(series, [rules[0], other], capital=100_000)

    def test_none_series(self, rules):
        with pytest.raises(InvalidArgumentError, match="Price series must not be None"):
            SubSystem(None, rules, capital=100_000)
