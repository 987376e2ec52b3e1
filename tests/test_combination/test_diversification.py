"""
Tests for the diversification multiplier.
"""
import math

import numpy as np
import pandas as pd
import pytest

from tradingsystem.combination.diversification import DiversificationMultiplier
from tradingsystem.rules.ewmac import EWMAC
from tradingsystem.rules.volatility_difference import VolatilityDifference
from tradingsystem.series.price_series import price_series_from_values
from tradingsystem.shared.errors import InvalidArgumentError


def _synthetic_series(days: int = 150, name: str = "DAX", seed: int = 42):
    """Synthetic price series for testing."""
    dates = pd.date_range("2020-01-01", periods=days, freq="B")
    rng = np.random.RandomState(seed)
    prices = 100 + np.cumsum(rng.randn(days)) + np.linspace(0, 10, days)
    return price_series_from_values(name, [d.to_pydatetime() for d in dates], np.maximum(prices, 1.0))


class TestValue:
    def test_reference_value(self):
        dm = DiversificationMultiplier([0.5, 0.5], [[1, 0.75], [0.75, 1]])
        assert dm.get_value() == 1 / math.sqrt(0.875)
        assert dm.value == dm.get_value()

    def test_single_rule_has_multiplier_one(self):
        assert DiversificationMultiplier([1.0], [[1.0]]).get_value() == 1.0

    def test_uncorrelated_rules(self):
        dm = DiversificationMultiplier([0.5, 0.5], [[1, 0], [0, 1]])
        assert dm.get_value() == pytest.approx(math.sqrt(2))

    def test_perfectly_correlated_rules(self):
        dm = DiversificationMultiplier([0.25, 0.75], [[1, 1], [1, 1]])
        assert dm.get_value() == pytest.approx(1.0)

    def test_three_rules(self):
        weights = [0.2, 0.3, 0.5]
        correlations = [[1, 0.5, 0.2], [0.5, 1, 0.1], [0.2, 0.1, 1]]
        w = np.array(weights)
        expected = 1 / math.sqrt(w @ np.array(correlations) @ w)
        assert DiversificationMultiplier(weights, correlations).get_value() == pytest.approx(expected)

    def test_non_positive_variance_fails(self):
        with pytest.raises(InvalidArgumentError, match="must be positive"):
            DiversificationMultiplier([0.5, 0.5], [[1, -1], [-1, 1]])


class TestValidation:
    """Construction fails fast on unusable input."""

    def test_empty_weights(self):
        with pytest.raises(InvalidArgumentError, match="Weights must not be empty"):
            DiversificationMultiplier([], [[1]])

    def test_empty_correlations(self):
        with pytest.raises(InvalidArgumentError, match="Correlations must not be empty"):
            DiversificationMultiplier([1.0], [])

    def test_row_count_mismatch(self):
        with pytest.raises(InvalidArgumentError, match="2 weights but 1 correlation rows"):
            DiversificationMultiplier([0.5, 0.5], [[1, 0.5]])

    def test_column_count_mismatch(self):
        with pytest.raises(InvalidArgumentError, match="not square"):
            DiversificationMultiplier([0.5, 0.5], [[1, 0.5], [0.5]])

    def test_weights_not_summing_to_one(self):
        with pytest.raises(InvalidArgumentError, match="sum up to 1"):
            DiversificationMultiplier([0.5, 0.4], [[1, 0.5], [0.5, 1]])

    def test_negative_weight(self):
        with pytest.raises(InvalidArgumentError, match="must be >= 0"):
            DiversificationMultiplier([-0.5, 1.5], [[1, 0.5], [0.5, 1]])

    def test_asymmetric_correlations(self):
        with pytest.raises(InvalidArgumentError, match="not symmetric"):
            DiversificationMultiplier([0.5, 0.5], [[1, 0.5], [0.4, 1]])

    def test_diagonal_not_one(self):
        with pytest.raises(InvalidArgumentError, match="diagonal must be 1"):
            DiversificationMultiplier([0.5, 0.5], [[0.9, 0.5], [0.5, 1]])

    def test_correlation_out_of_range(self):
        with pytest.raises(InvalidArgumentError, match="within"):
            DiversificationMultiplier([0.5, 0.5], [[1, 1.5], [1.5, 1]])

    def test_weights_within_tolerance(self):
        dm = DiversificationMultiplier([1 / 3, 1 / 3, 1 / 3], np.eye(3).tolist())
        assert dm.get_value() == pytest.approx(math.sqrt(3))


class TestDefensiveCopies:
    def test_weights_are_copied(self):
        weights = [0.5, 0.5]
        dm = DiversificationMultiplier(weights, [[1, 0.75], [0.75, 1]])
        returned = dm.get_weights()
        assert returned == weights
        returned[0] = 99
        weights[1] = 42
        assert dm.get_weights() == [0.5, 0.5]

    def test_correlations_are_copied(self):
        correlations = [[1, 0.75], [0.75, 1]]
        dm = DiversificationMultiplier([0.5, 0.5], correlations)
        returned = dm.get_correlations()
        assert returned == correlations
        returned[0][1] = 0.0
        correlations[1][0] = 0.0
        assert dm.get_correlations() == [[1, 0.75], [0.75, 1]]

    def test_value_unchanged_after_mutation(self):
        weights = [0.5, 0.5]
        dm = DiversificationMultiplier(weights, [[1, 0.75], [0.75, 1]])
        weights[0] = 1.0
        assert dm.get_value() == 1 / math.sqrt(0.875)

    def test_equality_by_content(self):
        first = DiversificationMultiplier([0.5, 0.5], [[1, 0.75], [0.75, 1]])
        second = DiversificationMultiplier([0.5, 0.5], [[1, 0.75], [0.75, 1]])
        assert first == second
        assert hash(first) == hash(second)


class TestFromRules:
    """Weights and correlations derived from rules."""

    @pytest.fixture
    def series(self):
        return _synthetic_series()

    @pytest.fixture
    def window(self, series):
        return series.timestamps[30], series.timestamps[120]

    def test_single_rule(self, series, window):
        dm = DiversificationMultiplier.from_rules([EWMAC(series, *window, short_horizon=4, long_horizon=16)])
        assert dm.get_weights() == [1.0]
        assert dm.get_correlations() == [[1.0]]
        assert dm.get_value() == 1.0

    def test_two_rules(self, series, window):
        rules = [
            EWMAC(series, *window, short_horizon=4, long_horizon=16),
            VolatilityDifference(series, *window, lookback_window=10),
        ]
        dm = DiversificationMultiplier.from_rules(rules)
        correlations = np.array(dm.get_correlations())
        expected = np.corrcoef([rule.relevant_forecast_values() for rule in rules])[0, 1]
        assert dm.get_weights() == [0.5, 0.5]
        assert correlations[0, 1] == pytest.approx(expected)
        assert correlations[0, 1] == correlations[1, 0]
        assert dm.get_value() >= 1.0

    def test_variations_share_parent_weight(self, series, window):
        parent = EWMAC(series, *window, variations=[
            EWMAC(series, *window, short_horizon=2, long_horizon=8),
            EWMAC(series, *window, short_horizon=8, long_horizon=32),
        ])
        other = VolatilityDifference(series, *window, lookback_window=10)
        dm = DiversificationMultiplier.from_rules([parent, other])
        assert dm.get_weights() == pytest.approx([0.25, 0.25, 0.5])
        assert len(dm.get_correlations()) == 3

    def test_empty_rules(self):
        with pytest.raises(InvalidArgumentError, match="Rules must not be empty"):
            DiversificationMultiplier.from_rules([])
