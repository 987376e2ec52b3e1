"""
Diversification multiplier.

When correlated forecasts are averaged, the combined forecast has lower
variance than any single one. Multiplying by 1 / sqrt(w' C w) restores
it, where w are the forecast weights and C their correlation matrix.
"""
import logging
from typing import List, Sequence, Tuple

import numpy as np

from ..indicators.statistics import correlation_matrix
from ..rules.base import Rule
from ..shared.defaults import WEIGHTS_SUM_TOLERANCE
from ..shared.errors import InvalidArgumentError

logger = logging.getLogger(__name__)


def _validate_weights_and_correlations(
    weights: Sequence[float],
    correlations: Sequence[Sequence[float]],
) -> None:
    """Raise InvalidArgumentError with a clear message if inputs are unusable."""
    if weights is None or len(weights) == 0:
        raise InvalidArgumentError("Weights must not be empty")
    if correlations is None or len(correlations) == 0:
        raise InvalidArgumentError("Correlations must not be empty")
    size = len(weights)
    if len(correlations) != size:
        raise InvalidArgumentError(
            f"Got {size} weights but {len(correlations)} correlation rows"
        )
    for index, row in enumerate(correlations):
        if row is None or len(row) != size:
            raise InvalidArgumentError(
                f"Correlation matrix is not square: row {index} has "
                f"{0 if row is None else len(row)} entries, expected {size}"
            )
    for index, weight in enumerate(weights):
        if np.isnan(weight) or weight < 0:
            raise InvalidArgumentError(f"Weight at position {index} must be >= 0, got {weight}")
    total = float(np.sum(np.asarray(weights, dtype=float)))
    if abs(total - 1.0) > WEIGHTS_SUM_TOLERANCE:
        raise InvalidArgumentError(f"Weights must sum up to 1, got {total}")
    for row in range(size):
        for column in range(size):
            value = correlations[row][column]
            if np.isnan(value) or not -1 <= value <= 1:
                raise InvalidArgumentError(
                    f"Correlation at [{row}][{column}] must be within [-1, 1], got {value}"
                )
            if row == column and value != 1:
                raise InvalidArgumentError(
                    f"Correlation matrix diagonal must be 1, got {value} at [{row}][{column}]"
                )
            if value != correlations[column][row]:
                raise InvalidArgumentError(
                    f"Correlation matrix is not symmetric at [{row}][{column}]: "
                    f"{value} != {correlations[column][row]}"
                )


class DiversificationMultiplier:
    """Immutable diversification multiplier for a set of weighted forecasts."""

    def __init__(self, weights: Sequence[float], correlations: Sequence[Sequence[float]]):
        """
        Args:
            weights: Non-negative forecast weights summing to 1
            correlations: Symmetric correlation matrix with a diagonal of 1,
                one row and column per weight

        Raises:
            InvalidArgumentError: If weights or correlations are invalid
        """
        _validate_weights_and_correlations(weights, correlations)
        weight_vector = np.array(weights, dtype=float)
        correlation_array = np.array([list(row) for row in correlations], dtype=float)

        variance = float(weight_vector @ correlation_array @ weight_vector)
        if not variance > 0:
            raise InvalidArgumentError(
                f"Weighted correlations must be positive to derive a multiplier, got {variance}"
            )

        weight_vector.setflags(write=False)
        correlation_array.setflags(write=False)
        self._weights = weight_vector
        self._correlations = correlation_array
        self._value = float(1.0 / np.sqrt(variance))

    @classmethod
    def from_rules(cls, rules: Sequence[Rule]) -> "DiversificationMultiplier":
        """
        Derive weights and correlations from rules.

        Top level rules share the weight equally. A rule with variations
        hands its share down to its variations in proportion to their
        variation weights. Correlations are calculated from the forecasts
        inside each rule's reference window.

        Raises:
            InvalidArgumentError: If rules are empty or their forecasts
                cannot be correlated
        """
        if rules is None or len(rules) == 0:
            raise InvalidArgumentError("Rules must not be empty")
        weights, forecasts = _weights_and_forecasts(rules, 1.0 / len(rules))
        if len(forecasts) == 1:
            correlations = np.array([[1.0]])
        else:
            lengths = {len(row) for row in forecasts}
            if len(lengths) != 1:
                raise InvalidArgumentError(
                    "Rules must share the same reference window to be correlated"
                )
            correlations = correlation_matrix(forecasts)
            # Symmetric and unit-diagonal up to floating point error.
            correlations = (correlations + correlations.T) / 2
            np.fill_diagonal(correlations, 1.0)
        logger.debug(f"Diversification inputs from {len(rules)} rules: weights={weights}")
        return cls(weights, correlations.tolist())

    @property
    def value(self) -> float:
        return self._value

    def get_value(self) -> float:
        return self._value

    def get_weights(self) -> List[float]:
        """A copy of the weights."""
        return self._weights.tolist()

    def get_correlations(self) -> List[List[float]]:
        """A copy of the correlation matrix."""
        return self._correlations.tolist()

    def __eq__(self, other):
        if not isinstance(other, DiversificationMultiplier):
            return NotImplemented
        return (
            np.array_equal(self._weights, other._weights)
            and np.array_equal(self._correlations, other._correlations)
        )

    def __hash__(self):
        return hash((self._weights.tobytes(), self._correlations.tobytes()))

    def __repr__(self):
        return f"DiversificationMultiplier(value={self._value:.6f}, weights={self.get_weights()})"


def _weights_and_forecasts(rules: Sequence[Rule], share: float) -> Tuple[List[float], List[np.ndarray]]:
    weights: List[float] = []
    forecasts: List[np.ndarray] = []
    for rule in rules:
        if rule.has_variations():
            for variation, variation_weight in zip(rule.variations, rule.variation_weights):
                nested_weights, nested_forecasts = _weights_and_forecasts(
                    [variation], share * variation_weight
                )
                weights.extend(nested_weights)
                forecasts.extend(nested_forecasts)
        else:
            weights.append(share)
            forecasts.append(rule.relevant_forecast_values())
    return weights, forecasts
