"""
Forecasting system configuration.

Describes which rules a subsystem runs, over which reference window and
with which scaling. Config validation runs at construction time (fail
fast with clear errors).
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from ..shared.defaults import (
    BASE_SCALE,
    EWMAC_SHORT_HORIZON, EWMAC_LONG_HORIZON, MIN_HORIZON,
    VOLATILITY_LOOKBACK_WINDOW, MIN_LOOKBACK_WINDOW,
    MAX_VARIATIONS,
)


def _validate_config(
    *,
    short_horizon: Optional[int] = None,
    long_horizon: Optional[int] = None,
    lookback_window: Optional[int] = None,
    variation_count: int = 0,
    base_scale: Optional[float] = None,
    capital: Optional[float] = None,
    start_of_reference_window: Optional[datetime] = None,
    end_of_reference_window: Optional[datetime] = None,
) -> None:
    """Validate rule and system parameters. Raises ValueError with clear message on failure."""
    if variation_count > MAX_VARIATIONS:
        raise ValueError(
            f"A rule takes at most {MAX_VARIATIONS} variations, got {variation_count}"
        )
    if short_horizon is not None and short_horizon < MIN_HORIZON:
        raise ValueError(f"EWMAC short_horizon must be >= {MIN_HORIZON}, got {short_horizon}")
    if short_horizon is not None and long_horizon is not None and long_horizon <= short_horizon:
        raise ValueError(
            f"EWMAC short_horizon ({short_horizon}) must be less than long_horizon ({long_horizon})"
        )
    if lookback_window is not None and lookback_window < MIN_LOOKBACK_WINDOW:
        raise ValueError(
            f"lookback_window must be >= {MIN_LOOKBACK_WINDOW}, got {lookback_window}"
        )
    if base_scale is not None and base_scale <= 0:
        raise ValueError(f"base_scale must be > 0, got {base_scale}")
    if capital is not None and capital <= 0:
        raise ValueError(f"capital must be > 0, got {capital}")
    if start_of_reference_window is not None and end_of_reference_window is not None:
        if end_of_reference_window <= start_of_reference_window:
            raise ValueError(
                f"end_of_reference_window ({end_of_reference_window}) must be after "
                f"start_of_reference_window ({start_of_reference_window})"
            )


@dataclass
class EwmacConfig:
    """EWMAC rule parameters. With variations, the horizons are ignored."""
    short_horizon: int = EWMAC_SHORT_HORIZON
    long_horizon: int = EWMAC_LONG_HORIZON
    variations: List['EwmacConfig'] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.variations:
            _validate_config(variation_count=len(self.variations))
        else:
            _validate_config(short_horizon=self.short_horizon, long_horizon=self.long_horizon)


@dataclass
class VolatilityDifferenceConfig:
    """Volatility difference rule parameters. With variations, the lookback window is ignored."""
    lookback_window: int = VOLATILITY_LOOKBACK_WINDOW
    variations: List['VolatilityDifferenceConfig'] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.variations:
            _validate_config(variation_count=len(self.variations))
        else:
            _validate_config(lookback_window=self.lookback_window)


@dataclass
class SystemConfig:
    """
    Complete configuration of one subsystem.

    The reference window is shared by all rules so their forecasts can be
    correlated and combined.
    """
    name: str
    start_of_reference_window: datetime
    end_of_reference_window: datetime
    base_scale: float = BASE_SCALE
    capital: float = 100_000.0
    ewmac: List[EwmacConfig] = field(default_factory=list)
    volatility_difference: List[VolatilityDifferenceConfig] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("name must not be empty")
        if not self.ewmac and not self.volatility_difference:
            raise ValueError(f"Config {self.name} must define at least one rule")
        _validate_config(
            base_scale=self.base_scale,
            capital=self.capital,
            start_of_reference_window=self.start_of_reference_window,
            end_of_reference_window=self.end_of_reference_window,
        )

    @property
    def rule_count(self) -> int:
        return len(self.ewmac) + len(self.volatility_difference)
