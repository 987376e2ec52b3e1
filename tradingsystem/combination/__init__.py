"""
Combination of forecasts.

Provides the DiversificationMultiplier and the SubSystem that combines
all rules trading one instrument.
"""
from .diversification import DiversificationMultiplier
from .subsystem import SubSystem

__all__ = [
    'DiversificationMultiplier',
    'SubSystem',
]
