"""
Core value types shared across the forecasting pipeline.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Position(Enum):
    """Position implied by a combined forecast."""
    LONG = "long"
    SHORT = "short"
    HOLD = "hold"


@dataclass(frozen=True)
class TimeSeriesPoint:
    """
    A single (timestamp, value) observation.

    Points are ordered by timestamp only. Two points are equal only when
    both timestamp and value match exactly.
    """
    timestamp: datetime
    value: float

    def __lt__(self, other: "TimeSeriesPoint") -> bool:
        if not isinstance(other, TimeSeriesPoint):
            return NotImplemented
        return self.timestamp < other.timestamp

    def __le__(self, other: "TimeSeriesPoint") -> bool:
        if not isinstance(other, TimeSeriesPoint):
            return NotImplemented
        return self.timestamp <= other.timestamp

    def __gt__(self, other: "TimeSeriesPoint") -> bool:
        if not isinstance(other, TimeSeriesPoint):
            return NotImplemented
        return self.timestamp > other.timestamp

    def __ge__(self, other: "TimeSeriesPoint") -> bool:
        if not isinstance(other, TimeSeriesPoint):
            return NotImplemented
        return self.timestamp >= other.timestamp

    def __str__(self) -> str:
        return f"{self.timestamp.isoformat()}={self.value}"
