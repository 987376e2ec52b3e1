"""
Error types raised by the forecasting pipeline.

Every error derives from ValueError, so callers that catch ValueError
for bad arguments keep working.
"""


class InvalidArgumentError(ValueError):
    """Null, empty or malformed input, or a dimension mismatch."""


class InvalidWindowError(InvalidArgumentError):
    """A window bound is missing from a series or the bounds are reversed."""


class EmptyInputError(InvalidArgumentError):
    """A statistic was requested over an empty collection."""


class DivisionByZeroError(InvalidArgumentError, ZeroDivisionError):
    """An operation needed a non-zero divisor."""


class ConfigError(ValueError):
    """A configuration file is malformed."""


class DataSourceError(ValueError):
    """A price file could not be parsed."""
