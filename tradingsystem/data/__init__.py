"""
Price data ingestion.

Loads locale-specific CSV price files into TimeSeriesPoints and PriceSeries.
"""
from .loader import CsvFormat, DataLoader, DateOrder

__all__ = [
    'CsvFormat',
    'DataLoader',
    'DateOrder',
]
