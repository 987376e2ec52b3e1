"""
CSV price loader.

Reads three column price files (date, time, value) in European or US
notation and turns them into TimeSeriesPoints or a PriceSeries.

Example rows:
    EU:                 02.01.2020;22:00:00;13.385,93
    EU_YEAR_MONTH_DAY:  2020.01.02;22:00:00;13.385,93
    US:                 01/02/2020,22:00:00,"13,385.93"
    US_YEAR_MONTH_DAY:  2020/01/02,22:00:00,13385.93
"""
import logging
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, Union

import pandas as pd

from ..series.price_series import PriceSeries
from ..shared.errors import DataSourceError
from ..shared.types import TimeSeriesPoint

logger = logging.getLogger(__name__)


class DateOrder(Enum):
    DAY_MONTH_YEAR = ('%d', '%m', '%Y')
    MONTH_DAY_YEAR = ('%m', '%d', '%Y')
    YEAR_MONTH_DAY = ('%Y', '%m', '%d')


class CsvFormat(Enum):
    """Separators and date order of a price file."""
    EU = (';', '.', ':', ',', '.', DateOrder.DAY_MONTH_YEAR)
    EU_YEAR_MONTH_DAY = (';', '.', ':', ',', '.', DateOrder.YEAR_MONTH_DAY)
    US = (',', '/', ':', '.', ',', DateOrder.MONTH_DAY_YEAR)
    US_YEAR_MONTH_DAY = (',', '/', ':', '.', ',', DateOrder.YEAR_MONTH_DAY)

    def __init__(self, field_separator, date_separator, time_separator,
                 decimal_point, thousands_separator, date_order):
        self.field_separator = field_separator
        self.date_separator = date_separator
        self.time_separator = time_separator
        self.decimal_point = decimal_point
        self.thousands_separator = thousands_separator
        self.date_order = date_order

    @property
    def timestamp_format(self) -> str:
        """strptime format for '<date> <time>'."""
        date_part = self.date_separator.join(self.date_order.value)
        time_part = self.time_separator.join(('%H', '%M', '%S'))
        return f"{date_part} {time_part}"

    def parse_value(self, text: str) -> float:
        cleaned = text.strip().replace(self.thousands_separator, '').replace(self.decimal_point, '.')
        return float(cleaned)


class DataLoader:
    """
    Loads price points from a CSV file.

    The file has no header; every row is date, time and value.
    """

    def __init__(self, data_path: Union[str, Path], csv_format: CsvFormat = CsvFormat.EU):
        """
        Initialize the data loader.

        Args:
            data_path: Path to the CSV file containing the data
            csv_format: Notation of dates and numbers in the file
        """
        self.data_path = Path(data_path)
        if not self.data_path.exists():
            raise FileNotFoundError(f"Data file not found: {self.data_path}")
        if not self.data_path.is_file():
            raise FileNotFoundError(f"Data path is not a file: {self.data_path}")
        self.csv_format = csv_format

    def _read_frame(self) -> pd.DataFrame:
        try:
            return pd.read_csv(
                self.data_path,
                sep=self.csv_format.field_separator,
                header=None,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
            )
        except pd.errors.EmptyDataError as e:
            raise DataSourceError(f"Data file is empty: {self.data_path}") from e
        except pd.errors.ParserError as e:
            raise DataSourceError(
                f"The CSV {self.data_path} does not have an appropriate number of columns: {e}"
            ) from e

    def load(
        self,
        start_date: Optional[Union[str, datetime, pd.Timestamp]] = None,
        end_date: Optional[Union[str, datetime, pd.Timestamp]] = None,
    ) -> Tuple[TimeSeriesPoint, ...]:
        """
        Load points from the CSV file with optional filtering.

        Args:
            start_date: Start date for filtering (inclusive). If None, no start filter.
            end_date: End date for filtering (inclusive). If None, no end filter.

        Returns:
            Points sorted by timestamp

        Raises:
            DataSourceError: If a row does not have 3 columns, a date or value
                cannot be parsed, or a timestamp occurs twice
        """
        df = self._read_frame()
        if df.shape[1] != 3:
            raise DataSourceError(
                f"The CSV {self.data_path} does not have an appropriate number of columns: "
                f"expected 3, got {df.shape[1]}"
            )

        timestamp_format = self.csv_format.timestamp_format
        points = []
        for row_number, (date_text, time_text, value_text) in enumerate(df.itertuples(index=False), start=1):
            if any(not isinstance(text, str) or not text.strip() for text in (date_text, time_text, value_text)):
                raise DataSourceError(f"Row {row_number} of {self.data_path} has empty columns")
            try:
                timestamp = datetime.strptime(f"{date_text.strip()} {time_text.strip()}", timestamp_format)
            except ValueError as e:
                raise DataSourceError(
                    f"Row {row_number}: cannot parse date and time >{date_text} {time_text}<"
                ) from e
            try:
                value = self.csv_format.parse_value(value_text)
            except ValueError as e:
                raise DataSourceError(f"Row {row_number}: cannot parse value >{value_text}<") from e
            points.append(TimeSeriesPoint(timestamp, value))

        ordered = sorted(points)
        if ordered != points:
            logger.warning(f"Rows in {self.data_path} were not in chronological order; sorted them")
        for earlier, later in zip(ordered, ordered[1:]):
            if earlier.timestamp == later.timestamp:
                raise DataSourceError(f"Duplicate timestamp {later.timestamp} in {self.data_path}")

        if start_date is not None:
            start = pd.Timestamp(start_date).to_pydatetime()
            ordered = [point for point in ordered if point.timestamp >= start]
        if end_date is not None:
            end = pd.Timestamp(end_date).to_pydatetime()
            ordered = [point for point in ordered if point.timestamp <= end]

        logger.info(f"Loaded {len(ordered)} points from {self.data_path}")
        return tuple(ordered)

    def load_price_series(
        self,
        name: Optional[str] = None,
        start_date: Optional[Union[str, datetime, pd.Timestamp]] = None,
        end_date: Optional[Union[str, datetime, pd.Timestamp]] = None,
    ) -> PriceSeries:
        """Load points and wrap them into a PriceSeries named after the file by default."""
        return PriceSeries(name or self.data_path.stem, self.load(start_date, end_date))
