"""
Time series data for the dashboard charts.

Handles loading CSV series from files or URLs and smoothing/windowing them.
"""

from .time_series import TimeSeries, TimeWindow, validate_roll_period
from .file_loaders import (
    load_series_csv,
    parse_series_csv,
    read_source_text,
)

__all__ = [
    'TimeSeries',
    'TimeWindow',
    'validate_roll_period',
    'load_series_csv',
    'parse_series_csv',
    'read_source_text',
]
