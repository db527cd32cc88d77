"""
Time series containers for the dashboard charts.

A TimeSeries holds one measured quantity (state of charge, temperature) with
one or more value columns sharing a timestamp index. Timestamps are
timezone-naive UTC. Series are immutable once loaded: smoothing and windowing
return new objects and never touch the stored samples.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Tuple, Union
import pandas as pd
import numpy as np

TimestampLike = Union[str, datetime, pd.Timestamp]


def to_utc_naive(value: TimestampLike) -> pd.Timestamp:
    """Convert a timestamp-like value to a timezone-naive UTC Timestamp."""
    ts = pd.Timestamp(value)
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts


def utc_now() -> pd.Timestamp:
    """Current time as a timezone-naive UTC Timestamp."""
    return pd.Timestamp.now(tz="UTC").tz_localize(None)


def validate_roll_period(period: int) -> int:
    """
    Check that a rolling-mean period is a positive integer.

    There is no upper bound: periods longer than the series
    degrade to the running mean of all samples so far.

    Raises:
        ValueError: If period is not a positive integer
    """
    if isinstance(period, bool) or not isinstance(period, (int, np.integer)):
        raise ValueError(f"Roll period must be a positive integer, got {period!r}")
    if period < 1:
        raise ValueError(f"Roll period must be a positive integer, got {period}")
    return int(period)


@dataclass(frozen=True)
class TimeWindow:
    """
    Closed visible time interval [start, end].

    Attributes:
        start: Window start (timezone-naive UTC)
        end: Window end (timezone-naive UTC)
    """
    start: pd.Timestamp
    end: pd.Timestamp

    def __post_init__(self):
        """Normalize bounds and validate ordering."""
        start = to_utc_naive(self.start)
        end = to_utc_naive(self.end)
        if end < start:
            raise ValueError(f"Window end {end} is before start {start}")
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    @classmethod
    def last_days(cls, days: int, now: Optional[TimestampLike] = None) -> "TimeWindow":
        """
        Window covering the last `days` calendar days up to `now`.

        Args:
            days: Number of days to show
            now: Window end (default: current UTC time)
        """
        if days <= 0:
            raise ValueError(f"days must be positive, got {days}")
        end = utc_now() if now is None else to_utc_naive(now)
        return cls(end - timedelta(days=days), end)

    @property
    def duration(self) -> pd.Timedelta:
        return self.end - self.start

    def shift(self, delta: Union[timedelta, pd.Timedelta]) -> "TimeWindow":
        """Return the window moved by delta (a pan)."""
        return TimeWindow(self.start + delta, self.end + delta)

    def scale(self, factor: float, center: Optional[TimestampLike] = None) -> "TimeWindow":
        """
        Return the window scaled around center (a zoom).

        A factor below 1 zooms in, above 1 zooms out.
        """
        if factor <= 0:
            raise ValueError(f"Zoom factor must be positive, got {factor}")
        mid = self.start + self.duration / 2 if center is None else to_utc_naive(center)
        return TimeWindow(
            mid - (mid - self.start) * factor,
            mid + (self.end - mid) * factor,
        )

    def as_tuple(self) -> Tuple[pd.Timestamp, pd.Timestamp]:
        return (self.start, self.end)


@dataclass(frozen=True)
class TimeSeries:
    """
    Immutable container for one CSV-backed time series.

    Attributes:
        timestamps: DatetimeIndex (timezone-naive UTC), one entry per sample
        values: 2-D float array, shape (n_samples, n_columns), read-only
        labels: Column names from the CSV header (excluding the date column)
        source: URL or path the series was loaded from
    """
    timestamps: pd.DatetimeIndex
    values: np.ndarray
    labels: Tuple[str, ...]
    source: str = ""

    def __post_init__(self):
        """Validate shapes and freeze the value array."""
        timestamps = pd.DatetimeIndex(self.timestamps)
        if timestamps.tz is not None:
            timestamps = timestamps.tz_convert("UTC").tz_localize(None)

        values = np.array(self.values, dtype=float)
        if values.ndim == 1:
            values = values.reshape(-1, 1)
        if values.ndim != 2:
            raise ValueError(f"values must be 1-D or 2-D, got {values.ndim} dimensions")

        labels = tuple(str(label) for label in self.labels)
        if len(timestamps) != values.shape[0]:
            raise ValueError(
                f"Length mismatch: {len(timestamps)} timestamps vs "
                f"{values.shape[0]} value rows"
            )
        if len(labels) != values.shape[1]:
            raise ValueError(
                f"Column mismatch: {len(labels)} labels vs {values.shape[1]} value columns"
            )

        values.flags.writeable = False
        object.__setattr__(self, "timestamps", timestamps)
        object.__setattr__(self, "values", values)
        object.__setattr__(self, "labels", labels)

    def __len__(self) -> int:
        """Return number of samples."""
        return len(self.timestamps)

    @property
    def is_empty(self) -> bool:
        return len(self.timestamps) == 0

    def to_dataframe(self) -> pd.DataFrame:
        """
        Convert to pandas DataFrame.

        Returns:
            DataFrame with timestamp index and one column per label
        """
        return pd.DataFrame(self.values.copy(), index=self.timestamps, columns=list(self.labels))

    def rolling_mean(self, period: int) -> pd.DataFrame:
        """
        Trailing rolling mean over `period` consecutive samples.

        Displayed value i is the mean of raw samples [max(0, i-period+1) .. i];
        the window shrinks at the series start instead of producing NaN.
        Missing samples (empty CSV cells) are skipped inside the window.

        Args:
            period: Number of samples (hours for hourly data), >= 1

        Returns:
            New DataFrame with the smoothed values
        """
        period = validate_roll_period(period)
        return self.to_dataframe().rolling(window=period, min_periods=1).mean()

    def full_extent(self) -> TimeWindow:
        """Window spanning the first to the last sample."""
        if self.is_empty:
            raise ValueError("Cannot compute the extent of an empty series")
        return TimeWindow(self.timestamps.min(), self.timestamps.max())

    def filter_period(
        self,
        start: Optional[TimestampLike] = None,
        end: Optional[TimestampLike] = None
    ) -> "TimeSeries":
        """
        Filter to a time period.

        Args:
            start: Start datetime (inclusive). None means from beginning.
            end: End datetime (inclusive). None means to end.

        Returns:
            New TimeSeries with filtered data

        Raises:
            ValueError: If no samples fall inside the period
        """
        mask = np.ones(len(self.timestamps), dtype=bool)

        if start is not None:
            mask &= self.timestamps >= to_utc_naive(start)

        if end is not None:
            mask &= self.timestamps <= to_utc_naive(end)

        if not mask.any():
            raise ValueError(f"No data in period [{start}, {end}]")

        return TimeSeries(
            timestamps=self.timestamps[mask],
            values=self.values[mask],
            labels=self.labels,
            source=self.source,
        )

    def get_statistics(self) -> dict:
        """
        Get per-column statistics.

        Returns:
            Dictionary {label: {min, max, mean, count}}, NaN gaps ignored
        """
        stats = {}
        for i, label in enumerate(self.labels):
            column = self.values[:, i]
            valid = column[~np.isnan(column)]
            if len(valid) == 0:
                stats[label] = {'min': None, 'max': None, 'mean': None, 'count': 0}
                continue
            stats[label] = {
                'min': float(np.min(valid)),
                'max': float(np.max(valid)),
                'mean': float(np.mean(valid)),
                'count': int(len(valid)),
            }
        return stats
