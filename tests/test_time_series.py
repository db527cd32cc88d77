"""
Unit tests for TimeSeries and TimeWindow.
"""

import pytest
import numpy as np
import pandas as pd
from datetime import datetime, timedelta, timezone

from atlas_status.data.time_series import (
    TimeSeries,
    TimeWindow,
    to_utc_naive,
    validate_roll_period,
)


def make_series(values, start="2016-01-01", freq="D", labels=("value",)):
    timestamps = pd.date_range(start, periods=len(values), freq=freq)
    return TimeSeries(timestamps=timestamps, values=values, labels=labels, source="test")


class TestTimestamps:
    """Test timestamp normalization."""

    def test_aware_timestamp_converted_to_naive_utc(self):
        ts = to_utc_naive(datetime(2016, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=2))))
        assert ts == pd.Timestamp("2016-01-01 10:00")
        assert ts.tzinfo is None

    def test_naive_timestamp_unchanged(self):
        assert to_utc_naive("2016-01-01 10:00") == pd.Timestamp("2016-01-01 10:00")


class TestRollPeriodValidation:
    """Test roll period validation."""

    @pytest.mark.parametrize("period", [1, 2, 24, 10_000, np.int64(6)])
    def test_positive_integers_accepted(self, period):
        assert validate_roll_period(period) == int(period)

    @pytest.mark.parametrize("period", [0, -1, 2.5, "6", True, None])
    def test_invalid_periods_rejected(self, period):
        with pytest.raises(ValueError):
            validate_roll_period(period)


class TestTimeWindow:
    """Test visible time window."""

    def test_end_before_start_rejected(self):
        with pytest.raises(ValueError, match="before start"):
            TimeWindow("2016-01-02", "2016-01-01")

    def test_single_instant_allowed(self):
        window = TimeWindow("2016-01-01", "2016-01-01")
        assert window.duration == pd.Timedelta(0)

    def test_last_days(self):
        """Default window: end = now, start = now - 60 days."""
        window = TimeWindow.last_days(60, now="2016-03-01 12:00")
        assert window.end == pd.Timestamp("2016-03-01 12:00")
        assert window.start == pd.Timestamp("2016-01-01 12:00")

    def test_last_days_requires_positive_days(self):
        with pytest.raises(ValueError):
            TimeWindow.last_days(0, now="2016-03-01")

    def test_shift(self):
        window = TimeWindow("2016-01-01", "2016-01-02").shift(timedelta(days=1))
        assert window.as_tuple() == (pd.Timestamp("2016-01-02"), pd.Timestamp("2016-01-03"))

    def test_scale_zoom_in_around_center(self):
        window = TimeWindow("2016-01-01", "2016-01-05").scale(0.5)
        assert window.start == pd.Timestamp("2016-01-02")
        assert window.end == pd.Timestamp("2016-01-04")

    def test_scale_rejects_non_positive_factor(self):
        with pytest.raises(ValueError):
            TimeWindow("2016-01-01", "2016-01-05").scale(0)


class TestTimeSeries:
    """Test TimeSeries container."""

    def test_length_and_labels(self):
        series = make_series([[80, 70], [82, 72]], labels=("Battery #1", "Battery #2"))
        assert len(series) == 2
        assert series.labels == ("Battery #1", "Battery #2")
        assert series.values.shape == (2, 2)

    def test_one_dimensional_values_become_one_column(self):
        series = make_series([80, 82, 79])
        assert series.values.shape == (3, 1)

    def test_values_are_read_only(self):
        series = make_series([80, 82, 79])
        with pytest.raises(ValueError):
            series.values[0, 0] = 0

    def test_length_mismatch_rejected(self):
        with pytest.raises(ValueError, match="Length mismatch"):
            TimeSeries(pd.date_range("2016-01-01", periods=2), [1, 2, 3], ("value",))

    def test_label_mismatch_rejected(self):
        with pytest.raises(ValueError, match="Column mismatch"):
            TimeSeries(pd.date_range("2016-01-01", periods=2), [[1, 2], [3, 4]], ("value",))

    def test_to_dataframe(self):
        df = make_series([80, 82, 79]).to_dataframe()
        assert list(df.columns) == ["value"]
        assert df.index[0] == pd.Timestamp("2016-01-01")
        assert df["value"].tolist() == [80, 82, 79]

    def test_filter_period_inclusive(self):
        series = make_series([80, 82, 79, 81]).filter_period("2016-01-02", "2016-01-03")
        assert len(series) == 2
        assert series.values[:, 0].tolist() == [82, 79]

    def test_filter_period_empty_raises(self):
        with pytest.raises(ValueError, match="No data"):
            make_series([80, 82]).filter_period("2017-01-01", "2017-02-01")

    def test_full_extent(self):
        extent = make_series([80, 82, 79]).full_extent()
        assert extent.as_tuple() == (pd.Timestamp("2016-01-01"), pd.Timestamp("2016-01-03"))

    def test_statistics_skip_gaps(self):
        stats = make_series([80, np.nan, 84]).get_statistics()
        assert stats["value"] == {'min': 80.0, 'max': 84.0, 'mean': 82.0, 'count': 2}


class TestRollingMean:
    """Test trailing rolling mean."""

    def test_period_one_is_identity(self):
        assert make_series([80, 82, 79]).rolling_mean(1)["value"].tolist() == [80, 82, 79]

    def test_period_two(self):
        assert make_series([80, 82, 79]).rolling_mean(2)["value"].tolist() == [80, 81, 80.5]

    def test_trailing_window_formula(self):
        raw = [3.0, 9.0, 1.0, 7.0, 5.0, 2.0]
        period = 3
        smoothed = make_series(raw).rolling_mean(period)["value"].tolist()
        expected = [np.mean(raw[max(0, i - period + 1):i + 1]) for i in range(len(raw))]
        assert smoothed == pytest.approx(expected)

    def test_period_longer_than_series_is_running_mean(self):
        smoothed = make_series([80, 82, 79]).rolling_mean(1000)["value"].tolist()
        assert smoothed == pytest.approx([80, 81, 80.333333])

    def test_gaps_skipped_inside_window(self):
        smoothed = make_series([80, np.nan, 84]).rolling_mean(2)["value"].tolist()
        assert smoothed == [80, 80, 84]

    def test_stored_series_not_mutated(self):
        series = make_series([80, 82, 79])
        series.rolling_mean(2)
        assert series.values[:, 0].tolist() == [80, 82, 79]

    def test_invalid_period_rejected(self):
        with pytest.raises(ValueError):
            make_series([80, 82, 79]).rolling_mean(0)
