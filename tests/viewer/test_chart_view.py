"""
Tests for ChartView: loading states, window edits and smoothing.
"""

import pytest
import pandas as pd
from datetime import timedelta
from pathlib import Path

from atlas_status.config.dashboard_config import ChartConfig, default_soc_chart
from atlas_status.errors import DataLoadError, InvalidStateError
from atlas_status.viewer.chart_view import ChartView, ChartState
from atlas_status.viewer.formatters import UnitKind


# Fixture paths
FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"
SOC_CSV = str(FIXTURES_DIR / "soc.csv")
SIMPLE_CSV = str(FIXTURES_DIR / "simple.csv")
MALFORMED_CSV = str(FIXTURES_DIR / "malformed.csv")

NOW = "2016-01-03"


@pytest.fixture
def soc_view():
    """Ready state-of-charge view over the fixture series."""
    return ChartView.initialize(default_soc_chart(SOC_CSV), now=NOW)


@pytest.fixture
def simple_config():
    return ChartConfig(
        name="simple",
        title="Simple",
        series_url=SIMPLE_CSV,
        container_id="fig-simple",
        unit="percent",
    )


class TestInitialize:
    """Test view creation and loading."""

    def test_ready_after_load(self, soc_view):
        assert soc_view.state is ChartState.READY
        assert soc_view.is_ready
        assert soc_view.error is None

    def test_point_count_equals_rows(self, soc_view):
        assert soc_view.point_count == 7

    def test_default_window_is_last_60_days(self, soc_view):
        window = soc_view.visible_window
        assert window.end == pd.Timestamp(NOW)
        assert window.start == pd.Timestamp(NOW) - timedelta(days=60)

    def test_default_roll_period_from_config(self, soc_view):
        assert soc_view.roll_period == 6

    def test_formatter_from_unit(self, soc_view):
        assert soc_view.formatter.kind is UnitKind.PERCENT
        assert soc_view.format_value(80) == "80%"

    def test_labels(self, soc_view):
        assert soc_view.labels == ("Battery #1", "Battery #2")

    def test_new_view_is_loading(self, simple_config):
        view = ChartView(simple_config, now=NOW)
        assert view.state is ChartState.LOADING
        assert view.point_count == 0

    def test_custom_loader(self, simple_config):
        requested = []

        def loader(url):
            requested.append(url)
            from atlas_status.data.file_loaders import load_series_csv
            return load_series_csv(url)

        view = ChartView.initialize(simple_config, now=NOW, loader=loader)
        assert requested == [SIMPLE_CSV]
        assert view.point_count == 3


class TestLoadFailure:
    """Test the LOADING -> FAILED path."""

    def test_malformed_csv_fails_without_raising(self, simple_config):
        simple_config.series_url = MALFORMED_CSV
        view = ChartView.initialize(simple_config, now=NOW)

        assert view.state is ChartState.FAILED
        assert isinstance(view.error, DataLoadError)
        assert "non-numeric" in view.error.reason
        assert view.point_count == 0
        assert view.displayed_data().empty
        assert view.value_range() is None

    def test_unreachable_source_fails(self, simple_config, tmp_path):
        simple_config.series_url = str(tmp_path / "missing.csv")
        view = ChartView.initialize(simple_config, now=NOW)
        assert view.state is ChartState.FAILED
        assert view.error.reason == "file not found"

    def test_failure_is_logged(self, simple_config, caplog):
        simple_config.series_url = MALFORMED_CSV
        ChartView.initialize(simple_config, now=NOW)
        assert "failed to load" in caplog.text

    def test_loading_twice_is_invalid(self, soc_view):
        with pytest.raises(InvalidStateError):
            soc_view.load()

    def test_reloading_failed_view_is_invalid(self, simple_config):
        simple_config.series_url = MALFORMED_CSV
        view = ChartView.initialize(simple_config, now=NOW)
        with pytest.raises(InvalidStateError):
            view.load()

    def test_edits_accepted_on_failed_view(self, simple_config):
        simple_config.series_url = MALFORMED_CSV
        view = ChartView.initialize(simple_config, now=NOW)

        view.set_window("2016-01-01", "2016-01-02")
        view.set_roll_period(3)
        view.select("2016-01-01")

        assert view.state is ChartState.FAILED
        assert view.visible_window.start == pd.Timestamp("2016-01-01")
        assert view.roll_period == 3
        assert view.reset_zoom() == view.visible_window


class TestWindowEdits:
    """Test pan, zoom and explicit window changes."""

    def test_set_window(self, soc_view):
        window = soc_view.set_window("2016-01-01", "2016-01-02")
        assert soc_view.visible_window == window
        assert window.as_tuple() == (pd.Timestamp("2016-01-01"), pd.Timestamp("2016-01-02"))

    def test_invalid_window_rejected(self, soc_view):
        before = soc_view.visible_window
        with pytest.raises(ValueError):
            soc_view.set_window("2016-01-02", "2016-01-01")
        assert soc_view.visible_window == before

    def test_pan(self, soc_view):
        soc_view.set_window("2016-01-01", "2016-01-02")
        soc_view.pan(timedelta(hours=12))
        assert soc_view.visible_window.start == pd.Timestamp("2016-01-01 12:00")
        assert soc_view.visible_window.end == pd.Timestamp("2016-01-02 12:00")

    def test_zoom(self, soc_view):
        soc_view.set_window("2016-01-01", "2016-01-03")
        soc_view.zoom(0.5)
        assert soc_view.visible_window.as_tuple() == (
            pd.Timestamp("2016-01-01 12:00"), pd.Timestamp("2016-01-02 12:00")
        )

    def test_reset_zoom_shows_full_extent(self, soc_view):
        soc_view.set_window("2016-01-01", "2016-01-01 02:00")
        soc_view.reset_zoom()
        assert soc_view.visible_window.as_tuple() == (
            pd.Timestamp("2016-01-01 00:00"), pd.Timestamp("2016-01-03 00:00")
        )

    def test_window_listener_notified(self, soc_view):
        seen = []
        soc_view.add_window_listener(lambda view, window: seen.append(window))
        soc_view.set_window("2016-01-01", "2016-01-02")
        assert len(seen) == 1
        assert seen[0] == soc_view.visible_window

    def test_removed_listener_not_notified(self, soc_view):
        seen = []

        def listener(view, window):
            seen.append(window)

        soc_view.add_window_listener(listener)
        soc_view.remove_window_listener(listener)
        soc_view.set_window("2016-01-01", "2016-01-02")
        assert seen == []

    def test_selection(self, soc_view):
        seen = []
        soc_view.add_selection_listener(lambda view, ts: seen.append(ts))
        soc_view.select("2016-01-01 01:00")
        assert soc_view.selection == pd.Timestamp("2016-01-01 01:00")
        soc_view.select(None)
        assert seen == [pd.Timestamp("2016-01-01 01:00"), None]

    def test_roll_listener_notified(self, soc_view):
        seen = []
        soc_view.add_roll_listener(lambda view, period: seen.append(period))
        soc_view.set_roll_period(3)
        with pytest.raises(ValueError):
            soc_view.set_roll_period(0)
        assert seen == [3]

    def test_removed_roll_listener_not_notified(self, soc_view):
        seen = []

        def listener(view, period):
            seen.append(period)

        soc_view.add_roll_listener(listener)
        soc_view.remove_roll_listener(listener)
        soc_view.set_roll_period(3)
        assert seen == []


class TestSmoothing:
    """Test rolling-mean display."""

    def test_period_one(self, simple_config):
        view = ChartView.initialize(simple_config, now=NOW)
        view.set_roll_period(1)
        assert view.displayed_data()["value"].tolist() == [80, 82, 79]

    def test_period_two(self, simple_config):
        view = ChartView.initialize(simple_config, now=NOW)
        view.set_roll_period(2)
        assert view.displayed_data()["value"].tolist() == [80, 81, 80.5]

    def test_roll_period_does_not_mutate_series(self, simple_config):
        view = ChartView.initialize(simple_config, now=NOW)
        view.set_roll_period(3)
        assert view.series.values[:, 0].tolist() == [80, 82, 79]

    @pytest.mark.parametrize("period", [0, -2, 1.5, True])
    def test_invalid_roll_period(self, soc_view, period):
        with pytest.raises(ValueError):
            soc_view.set_roll_period(period)
        assert soc_view.roll_period == 6

    def test_very_long_period_allowed(self, soc_view):
        assert soc_view.set_roll_period(10_000) == 10_000


class TestValueRange:
    """Test value-axis range computation."""

    def test_visible_data_restricted_to_window(self, soc_view):
        soc_view.set_roll_period(1)
        soc_view.set_window("2016-01-01 01:00", "2016-01-01 02:00")
        data = soc_view.visible_data()
        assert len(data) == 2
        assert data["Battery #1"].tolist() == [82, 79]

    def test_computed_range_inside_window(self, soc_view):
        soc_view.set_roll_period(1)
        soc_view.set_window("2016-01-01 01:00", "2016-01-01 02:00")
        assert soc_view.value_range() == (77.0, 82.0)

    def test_empty_window_has_no_range(self, soc_view):
        soc_view.set_window("2017-01-01", "2017-01-02")
        assert soc_view.value_range() is None

    def test_locked_range_wins(self, soc_view):
        soc_view.lock_value_range((0.0, 100.0))
        assert soc_view.value_range() == (0.0, 100.0)
        soc_view.lock_value_range(None)
        assert soc_view.value_range() == soc_view.computed_value_range()
