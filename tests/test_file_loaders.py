"""
Tests for CSV series loading from files and URLs.

Remote loading is exercised with a fake session object passed to the loader.
"""

import pytest
import numpy as np
import pandas as pd
import requests
from pathlib import Path

from atlas_status.data.file_loaders import (
    is_remote,
    load_series_csv,
    parse_series_csv,
    read_source_text,
)
from atlas_status.errors import DataLoadError


# Fixture paths
FIXTURES_DIR = Path(__file__).parent / "fixtures"
SOC_CSV = FIXTURES_DIR / "soc.csv"
SIMPLE_CSV = FIXTURES_DIR / "simple.csv"


class FakeResponse:
    def __init__(self, text, status_code=200):
        self.text = text
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeSession:
    """Stands in for requests.Session, recording requested URLs."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if self.error is not None:
            raise self.error
        return self.response


class TestParseSeriesCsv:
    """Test CSV parsing."""

    def test_simple_series(self):
        series = parse_series_csv("date,value\n2016-01-01,80\n2016-01-02,82\n2016-01-03,79\n")
        assert len(series) == 3
        assert series.labels == ("value",)
        assert series.values[:, 0].tolist() == [80, 82, 79]
        assert series.timestamps[0] == pd.Timestamp("2016-01-01")

    def test_utc_suffix_dates(self):
        series = parse_series_csv(
            "date,Battery #1,Battery #2\n"
            "2016-07-25 14:00:00 UTC,88,85\n"
            "2016-07-25 15:00:00 UTC,87,84\n"
        )
        assert series.labels == ("Battery #1", "Battery #2")
        assert series.timestamps[1] == pd.Timestamp("2016-07-25 15:00:00")
        assert series.timestamps.tz is None

    def test_offset_dates_converted_to_utc(self):
        series = parse_series_csv("date,value\n2016-01-01T02:00:00+02:00,80\n")
        assert series.timestamps[0] == pd.Timestamp("2016-01-01 00:00:00")

    def test_mixed_date_precisions(self):
        series = parse_series_csv(
            "date,value\n"
            "2016-01-01,80\n"
            "2016-01-01 12:00:00,82\n"
            "2016-01-02T00:00:00Z,79\n"
        )
        assert len(series) == 3
        assert series.timestamps[1] == pd.Timestamp("2016-01-01 12:00:00")
        assert series.timestamps[2] == pd.Timestamp("2016-01-02")

    def test_fractional_seconds_next_to_whole_seconds(self):
        series = parse_series_csv(
            "date,value\n"
            "2016-07-25 12:00:00 UTC,88\n"
            "2016-07-25 12:30:00.5 UTC,87\n"
        )
        assert len(series) == 2
        assert series.timestamps[1] == pd.Timestamp("2016-07-25 12:30:00.5")

    def test_numeric_value_header(self):
        series = parse_series_csv("date,1\n2016-01-01,80\n")
        assert series.labels == ("1",)
        assert series.values[:, 0].tolist() == [80]

    def test_boolean_values_rejected(self):
        with pytest.raises(DataLoadError, match="non-numeric"):
            parse_series_csv("date,value\n2016-01-01,True\n2016-01-02,False\n")

    def test_empty_cells_are_gaps(self):
        series = parse_series_csv((FIXTURES_DIR / "gaps.csv").read_text())
        assert np.isnan(series.values[1, 0])
        assert np.isnan(series.values[2, 1])
        assert series.values[1, 1] == 72

    def test_unsorted_rows_are_sorted(self, caplog):
        series = parse_series_csv((FIXTURES_DIR / "unsorted.csv").read_text(), source="unsorted.csv")
        assert series.values[:, 0].tolist() == [80, 82, 79]
        assert series.timestamps.is_monotonic_increasing
        assert "not sorted" in caplog.text

    def test_empty_text(self):
        with pytest.raises(DataLoadError, match="empty"):
            parse_series_csv("   \n")

    def test_missing_header(self):
        with pytest.raises(DataLoadError, match="missing header"):
            parse_series_csv((FIXTURES_DIR / "no_header.csv").read_text())

    def test_non_numeric_value(self):
        with pytest.raises(DataLoadError, match="non-numeric"):
            parse_series_csv((FIXTURES_DIR / "malformed.csv").read_text())

    def test_unparsable_date(self):
        with pytest.raises(DataLoadError, match="unparsable date"):
            parse_series_csv((FIXTURES_DIR / "bad_date.csv").read_text())

    def test_header_only(self):
        with pytest.raises(DataLoadError, match="no data rows"):
            parse_series_csv((FIXTURES_DIR / "header_only.csv").read_text())

    def test_single_column(self):
        with pytest.raises(DataLoadError, match="at least one value column"):
            parse_series_csv("date\n2016-01-01\n")

    def test_error_carries_source(self):
        with pytest.raises(DataLoadError) as exc_info:
            parse_series_csv("date,value\n2016-01-01,x\n", source="http://host/soc.csv")
        assert exc_info.value.source == "http://host/soc.csv"
        assert "http://host/soc.csv" in str(exc_info.value)


class TestReadSourceText:
    """Test fetching raw resource text."""

    def test_is_remote(self):
        assert is_remote("http://host/soc.csv")
        assert is_remote("https://host/soc.csv")
        assert not is_remote("file:///tmp/soc.csv")
        assert not is_remote("data/soc.csv")

    def test_local_path(self):
        assert read_source_text(SIMPLE_CSV).startswith("date,value")

    def test_file_url(self):
        assert read_source_text(SIMPLE_CSV.resolve().as_uri()).startswith("date,value")

    def test_missing_file(self, tmp_path):
        with pytest.raises(DataLoadError, match="file not found"):
            read_source_text(tmp_path / "missing.csv")

    def test_remote_uses_session_and_timeout(self):
        session = FakeSession(FakeResponse("date,value\n2016-01-01,80\n"))
        text = read_source_text("https://host/soc.csv", timeout=5.0, session=session)
        assert text.startswith("date,value")
        assert session.calls == [("https://host/soc.csv", 5.0)]

    def test_remote_http_error(self):
        session = FakeSession(FakeResponse("Not Found", status_code=404))
        with pytest.raises(DataLoadError, match="request failed"):
            read_source_text("https://host/soc.csv", session=session)

    def test_remote_connection_error(self):
        session = FakeSession(error=requests.ConnectionError("unreachable"))
        with pytest.raises(DataLoadError) as exc_info:
            read_source_text("https://host/soc.csv", session=session)
        assert isinstance(exc_info.value.cause, requests.ConnectionError)


class TestLoadSeriesCsv:
    """Test end-to-end loading."""

    def test_load_fixture(self):
        series = load_series_csv(SOC_CSV)
        assert len(series) == 7
        assert series.labels == ("Battery #1", "Battery #2")
        assert series.source == str(SOC_CSV)

    def test_load_remote(self):
        session = FakeSession(FakeResponse(SIMPLE_CSV.read_text()))
        series = load_series_csv("https://host/simple.csv", session=session)
        assert series.values[:, 0].tolist() == [80, 82, 79]
        assert series.source == "https://host/simple.csv"
