"""
CSV loading for dashboard time series.

Expected format (as exported by the upstream heartbeat server):
- First row: column headers
- Column 1: ISO-8601 or 'YYYY-MM-DD HH:MM:SS UTC' date-time
- Remaining columns: numeric samples (empty cells are gaps)

Sources may be local paths, file:// URLs or http(s):// URLs.
"""

import io
import logging
import re
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlparse
from urllib.request import url2pathname

import numpy as np
import pandas as pd
import requests

from atlas_status.errors import DataLoadError
from .time_series import TimeSeries

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 30.0

_UTC_SUFFIX_RE = r"\s*(UTC|Z)$"


def is_remote(source: Union[str, Path]) -> bool:
    """Return True if source is an http(s) URL."""
    return urlparse(str(source)).scheme in ("http", "https")


def read_source_text(
    source: Union[str, Path],
    timeout: float = DEFAULT_TIMEOUT_S,
    session: Optional[requests.Session] = None
) -> str:
    """
    Fetch the raw text of a CSV resource.

    Args:
        source: Local path, file:// URL or http(s):// URL
        timeout: Request timeout in seconds for remote sources
        session: Optional requests session (anything with a `get` method)

    Returns:
        Resource contents as text

    Raises:
        DataLoadError: If the resource is unreachable
    """
    source_str = str(source)

    if is_remote(source_str):
        client = session if session is not None else requests
        logger.debug(f"Fetching {source_str} (timeout {timeout}s)")
        try:
            response = client.get(source_str, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise DataLoadError(source_str, f"request failed: {e}", e) from e
        return response.text

    parsed = urlparse(source_str)
    if parsed.scheme == "file":
        path = Path(url2pathname(parsed.path))
    else:
        path = Path(source_str)

    if not path.exists():
        raise DataLoadError(source_str, "file not found")

    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise DataLoadError(source_str, f"could not read file: {e}", e) from e


def _header_is_data(columns: pd.Index) -> bool:
    """Detect a CSV whose first row is a sample rather than a header."""
    first = str(columns[0]).strip()
    if not first[:1].isdigit():
        return False
    try:
        pd.Timestamp(re.sub(_UTC_SUFFIX_RE, "", first))
    except (ValueError, TypeError):
        return False
    return True


def _parse_dates(column: pd.Series, source: str) -> pd.DatetimeIndex:
    """
    Parse the date column to timezone-naive UTC timestamps.

    Rows may mix ISO-8601 precisions (date only, seconds, fractional
    seconds); anything else falls back to per-row parsing.
    """
    raw = column.astype(str).str.strip().str.replace(_UTC_SUFFIX_RE, "", regex=True)
    try:
        parsed = pd.to_datetime(raw, utc=True, format="ISO8601")
    except (ValueError, TypeError):
        logger.debug(f"Dates in {source} are not uniform ISO-8601, parsing row by row")
        try:
            parsed = pd.to_datetime(raw, utc=True, format="mixed")
        except (ValueError, TypeError, OverflowError) as e:
            raise DataLoadError(
                source, f"unparsable date in column '{column.name}': {e}", e
            ) from e

    if parsed.isna().any():
        row = int(np.flatnonzero(parsed.isna().to_numpy())[0])
        raise DataLoadError(
            source, f"unparsable date in column '{column.name}' at row {row + 1}"
        )

    return pd.DatetimeIndex(parsed.dt.tz_convert(None))


def parse_series_csv(text: str, source: str = "<memory>") -> TimeSeries:
    """
    Parse CSV text into a TimeSeries.

    Args:
        text: CSV contents
        source: Identifier used in error messages and on the series

    Returns:
        TimeSeries with one value column per non-date CSV column

    Raises:
        DataLoadError: Missing header, non-numeric value, unparsable date,
            or no data rows
    """
    if not text.strip():
        raise DataLoadError(source, "resource is empty")

    try:
        df = pd.read_csv(io.StringIO(text), skipinitialspace=True, dtype=str)
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as e:
        raise DataLoadError(source, f"invalid CSV: {e}", e) from e

    if len(df.columns) < 2:
        raise DataLoadError(
            source, "expected a date column and at least one value column"
        )

    if _header_is_data(df.columns):
        raise DataLoadError(source, "missing header row")

    if df.empty:
        raise DataLoadError(source, "no data rows")

    timestamps = _parse_dates(df[df.columns[0]], source)

    columns = []
    for col in df.columns[1:]:
        try:
            numeric = pd.to_numeric(df[col], errors="raise")
            columns.append(numeric.to_numpy(dtype=float, na_value=np.nan))
        except (ValueError, TypeError) as e:
            raise DataLoadError(source, f"non-numeric value in column '{col}': {e}", e) from e

    values = np.column_stack(columns)

    if not timestamps.is_monotonic_increasing:
        logger.warning(f"Timestamps in {source} are not sorted, sorting by time")
        order = np.argsort(timestamps.to_numpy(), kind="stable")
        timestamps = timestamps[order]
        values = values[order]

    return TimeSeries(
        timestamps=timestamps,
        values=values,
        labels=tuple(str(col) for col in df.columns[1:]),
        source=source,
    )


def load_series_csv(
    source: Union[str, Path],
    timeout: float = DEFAULT_TIMEOUT_S,
    session: Optional[requests.Session] = None
) -> TimeSeries:
    """
    Load a time series from a CSV file or URL.

    Args:
        source: Local path, file:// URL or http(s):// URL
        timeout: Request timeout in seconds for remote sources
        session: Optional requests session used for remote sources

    Returns:
        TimeSeries with loaded samples

    Raises:
        DataLoadError: If the resource is unreachable or malformed
    """
    source_str = str(source)
    logger.info(f"Loading series from {source_str}")

    text = read_source_text(source_str, timeout=timeout, session=session)
    series = parse_series_csv(text, source=source_str)

    logger.info(
        f"Loaded {len(series)} samples ({', '.join(series.labels)}) from {source_str}"
    )
    return series
