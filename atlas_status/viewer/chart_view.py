"""
Interactive chart model for one CSV time series.

A ChartView holds everything the page shows for one chart: the loaded
series, the visible time window, the rolling-mean period, the highlighted
timestamp and the value-axis formatter. The view goes through
LOADING -> READY, or LOADING -> FAILED when the CSV cannot be loaded.
A failed view renders as an empty chart and keeps the error for the page.

Window, roll period and selection edits never change the state. They are
accepted on views that are not ready; such a view stays blank.
"""

from enum import Enum
from datetime import timedelta
from typing import Callable, List, Optional, Tuple, Union, TYPE_CHECKING
import logging

import numpy as np
import pandas as pd

from atlas_status.errors import DataLoadError, InvalidStateError
from atlas_status.data.file_loaders import load_series_csv
from atlas_status.data.time_series import (
    TimeSeries,
    TimeWindow,
    TimestampLike,
    to_utc_naive,
    validate_roll_period,
)
from .formatters import ValueFormatter, get_formatter

if TYPE_CHECKING:
    from atlas_status.config.dashboard_config import ChartConfig

logger = logging.getLogger(__name__)

SeriesLoader = Callable[[str], TimeSeries]
WindowListener = Callable[["ChartView", TimeWindow], None]
SelectionListener = Callable[["ChartView", Optional[pd.Timestamp]], None]
RollListener = Callable[["ChartView", int], None]
ValueRange = Tuple[float, float]


class ChartState(Enum):
    """Lifecycle of a chart view."""
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class ChartView:
    """
    One zoomable, pannable, smoothable chart.

    Attributes:
        config: ChartConfig the view was created from
        formatter: Value-axis formatter (unit suffix)
    """

    def __init__(
        self,
        config: "ChartConfig",
        formatter: Optional[ValueFormatter] = None,
        now: Optional[TimestampLike] = None
    ):
        """
        Create a view in the LOADING state.

        Args:
            config: Chart settings (series URL, defaults, unit)
            formatter: Value formatter; looked up from config.unit if omitted
            now: End of the default window (default: current UTC time)
        """
        self.config = config
        self.formatter = formatter if formatter is not None else get_formatter(config.unit)

        self._state = ChartState.LOADING
        self._series: Optional[TimeSeries] = None
        self._error: Optional[DataLoadError] = None

        self._window = TimeWindow.last_days(config.window_days, now=now)
        self._roll_period = validate_roll_period(config.roll_period)
        self._selection: Optional[pd.Timestamp] = None
        self._locked_value_range: Optional[ValueRange] = None

        self._window_listeners: List[WindowListener] = []
        self._selection_listeners: List[SelectionListener] = []
        self._roll_listeners: List[RollListener] = []

    @classmethod
    def initialize(
        cls,
        config: "ChartConfig",
        now: Optional[TimestampLike] = None,
        loader: Optional[SeriesLoader] = None,
        formatter: Optional[ValueFormatter] = None
    ) -> "ChartView":
        """
        Create a view and load its series.

        Load failures do not raise: the returned view is FAILED and carries
        the DataLoadError on `error`.

        Args:
            config: Chart settings
            now: End of the default window (default: current UTC time)
            loader: Callable fetching a TimeSeries for a URL/path
            formatter: Optional explicit value formatter

        Returns:
            ChartView in READY or FAILED state
        """
        view = cls(config, formatter=formatter, now=now)
        view.load(loader)
        return view

    def load(self, loader: Optional[SeriesLoader] = None) -> ChartState:
        """
        Fetch the series. Only allowed while LOADING.

        Raises:
            InvalidStateError: If the view already finished loading
        """
        if self._state is not ChartState.LOADING:
            raise InvalidStateError(
                f"Chart '{self.name}' is {self._state.value}; a new view is needed to reload"
            )

        loader = loader if loader is not None else load_series_csv
        try:
            series = loader(self.config.series_url)
        except DataLoadError as e:
            self._error = e
            self._state = ChartState.FAILED
            logger.error(f"Chart '{self.name}' failed to load: {e}")
            return self._state

        self._series = series
        self._state = ChartState.READY
        logger.info(f"Chart '{self.name}' ready with {len(series)} points")
        return self._state

    # ── Read-only state ───────────────────────────────────────────────────

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def container_id(self) -> str:
        return self.config.container_id

    @property
    def state(self) -> ChartState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is ChartState.READY

    @property
    def series(self) -> Optional[TimeSeries]:
        return self._series

    @property
    def error(self) -> Optional[DataLoadError]:
        return self._error

    @property
    def point_count(self) -> int:
        """Number of rendered points (0 for a chart that is not ready)."""
        return len(self._series) if self.is_ready else 0

    @property
    def labels(self) -> Tuple[str, ...]:
        return self._series.labels if self.is_ready else ()

    @property
    def roll_period(self) -> int:
        return self._roll_period

    @property
    def visible_window(self) -> TimeWindow:
        return self._window

    @property
    def selection(self) -> Optional[pd.Timestamp]:
        return self._selection

    # ── Interaction ───────────────────────────────────────────────────────

    def set_window(self, start: TimestampLike, end: TimestampLike) -> TimeWindow:
        """
        Set the visible time window (drag-select, range selector, pan, zoom).

        Window listeners are notified before this returns.
        """
        window = TimeWindow(start, end)
        self._window = window
        for listener in list(self._window_listeners):
            listener(self, window)
        return window

    def pan(self, delta: Union[timedelta, pd.Timedelta]) -> TimeWindow:
        """Move the visible window by delta."""
        shifted = self._window.shift(pd.Timedelta(delta))
        return self.set_window(shifted.start, shifted.end)

    def zoom(self, factor: float, center: Optional[TimestampLike] = None) -> TimeWindow:
        """Scale the visible window around center (factor < 1 zooms in)."""
        scaled = self._window.scale(factor, center)
        return self.set_window(scaled.start, scaled.end)

    def reset_zoom(self) -> TimeWindow:
        """Show the full extent of the data; no-op for a chart without data."""
        if not self.is_ready:
            return self._window
        extent = self._series.full_extent()
        return self.set_window(extent.start, extent.end)

    def set_roll_period(self, period: int) -> int:
        """
        Change the rolling-mean period used for the displayed curve.

        The stored series is not modified. Roll listeners are notified
        before this returns.

        Raises:
            ValueError: If period is not a positive integer
        """
        self._roll_period = validate_roll_period(period)
        logger.debug(f"Chart '{self.name}' roll period set to {self._roll_period}")
        for listener in list(self._roll_listeners):
            listener(self, self._roll_period)
        return self._roll_period

    def select(self, timestamp: Optional[TimestampLike]) -> Optional[pd.Timestamp]:
        """Highlight a timestamp (None clears the highlight)."""
        self._selection = None if timestamp is None else to_utc_naive(timestamp)
        for listener in list(self._selection_listeners):
            listener(self, self._selection)
        return self._selection

    # ── Displayed data ────────────────────────────────────────────────────

    def displayed_data(self) -> pd.DataFrame:
        """Smoothed series over its full extent (empty if not ready)."""
        if not self.is_ready:
            return pd.DataFrame()
        return self._series.rolling_mean(self._roll_period)

    def visible_data(self) -> pd.DataFrame:
        """Smoothed series restricted to the visible window."""
        data = self.displayed_data()
        if data.empty:
            return data
        mask = (data.index >= self._window.start) & (data.index <= self._window.end)
        return data[mask]

    def computed_value_range(self) -> Optional[ValueRange]:
        """Min/max of the displayed values inside the visible window."""
        data = self.visible_data()
        if data.empty:
            return None
        values = data.to_numpy(dtype=float)
        values = values[np.isfinite(values)]
        if len(values) == 0:
            return None
        return (float(values.min()), float(values.max()))

    def value_range(self) -> Optional[ValueRange]:
        """
        Current value-axis range.

        Auto-scaled to the visible data unless a synchronized group has
        locked it to another chart's range.
        """
        if self._locked_value_range is not None:
            return self._locked_value_range
        return self.computed_value_range()

    def lock_value_range(self, value_range: Optional[ValueRange]) -> None:
        """Pin the value axis to a range; None restores auto-scaling."""
        self._locked_value_range = value_range

    def format_value(self, value: float) -> str:
        return self.formatter(value)

    # ── Listeners ─────────────────────────────────────────────────────────

    def add_window_listener(self, listener: WindowListener) -> None:
        self._window_listeners.append(listener)

    def remove_window_listener(self, listener: WindowListener) -> None:
        if listener in self._window_listeners:
            self._window_listeners.remove(listener)

    def add_selection_listener(self, listener: SelectionListener) -> None:
        self._selection_listeners.append(listener)

    def remove_selection_listener(self, listener: SelectionListener) -> None:
        if listener in self._selection_listeners:
            self._selection_listeners.remove(listener)

    def add_roll_listener(self, listener: RollListener) -> None:
        self._roll_listeners.append(listener)

    def remove_roll_listener(self, listener: RollListener) -> None:
        if listener in self._roll_listeners:
            self._roll_listeners.remove(listener)

    def __repr__(self) -> str:
        return (
            f"ChartView(name={self.name!r}, state={self._state.value}, "
            f"points={self.point_count}, window=[{self._window.start}, {self._window.end}], "
            f"roll_period={self._roll_period})"
        )
