"""
Synchronization of chart views.

A ChartGroup keeps the visible time window of its members identical: a pan
or zoom on any member is written to every other member inside the same call,
so the charts are never observably out of step. The group is the only writer
of mirrored state and guards against re-entrant echoes of its own updates.
"""

from dataclasses import dataclass
from typing import Iterator, Mapping, Optional, Sequence, Tuple, Union, TYPE_CHECKING
import logging

import pandas as pd

from atlas_status.data.time_series import TimeWindow
from .chart_view import ChartView

if TYPE_CHECKING:
    from atlas_status.config.dashboard_config import SyncConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncOptions:
    """
    What a ChartGroup mirrors between its members.

    Attributes:
        zoom: Visible time window (pan/zoom)
        selection: Highlighted timestamp
        value_range: Value (y) axis range of the triggering chart; when False
            each chart auto-scales to its own data in the shared window
    """
    zoom: bool = True
    selection: bool = True
    value_range: bool = True

    @classmethod
    def from_mapping(cls, options: Mapping[str, bool]) -> "SyncOptions":
        """
        Build options from a mapping such as {'range': False}.

        Raises:
            ValueError: If the mapping has an unknown key
        """
        known = {'zoom', 'selection', 'range', 'value_range'}
        unknown = set(options) - known
        if unknown:
            raise ValueError(f"Unknown synchronization options: {sorted(unknown)}")
        return cls(
            zoom=bool(options.get('zoom', True)),
            selection=bool(options.get('selection', True)),
            value_range=bool(options.get('range', options.get('value_range', True))),
        )

    @classmethod
    def from_config(cls, sync: "SyncConfig") -> "SyncOptions":
        return cls(zoom=sync.zoom, selection=sync.selection, value_range=sync.range)


OptionsLike = Union[SyncOptions, Mapping[str, bool], None]


def _coerce_options(options: OptionsLike) -> SyncOptions:
    if options is None:
        return SyncOptions()
    if isinstance(options, SyncOptions):
        return options
    return SyncOptions.from_mapping(options)


class ChartGroup:
    """
    A set of chart views sharing one visible time window.

    On creation every member is aligned to the first member's window.
    """

    def __init__(self, charts: Sequence[ChartView], options: OptionsLike = None):
        """
        Link charts together.

        Args:
            charts: Two or more distinct ChartView instances
            options: SyncOptions or a mapping like {'range': False}

        Raises:
            ValueError: If fewer than two distinct charts are given
        """
        charts = list(charts)
        if len(charts) < 2:
            raise ValueError("A chart group needs at least two charts")
        if len({id(chart) for chart in charts}) != len(charts):
            raise ValueError("A chart can only appear once in a group")

        self.options = _coerce_options(options)
        self._charts: Tuple[ChartView, ...] = tuple(charts)
        self._syncing = False
        self._attached = False
        self._attach()

    def _attach(self) -> None:
        for chart in self._charts:
            chart.add_window_listener(self._on_window_change)
            chart.add_selection_listener(self._on_selection_change)
            chart.add_roll_listener(self._on_roll_change)
        self._attached = True

        first = self._charts[0]
        self._on_window_change(first, first.visible_window)
        logger.info(
            f"Synchronized charts {[c.name for c in self._charts]} "
            f"(zoom={self.options.zoom}, selection={self.options.selection}, "
            f"range={self.options.value_range})"
        )

    def detach(self) -> None:
        """Stop synchronizing and restore independent value axes."""
        if not self._attached:
            return
        for chart in self._charts:
            chart.remove_window_listener(self._on_window_change)
            chart.remove_selection_listener(self._on_selection_change)
            chart.remove_roll_listener(self._on_roll_change)
            chart.lock_value_range(None)
        self._attached = False

    @property
    def is_attached(self) -> bool:
        return self._attached

    def _on_window_change(self, source: ChartView, window: TimeWindow) -> None:
        if self._syncing:
            return
        self._syncing = True
        try:
            others = [chart for chart in self._charts if chart is not source]
            if self.options.zoom:
                for chart in others:
                    chart.set_window(window.start, window.end)
            if self.options.value_range:
                self._share_value_range(source)
        finally:
            self._syncing = False

    def _on_roll_change(self, source: ChartView, period: int) -> None:
        # A new roll period changes the source's displayed values
        if self._syncing or not self.options.value_range:
            return
        self._syncing = True
        try:
            self._share_value_range(source)
        finally:
            self._syncing = False

    def _share_value_range(self, source: ChartView) -> None:
        source.lock_value_range(None)
        shared = source.computed_value_range()
        for chart in self._charts:
            if chart is not source:
                chart.lock_value_range(shared)

    def _on_selection_change(self, source: ChartView, timestamp: Optional[pd.Timestamp]) -> None:
        if self._syncing or not self.options.selection:
            return
        self._syncing = True
        try:
            for chart in self._charts:
                if chart is not source:
                    chart.select(timestamp)
        finally:
            self._syncing = False

    @property
    def charts(self) -> Tuple[ChartView, ...]:
        return self._charts

    @property
    def visible_window(self) -> TimeWindow:
        """Window of the first member (all members when zoom is linked)."""
        return self._charts[0].visible_window

    def windows_synchronized(self) -> bool:
        """True if every member currently shows the same window."""
        first = self._charts[0].visible_window
        return all(chart.visible_window == first for chart in self._charts[1:])

    def get(self, name: str) -> ChartView:
        for chart in self._charts:
            if chart.name == name:
                return chart
        raise KeyError(f"No chart named '{name}' in group")

    def failed_charts(self) -> Tuple[ChartView, ...]:
        return tuple(chart for chart in self._charts if chart.error is not None)

    def __len__(self) -> int:
        return len(self._charts)

    def __iter__(self) -> Iterator[ChartView]:
        return iter(self._charts)


def synchronize(*charts: ChartView, options: OptionsLike = None, **option_flags: bool) -> ChartGroup:
    """
    Link the visible time windows of charts.

    Example:
        >>> group = synchronize(soc_view, temperature_view, range=False)
        >>> soc_view.set_window('2016-01-01', '2016-01-02')
        >>> temperature_view.visible_window == soc_view.visible_window
        True

    Args:
        *charts: Chart views (or a single sequence of them)
        options: SyncOptions or mapping; keyword flags override it
        **option_flags: zoom, selection, range

    Returns:
        ChartGroup keeping the charts in step
    """
    if len(charts) == 1 and not isinstance(charts[0], ChartView):
        charts = tuple(charts[0])

    if option_flags:
        base = _coerce_options(options)
        merged = {
            'zoom': base.zoom,
            'selection': base.selection,
            'range': base.value_range,
        }
        if 'value_range' in option_flags:
            option_flags['range'] = option_flags.pop('value_range')
        merged.update(option_flags)
        options = SyncOptions.from_mapping(merged)

    return ChartGroup(charts, options)
