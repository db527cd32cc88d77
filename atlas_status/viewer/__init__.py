"""
Linked, smoothable chart viewer.

- ChartView: one chart (series, visible window, roll period, formatter)
- ChartGroup / synchronize: keeps the visible windows of charts identical
- ValueFormatter / get_formatter: unit suffixes for value-axis ticks
"""

from .formatters import UnitKind, ValueFormatter, get_formatter
from .chart_view import ChartView, ChartState
from .chart_group import ChartGroup, SyncOptions, synchronize

__all__ = [
    'UnitKind',
    'ValueFormatter',
    'get_formatter',
    'ChartView',
    'ChartState',
    'ChartGroup',
    'SyncOptions',
    'synchronize',
]
