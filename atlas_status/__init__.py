"""
ATLAS Status Dashboard

Static status page for the ATLAS remote scanner: two synchronized,
smoothable time-series charts (battery state of charge and temperature)
loaded from CSV exports, a scalar status table and a latest-image gallery.

Main Components:
- Configuration: Dashboard, chart and sync settings (dataclasses + YAML)
- Data: CSV loading into immutable time series, rolling means, windows
- Viewer: ChartView state machine and ChartGroup window synchronization
- Visualization: Plotly figure and themes for a chart group
- Reporting: Gallery and the rendered HTML status page

Quick Start:
    >>> from atlas_status.config import DashboardConfig
    >>> from atlas_status.reporting import build_status_page
    >>>
    >>> config = DashboardConfig.from_yaml("configs/dashboard.yaml")
    >>> page = build_status_page(config)
    >>> page.save()

Architecture Principles:
    1. Dependency Flow:
       reporting -> visualization -> viewer -> data
       (config is read by every layer, errors by all)

    2. Error Handling:
       - DataLoadError never escapes a ChartView; the chart renders blank
       - Configuration problems raise ConfigError at load time
"""

# Version information
__version__ = "1.0.0"

# Configuration
from atlas_status.config.dashboard_config import DashboardConfig, ChartConfig, SyncConfig

# Errors
from atlas_status.errors import (
    AtlasStatusError,
    DataLoadError,
    InvalidStateError,
    ConfigError,
    GalleryError,
)

# Data
from atlas_status.data import TimeSeries, TimeWindow, load_series_csv

# Viewer
from atlas_status.viewer import ChartView, ChartState, ChartGroup, SyncOptions, synchronize

__all__ = [
    '__version__',
    'DashboardConfig',
    'ChartConfig',
    'SyncConfig',
    'AtlasStatusError',
    'DataLoadError',
    'InvalidStateError',
    'ConfigError',
    'GalleryError',
    'TimeSeries',
    'TimeWindow',
    'load_series_csv',
    'ChartView',
    'ChartState',
    'ChartGroup',
    'SyncOptions',
    'synchronize',
]
