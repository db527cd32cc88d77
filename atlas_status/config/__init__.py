"""
Dashboard configuration (dataclasses with YAML I/O).
"""

from .dashboard_config import (
    ChartConfig,
    SyncConfig,
    CameraConfig,
    GalleryConfig,
    DashboardConfig,
    default_soc_chart,
    default_temperature_chart,
    default_charts,
)

__all__ = [
    'ChartConfig',
    'SyncConfig',
    'CameraConfig',
    'GalleryConfig',
    'DashboardConfig',
    'default_soc_chart',
    'default_temperature_chart',
    'default_charts',
]
