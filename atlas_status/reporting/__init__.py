"""
Status page generation: scalar status table, camera gallery and charts.
"""

from .gallery import Camera, GalleryImage, latest_images
from .status_page import (
    StatusSnapshot,
    StatusPage,
    expected_next_scan_time,
    build_chart_group,
    build_status_page,
)

__all__ = [
    'Camera',
    'GalleryImage',
    'latest_images',
    'StatusSnapshot',
    'StatusPage',
    'expected_next_scan_time',
    'build_chart_group',
    'build_status_page',
]
