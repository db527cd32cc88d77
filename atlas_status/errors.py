"""
Exception hierarchy for the ATLAS status dashboard.

Only `DataLoadError` crosses the chart boundary at runtime: it is caught by
`ChartView` and surfaces as a blank chart plus a message on the page.
"""

from typing import Optional


class AtlasStatusError(Exception):
    """Base class for all dashboard errors."""


class DataLoadError(AtlasStatusError):
    """
    A CSV series could not be fetched or parsed.

    Attributes:
        source: URL or path of the CSV resource
        reason: Human readable description of the failure
    """

    def __init__(self, source: str, reason: str, cause: Optional[BaseException] = None):
        self.source = str(source)
        self.reason = reason
        self.cause = cause
        super().__init__(f"Failed to load series from {self.source}: {reason}")


class InvalidStateError(AtlasStatusError):
    """A chart operation was attempted in a state that does not allow it."""


class ConfigError(AtlasStatusError, ValueError):
    """Configuration file or record is invalid."""


class GalleryError(AtlasStatusError):
    """Camera directories could not produce the image gallery."""
