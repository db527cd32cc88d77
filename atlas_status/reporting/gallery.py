"""
Latest-image gallery from remote camera directories.

Each camera writes JPEG files named '<CAMERA>_%Y%m%d_%H%M%S.jpg' (UTC) into
its own directory, which an HTTP server publishes under the image URL. The
gallery shows the newest image of every camera as one tab.
"""

from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple
from urllib.parse import quote, urljoin
import logging

from atlas_status.config.dashboard_config import CameraConfig, GalleryConfig
from atlas_status.errors import GalleryError

logger = logging.getLogger(__name__)

IMAGE_EXTENSION = ".jpg"
DATETIME_FORMAT = "%Y%m%d_%H%M%S"


@dataclass
class GalleryImage:
    """
    One gallery tab.

    Attributes:
        id: HTML id ('latest_image_atlas_cam')
        name: Camera name
        url: Public image URL
        datetime: Capture time, formatted for display
        active: True for the tab shown first
    """
    id: str
    name: str
    url: str
    datetime: str
    active: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


class Camera:
    """
    A remote camera: a name plus the directory holding its images.

    The name defaults to the directory name.
    """

    def __init__(self, directory: Path, name: Optional[str] = None):
        self.directory = Path(directory)
        self.name = name if name else self.directory.name
        if not self.name:
            raise GalleryError(f"Cannot derive a camera name from '{directory}'")

    @classmethod
    def from_config(cls, config: CameraConfig) -> "Camera":
        return cls(Path(config.directory), config.get_name())

    def filenames(self) -> List[str]:
        """
        Image file names (not paths) in the camera directory, sorted.

        Raises:
            GalleryError: If the directory cannot be read
        """
        try:
            return sorted(
                p.name for p in self.directory.iterdir()
                if p.is_file() and p.suffix.lower() == IMAGE_EXTENSION
            )
        except OSError as e:
            raise GalleryError(f"Cannot read camera directory {self.directory}: {e}") from e

    def datetime_from_filename(self, filename: str) -> datetime:
        """
        Parse the UTC capture time coded in an image file name.

        Example:
            >>> Camera(Path('ATLAS_CAM')).datetime_from_filename('ATLAS_CAM_20160725_141500.jpg')
            datetime.datetime(2016, 7, 25, 14, 15, tzinfo=datetime.timezone.utc)

        Raises:
            ValueError: If the file name does not follow the camera pattern
        """
        filename = Path(filename).name
        pattern = f"{self.name}_{DATETIME_FORMAT}{IMAGE_EXTENSION}"
        return datetime.strptime(filename, pattern).replace(tzinfo=timezone.utc)

    def latest(self) -> Optional[Tuple[str, datetime]]:
        """
        Newest image of this camera.

        Files whose names do not parse are ignored.

        Returns:
            (file name, capture time) or None if there is no image
        """
        pairs = []
        for filename in self.filenames():
            try:
                pairs.append((filename, self.datetime_from_filename(filename)))
            except ValueError:
                logger.debug(f"Ignoring {filename} in {self.directory}: name does not match")
        if not pairs:
            return None
        return max(pairs, key=lambda pair: pair[1])

    def url(self, base_url: str, filename: str) -> str:
        """Public URL of an image: '<base>/<camera>/<file>'."""
        if not base_url.endswith('/'):
            base_url += '/'
        return urljoin(base_url, f"{quote(self.name)}/{quote(filename)}")

    @property
    def element_id(self) -> str:
        return f"latest_image_{self.name.lower()}"


def latest_images(config: GalleryConfig) -> List[GalleryImage]:
    """
    Build the gallery tabs, one per camera, in configuration order.

    Args:
        config: Gallery settings (image URL, active camera, cameras)

    Returns:
        List of GalleryImage records; exactly one is active

    Raises:
        GalleryError: If a camera has no image or the active camera is unknown
    """
    cameras = [Camera.from_config(cam) for cam in config.cameras]
    names = [camera.name for camera in cameras]
    if config.active_camera not in names:
        raise GalleryError(f"Invalid active camera name: {config.active_camera}")

    images = []
    for camera in cameras:
        latest = camera.latest()
        if latest is None:
            raise GalleryError(
                f"Could not find the latest image for camera {camera.name} "
                f"(path: {camera.directory})"
            )
        filename, captured = latest
        images.append(GalleryImage(
            id=camera.element_id,
            name=camera.name,
            url=camera.url(config.image_url, filename),
            datetime=captured.strftime("%Y-%m-%d %H:%M:%S UTC"),
            active=camera.name == config.active_camera,
        ))

    logger.info(f"Gallery built with {len(images)} camera image(s)")
    return images
