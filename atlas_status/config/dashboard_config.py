"""
Configuration system for the ATLAS status dashboard.

Every chart gets its own independently constructed ChartConfig. Defaults are
built by factory functions so no configuration object is ever shared between
charts and mutated.
"""

from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional, List, Union
from urllib.parse import urlparse
import yaml

from atlas_status.errors import ConfigError
from atlas_status.viewer.formatters import UnitKind


@dataclass
class ChartConfig:
    """
    Settings for one chart of the pair.

    Attributes:
        name: Short identifier ('soc', 'temperature')
        title: Heading shown above the chart
        series_url: Path or URL of the CSV series
        container_id: HTML element id the chart is bound to
        unit: Unit kind for the value-axis formatter ('percent', 'celsius')
        roll_period: Default rolling-mean period in samples (hours)
        window_days: Default visible window, last N days up to now
        height: Chart height in pixels
        show_roller: Show the rolling-mean control
        show_range_selector: Show the range-selector mini view
        labels_utc: Label the time axis in UTC
    """
    name: str
    title: str
    series_url: str
    container_id: str
    unit: str = UnitKind.NONE.value
    roll_period: int = 1
    window_days: int = 60
    height: int = 300
    show_roller: bool = True
    show_range_selector: bool = True
    labels_utc: bool = True

    def __post_init__(self):
        """Validate chart settings."""
        if not self.name:
            raise ConfigError("Chart name must not be empty")
        if isinstance(self.roll_period, bool) or not isinstance(self.roll_period, int) \
                or self.roll_period < 1:
            raise ConfigError(
                f"Chart '{self.name}': roll_period must be a positive integer, "
                f"got {self.roll_period!r}"
            )
        if isinstance(self.window_days, bool) or not isinstance(self.window_days, int) \
                or self.window_days < 1:
            raise ConfigError(
                f"Chart '{self.name}': window_days must be a positive integer, "
                f"got {self.window_days!r}"
            )
        if self.height <= 0:
            raise ConfigError(f"Chart '{self.name}': height must be positive")
        try:
            UnitKind(self.unit)
        except ValueError:
            raise ConfigError(
                f"Chart '{self.name}': unknown unit '{self.unit}'. "
                f"Must be one of: {[k.value for k in UnitKind]}"
            )

    @property
    def unit_kind(self) -> UnitKind:
        return UnitKind(self.unit)


def default_soc_chart(series_url: str = "soc.csv") -> ChartConfig:
    """Battery state-of-charge chart: percent axis, 6 hour smoothing."""
    return ChartConfig(
        name="soc",
        title="Battery state of charge",
        series_url=series_url,
        container_id="fig-soc",
        unit=UnitKind.PERCENT.value,
        roll_period=6,
    )


def default_temperature_chart(series_url: str = "temperature.csv") -> ChartConfig:
    """Temperature chart: degrees Celsius axis, 24 hour smoothing."""
    return ChartConfig(
        name="temperature",
        title="Temperature",
        series_url=series_url,
        container_id="fig-temperature",
        unit=UnitKind.CELSIUS.value,
        roll_period=24,
    )


def default_charts() -> List[ChartConfig]:
    return [default_soc_chart(), default_temperature_chart()]


@dataclass
class SyncConfig:
    """
    Chart synchronization options.

    Attributes:
        zoom: Mirror the visible time window between charts
        selection: Mirror the highlighted timestamp between charts
        range: Also mirror the value (y) axis range
    """
    zoom: bool = True
    selection: bool = True
    range: bool = False


@dataclass
class CameraConfig:
    """A remote camera whose images are listed in the gallery."""
    directory: str
    name: Optional[str] = None

    def get_name(self) -> str:
        """Camera name, defaulting to the image directory's name."""
        if self.name:
            return self.name
        dir_name = Path(self.directory).name
        if not dir_name:
            raise ConfigError(f"Cannot derive a camera name from '{self.directory}'")
        return dir_name


@dataclass
class GalleryConfig:
    """Latest-image gallery settings."""
    image_url: str
    active_camera: str
    cameras: List[CameraConfig] = field(default_factory=list)


@dataclass
class DashboardConfig:
    """
    Master configuration for the status page.

    Attributes:
        title: Page title
        charts: Chart configurations, in display order
        sync: Synchronization options for the chart group
        gallery: Optional image gallery settings
        status_file: Optional JSON/YAML file with the scalar status fields
        output_dir: Directory the rendered page is written to
        include_plotlyjs: Plotly.js inclusion mode ('cdn', True, 'directory')
        travel_notice: Optional banner text shown at the top of the page
        stylesheet_url: Optional page stylesheet URL
        request_timeout_s: Timeout for remote CSV fetches
    """
    title: str = "ATLAS Status"
    charts: List[ChartConfig] = field(default_factory=default_charts)
    sync: SyncConfig = field(default_factory=SyncConfig)
    gallery: Optional[GalleryConfig] = None
    status_file: Optional[str] = None
    output_dir: str = "public"
    include_plotlyjs: Union[str, bool] = "cdn"
    travel_notice: Optional[str] = None
    stylesheet_url: Optional[str] = None
    request_timeout_s: float = 30.0

    def __post_init__(self):
        """Validate chart list."""
        names = [chart.name for chart in self.charts]
        if len(names) != len(set(names)):
            raise ConfigError(f"Duplicate chart names: {names}")
        if self.request_timeout_s <= 0:
            raise ConfigError("request_timeout_s must be positive")

    def get_chart(self, name: str) -> ChartConfig:
        for chart in self.charts:
            if chart.name == name:
                return chart
        raise KeyError(f"No chart named '{name}'")

    def resolve_paths(self, base_dir: Path) -> None:
        """
        Convert relative local paths to absolute paths.

        URLs are left untouched.

        Args:
            base_dir: Base directory for resolving relative paths
        """
        base_dir = Path(base_dir).resolve()

        def _resolve(value: Optional[str]) -> Optional[str]:
            if value is None or urlparse(value).scheme in ("http", "https", "file"):
                return value
            path = Path(value)
            if path.is_absolute():
                return str(path)
            return str((base_dir / path).resolve())

        for chart in self.charts:
            chart.series_url = _resolve(chart.series_url)
        self.status_file = _resolve(self.status_file)
        self.output_dir = _resolve(self.output_dir)
        if self.gallery is not None:
            for camera in self.gallery.cameras:
                camera.directory = _resolve(camera.directory)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "DashboardConfig":
        """
        Build configuration from a plain dictionary (parsed YAML).

        Raises:
            ConfigError: If a field is missing or invalid
        """
        try:
            config = cls(
                title=config_dict.get('title', 'ATLAS Status'),
                status_file=config_dict.get('status_file'),
                output_dir=config_dict.get('output_dir', 'public'),
                include_plotlyjs=config_dict.get('include_plotlyjs', 'cdn'),
                travel_notice=config_dict.get('travel_notice'),
                stylesheet_url=config_dict.get('stylesheet_url'),
                request_timeout_s=config_dict.get('request_timeout_s', 30.0),
            )

            # Parse charts, each one a fresh record
            if 'charts' in config_dict:
                config.charts = [ChartConfig(**chart) for chart in config_dict['charts']]
                config.__post_init__()

            # Parse synchronization options
            if 'sync' in config_dict:
                sync_dict = config_dict['sync'] or {}
                config.sync = SyncConfig(
                    zoom=sync_dict.get('zoom', True),
                    selection=sync_dict.get('selection', True),
                    range=sync_dict.get('range', False),
                )

            # Parse gallery
            if config_dict.get('gallery'):
                gallery_dict = config_dict['gallery']
                config.gallery = GalleryConfig(
                    image_url=gallery_dict['image_url'],
                    active_camera=gallery_dict['active_camera'],
                    cameras=[CameraConfig(**cam) for cam in gallery_dict.get('cameras', [])],
                )
        except (TypeError, KeyError) as e:
            raise ConfigError(f"Invalid dashboard configuration: {e}") from e

        return config

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> "DashboardConfig":
        """
        Load dashboard configuration from YAML file.

        Relative paths are resolved against the YAML file's directory.

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            DashboardConfig instance

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            ConfigError: If YAML is invalid or has invalid fields
        """
        yaml_path = Path(yaml_path)

        if not yaml_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        with open(yaml_path, 'r') as f:
            try:
                config_dict = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {yaml_path}: {e}") from e

        if not isinstance(config_dict, dict):
            raise ConfigError(f"Empty or invalid YAML file: {yaml_path}")

        config = cls.from_dict(config_dict)
        config.resolve_paths(yaml_path.parent)
        return config

    def to_dict(self) -> dict:
        return asdict(self)

    def to_yaml(self, yaml_path: Union[str, Path]) -> None:
        """
        Save configuration to YAML file.

        Args:
            yaml_path: Path to save YAML file
        """
        yaml_path = Path(yaml_path)
        yaml_path.parent.mkdir(parents=True, exist_ok=True)

        with open(yaml_path, 'w') as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
