"""
Static status page for the ATLAS instrument.

Renders a single self-contained index.html from a Jinja2 template: the
scalar status fields from the last heartbeat, the latest camera images as
tabs, and the synchronized chart pair. Charts that failed to load are
listed in an error box so the operator knows which upstream file to fix.
"""

from dataclasses import dataclass, fields, asdict
from datetime import datetime, timedelta
from functools import partial
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union
import logging

import yaml
from jinja2 import Environment
from markupsafe import Markup

from atlas_status.config.dashboard_config import DashboardConfig
from atlas_status.data.file_loaders import load_series_csv
from atlas_status.data.time_series import TimeSeries, TimestampLike, to_utc_naive, utc_now
from atlas_status.viewer.chart_group import ChartGroup, SyncOptions
from atlas_status.viewer.chart_view import ChartView
from atlas_status.viewer.formatters import get_formatter
from atlas_status.visualization.chart_renderer import ChartGroupRenderer
from .gallery import GalleryImage, latest_images

logger = logging.getLogger(__name__)

SCAN_INTERVAL_HOURS = 6
DISPLAY_FORMAT = "%Y-%m-%d %H:%M:%S UTC"


def expected_next_scan_time(last_scan: datetime) -> datetime:
    """
    Next scan start: the scanner runs on 6-hour boundaries (00, 06, 12, 18).

    Example:
        >>> expected_next_scan_time(datetime(2016, 7, 25, 14, 15))
        datetime.datetime(2016, 7, 25, 18, 0)
    """
    boundary = last_scan.replace(
        hour=last_scan.hour - last_scan.hour % SCAN_INTERVAL_HOURS,
        minute=0,
        second=0,
        microsecond=0,
    )
    return boundary + timedelta(hours=SCAN_INTERVAL_HOURS)


def format_status_value(value: Union[float, str], unit: str) -> Markup:
    """Status-table cell: the value as given plus the unit's HTML suffix."""
    return get_formatter(unit).format_html(value)


@dataclass
class StatusSnapshot:
    """
    Scalar status fields from the latest heartbeat, as produced upstream.

    Values are kept as given (strings or numbers); the page only appends
    unit suffixes.
    """
    last_heartbeat: Optional[str] = None
    last_scan_start: Optional[str] = None
    next_scan_start: Optional[str] = None
    temperature_external: Optional[Union[str, float]] = None
    temperature_mount: Optional[Union[str, float]] = None
    pressure: Optional[Union[str, float]] = None
    humidity: Optional[Union[str, float]] = None
    soc1: Optional[Union[str, float]] = None
    soc2: Optional[Union[str, float]] = None

    def __post_init__(self):
        """Fill next_scan_start from last_scan_start when missing."""
        if self.next_scan_start is None and self.last_scan_start:
            try:
                last_scan = to_utc_naive(str(self.last_scan_start).replace(" UTC", ""))
            except ValueError:
                logger.warning(f"Cannot parse last_scan_start '{self.last_scan_start}'")
                return
            next_scan = expected_next_scan_time(last_scan.to_pydatetime())
            self.next_scan_start = next_scan.strftime(DISPLAY_FORMAT)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StatusSnapshot":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.debug(f"Ignoring unknown status fields: {sorted(unknown)}")
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "StatusSnapshot":
        """
        Load a snapshot from a JSON or YAML file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the file does not hold a mapping
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Status file not found: {path}")
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Status file must contain a mapping: {path}")
        return cls.from_dict(data)

    def to_dict(self) -> dict:
        return asdict(self)


class StatusPage:
    """
    The rendered dashboard page.

    Attributes:
        config: Dashboard configuration
        group: Synchronized chart views
        snapshot: Scalar status fields (empty snapshot if omitted)
        images: Gallery tabs
        theme: Plotly theme variant
    """

    def __init__(
        self,
        config: DashboardConfig,
        group: ChartGroup,
        snapshot: Optional[StatusSnapshot] = None,
        images: Optional[List[GalleryImage]] = None,
        theme: str = 'light',
        now: Optional[TimestampLike] = None
    ):
        self.config = config
        self.group = group
        self.snapshot = snapshot if snapshot is not None else StatusSnapshot()
        self.images = images or []
        self.theme = theme
        self.now = utc_now() if now is None else to_utc_naive(now)

    def errors(self) -> List[Dict[str, str]]:
        """Load errors to report on the page, one per failed chart."""
        return [
            {'chart': chart.config.title, 'source': chart.error.source, 'reason': chart.error.reason}
            for chart in self.group.failed_charts()
        ]

    def context(self) -> Dict[str, Any]:
        """Template variables."""
        renderer = ChartGroupRenderer(self.group, theme=self.theme)
        charts_html = renderer.to_html(include_plotlyjs=self.config.include_plotlyjs)
        ctx: Dict[str, Any] = dict(self.snapshot.to_dict())
        ctx.update({
            'title': self.config.title,
            'now': self.now.strftime(DISPLAY_FORMAT),
            'travel_notice': self.config.travel_notice,
            'stylesheet_url': self.config.stylesheet_url,
            'latest_images': [image.to_dict() for image in self.images],
            'charts_html': charts_html,
            'chart_ids': [chart.container_id for chart in self.group],
            'errors': self.errors(),
        })
        return ctx

    def render(self) -> str:
        """Render the page to an HTML string."""
        env = Environment(autoescape=True, trim_blocks=True, lstrip_blocks=True)
        env.filters['unit'] = format_status_value
        html = env.from_string(_TEMPLATE).render(**self.context())
        logger.info(
            f"Rendered status page with {len(self.group)} charts, "
            f"{len(self.images)} images, {len(self.errors())} load error(s)"
        )
        return html

    def save(self, output_path: Optional[Union[str, Path]] = None) -> Path:
        """
        Write the page.

        Args:
            output_path: Target file (default: <output_dir>/index.html)

        Returns:
            Path to the written file
        """
        out = Path(output_path) if output_path else Path(self.config.output_dir) / "index.html"
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(self.render(), encoding="utf-8")
        logger.info(f"Saved status page: {out}")
        return out


def build_chart_group(
    config: DashboardConfig,
    now: Optional[TimestampLike] = None,
    loader: Optional[Callable[[str], TimeSeries]] = None
) -> ChartGroup:
    """
    Initialize every configured chart and link them.

    Load failures leave the affected chart blank; they never raise here.
    """
    if loader is None:
        loader = partial(load_series_csv, timeout=config.request_timeout_s)
    views = [ChartView.initialize(chart, now=now, loader=loader) for chart in config.charts]
    return ChartGroup(views, SyncOptions.from_config(config.sync))


def build_status_page(
    config: DashboardConfig,
    snapshot: Optional[StatusSnapshot] = None,
    theme: str = 'light',
    now: Optional[TimestampLike] = None,
    loader: Optional[Callable[[str], TimeSeries]] = None
) -> StatusPage:
    """
    Assemble the whole page from configuration.

    Args:
        config: Dashboard configuration
        snapshot: Status fields; loaded from config.status_file if omitted
        theme: Plotly theme variant
        now: Reference time for default windows and the page timestamp
        loader: Series loader (default: CSV from file or URL)

    Raises:
        GalleryError: If the gallery is configured but cannot be built
    """
    if snapshot is None and config.status_file:
        snapshot = StatusSnapshot.from_file(config.status_file)

    group = build_chart_group(config, now=now, loader=loader)
    images = latest_images(config.gallery) if config.gallery is not None else []
    return StatusPage(config, group, snapshot=snapshot, images=images, theme=theme, now=now)


# ─── Page template ──────────────────────────────────────────────────────────

_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>{{ title }}</title>
{% if stylesheet_url %}
  <link rel="stylesheet" href="{{ stylesheet_url }}">
{% endif %}
  <style>
    body { font-family: "Helvetica Neue", Helvetica, Arial, sans-serif; margin: 0 auto; max-width: 1200px; padding: 1em; color: #212121; }
    .notice { background: #FCF8E3; border: 1px solid #FAEBCC; padding: 0.75em 1em; margin-bottom: 1em; }
    .errors { background: #F2DEDE; border: 1px solid #EBCCD1; color: #A94442; padding: 0.75em 1em; margin-bottom: 1em; }
    .row { display: flex; flex-wrap: wrap; gap: 2em; }
    .col { flex: 1 1 320px; }
    table.status td { padding: 0.2em 1em 0.2em 0; }
    table.status td.value { font-weight: bold; }
    .tabs { list-style: none; padding: 0; margin: 0; display: flex; border-bottom: 1px solid #DDD; }
    .tabs li { margin-right: 0.25em; }
    .tabs button { border: 1px solid transparent; background: none; padding: 0.5em 1em; cursor: pointer; }
    .tabs li.active button { border-color: #DDD #DDD #FFF; background: #FFF; }
    .tab-pane { display: none; padding-top: 0.5em; }
    .tab-pane.active { display: block; }
    .tab-pane img { max-width: 100%; }
    footer { color: #8A8A8A; font-size: 0.85em; margin-top: 2em; }
  </style>
</head>
<body>
  <h1>{{ title }}</h1>
{% if travel_notice %}
  <div class="notice">{{ travel_notice }}</div>
{% endif %}
{% if errors %}
  <div class="errors">
    <strong>Some chart data could not be loaded:</strong>
    <ul>
{% for error in errors %}
      <li>{{ error.chart }} ({{ error.source }}): {{ error.reason }}</li>
{% endfor %}
    </ul>
  </div>
{% endif %}
  <div class="row">
    <div class="col">
      <h2>Status</h2>
      <table class="status">
        <tr><td>Last heartbeat</td><td class="value">{{ last_heartbeat or "n/a" }}</td></tr>
        <tr><td>Last scan start</td><td class="value">{{ last_scan_start or "n/a" }}</td></tr>
        <tr><td>Next scan start</td><td class="value">{{ next_scan_start or "n/a" }}</td></tr>
        <tr><td>External temperature</td><td class="value">{% if temperature_external is not none %}{{ temperature_external | unit('celsius') }}{% else %}n/a{% endif %}</td></tr>
        <tr><td>Mount temperature</td><td class="value">{% if temperature_mount is not none %}{{ temperature_mount | unit('celsius') }}{% else %}n/a{% endif %}</td></tr>
        <tr><td>Pressure</td><td class="value">{% if pressure is not none %}{{ pressure | unit('millibar') }}{% else %}n/a{% endif %}</td></tr>
        <tr><td>Humidity</td><td class="value">{% if humidity is not none %}{{ humidity | unit('percent') }}{% else %}n/a{% endif %}</td></tr>
        <tr><td>Battery #1</td><td class="value">{% if soc1 is not none %}{{ soc1 | unit('percent') }}{% else %}n/a{% endif %}</td></tr>
        <tr><td>Battery #2</td><td class="value">{% if soc2 is not none %}{{ soc2 | unit('percent') }}{% else %}n/a{% endif %}</td></tr>
      </table>
    </div>
{% if latest_images %}
    <div class="col">
      <h2>Latest images</h2>
      <ul class="tabs" role="tablist">
{% for image in latest_images %}
        <li class="{{ 'active' if image.active }}"><button type="button" data-target="{{ image.id }}">{{ image.name }}</button></li>
{% endfor %}
      </ul>
{% for image in latest_images %}
      <div class="tab-pane{{ ' active' if image.active }}" id="{{ image.id }}">
        <a href="{{ image.url }}"><img src="{{ image.url }}" alt="{{ image.name }}"></a>
        <p>{{ image.name }}, {{ image.datetime }}</p>
      </div>
{% endfor %}
    </div>
{% endif %}
  </div>
  <h2>History</h2>
{% for chart_id in chart_ids %}
  <a id="{{ chart_id }}"></a>
{% endfor %}
  {{ charts_html | safe }}
  <footer>Generated {{ now }}</footer>
  <script>
    document.querySelectorAll('.tabs button').forEach(function(button) {
      button.addEventListener('click', function() {
        document.querySelectorAll('.tabs li').forEach(function(li) { li.classList.remove('active'); });
        document.querySelectorAll('.tab-pane').forEach(function(pane) { pane.classList.remove('active'); });
        button.parentElement.classList.add('active');
        document.getElementById(button.dataset.target).classList.add('active');
      });
    });
  </script>
</body>
</html>
"""
