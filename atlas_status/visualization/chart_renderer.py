"""
Plotly rendering of a synchronized chart group.

The whole group is drawn as one figure with one row per chart. Linked time
windows map to shared x axes, so a pan or zoom in the browser moves every
row in the same frame. The range selector is a Plotly range slider under the
bottom row, and each chart with a roller gets a slider that restyles only
its own traces between precomputed rolling means.

**Usage:**
    renderer = ChartGroupRenderer(group, theme='light')
    fig = renderer.build_figure()
    html = renderer.to_html(fig)
"""

import json
import logging
from typing import Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from atlas_status.viewer.chart_group import ChartGroup
from atlas_status.viewer.chart_view import ChartView
from .atlas_theme import apply_theme, get_series_colors, SEMANTIC

logger = logging.getLogger(__name__)

# Roll periods offered by the roller, in samples (hours)
ROLL_PERIOD_CHOICES = (1, 2, 3, 6, 12, 24, 48, 72, 168)

DEFAULT_DIV_ID = "atlas-charts"

# Rescales each independent value axis to the data inside the new time window
_RESCALE_SCRIPT = """
(function() {
  var gd = document.getElementById('{plot_id}');
  if (!gd || !gd.on) { return; }
  var axes = __AXES__;
  var busy = false;
  function toMs(v) { return new Date(String(v).replace(' ', 'T')).getTime(); }
  function rescale() {
    if (busy) { return; }
    var update = {};
    axes.forEach(function(a) {
      var xr = gd.layout[a.xaxis] && gd.layout[a.xaxis].range;
      if (!xr) { return; }
      var x0 = toMs(xr[0]), x1 = toMs(xr[1]);
      var lo = Infinity, hi = -Infinity;
      a.traces.forEach(function(i) {
        var t = (gd._fullData && gd._fullData[i]) || gd.data[i];
        for (var k = 0; k < t.x.length; k++) {
          var xt = toMs(t.x[k]);
          var y = t.y[k];
          if (xt >= x0 && xt <= x1 && y !== null && isFinite(y)) {
            if (y < lo) { lo = y; }
            if (y > hi) { hi = y; }
          }
        }
      });
      if (lo <= hi) {
        var pad = (hi - lo) * 0.05 || 1;
        update[a.yaxis + '.range'] = [lo - pad, hi + pad];
      }
    });
    if (Object.keys(update).length === 0) { return; }
    busy = true;
    Plotly.relayout(gd, update).then(
      function() { busy = false; },
      function() { busy = false; }
    );
  }
  gd.on('plotly_relayout', rescale);
  gd.on('plotly_restyle', rescale);
})();
"""


def padded_range(value_range: Optional[Sequence[float]], fraction: float = 0.05) -> Optional[List[float]]:
    """Widen a (min, max) range by a fraction of its span (1.0 for flat data)."""
    if value_range is None:
        return None
    lo, hi = value_range
    pad = (hi - lo) * fraction or 1.0
    return [lo - pad, hi + pad]


def plain_times(index: pd.DatetimeIndex) -> List[str]:
    """ISO strings for trace x values."""
    return [ts.isoformat() for ts in index]


def plain_values(column: pd.Series) -> List[Optional[float]]:
    """Floats for trace y values, gaps as None."""
    return [None if np.isnan(v) else float(v) for v in column.to_numpy(dtype=float)]


def roll_period_choices(default: int, choices: Sequence[int] = ROLL_PERIOD_CHOICES) -> List[int]:
    """Roller steps: the standard choices plus the chart's configured default."""
    return sorted(set(choices) | {default})


class ChartGroupRenderer:
    """
    Builds the interactive Plotly figure for a ChartGroup.

    Attributes:
        group: Synchronized charts to draw, top to bottom
        theme: Theme variant ('light' or 'dark')
        div_id: HTML id of the plot container
    """

    PLOTLY_CONFIG = {
        'displayModeBar': True,
        'displaylogo': False,
        'scrollZoom': True,
        'modeBarButtonsToRemove': [
            'lasso2d',
            'select2d'
        ]
    }

    # Vertical room per row for the subplot title and roller
    ROW_OVERHEAD_PX = 110

    def __init__(self, group: ChartGroup, theme: str = 'light', div_id: str = DEFAULT_DIV_ID):
        self.group = group
        self.theme = theme
        self.div_id = div_id
        self._traces: Dict[str, List[int]] = {}

    @property
    def views(self) -> List[ChartView]:
        return list(self.group)

    def create_hover_template(self, label: str, unit: str = '') -> str:
        """
        Hover tooltip: '<b>Battery #1</b>: 80.0%' plus the UTC time.
        """
        return (
            f"<b>{label}</b>: %{{y:.1f}}{unit}"
            "<br>%{x|%Y-%m-%d %H:%M} UTC"
            "<extra></extra>"
        )

    def build_figure(self) -> go.Figure:
        """
        Draw every chart of the group.

        Returns:
            Figure with one row per chart
        """
        views = self.views
        rows = len(views)
        heights = [view.config.height for view in views]
        shared = self.group.options.zoom

        fig = make_subplots(
            rows=rows,
            cols=1,
            shared_xaxes=shared,
            vertical_spacing=min(0.3, self.ROW_OVERHEAD_PX / (sum(heights) + self.ROW_OVERHEAD_PX * rows)),
            row_heights=[h / sum(heights) for h in heights],
            subplot_titles=[view.config.title for view in views],
        )
        # Titles on the left leave room for the roller on the right
        fig.for_each_annotation(lambda a: a.update(x=0.0, xanchor='left'))

        self._traces = {}
        for row, view in enumerate(views, start=1):
            self._add_view(fig, view, row)

        self._add_range_selector(fig, rows)
        self._add_rollers(fig)

        apply_theme(fig, self.theme)
        fig.update_layout(
            height=sum(heights) + self.ROW_OVERHEAD_PX * rows,
            hovermode='x unified',
            showlegend=True,
        )
        return fig

    def _add_view(self, fig: go.Figure, view: ChartView, row: int) -> None:
        subplot = fig.get_subplot(row, 1)
        unit = view.formatter.suffix
        self._traces[view.name] = []

        if view.is_ready:
            data = view.displayed_data()
            # Each chart restarts the colour cycle
            colors = get_series_colors(self.theme)
            for i, label in enumerate(data.columns):
                fig.add_trace(
                    go.Scatter(
                        x=plain_times(data.index),
                        y=plain_values(data[label]),
                        name=f"{label}",
                        mode='lines',
                        line=dict(color=colors[i % len(colors)]),
                        legendgroup=view.name,
                        connectgaps=False,
                        hovertemplate=self.create_hover_template(label, unit),
                    ),
                    row=row,
                    col=1,
                )
                self._traces[view.name].append(len(fig.data) - 1)
        else:
            reason = view.error.reason if view.error is not None else view.state.value
            fig.add_annotation(
                text=f"No data: {reason}",
                x=0.5,
                y=0.5,
                xref="x domain",
                yref="y domain",
                showarrow=False,
                font=dict(color=SEMANTIC['error']),
                row=row,
                col=1,
            )

        window = view.visible_window
        x_title = "Time (UTC)" if view.config.labels_utc else "Time"
        fig.update_xaxes(range=[window.start, window.end], row=row, col=1)
        if row == len(self.group):
            fig.update_xaxes(title_text=x_title, row=row, col=1)

        y_updates = dict(ticksuffix=unit, fixedrange=False)
        y_range = padded_range(view.value_range())
        if y_range is not None:
            y_updates['range'] = y_range
        if self.group.options.value_range and row > 1:
            y_updates['matches'] = 'y'
        fig.update_yaxes(**y_updates, row=row, col=1)

        logger.debug(
            f"Rendered chart '{view.name}' on {subplot.xaxis.plotly_name}/"
            f"{subplot.yaxis.plotly_name} ({view.point_count} points)"
        )

    def _add_range_selector(self, fig: go.Figure, rows: int) -> None:
        if not any(view.config.show_range_selector for view in self.views):
            return
        fig.update_xaxes(
            rangeslider=dict(visible=True, thickness=0.08),
            row=rows,
            col=1,
        )

    def _add_rollers(self, fig: go.Figure) -> None:
        sliders = []
        for row, view in enumerate(self.views, start=1):
            if not (view.config.show_roller and view.is_ready):
                continue
            trace_ids = self._traces[view.name]
            choices = roll_period_choices(view.roll_period)
            steps = []
            for period in choices:
                smoothed = view.series.rolling_mean(period)
                steps.append(dict(
                    method='restyle',
                    label=str(period),
                    args=[
                        {'y': [plain_values(smoothed[label]) for label in view.labels]},
                        trace_ids,
                    ],
                ))

            domain = fig.get_subplot(row, 1).yaxis.domain
            sliders.append(dict(
                active=choices.index(view.roll_period),
                name=f"roller-{view.name}",
                currentvalue=dict(prefix="Roll period (h): ", font=dict(size=11)),
                pad=dict(t=0, b=0),
                x=0.55,
                len=0.45,
                y=domain[1] + 0.01,
                yanchor='bottom',
                steps=steps,
            ))
        if sliders:
            fig.update_layout(sliders=sliders)

    def rescale_axes(self) -> List[dict]:
        """Axis/trace mapping consumed by the browser rescale script."""
        mapping = []
        for row, view in enumerate(self.views, start=1):
            if not self._traces.get(view.name):
                continue
            subplot_axes = self._axis_names(row)
            mapping.append({
                'xaxis': subplot_axes[0],
                'yaxis': subplot_axes[1],
                'traces': self._traces[view.name],
            })
        return mapping

    @staticmethod
    def _axis_names(row: int) -> tuple:
        suffix = '' if row == 1 else str(row)
        return (f"xaxis{suffix}", f"yaxis{suffix}")

    def post_script(self) -> Optional[str]:
        """
        Browser script rescaling independent value axes after pan/zoom.

        None when value ranges are synchronized (axes already match).
        """
        if self.group.options.value_range:
            return None
        mapping = self.rescale_axes()
        if not mapping:
            return None
        return _RESCALE_SCRIPT.replace("__AXES__", json.dumps(mapping))

    def to_html(
        self,
        fig: Optional[go.Figure] = None,
        include_plotlyjs: Union[str, bool] = 'cdn',
        full_html: bool = False
    ) -> str:
        """
        Render the figure as an HTML fragment (or full page).

        Args:
            fig: Figure from build_figure (built if omitted)
            include_plotlyjs: Plotly.js inclusion mode
            full_html: Emit a complete HTML document
        """
        if fig is None:
            fig = self.build_figure()
        return fig.to_html(
            full_html=full_html,
            include_plotlyjs=include_plotlyjs,
            div_id=self.div_id,
            config=self.PLOTLY_CONFIG,
            post_script=self.post_script(),
        )


def build_figure(group: ChartGroup, theme: str = 'light') -> go.Figure:
    """Shortcut: build the Plotly figure for a chart group."""
    return ChartGroupRenderer(group, theme=theme).build_figure()
