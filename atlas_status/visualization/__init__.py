"""
Plotly rendering and themes for the dashboard charts.
"""

from .atlas_theme import register_atlas_themes, apply_theme, template_name
from .chart_renderer import ChartGroupRenderer, build_figure, roll_period_choices

__all__ = [
    'register_atlas_themes',
    'apply_theme',
    'template_name',
    'ChartGroupRenderer',
    'build_figure',
    'roll_period_choices',
]
