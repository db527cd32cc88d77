"""
ATLAS - Custom Plotly Themes
============================

Plotly templates for the status dashboard, light (white page) and dark
(control-room screens). Both keep the grid light enough that the smoothed
curves and the range slider stay readable at 300 px chart height.
"""

import logging

import plotly.graph_objects as go
import plotly.io as pio

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# PALETTE
# ═══════════════════════════════════════════════════════════════════════════

COLORS = {
    'glacier': '#1F77B4',       # Primary series (battery #1, external temp)
    'fjord': '#FF7F0E',         # Secondary series (battery #2, mount temp)
    'moss': '#2CA02C',
    'ember': '#D62728',         # Errors, alarms
    'heather': '#9467BD',
    'basalt': '#8C564B',
}

GRAYS = {
    'black': '#000000',
    'carbon': '#212121',        # Body text
    'slate': '#44546A',         # Axis lines, headings
    'technical': '#8A8A8A',     # Labels
    'silver': '#BDBDBD',        # Grid lines
    'light': '#E0E0E0',
    'snow': '#F5F5F5',
    'white': '#FFFFFF',
}

SEMANTIC = {
    'ok': COLORS['moss'],
    'warning': '#FCC808',
    'error': COLORS['ember'],
}

_FONT = "Helvetica Neue, Helvetica, Arial, sans-serif"


def _axis(grid: str, line: str, text: str) -> dict:
    return dict(
        showgrid=True,
        gridcolor=grid,
        gridwidth=1,
        zeroline=False,
        showline=True,
        linecolor=line,
        linewidth=1,
        mirror=False,
        title_font=dict(size=12, color=text, family=_FONT),
        tickfont=dict(size=11, color=text),
    )


# ═══════════════════════════════════════════════════════════════════════════
# THEME 1: ATLAS LIGHT
# ═══════════════════════════════════════════════════════════════════════════

atlas_light = go.layout.Template(
    layout=dict(
        plot_bgcolor=GRAYS['white'],
        paper_bgcolor=GRAYS['white'],
        font=dict(family=_FONT, size=12, color=GRAYS['carbon']),
        title=dict(
            font=dict(size=16, color=GRAYS['black'], family=_FONT),
            x=0.0,
            xanchor='left',
        ),
        colorway=[
            COLORS['glacier'],
            COLORS['fjord'],
            COLORS['moss'],
            COLORS['ember'],
            COLORS['heather'],
            COLORS['basalt'],
        ],
        xaxis=_axis(GRAYS['light'], GRAYS['slate'], GRAYS['slate']),
        yaxis=_axis(GRAYS['light'], GRAYS['slate'], GRAYS['slate']),
        hoverlabel=dict(
            bgcolor=GRAYS['white'],
            font_size=12,
            font_family=_FONT,
            font_color=GRAYS['carbon'],
            bordercolor=GRAYS['technical'],
            align='left'
        ),
        legend=dict(
            bgcolor='rgba(255,255,255,0.9)',
            font=dict(size=11, color=GRAYS['carbon']),
            orientation='h',
            yanchor='bottom',
            y=1.02,
            xanchor='left',
            x=0.0
        ),
        annotationdefaults=dict(
            font=dict(size=12, color=SEMANTIC['error'])
        ),
        margin=dict(l=60, r=30, t=60, b=40)
    )
)


# ═══════════════════════════════════════════════════════════════════════════
# THEME 2: ATLAS DARK
# ═══════════════════════════════════════════════════════════════════════════

atlas_dark = go.layout.Template(
    layout=dict(
        plot_bgcolor=GRAYS['carbon'],
        paper_bgcolor=GRAYS['black'],
        font=dict(family=_FONT, size=12, color=GRAYS['white']),
        title=dict(
            font=dict(size=16, color=GRAYS['white'], family=_FONT),
            x=0.0,
            xanchor='left',
        ),
        # Brighter variants for contrast on black
        colorway=[
            '#4FA3E0',
            '#FFA54F',
            '#7CD67C',
            '#FF6B6B',
            '#C3A6E8',
            GRAYS['silver'],
        ],
        xaxis=_axis(GRAYS['slate'], GRAYS['technical'], GRAYS['light']),
        yaxis=_axis(GRAYS['slate'], GRAYS['technical'], GRAYS['light']),
        hoverlabel=dict(
            bgcolor=GRAYS['carbon'],
            font_size=12,
            font_family=_FONT,
            font_color=GRAYS['white'],
            bordercolor=GRAYS['technical'],
            align='left'
        ),
        legend=dict(
            bgcolor='rgba(33,33,33,0.9)',
            font=dict(size=11, color=GRAYS['white']),
            orientation='h',
            yanchor='bottom',
            y=1.02,
            xanchor='left',
            x=0.0
        ),
        annotationdefaults=dict(
            font=dict(size=12, color='#FF6B6B')
        ),
        margin=dict(l=60, r=30, t=60, b=40)
    )
)


THEMES = {
    'light': 'atlas_light',
    'dark': 'atlas_dark',
}


# ═══════════════════════════════════════════════════════════════════════════
# REGISTRATION
# ═══════════════════════════════════════════════════════════════════════════

def register_atlas_themes() -> None:
    """
    Register ATLAS themes in Plotly.

    Usage:
        register_atlas_themes()
        fig.update_layout(template='atlas_dark')
    """
    pio.templates["atlas_light"] = atlas_light
    pio.templates["atlas_dark"] = atlas_dark
    logger.debug("Registered Plotly templates 'atlas_light' and 'atlas_dark'")


def template_name(theme: str) -> str:
    """
    Map a theme variant to its registered template name.

    Raises:
        ValueError: If theme is not 'light' or 'dark'
    """
    if theme not in THEMES:
        raise ValueError(f"Unknown theme '{theme}'. Must be one of: {list(THEMES)}")
    register_atlas_themes()
    return THEMES[theme]


def apply_theme(fig: go.Figure, theme: str = 'light') -> go.Figure:
    """Apply an ATLAS theme to one figure (modified in-place)."""
    fig.update_layout(template=template_name(theme))
    return fig


def get_series_colors(theme: str = 'light') -> list:
    """Return the trace colour cycle for a theme."""
    template = pio.templates[template_name(theme)]
    return list(template.layout.colorway)
