"""
Value-axis formatters keyed by unit kind.

A formatter appends a literal unit suffix to tick values. It never converts
units: the raw numbers pass through unchanged.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union

from markupsafe import Markup, escape


class UnitKind(Enum):
    """Unit kinds known to the dashboard."""
    PERCENT = "percent"
    CELSIUS = "celsius"
    MILLIBAR = "millibar"
    NONE = "none"


@dataclass(frozen=True)
class ValueFormatter:
    """
    Formats axis tick values with a unit suffix.

    Attributes:
        kind: Unit kind this formatter represents
        suffix: Literal text appended to each value (e.g. '%', '°C')
        html_suffix: Same suffix as an HTML-safe entity string
    """
    kind: UnitKind
    suffix: str
    html_suffix: str

    def __call__(self, value: float) -> str:
        return f"{_format_number(value)}{self.suffix}"

    def format_html(self, value: Union[float, str]) -> Markup:
        """
        Format value for an HTML page with the entity form of the suffix.

        Strings are shown as given (escaped), numbers as for tick labels.
        """
        text = value.strip() if isinstance(value, str) else _format_number(value)
        return escape(text) + Markup(self.html_suffix)


def _format_number(value: float) -> str:
    # Whole numbers render without a trailing '.0', like a JS number toString
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return str(value)


FORMATTERS = {
    UnitKind.PERCENT: ValueFormatter(UnitKind.PERCENT, "%", "%"),
    UnitKind.CELSIUS: ValueFormatter(UnitKind.CELSIUS, "°C", "&deg;C"),
    UnitKind.MILLIBAR: ValueFormatter(UnitKind.MILLIBAR, " mbar", " mbar"),
    UnitKind.NONE: ValueFormatter(UnitKind.NONE, "", ""),
}


def get_formatter(kind: Union[UnitKind, str]) -> ValueFormatter:
    """
    Look up the formatter for a unit kind.

    Args:
        kind: UnitKind member or its string value ('percent', 'celsius', ...)

    Returns:
        The ValueFormatter for that unit

    Raises:
        ValueError: If the unit kind is unknown
    """
    if not isinstance(kind, UnitKind):
        try:
            kind = UnitKind(str(kind).lower())
        except ValueError:
            raise ValueError(
                f"Unknown unit kind '{kind}'. "
                f"Must be one of: {[k.value for k in UnitKind]}"
            )
    return FORMATTERS[kind]
