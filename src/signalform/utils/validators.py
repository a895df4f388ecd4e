"""
Field validators for declared SignalFx resources.

Each ``validate_*`` function is pure: it takes a value and returns a list of
error strings (empty when valid). They run when a resource config is decoded,
before any network call. :class:`ValidationError` carries the collected
messages when a whole config is rejected.
"""
from __future__ import annotations

import re
from typing import Callable, Iterable, List, Sequence

from .palette import CHART_COLOR_NAMES, PALETTE_COLORS

Validator = Callable[[object], List[str]]


class ValidationError(Exception):
    """Raised when a declared resource configuration fails validation."""

    def __init__(self, errors: Sequence[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) if self.errors else "validation failed")


MAX_DELAY_MAX = 900

SEVERITIES = ["Critical", "Major", "Minor", "Warning", "Info"]
PLOT_TYPES = ["LineChart", "AreaChart", "ColumnChart", "Histogram"]
AXES = ["right", "left"]
CHARTS_RESOLUTIONS = ["default", "low", "high", "highest"]
VALUE_UNITS = [
    "Bit", "Kilobit", "Megabit", "Gigabit", "Terabit", "Petabit", "Exabit", "Zettabit", "Yottabit",
    "Byte", "Kibibyte", "Mebibyte", "Gigibyte", "Tebibyte", "Pebibyte", "Exbibyte", "Zebibyte", "Yobibyte",
    "Nanosecond", "Microsecond", "Millisecond", "Second", "Minute", "Hour", "Day", "Week",
]

# SignalFx relative time: "-15m", "-1h", "-7d", "-2w".
RELATIVE_TIME_RE = re.compile(r"-([0-9]+)([mhdw])")
_UNIT_MS = {
    "m": 60 * 1000,
    "h": 60 * 60 * 1000,
    "d": 24 * 60 * 60 * 1000,
    "w": 7 * 24 * 60 * 60 * 1000,
}

_PROGRAM_LINE_INDENT = re.compile(r"\n[\t\n\v\f\r ]+")
_PROGRAM_LEADING = re.compile(r"^[\t\n\v\f\r ]+")


def one_of(allowed: Iterable[str]) -> Validator:
    """Build an enum-membership validator."""
    allowed = list(allowed)

    def _check(value: object) -> List[str]:
        if value in allowed:
            return []
        return [f"{value} not allowed; must be one of: {', '.join(allowed)}"]

    return _check


def validate_max_delay(value: object) -> List[str]:
    if not isinstance(value, int) or value < 0 or value > MAX_DELAY_MAX:
        return [f"{value} not allowed; max_delay must be >= 0 && <= {MAX_DELAY_MAX}"]
    return []


def validate_sort_by(value: object) -> List[str]:
    if not isinstance(value, str) or not value.startswith(("+", "-")):
        return [f"{value} not allowed; must start either with + or - (ascending or descending)"]
    return []


def validate_relative_time(value: object) -> List[str]:
    if not isinstance(value, str) or not RELATIVE_TIME_RE.fullmatch(value):
        return [f"{value} not allowed. Please use milliseconds from epoch or SignalFx time syntax (e.g. -5m, -1h)"]
    return []


def parse_relative_time(value: str) -> int:
    """Convert SignalFx relative time (``-15m``) into milliseconds.

    Raises:
        ValueError: If *value* is not valid relative time syntax.
    """
    m = RELATIVE_TIME_RE.fullmatch(value)
    if not m:
        raise ValueError(f"invalid SignalFx relative time: {value!r}")
    return int(m.group(1)) * _UNIT_MS[m.group(2)]


validate_severity = one_of(SEVERITIES)
validate_plot_type = one_of(PLOT_TYPES)
validate_value_unit = one_of(VALUE_UNITS)
validate_charts_resolution = one_of(CHARTS_RESOLUTIONS)


def validate_axis(value: object) -> List[str]:
    if value not in AXES:
        return [f"{value} not allowed; must be either right or left"]
    return []


def validate_palette_color(value: object) -> List[str]:
    if value not in PALETTE_COLORS:
        return [f"{value} not allowed; must be either {','.join(PALETTE_COLORS)}"]
    return []


def validate_chart_color(value: object) -> List[str]:
    if value not in CHART_COLOR_NAMES:
        return [f"{value} not allowed; must be either {','.join(CHART_COLOR_NAMES)}"]
    return []


def validate_non_empty(value: object) -> List[str]:
    if not isinstance(value, str) or not value.strip():
        return ["must be a non-empty string"]
    return []


def sanitize_program_text(text: str) -> str:
    """Strip indentation and blank lines that SignalFlow rejects or mis-parses."""
    sane = _PROGRAM_LINE_INDENT.sub("\n", text)
    return _PROGRAM_LEADING.sub("", sane)
