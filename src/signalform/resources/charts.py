"""
Option blocks shared by the chart resources (and by detectors for time windows).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..utils.codec import config_field, encode_payload
from ..utils.palette import PALETTE_COLORS, chart_color_index
from ..utils.validators import (
    parse_relative_time,
    sanitize_program_text,
    validate_axis,
    validate_chart_color,
    validate_max_delay,
    validate_palette_color,
    validate_plot_type,
    validate_relative_time,
    validate_value_unit,
)
from .base import ResourceConfig

LEGEND_PROPERTY_ALIASES = {
    "metric": "sf_originatingMetric",
    "plot_label": "sf_metric",
    "Plot Label": "sf_metric",
}


def _y_axis(axis: str) -> int:
    return 1 if axis == "right" else 0


@dataclass(kw_only=True)
class LabelOption:
    """Per-signal display options (``publishLabelOptions``)."""
    label: str = config_field("label", required=True)
    color: Optional[str] = config_field("paletteIndex", validate=validate_palette_color, encode=PALETTE_COLORS.__getitem__)
    value_unit: Optional[str] = config_field("valueUnit", validate=validate_value_unit)
    value_prefix: Optional[str] = config_field("valuePrefix")
    value_suffix: Optional[str] = config_field("valueSuffix")


@dataclass(kw_only=True)
class VizOption(LabelOption):
    """Time-chart signal options: adds axis and plot type."""
    axis: Optional[str] = config_field("yAxis", validate=validate_axis, encode=_y_axis)
    plot_type: Optional[str] = config_field("plotType", validate=validate_plot_type)


@dataclass(kw_only=True)
class AxisOptions:
    """One Y axis of a time chart. Unset bounds and watermarks are sent as null."""
    min_value: Optional[float] = config_field("min", keep_none=True)
    max_value: Optional[float] = config_field("max", keep_none=True)
    label: str = config_field("label", default="")
    high_watermark: Optional[float] = config_field("highWatermark", keep_none=True)
    high_watermark_label: str = config_field("highWatermarkLabel", default="")
    low_watermark: Optional[float] = config_field("lowWatermark", keep_none=True)
    low_watermark_label: str = config_field("lowWatermarkLabel", default="")


@dataclass(kw_only=True)
class ColorScale:
    """One threshold band of a colour scale."""
    gt: Optional[float] = config_field("gt")
    gte: Optional[float] = config_field("gte")
    lt: Optional[float] = config_field("lt")
    lte: Optional[float] = config_field("lte")
    color: str = config_field("paletteIndex", required=True, validate=validate_chart_color, encode=chart_color_index)


@dataclass(kw_only=True)
class ColorRange:
    """Heatmap colour range."""
    min_value: Optional[float] = config_field("min")
    max_value: Optional[float] = config_field("max")
    color: str = config_field("color", required=True, validate=validate_chart_color)


@dataclass(kw_only=True)
class TimeWindowMixin:
    """Relative (``time_range``) or absolute (``start_time``/``end_time``, seconds) window."""
    time_range: Optional[str] = config_field(validate=validate_relative_time)
    start_time: Optional[int] = config_field()
    end_time: Optional[int] = config_field()

    def time_window_errors(self) -> List[str]:
        if self.time_range is not None and (self.start_time is not None or self.end_time is not None):
            return ["time_range: conflicts with start_time/end_time"]
        return []


@dataclass(kw_only=True)
class ProgramChartConfig(ResourceConfig):
    """Charts driven by a SignalFlow program."""
    program_text: str = config_field("programText", required=True, encode=sanitize_program_text)
    unit_prefix: Optional[str] = config_field()
    max_delay: Optional[int] = config_field(validate=validate_max_delay)


def base_chart_payload(cfg: ResourceConfig) -> Dict[str, Any]:
    """``name``, ``description`` and (for program charts) sanitized ``programText``."""
    return encode_payload(cfg)


def time_options(window: TimeWindowMixin) -> Optional[Dict[str, Any]]:
    """SignalFx ``time`` block in milliseconds, or ``None`` when no window is set."""
    out: Dict[str, Any] = {}
    if window.time_range is not None:
        out["range"] = parse_relative_time(window.time_range)
        out["type"] = "relative"
    if window.start_time is not None:
        out["start"] = window.start_time * 1000
        out["type"] = "absolute"
        if window.end_time is not None:
            out["end"] = window.end_time * 1000
    return out or None


def legend_options(fields_to_hide: List[str]) -> Optional[Dict[str, Any]]:
    if not fields_to_hide:
        return None
    return {
        "fields": [
            {"property": LEGEND_PROPERTY_ALIASES.get(prop, prop), "enabled": False}
            for prop in fields_to_hide
        ]
    }


def publish_label_options(options: List[LabelOption]) -> List[Dict[str, Any]]:
    return [encode_payload(opt) for opt in options]


def color_scale_options(scales: List[ColorScale]) -> List[Dict[str, Any]]:
    return [encode_payload(scale) for scale in scales]
