"""Time series chart (``signalform_time_chart``)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..utils.codec import config_field, encode_payload
from ..utils.validators import validate_plot_type
from .base import BaseResource
from .charts import (
    LEGEND_PROPERTY_ALIASES,
    AxisOptions,
    ProgramChartConfig,
    TimeWindowMixin,
    VizOption,
    base_chart_payload,
    legend_options,
    publish_label_options,
    time_options,
)


@dataclass(kw_only=True)
class TimeChartConfig(ProgramChartConfig, TimeWindowMixin):
    color_by: Optional[str] = config_field()
    minimum_resolution: Optional[int] = config_field()
    disable_sampling: Optional[bool] = config_field()
    axis_right: Optional[AxisOptions] = config_field()
    axis_left: Optional[AxisOptions] = config_field()
    axes_precision: Optional[int] = config_field()
    axes_include_zero: Optional[bool] = config_field()
    on_chart_legend_dimension: Optional[str] = config_field()
    legend_fields_to_hide: List[str] = config_field(default_factory=list)
    show_event_lines: Optional[bool] = config_field()
    show_data_markers: bool = config_field(default=False)
    stacked: bool = config_field(default=False)
    plot_type: Optional[str] = config_field(validate=validate_plot_type)
    viz_options: List[VizOption] = config_field(default_factory=list)

    def check(self) -> List[str]:
        return self.time_window_errors()


class TimeChartResource(BaseResource):
    kind = "signalform_time_chart"
    api_path = "chart"
    ui_path = "#/chart/<id>"
    config_cls = TimeChartConfig

    def build_payload(self, cfg: TimeChartConfig) -> Dict[str, Any]:
        payload = base_chart_payload(cfg)
        viz = self.chart_options(cfg)

        axes = self.axes_options(cfg)
        if axes:
            viz["axes"] = axes
        legend = legend_options(cfg.legend_fields_to_hide)
        if legend:
            viz["legendOptions"] = legend
        if cfg.viz_options:
            viz["publishLabelOptions"] = publish_label_options(cfg.viz_options)
        if cfg.on_chart_legend_dimension:
            dim = cfg.on_chart_legend_dimension
            if dim in ("metric", "plot_label"):
                dim = LEGEND_PROPERTY_ALIASES[dim]
            viz["onChartLegendOptions"] = {"showLegend": True, "dimensionInLegend": dim}

        payload["options"] = viz
        return payload

    @staticmethod
    def chart_options(cfg: TimeChartConfig) -> Dict[str, Any]:
        viz: Dict[str, Any] = {"type": "TimeSeriesChart"}
        if cfg.unit_prefix is not None:
            viz["unitPrefix"] = cfg.unit_prefix
        if cfg.color_by is not None:
            viz["colorBy"] = cfg.color_by
        if cfg.show_event_lines is not None:
            viz["showEventLines"] = cfg.show_event_lines
        viz["stacked"] = cfg.stacked
        if cfg.plot_type is not None:
            viz["defaultPlotType"] = cfg.plot_type
        if cfg.axes_precision is not None:
            viz["axisPrecision"] = cfg.axes_precision
        if cfg.axes_include_zero is not None:
            viz["includeZero"] = cfg.axes_include_zero

        program: Dict[str, Any] = {}
        if cfg.minimum_resolution is not None:
            program["minimumResolution"] = cfg.minimum_resolution * 1000
        if cfg.max_delay is not None:
            program["maxDelay"] = cfg.max_delay * 1000
        if cfg.disable_sampling is not None:
            program["disableSampling"] = cfg.disable_sampling
        if program:
            viz["programOptions"] = program

        window = time_options(cfg)
        if window:
            viz["time"] = window

        markers = {"showDataMarkers": cfg.show_data_markers}
        if cfg.plot_type is None or cfg.plot_type == "LineChart":
            viz["lineChartOptions"] = markers
        elif cfg.plot_type == "AreaChart":
            viz["areaChartOptions"] = markers
        return viz

    @staticmethod
    def axes_options(cfg: TimeChartConfig) -> Optional[List[Optional[Dict[str, Any]]]]:
        """``[left, right]``; an unset side is null, both unset means no ``axes`` key."""
        if cfg.axis_left is None and cfg.axis_right is None:
            return None
        return [
            encode_payload(cfg.axis_left) if cfg.axis_left else None,
            encode_payload(cfg.axis_right) if cfg.axis_right else None,
        ]
