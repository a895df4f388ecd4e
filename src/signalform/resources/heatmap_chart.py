"""Heatmap chart (``signalform_heatmap_chart``)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..utils.codec import config_field, encode_payload
from ..utils.validators import validate_sort_by
from .base import BaseResource
from .charts import ColorRange, ColorScale, ProgramChartConfig, base_chart_payload, color_scale_options


@dataclass(kw_only=True)
class HeatmapChartConfig(ProgramChartConfig):
    minimum_resolution: Optional[int] = config_field()
    disable_sampling: bool = config_field(default=False)
    group_by: List[str] = config_field(default_factory=list)
    sort_by: Optional[str] = config_field(validate=validate_sort_by)
    color_range: Optional[ColorRange] = config_field()
    color_scale: List[ColorScale] = config_field(default_factory=list)
    hide_timestamp: bool = config_field(default=False)

    def check(self) -> List[str]:
        if self.color_range is not None and self.color_scale:
            return ["color_range: conflicts with color_scale"]
        return []


class HeatmapChartResource(BaseResource):
    kind = "signalform_heatmap_chart"
    api_path = "chart"
    ui_path = "#/chart/<id>"
    config_cls = HeatmapChartConfig

    def build_payload(self, cfg: HeatmapChartConfig) -> Dict[str, Any]:
        payload = base_chart_payload(cfg)

        viz: Dict[str, Any] = {"type": "Heatmap"}
        if cfg.unit_prefix is not None:
            viz["unitPrefix"] = cfg.unit_prefix

        program: Dict[str, Any] = {}
        if cfg.minimum_resolution is not None:
            program["minimumResolution"] = cfg.minimum_resolution * 1000
        if cfg.max_delay is not None:
            program["maxDelay"] = cfg.max_delay * 1000
        program["disableSampling"] = cfg.disable_sampling
        viz["programOptions"] = program

        if cfg.group_by:
            viz["groupBy"] = list(cfg.group_by)

        if cfg.sort_by is not None:
            viz["sortProperty"] = cfg.sort_by[1:]
            viz["sortDirection"] = "Ascending" if cfg.sort_by.startswith("+") else "Descending"

        if cfg.color_range is not None:
            viz["colorBy"] = "Range"
            viz["colorRange"] = encode_payload(cfg.color_range)
        elif cfg.color_scale:
            viz["colorBy"] = "Scale"
            viz["colorScale2"] = color_scale_options(cfg.color_scale)

        viz["timestampHidden"] = cfg.hide_timestamp

        payload["options"] = viz
        return payload
