"""List chart (``signalform_list_chart``)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..utils.codec import config_field
from ..utils.validators import validate_sort_by
from .base import BaseResource
from .charts import LabelOption, ProgramChartConfig, base_chart_payload, legend_options, publish_label_options


@dataclass(kw_only=True)
class ListChartConfig(ProgramChartConfig):
    color_by: Optional[str] = config_field()
    disable_sampling: bool = config_field(default=False)
    sort_by: Optional[str] = config_field(validate=validate_sort_by)
    refresh_interval: Optional[int] = config_field()
    legend_fields_to_hide: List[str] = config_field(default_factory=list)
    max_precision: Optional[int] = config_field()
    viz_options: List[LabelOption] = config_field(default_factory=list)


class ListChartResource(BaseResource):
    kind = "signalform_list_chart"
    api_path = "chart"
    ui_path = "#/chart/<id>"
    config_cls = ListChartConfig

    def build_payload(self, cfg: ListChartConfig) -> Dict[str, Any]:
        payload = base_chart_payload(cfg)

        viz: Dict[str, Any] = {"type": "List"}
        if cfg.unit_prefix is not None:
            viz["unitPrefix"] = cfg.unit_prefix
        if cfg.color_by is not None:
            viz["colorBy"] = cfg.color_by

        program: Dict[str, Any] = {}
        if cfg.max_delay is not None:
            program["maxDelay"] = cfg.max_delay * 1000
        program["disableSampling"] = cfg.disable_sampling
        viz["programOptions"] = program

        if cfg.sort_by is not None:
            viz["sortBy"] = cfg.sort_by
        if cfg.refresh_interval is not None:
            viz["refreshInterval"] = cfg.refresh_interval * 1000
        if cfg.max_precision is not None:
            viz["maximumPrecision"] = cfg.max_precision

        legend = legend_options(cfg.legend_fields_to_hide)
        if legend:
            viz["legendOptions"] = legend
        if cfg.viz_options:
            viz["publishLabelOptions"] = publish_label_options(cfg.viz_options)

        payload["options"] = viz
        return payload
