"""Single value chart (``signalform_single_value_chart``)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..utils.codec import config_field
from .base import BaseResource
from .charts import (
    ColorScale,
    LabelOption,
    ProgramChartConfig,
    base_chart_payload,
    color_scale_options,
    publish_label_options,
)


@dataclass(kw_only=True)
class SingleValueChartConfig(ProgramChartConfig):
    color_by: Optional[str] = config_field()
    refresh_interval: Optional[int] = config_field()
    max_precision: Optional[int] = config_field()
    is_timestamp_hidden: bool = config_field(default=False)
    show_spark_line: bool = config_field(default=False)
    color_scale: List[ColorScale] = config_field(default_factory=list)
    viz_options: List[LabelOption] = config_field(default_factory=list)


class SingleValueChartResource(BaseResource):
    kind = "signalform_single_value_chart"
    api_path = "chart"
    ui_path = "#/chart/<id>"
    config_cls = SingleValueChartConfig

    def build_payload(self, cfg: SingleValueChartConfig) -> Dict[str, Any]:
        payload = base_chart_payload(cfg)

        viz: Dict[str, Any] = {"type": "SingleValue"}
        if cfg.unit_prefix is not None:
            viz["unitPrefix"] = cfg.unit_prefix
        if cfg.color_by == "Scale":
            # colorBy=Scale is only sent together with its bands
            if cfg.color_scale:
                viz["colorBy"] = "Scale"
                viz["colorScale"] = color_scale_options(cfg.color_scale)
        elif cfg.color_by is not None:
            viz["colorBy"] = cfg.color_by

        if cfg.max_delay is not None:
            viz["programOptions"] = {"maxDelay": cfg.max_delay * 1000}
        if cfg.refresh_interval is not None:
            viz["refreshInterval"] = cfg.refresh_interval * 1000
        if cfg.max_precision is not None:
            viz["maximumPrecision"] = cfg.max_precision
        viz["timestampHidden"] = cfg.is_timestamp_hidden
        viz["showSparkLine"] = cfg.show_spark_line

        if cfg.viz_options:
            viz["publishLabelOptions"] = publish_label_options(cfg.viz_options)

        payload["options"] = viz
        return payload
