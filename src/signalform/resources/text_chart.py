"""Markdown text chart (``signalform_text_chart``)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from ..utils.codec import config_field
from .base import BaseResource, ResourceConfig
from .charts import base_chart_payload


@dataclass(kw_only=True)
class TextChartConfig(ResourceConfig):
    markdown: str = config_field(required=True)


class TextChartResource(BaseResource):
    kind = "signalform_text_chart"
    api_path = "chart"
    ui_path = "#/chart/<id>"
    config_cls = TextChartConfig

    def build_payload(self, cfg: TextChartConfig) -> Dict[str, Any]:
        payload = base_chart_payload(cfg)
        payload["options"] = {"type": "Text", "markdown": cfg.markdown}
        return payload
