"""
Dashboard (``signalform_dashboard``).

Charts are placed on a 12-column grid from three kinds of blocks:

* ``chart``  -- one chart at an explicit row/column.
* ``column`` -- charts stacked downward in one column, one row each.
* ``grid``   -- charts laid left to right, wrapping to the next row when the
  next chart would cross column 12.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..utils.codec import config_field, encode_payload
from ..utils.validators import validate_charts_resolution
from .base import BaseResource, ResourceConfig
from .charts import TimeWindowMixin

GRID_COLUMNS = 12


@dataclass(kw_only=True)
class DashboardChart:
    chart_id: str = config_field("chartId", required=True)
    row: int = config_field("row", default=0)
    column: int = config_field("column", default=0)
    width: int = config_field("width", default=12)
    height: int = config_field("height", default=1)


@dataclass(kw_only=True)
class DashboardColumn:
    chart_ids: List[str] = config_field(required=True)
    column: int = config_field(default=0)
    start_row: int = config_field(default=0)
    width: int = config_field(default=12)
    height: int = config_field(default=1)


@dataclass(kw_only=True)
class DashboardGrid:
    chart_ids: List[str] = config_field(required=True)
    start_row: int = config_field(default=0)
    start_column: int = config_field(default=0)
    width: int = config_field(default=12)
    height: int = config_field(default=1)


@dataclass(kw_only=True)
class DashboardVariable:
    property: str = config_field(required=True)
    alias: str = config_field(required=True)
    description: str = config_field(default="")
    values: List[str] = config_field(default_factory=list)
    value_required: bool = config_field(default=False)
    values_suggested: List[str] = config_field(default_factory=list)
    restricted_suggestions: bool = config_field(default=False)
    replace_only: bool = config_field(default=False)

    def to_payload(self) -> Dict[str, Any]:
        item: Dict[str, Any] = {
            "property": self.property,
            "description": self.description,
            "alias": self.alias,
            "value": list(self.values) if self.values else "",
            "required": self.value_required,
        }
        if self.values_suggested:
            item["preferredSuggestions"] = list(self.values_suggested)
        item["restricted"] = self.restricted_suggestions
        item["replaceOnly"] = self.replace_only
        return item


@dataclass(kw_only=True)
class DashboardFilter:
    property: str = config_field("property", required=True)
    negated: bool = config_field("NOT", default=False)
    values: List[str] = config_field("value", required=True)


@dataclass(kw_only=True)
class DashboardConfig(ResourceConfig, TimeWindowMixin):
    dashboard_group: str = config_field("groupId", required=True)
    charts_resolution: Optional[str] = config_field(validate=validate_charts_resolution)
    tags: List[str] = config_field(default_factory=list)
    chart: List[DashboardChart] = config_field(default_factory=list)
    column: List[DashboardColumn] = config_field(default_factory=list)
    grid: List[DashboardGrid] = config_field(default_factory=list)
    variable: List[DashboardVariable] = config_field(default_factory=list)
    filter: List[DashboardFilter] = config_field(default_factory=list)

    def check(self) -> List[str]:
        return self.time_window_errors()


def column_layout(block: DashboardColumn) -> List[Dict[str, Any]]:
    charts = []
    row = block.start_row
    for chart_id in block.chart_ids:
        charts.append({
            "chartId": chart_id,
            "height": block.height,
            "width": block.width,
            "column": block.column,
            "row": row,
        })
        row += 1
    return charts


def grid_layout(block: DashboardGrid) -> List[Dict[str, Any]]:
    charts = []
    row = block.start_row
    column = block.start_column
    for chart_id in block.chart_ids:
        if column + block.width > GRID_COLUMNS:
            row += 1
            column = block.start_column
        charts.append({
            "chartId": chart_id,
            "height": block.height,
            "width": block.width,
            "row": row,
            "column": column,
        })
        column += block.width
    return charts


class DashboardResource(BaseResource):
    kind = "signalform_dashboard"
    api_path = "dashboard"
    ui_path = "#/dashboard/<id>"
    config_cls = DashboardConfig

    def build_payload(self, cfg: DashboardConfig) -> Dict[str, Any]:
        payload = encode_payload(cfg)

        filters: Dict[str, Any] = {}
        if cfg.filter:
            filters["sources"] = [encode_payload(f) for f in cfg.filter]
        if cfg.variable:
            filters["variables"] = [v.to_payload() for v in cfg.variable]
        window = self.time_filter(cfg)
        if window:
            filters["time"] = window
        if filters:
            payload["filters"] = filters

        charts = [encode_payload(c) for c in cfg.chart]
        for block in cfg.column:
            charts.extend(column_layout(block))
        for block in cfg.grid:
            charts.extend(grid_layout(block))
        if charts:
            payload["charts"] = charts

        if cfg.charts_resolution is not None:
            payload["chartDensity"] = cfg.charts_resolution.upper()
        if cfg.tags:
            payload["tags"] = list(cfg.tags)
        return payload

    @staticmethod
    def time_filter(cfg: DashboardConfig) -> Optional[Dict[str, Any]]:
        """Dashboard time filter: relative ranges stay in SignalFx syntax, absolute times go to ms."""
        if cfg.time_range is not None:
            return {"start": cfg.time_range, "end": "Now"}
        out: Dict[str, Any] = {}
        if cfg.start_time is not None:
            out["start"] = cfg.start_time * 1000
        if cfg.end_time is not None:
            out["end"] = cfg.end_time * 1000
        return out or None
