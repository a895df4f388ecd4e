"""Dashboard group (``signalform_dashboard_group``)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from ..utils.codec import config_field, encode_payload
from .base import BaseResource, ResourceConfig


@dataclass(kw_only=True)
class DashboardGroupConfig(ResourceConfig):
    teams: List[str] = config_field(default_factory=list)


class DashboardGroupResource(BaseResource):
    kind = "signalform_dashboard_group"
    api_path = "dashboardgroup"
    ui_path = ""
    config_cls = DashboardGroupConfig

    def build_payload(self, cfg: DashboardGroupConfig) -> Dict[str, Any]:
        payload = encode_payload(cfg)
        # membership is owned by each dashboard's groupId
        payload["dashboards"] = []
        if cfg.teams:
            payload["teams"] = list(cfg.teams)
        return payload
