"""Resource kind registry for signalform."""

from __future__ import annotations

from dataclasses import dataclass
from importlib import import_module
from typing import Dict, Iterable, Type

from .base import BaseResource


@dataclass(frozen=True)
class ResourceSpec:
    key: str                # resource kind, e.g. signalform_detector
    help: str               # one-line description (CLI listing)
    module: str             # module path
    class_name: str         # class symbol in module

    def load_class(self) -> Type[BaseResource]:
        mod = import_module(self.module)
        return getattr(mod, self.class_name)


_RESOURCES: Dict[str, ResourceSpec] = {
    spec.key: spec
    for spec in (
        ResourceSpec(
            key="signalform_detector",
            help="Detector with alert rules and notifications",
            module="signalform.resources.detector",
            class_name="DetectorResource",
        ),
        ResourceSpec(
            key="signalform_time_chart",
            help="Time series chart",
            module="signalform.resources.time_chart",
            class_name="TimeChartResource",
        ),
        ResourceSpec(
            key="signalform_heatmap_chart",
            help="Heatmap chart",
            module="signalform.resources.heatmap_chart",
            class_name="HeatmapChartResource",
        ),
        ResourceSpec(
            key="signalform_single_value_chart",
            help="Single value chart",
            module="signalform.resources.single_value_chart",
            class_name="SingleValueChartResource",
        ),
        ResourceSpec(
            key="signalform_list_chart",
            help="List chart",
            module="signalform.resources.list_chart",
            class_name="ListChartResource",
        ),
        ResourceSpec(
            key="signalform_text_chart",
            help="Markdown text chart",
            module="signalform.resources.text_chart",
            class_name="TextChartResource",
        ),
        ResourceSpec(
            key="signalform_dashboard",
            help="Dashboard laying out charts",
            module="signalform.resources.dashboard",
            class_name="DashboardResource",
        ),
        ResourceSpec(
            key="signalform_dashboard_group",
            help="Dashboard group",
            module="signalform.resources.dashboard_group",
            class_name="DashboardGroupResource",
        ),
    )
}


def get_spec(key: str) -> ResourceSpec:
    """Return the :class:`ResourceSpec` for a resource kind.

    Raises:
        KeyError: If the kind is not registered.
    """
    try:
        return _RESOURCES[key]
    except KeyError:
        raise KeyError(f"Unknown resource kind {key!r}; known: {', '.join(sorted(_RESOURCES))}") from None


def iter_specs() -> Iterable[ResourceSpec]:
    return _RESOURCES.values()
