""" BaseResource: declared config -> SignalFx payload -> lifecycle call.

Concrete resources only declare their config dataclass, their API collection
and UI URL template, and implement :meth:`BaseResource.build_payload`.
Everything else (URL building, state bookkeeping, delegating to the
lifecycle) is handled here.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Type

from ..core.config import ProviderConfig
from ..core.lifecycle import ResourceLifecycle, ResourceState
from ..core.logging_utils import get_logger
from ..utils.codec import config_field, decode_config
from ..utils.validators import validate_non_empty

log = get_logger(__name__)


def to_ms(seconds: int) -> int:
    return seconds * 1000


@dataclass(kw_only=True)
class ResourceConfig:
    """Fields every declared resource has."""
    name: str = config_field("name", required=True, validate=validate_non_empty)
    description: str = config_field("description", default="")
    # Desired drift state; a drifted remote object against synced=True is reported as "Needs update".
    synced: bool = config_field(default=True)
    resource_url: Optional[str] = config_field(default=None)

    def check(self) -> list:
        """Cross-field checks run after decoding; return error strings."""
        return []


class BaseResource:
    """Abstract base class for all SignalFx resource kinds.

    Class Attributes:
        kind: Registry key (e.g. ``signalform_detector``).
        api_path: Collection path under the API base (``chart``, ``detector`` ...).
        ui_path: UI path template appended to the app URL, with ``<id>``;
            empty when the kind has no UI page of its own.
        config_cls: Dataclass the raw declared config is decoded into.
    """

    kind: str = "resource"
    api_path: str = ""
    ui_path: str = ""
    config_cls: Type[ResourceConfig] = ResourceConfig

    def __init__(self, provider: ProviderConfig, lifecycle: ResourceLifecycle) -> None:
        self.provider = provider
        self.lifecycle = lifecycle

    # ----- config / payload ------------------------------------------------
    @classmethod
    def parse_config(cls, raw: Dict[str, Any]) -> ResourceConfig:
        """Decode and validate a raw config mapping.

        Raises:
            ValidationError: With every field problem found.
        """
        return decode_config(cls.config_cls, raw)

    def build_payload(self, cfg: ResourceConfig) -> Dict[str, Any]:
        """Build the SignalFx JSON payload for *cfg*."""
        raise NotImplementedError

    # ----- URLs -------------------------------------------------------------
    def collection_url(self) -> str:
        return f"{self.provider.api_url}/{self.api_path}"

    def item_url(self, resource_id: str) -> str:
        return f"{self.collection_url()}/{resource_id}"

    def default_resource_url(self) -> str:
        if not self.ui_path:
            return ""
        return f"{self.provider.app_url}/{self.ui_path}"

    # ----- state --------------------------------------------------------------
    def bind_state(self, cfg: ResourceConfig, state: Optional[ResourceState] = None) -> ResourceState:
        """Return *state* (or a fresh one) carrying the config's name and URL template."""
        template = cfg.resource_url if cfg.resource_url is not None else self.default_resource_url()
        if state is None:
            return ResourceState(name=cfg.name, resource_url=template)
        return replace(state, name=cfg.name, resource_url=template)

    # ----- lifecycle ------------------------------------------------------------
    def create(self, cfg: ResourceConfig, state: Optional[ResourceState] = None) -> ResourceState:
        payload = self.build_payload(cfg)
        log.debug("%s payload for %s: %s", self.kind, cfg.name, payload)
        return self.lifecycle.create(self.collection_url(), payload, self.bind_state(cfg, state))

    def read(self, cfg: ResourceConfig, state: ResourceState) -> ResourceState:
        state = self.bind_state(cfg, state)
        return self.lifecycle.read(self.item_url(state.id), state)

    def update(self, cfg: ResourceConfig, state: ResourceState) -> ResourceState:
        state = self.bind_state(cfg, state)
        payload = self.build_payload(cfg)
        log.debug("%s payload for %s: %s", self.kind, cfg.name, payload)
        return self.lifecycle.update(self.item_url(state.id), payload, state)

    def delete(self, cfg: ResourceConfig, state: ResourceState) -> ResourceState:
        state = self.bind_state(cfg, state)
        return self.lifecycle.delete(self.item_url(state.id), state)
