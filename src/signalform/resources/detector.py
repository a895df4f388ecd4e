"""
Detector (``signalform_detector``).

Notifications are a tagged variant, one dataclass per SignalFx notification
type. They can be declared as a mapping::

    {"type": "Slack", "credential_id": "abc", "channel": "#ops"}

or in the legacy comma form ``"Slack,abc,#ops"``. The last field keeps any
remaining commas, so webhook URLs with commas survive.

Rules carry a content fingerprint (CRC-32 over their significant fields with
notifications sorted) so that the same rule declared twice, or with its
notifications reordered, is recognised as the same rule.
"""
from __future__ import annotations

import zlib
from dataclasses import dataclass, fields
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple, Type

from ..utils.codec import config_field, decode_config, encode_payload
from ..utils.validators import ValidationError, sanitize_program_text, validate_max_delay, validate_severity
from .base import BaseResource, ResourceConfig, to_ms
from .charts import TimeWindowMixin, time_options


# ----- notifications ----------------------------------------------------------

@dataclass(frozen=True, kw_only=True)
class Notification:
    type_name: ClassVar[str] = ""

    def to_string(self) -> str:
        """Canonical comma form, e.g. ``Email,ops@example.com``."""
        values = [getattr(self, f.name) for f in fields(self)]
        return ",".join([self.type_name, *values])

    def to_payload(self) -> Dict[str, Any]:
        return {"type": self.type_name, **encode_payload(self)}


@dataclass(frozen=True, kw_only=True)
class EmailNotification(Notification):
    type_name: ClassVar[str] = "Email"
    email: str = config_field("email", required=True)


@dataclass(frozen=True, kw_only=True)
class PagerDutyNotification(Notification):
    type_name: ClassVar[str] = "PagerDuty"
    credential_id: str = config_field("credentialId", required=True)


@dataclass(frozen=True, kw_only=True)
class SlackNotification(Notification):
    type_name: ClassVar[str] = "Slack"
    credential_id: str = config_field("credentialId", required=True)
    channel: str = config_field("channel", required=True)


@dataclass(frozen=True, kw_only=True)
class WebhookNotification(Notification):
    type_name: ClassVar[str] = "Webhook"
    secret: str = config_field("secret", required=True)
    url: str = config_field("url", required=True)


@dataclass(frozen=True, kw_only=True)
class TeamNotification(Notification):
    type_name: ClassVar[str] = "Team"
    team: str = config_field("team", required=True)


@dataclass(frozen=True, kw_only=True)
class TeamEmailNotification(Notification):
    type_name: ClassVar[str] = "TeamEmail"
    team: str = config_field("team", required=True)


NOTIFICATION_TYPES: Dict[str, Type[Notification]] = {
    cls.type_name: cls
    for cls in (
        EmailNotification,
        PagerDutyNotification,
        SlackNotification,
        WebhookNotification,
        TeamNotification,
        TeamEmailNotification,
    )
}


def parse_notification(raw: Any) -> Notification:
    """Build a notification from a mapping with ``type`` or a comma string.

    Raises:
        ValueError: Unknown type, wrong number of fields, or bad mapping.
    """
    if isinstance(raw, str):
        type_name, _, rest = raw.partition(",")
        cls = NOTIFICATION_TYPES.get(type_name)
        if cls is None:
            raise ValueError(f"{raw!r}: unknown notification type {type_name!r}")
        names = [f.name for f in fields(cls)]
        values = rest.split(",", len(names) - 1) if rest else []
        if len(values) != len(names) or not all(values):
            raise ValueError(f"{raw!r}: {type_name} notifications need {len(names)} field(s): {', '.join(names)}")
        return cls(**dict(zip(names, values)))

    if isinstance(raw, Mapping):
        body = dict(raw)
        type_name = body.pop("type", None)
        cls = NOTIFICATION_TYPES.get(type_name) if isinstance(type_name, str) else None
        if cls is None:
            raise ValueError(f"unknown notification type {type_name!r}; must be one of: {', '.join(NOTIFICATION_TYPES)}")
        try:
            return decode_config(cls, body)
        except ValidationError as exc:
            raise ValueError(f"{type_name}: {'; '.join(exc.errors)}") from exc

    raise ValueError(f"expected a string or a mapping, got {type(raw).__name__}")


def parse_notifications(raw: Any) -> List[Notification]:
    if not isinstance(raw, list):
        raise ValueError(f"expected a list, got {type(raw).__name__}")
    out = []
    for i, item in enumerate(raw):
        try:
            out.append(parse_notification(item))
        except ValueError as exc:
            raise ValueError(f"[{i}] {exc}") from exc
    return out


# ----- rules ------------------------------------------------------------------

OPTIONAL_RULE_FIELDS = ("parameterized_body", "parameterized_subject", "runbook_url", "tip")


@dataclass(kw_only=True, eq=False)
class DetectorRule:
    description: str = config_field("description", default="")
    severity: str = config_field("severity", required=True, validate=validate_severity)
    detect_label: str = config_field("detectLabel", required=True)
    disabled: bool = config_field("disabled", default=False)
    parameterized_body: Optional[str] = config_field("parameterizedBody")
    parameterized_subject: Optional[str] = config_field("parameterizedSubject")
    runbook_url: Optional[str] = config_field("runbookUrl")
    tip: Optional[str] = config_field("tip")
    notifications: List[Notification] = config_field(default_factory=list, parse=parse_notifications)

    def identity(self) -> Tuple[str, ...]:
        parts = [
            self.description,
            self.severity,
            self.detect_label,
            "true" if self.disabled else "false",
        ]
        parts.extend(getattr(self, name) for name in OPTIONAL_RULE_FIELDS if getattr(self, name) is not None)
        parts.extend(sorted(n.to_string() for n in self.notifications))
        return tuple(parts)

    def fingerprint(self) -> int:
        """CRC-32 of ``<field>-`` for every significant field, notifications sorted."""
        text = "".join(f"{part}-" for part in self.identity())
        return zlib.crc32(text.encode("utf-8"))

    def __hash__(self) -> int:
        return self.fingerprint()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DetectorRule):
            return NotImplemented
        return self.identity() == other.identity()

    def to_payload(self) -> Dict[str, Any]:
        item = encode_payload(self)
        item["notifications"] = [n.to_payload() for n in self.notifications]
        return item


# ----- detector -----------------------------------------------------------------

@dataclass(kw_only=True)
class DetectorConfig(ResourceConfig, TimeWindowMixin):
    program_text: str = config_field("programText", required=True, encode=sanitize_program_text)
    max_delay: Optional[int] = config_field("maxDelay", validate=validate_max_delay, encode=to_ms, keep_none=True)
    show_data_markers: bool = config_field(default=False)
    tags: List[str] = config_field(default_factory=list)
    teams: List[str] = config_field(default_factory=list)
    rule: List[DetectorRule] = config_field(required=True)

    def check(self) -> List[str]:
        errors = self.time_window_errors()
        if not self.rule:
            errors.append("rule: at least one rule is required")
        return errors

    def unique_rules(self) -> List[DetectorRule]:
        """Rules in declaration order with duplicates (same fingerprint identity) dropped."""
        return list(dict.fromkeys(self.rule))


class DetectorResource(BaseResource):
    kind = "signalform_detector"
    api_path = "detector"
    ui_path = "#/detector/v2/<id>/edit"
    config_cls = DetectorConfig

    def build_payload(self, cfg: DetectorConfig) -> Dict[str, Any]:
        payload = encode_payload(cfg)
        payload["rules"] = [r.to_payload() for r in cfg.unique_rules()]

        viz: Dict[str, Any] = {}
        if cfg.show_data_markers:
            viz["showDataMarkers"] = True
        window = time_options(cfg)
        if window:
            viz["time"] = window
        if viz:
            payload["visualizationOptions"] = viz

        if cfg.teams:
            payload["teams"] = list(cfg.teams)
        if cfg.tags:
            payload["tags"] = list(cfg.tags)
        return payload
