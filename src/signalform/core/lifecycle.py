"""
Drift-aware CRUD lifecycle shared by every SignalFx resource kind.

A declared resource moves between three states, tracked by :class:`ResourceState`:

    absent (id == "")  --create-->  present-synced  --read (drift)-->  present-drifted
    present-*          --update-->  present-synced
    present-*          --delete / read 404-->  absent

Drift is detected from the vendor's ``lastUpdated`` timestamp. SignalFx shifts
that timestamp slightly while post-processing a write, so a remote value is
only treated as a UI-side change when it exceeds the stored one by more than
:data:`OFFSET` milliseconds.

Every operation returns a *new* state. The input state is never mutated, so a
failed call leaves the caller's state exactly as it was.
"""
from __future__ import annotations

import json
import uuid
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, Optional, Protocol

from .logging_utils import get_logger
from .sfx_client import JSON, HttpResponse

log = get_logger(__name__)

# Tolerance (ms) for vendor-side lastUpdated skew after post-processing.
OFFSET = 10000.0

# SignalFx answers GET on a deleted object with 404 and a body like
# "Chart ABC123 not found". Kept as a constant so the contract is pinned in one place.
NOT_FOUND_MARKER = " not found"

ID_PLACEHOLDER = "<id>"


class LifecycleError(Exception):
    """Base class for lifecycle failures surfaced to the host."""
    pass


class ProtocolError(LifecycleError):
    """SignalFx answered with a status outside the operation's success rule."""

    def __init__(self, name: str, status: int, body: Optional[bytes]) -> None:
        self.name = name
        self.status = status
        self.body = (body or b"").decode("utf-8", errors="replace")
        super().__init__(f"For the resource {name} SignalFx returned status {status}: \n{self.body}")


class DecodeError(LifecycleError):
    """A 200 response whose body is not JSON or lacks ``id``/``lastUpdated``."""

    def __init__(self, name: str, phase: str, detail: str) -> None:
        self.name = name
        self.phase = phase
        super().__init__(f"Failed unmarshaling for the resource {name} during {phase}: {detail}")


class Transport(Protocol):
    def send(self, method: str, url: str, token: str, payload: Optional[JSON] = None) -> HttpResponse:
        ...


@dataclass(frozen=True)
class ResourceState:
    """Computed fields written back to the host after each operation.

    Attributes:
        name: Declared resource name (used in error messages).
        id: SignalFx object id; empty until create succeeds.
        synced: False once remote drift has been observed.
        last_updated: Last observed remote ``lastUpdated`` (epoch ms).
        url: UI URL derived from ``resource_url`` and ``id``.
        resource_url: UI URL template containing ``<id>`` (may be empty).
    """
    name: str
    id: str = ""
    synced: bool = True
    last_updated: float = 0.0
    url: str = ""
    resource_url: str = ""

    @property
    def exists(self) -> bool:
        return bool(self.id)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResourceState":
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}
        if "last_updated" in kwargs:
            kwargs["last_updated"] = float(kwargs["last_updated"] or 0.0)
        if "id" in kwargs:
            kwargs["id"] = kwargs["id"] or ""
        return cls(**kwargs)


def render_url(template: str, resource_id: str) -> str:
    """Substitute the first ``<id>`` in *template*; empty template gives empty url."""
    if not template:
        return ""
    return template.replace(ID_PLACEHOLDER, resource_id, 1)


def _decode(state: ResourceState, resp: HttpResponse, phase: str, *, need_id: bool = True) -> Dict[str, Any]:
    try:
        doc = json.loads((resp.body or b"").decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DecodeError(state.name, phase, str(exc)) from exc
    if not isinstance(doc, dict):
        raise DecodeError(state.name, phase, "response is not a JSON object")

    last_updated = doc.get("lastUpdated")
    if isinstance(last_updated, bool) or not isinstance(last_updated, (int, float)):
        raise DecodeError(state.name, phase, "missing or non-numeric 'lastUpdated'")
    if need_id and not isinstance(doc.get("id"), str):
        raise DecodeError(state.name, phase, "missing or non-string 'id'")
    return doc


class ResourceLifecycle:
    """The four lifecycle operations against SignalFx for one provider token.

    Args:
        client: Transport implementing ``send(method, url, token, payload)``.
        token: Resolved SignalFx auth token.
        not_found_marker: Body substring identifying "object deleted" 404s.
        offset: Drift tolerance in milliseconds.
    """

    def __init__(
        self,
        client: Transport,
        token: str,
        *,
        not_found_marker: str = NOT_FOUND_MARKER,
        offset: float = OFFSET,
    ) -> None:
        self.client = client
        self.token = token
        self.not_found_marker = not_found_marker
        self.offset = float(offset)

    def _send(self, method: str, url: str, payload: Optional[JSON] = None) -> HttpResponse:
        resp = self.client.send(method, url, self.token, payload)
        if resp.error is not None:
            raise resp.error
        return resp

    def create(self, url: str, payload: JSON, state: ResourceState) -> ResourceState:
        """POST *payload* to the collection *url*; only 200 is success."""
        if state.exists:
            raise LifecycleError(f"Cannot create resource {state.name}: it already exists as {state.id}")

        corr = uuid.uuid4().hex[:8]
        log.info("CREATE[%s] POST %s name=%s", corr, url, state.name)
        resp = self._send("POST", url, payload)
        if resp.status_code != 200:
            log.error("CREATE[%s] failed name=%s status=%s", corr, state.name, resp.status_code)
            raise ProtocolError(state.name, resp.status_code, resp.body)

        doc = _decode(state, resp, "create")
        new = replace(
            state,
            id=doc["id"],
            last_updated=float(doc["lastUpdated"]),
            synced=True,
            url=render_url(state.resource_url, doc["id"]),
        )
        log.info("CREATE[%s] ok name=%s id=%s lastUpdated=%.0f", corr, new.name, new.id, new.last_updated)
        return new

    def read(self, url: str, state: ResourceState) -> ResourceState:
        """GET the object; flag drift, or clear the id when it was deleted remotely."""
        if not state.exists:
            log.debug("READ skipped name=%s (no remote id)", state.name)
            return state

        corr = uuid.uuid4().hex[:8]
        log.info("READ[%s] GET %s name=%s", corr, url, state.name)
        resp = self._send("GET", url)

        if resp.status_code == 200:
            doc = _decode(state, resp, "read", need_id=False)
            remote = float(doc["lastUpdated"])
            changes: Dict[str, Any] = {}
            if remote > state.last_updated + self.offset:
                log.warning(
                    "READ[%s] drift name=%s id=%s remote=%.0f local=%.0f",
                    corr, state.name, state.id, remote, state.last_updated,
                )
                changes.update(synced=False, last_updated=remote)
            remote_id = doc["id"] if isinstance(doc.get("id"), str) else state.id
            changes["url"] = render_url(state.resource_url, remote_id)
            return replace(state, **changes)

        body_text = (resp.body or b"").decode("utf-8", errors="replace")
        if resp.status_code == 404 and self.not_found_marker in body_text:
            log.warning("READ[%s] name=%s id=%s no longer exists remotely", corr, state.name, state.id)
            return replace(state, id="", url="")

        log.error("READ[%s] failed name=%s status=%s", corr, state.name, resp.status_code)
        raise ProtocolError(state.name, resp.status_code, resp.body)

    def update(self, url: str, payload: JSON, state: ResourceState) -> ResourceState:
        """PUT *payload* to the object; a successful update always resolves drift."""
        if not state.exists:
            raise LifecycleError(f"Cannot update resource {state.name}: it has no remote id (create it first)")

        corr = uuid.uuid4().hex[:8]
        log.info("UPDATE[%s] PUT %s name=%s", corr, url, state.name)
        resp = self._send("PUT", url, payload)
        if resp.status_code != 200:
            log.error("UPDATE[%s] failed name=%s status=%s", corr, state.name, resp.status_code)
            raise ProtocolError(state.name, resp.status_code, resp.body)

        doc = _decode(state, resp, "update")
        new = replace(
            state,
            synced=True,
            last_updated=float(doc["lastUpdated"]),
            url=render_url(state.resource_url, doc["id"]),
        )
        log.info("UPDATE[%s] ok name=%s id=%s lastUpdated=%.0f", corr, new.name, new.id, new.last_updated)
        return new

    def delete(self, url: str, state: ResourceState) -> ResourceState:
        """DELETE the object; status < 400 or exactly 404 clears the id."""
        if not state.exists:
            log.debug("DELETE skipped name=%s (no remote id)", state.name)
            return state

        corr = uuid.uuid4().hex[:8]
        log.info("DELETE[%s] DELETE %s name=%s", corr, url, state.name)
        resp = self._send("DELETE", url)
        if resp.status_code < 400 or resp.status_code == 404:
            log.info("DELETE[%s] ok name=%s status=%s", corr, state.name, resp.status_code)
            return replace(state, id="", url="")

        log.error("DELETE[%s] failed name=%s status=%s", corr, state.name, resp.status_code)
        raise ProtocolError(state.name, resp.status_code, resp.body)
