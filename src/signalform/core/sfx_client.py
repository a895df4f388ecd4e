"""
SignalFx HTTP transport.

One synchronous request per call, no retry, no backoff:

    client = SignalFxClient()
    status, body, err = client.send("POST", url, token, payload)

The transport never raises and never judges status codes. 4xx/5xx come back
as ``(status, body, None)``; the lifecycle layer decides what they mean.
Connection-level failures (DNS, refused, malformed URL) come back as
``(-1, None, TransportError)``.
"""
from __future__ import annotations

import json
import time
from typing import Any, Dict, List, NamedTuple, Optional, Union

import requests

from .logging_utils import get_logger

log = get_logger(__name__)

JSON = Union[Dict[str, Any], List[Any]]

TOKEN_HEADER = "X-SF-Token"
_LOG_PREVIEW = 600


class TransportError(Exception):
    """Connection-level failure, or a response body that could not be read."""

    def __init__(self, message: str, *, method: str = "", url: str = "") -> None:
        super().__init__(message)
        self.method = method
        self.url = url


class HttpResponse(NamedTuple):
    status_code: int
    body: Optional[bytes]
    error: Optional[TransportError]


def _short(body: Optional[bytes], limit: int = _LOG_PREVIEW) -> str:
    if body is None:
        return "<none>"
    return body[:limit].decode("utf-8", errors="replace")


class SignalFxClient:
    """Thin wrapper over :class:`requests.Session` speaking the SignalFx auth header.

    Args:
        session: Optional pre-built session (tests inject one).
        timeout_sec: Per-request timeout. ``None`` keeps the requests default
            (block until the server answers).
    """

    def __init__(self, session: Optional[requests.Session] = None, *, timeout_sec: Optional[float] = None) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout_sec

    def send(self, method: str, url: str, token: str, payload: Optional[JSON] = None) -> HttpResponse:
        """Execute one request and return ``(status_code, body, error)``."""
        method = method.upper()
        headers = {
            "Content-Type": "application/json",
            TOKEN_HEADER: token,
        }
        data = json.dumps(payload).encode("utf-8") if payload is not None else None

        start = time.time()
        try:
            resp = self.session.request(
                method=method,
                url=url,
                data=data,
                headers=headers,
                timeout=self.timeout,
                stream=True,
            )
        except (requests.RequestException, ValueError) as exc:
            log.warning("%s %s failed before a response: %s", method, url, exc)
            err = TransportError(
                f"Failed sending {method} request to SignalFx: {exc}", method=method, url=url
            )
            return HttpResponse(-1, None, err)

        try:
            body = resp.content
        except requests.RequestException as exc:
            log.warning("%s %s -> %s but body read failed: %s", method, url, resp.status_code, exc)
            err = TransportError(
                f"Failed reading response body from {method} request: {exc}", method=method, url=url
            )
            return HttpResponse(resp.status_code, None, err)
        finally:
            resp.close()

        elapsed = (time.time() - start) * 1000
        log.debug("%s %s -> %s in %.1fms body=%s", method, url, resp.status_code, elapsed, _short(body))
        return HttpResponse(resp.status_code, body, None)
