import json
import logging
import threading
import uuid
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import urlparse

import pytest

from signalform.core import config as config_mod

TOKEN = "TEST"

_COLLECTION_LABELS = {
    "chart": "Chart",
    "detector": "Detector",
    "dashboard": "Dashboard",
    "dashboardgroup": "Dashboard group",
}


class FakeSignalFx:
    """In-memory stand-in for the SignalFx v2 CRUD API."""

    def __init__(self) -> None:
        self.objects = {}      # (collection, id) -> stored payload incl. id/lastUpdated
        self.requests = []     # (method, path, headers, body)
        self.clock = 1000.0
        self.fail_next = None  # (status, body) returned once for the next request
        self.base_url = ""

    def tick(self, ms: float = 1.0) -> float:
        self.clock += ms
        return self.clock

    def touch_from_ui(self, collection: str, obj_id: str, ms: float) -> None:
        """Simulate an edit in the SignalFx UI that moves lastUpdated forward."""
        self.objects[(collection, obj_id)]["lastUpdated"] = self.tick(ms)

    def delete_from_ui(self, collection: str, obj_id: str) -> None:
        del self.objects[(collection, obj_id)]

    def last_request(self):
        return self.requests[-1]


def _make_handler(api: FakeSignalFx):
    class _Handler(BaseHTTPRequestHandler):
        protocol_version = "HTTP/1.1"

        def log_message(self, fmt, *args):  # keep test output quiet
            pass

        def _send(self, status: int, body) -> None:
            if isinstance(body, (dict, list)):
                raw = json.dumps(body).encode("utf-8")
            else:
                raw = (body or "").encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(raw)))
            self.end_headers()
            if raw:
                self.wfile.write(raw)

        def _read_body(self):
            length = int(self.headers.get("Content-Length", "0"))
            raw = self.rfile.read(length) if length else b""
            return json.loads(raw.decode("utf-8")) if raw else None

        def _route(self):
            parts = [p for p in urlparse(self.path).path.split("/") if p]
            # /v2/<collection>[/<id>]
            if len(parts) < 2 or parts[0] != "v2" or parts[1] not in _COLLECTION_LABELS:
                return None, None
            return parts[1], (parts[2] if len(parts) > 2 else None)

        def _handle(self, method: str) -> None:
            body = self._read_body()
            api.requests.append((method, self.path, dict(self.headers), body))

            if self.headers.get("X-SF-Token") != TOKEN:
                self._send(401, {"message": "Unauthorized"})
                return
            if api.fail_next is not None:
                status, payload = api.fail_next
                api.fail_next = None
                self._send(status, payload)
                return

            collection, obj_id = self._route()
            if collection is None:
                self._send(404, "404 page not found")
                return
            label = _COLLECTION_LABELS[collection]

            if method == "POST" and obj_id is None:
                new_id = uuid.uuid4().hex[:11].upper()
                stored = dict(body or {}, id=new_id, lastUpdated=api.tick())
                api.objects[(collection, new_id)] = stored
                self._send(200, stored)
                return

            key = (collection, obj_id)
            if key not in api.objects:
                self._send(404, f"{label} {obj_id} not found")
                return

            if method == "GET":
                self._send(200, api.objects[key])
            elif method == "PUT":
                stored = dict(body or {}, id=obj_id, lastUpdated=api.tick())
                api.objects[key] = stored
                self._send(200, stored)
            elif method == "DELETE":
                del api.objects[key]
                self._send(204, "")
            else:
                self._send(405, {"message": "method not allowed"})

        def do_GET(self):  # noqa: N802
            self._handle("GET")

        def do_POST(self):  # noqa: N802
            self._handle("POST")

        def do_PUT(self):  # noqa: N802
            self._handle("PUT")

        def do_DELETE(self):  # noqa: N802
            self._handle("DELETE")

    return _Handler


@pytest.fixture
def sfx_server():
    api = FakeSignalFx()
    httpd = ThreadingHTTPServer(("127.0.0.1", 0), _make_handler(api))
    t = threading.Thread(target=httpd.serve_forever, daemon=True)
    t.start()
    api.base_url = f"http://127.0.0.1:{httpd.server_address[1]}/v2"
    try:
        yield api
    finally:
        httpd.shutdown()
        httpd.server_close()


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """No real credentials, .env files or log directories leak into tests."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("NETRC", str(tmp_path / "no-netrc"))
    monkeypatch.setenv("SIGNALFORM_LOG_DIR", str(tmp_path / "logs"))
    for var in ("SFX_AUTH_TOKEN", "SIGNALFORM_API_URL", "SIGNALFORM_APP_URL",
                "SIGNALFORM_LOG_LEVEL", "SIGNALFORM_LOG_FILE_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    config_mod.default_home_config_path.cache_clear()
    yield
    config_mod.default_home_config_path.cache_clear()


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in list(root.handlers):
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    for h in handlers:
        if h not in root.handlers:
            root.addHandler(h)
    root.setLevel(level)
