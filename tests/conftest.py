import os
import socket
import time
import threading
import pytest
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from flare_agent.config import FlareSettings
from flare_agent.collectors.base import Collaborators, FlareContext


class _RouteHandler(BaseHTTPRequestHandler):
    """
    Serves server.routes: path (with query) -> (status, body bytes), or
    (status, body bytes, seconds between bytes) for an endpoint that dribbles.
    """

    def do_GET(self):
        self.server.requests.append((self.path, dict(self.headers)))
        status, body, *delay = self.server.routes.get(self.path, (404, b"404 page not found"))
        self.send_response(status)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if not delay:
            self.wfile.write(body)
            return
        try:
            for i in range(len(body)):
                self.wfile.write(body[i:i + 1])
                self.wfile.flush()
                time.sleep(delay[0])
        except (BrokenPipeError, ConnectionResetError):
            pass

    def log_message(self, format, *args):
        pass


@pytest.fixture
def http_server():
    server = ThreadingHTTPServer(("127.0.0.1", 0), _RouteHandler)
    server.routes = {}
    server.requests = []
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()


@pytest.fixture
def unused_port():
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port


@pytest.fixture
def agent_layout(tmp_path):
    """A fake agent install: config dirs, log dir, run dir."""
    layout = {
        "confd": tmp_path / "etc" / "conf.d",
        "dist": tmp_path / "dist",
        "checksd": tmp_path / "etc" / "checks.d",
        "logs": tmp_path / "log",
        "run": tmp_path / "run",
        "etc": tmp_path / "etc",
    }
    for key in ("confd", "checksd", "logs", "run"):
        layout[key].mkdir(parents=True, exist_ok=True)
    (layout["dist"] / "conf.d").mkdir(parents=True)
    layout["config_file"] = layout["etc"] / "datadog.yaml"
    layout["auth_token"] = layout["etc"] / "auth_token"
    layout["log_file"] = layout["logs"] / "agent.log"
    return layout


@pytest.fixture
def settings(agent_layout, unused_port):
    return FlareSettings(
        CONFD_PATH=str(agent_layout["confd"]),
        DIST_PATH=str(agent_layout["dist"]),
        CHECKSD_PATH=str(agent_layout["checksd"]),
        CONFIG_FILE=str(agent_layout["config_file"]),
        LOG_FILE=str(agent_layout["log_file"]),
        RUN_PATH=str(agent_layout["run"]),
        AUTH_TOKEN_FILE=str(agent_layout["auth_token"]),
        EXPVAR_PORT=unused_port,
        APM_RECEIVER_PORT=unused_port,
        CMD_PORT=unused_port,
        IPC_ADDRESS="127.0.0.1",
        SYSTEM_PROBE_STATS_URL=f"http://127.0.0.1:{unused_port}/debug/stats",
        TAGGER_LIST_URL=f"http://127.0.0.1:{unused_port}/agent/tagger-list",
        HTTP_TIMEOUT_SECONDS=2,
    )


@pytest.fixture
def ctx(tmp_path, settings):
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    return FlareContext(temp_dir=str(workspace), hostname="testhost", settings=settings,
                        collaborators=Collaborators(hostname=lambda: "testhost"))
