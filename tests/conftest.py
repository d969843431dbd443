from __future__ import annotations

import threading
import time
from collections.abc import AsyncIterator, Callable
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import httpx
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from metaserv.config import Settings, get_settings
from metaserv.main import create_app
from metaserv.observability.metrics import reset_metrics
from metaserv.services.dependency import new_dependency_client, set_dependency_client

_SERVICE_ENV = (
    "SERVICE_NAME",
    "SERVICE_VERSION",
    "DEPENDENCY_URL",
    "PORT",
    "HOST",
    "DEPENDENCY_TIMEOUT_SECONDS",
    "LOG_LEVEL",
    "ENABLE_METRICS_ENDPOINT",
)
_PROXY_ENV = ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy")


def make_settings(**values: object) -> Settings:
    return Settings(_env_file=None, **values)


def mock_dependency(handler: Callable[[httpx.Request], httpx.Response]) -> list[httpx.Request]:
    """Route dependency calls through ``handler``; returns the list of captured requests."""
    seen: list[httpx.Request] = []

    def _record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    set_dependency_client(new_dependency_client(transport=httpx.MockTransport(_record)))
    return seen


@pytest.fixture(autouse=True)
def test_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (*_SERVICE_ENV, *_PROXY_ENV):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    reset_metrics()
    set_dependency_client(None)

    yield

    set_dependency_client(None)
    get_settings.cache_clear()


@pytest.fixture
def app_factory() -> Callable[..., FastAPI]:
    def _build(**values: object) -> FastAPI:
        return create_app(make_settings(**values))

    return _build


@pytest.fixture
async def api_client(app_factory) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app_factory())
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def client_for(app: FastAPI) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.fixture
def serve_dependency() -> Callable[[type[BaseHTTPRequestHandler]], str]:
    """Start a real HTTP server on localhost with the given handler; returns its URL."""
    servers: list[ThreadingHTTPServer] = []

    def _start(handler_cls: type[BaseHTTPRequestHandler]) -> str:
        server = ThreadingHTTPServer(("127.0.0.1", 0), handler_cls)
        server.daemon_threads = True
        threading.Thread(target=server.serve_forever, daemon=True).start()
        servers.append(server)
        host, port = server.server_address[:2]
        return f"http://{host}:{port}/"

    yield _start

    for server in servers:
        server.shutdown()
        server.server_close()


class QuietHandler(BaseHTTPRequestHandler):
    def log_message(self, format: str, *args: object) -> None:
        pass


class SlowBodyHandler(QuietHandler):
    """Sends headers at once, then one body byte every half second."""

    def do_GET(self) -> None:
        self.send_response(200)
        self.send_header("Content-Type", "text/plain")
        self.send_header("X-Slow", "yes")
        self.send_header("Content-Length", "100")
        self.end_headers()
        try:
            for _ in range(100):
                self.wfile.write(b"x")
                self.wfile.flush()
                time.sleep(0.5)
        except OSError:
            pass


class StallingHandler(QuietHandler):
    """Accepts the request and sends nothing for three seconds."""

    def do_GET(self) -> None:
        time.sleep(3)
        try:
            self.send_response(200)
            self.end_headers()
        except OSError:
            pass
