"""Shared fakes: a mock-transport fetcher factory and a gated in-memory fetcher."""
from __future__ import annotations

import json
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Callable, Dict, Optional, Tuple

import httpx
import pytest

from offviewer.config import Settings
from offviewer.http_client import FetchResult, HttpFetcher

TEST_SETTINGS = Settings(
    search_url="https://off.test/cgi/search.pl",
    product_url_template="https://off.test/api/v0/product/{code}.json",
    request_timeout_seconds=2.0,
    user_agent="OpenFoodFactsViewer-tests/1.0",
    log_level="DEBUG",
)


def make_fetcher(handler: Callable[[httpx.Request], httpx.Response]) -> HttpFetcher:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return HttpFetcher(client, settings=TEST_SETTINGS)


class GatedFetcher:
    """Answers from a dict keyed by search term or product code.

    A key listed in ``gates`` blocks until its event is set, which lets tests
    hold one request open while issuing another command.
    """

    def __init__(self, responses: Dict[str, Tuple[int, object]], gates: Optional[Dict[str, threading.Event]] = None):
        self.responses = responses
        self.gates = gates or {}
        self.started = {key: threading.Event() for key in responses}
        self.calls: list[str] = []

    def fetch(self, url: str, params: Optional[dict] = None) -> FetchResult:
        if params:
            key = params["search_terms"]
        else:
            key = url.rsplit("/", 1)[-1][: -len(".json")]
        self.calls.append(key)
        self.started[key].set()
        gate = self.gates.get(key)
        if gate is not None and not gate.wait(5):
            raise RuntimeError(f"gate for {key} was never released")
        status, payload = self.responses[key]
        body = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
        return FetchResult(status_code=status, body=body, url=url)


@pytest.fixture
def settings() -> Settings:
    return TEST_SETTINGS


class _SlowBodyHandler(BaseHTTPRequestHandler):
    """Sends a valid search document one byte at a time."""

    body = b'{"products": [{"code": "1"}], "n": 1}'
    delay = 0.15

    def do_GET(self):
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(self.body)))
        self.end_headers()
        try:
            for offset in range(len(self.body)):
                self.wfile.write(self.body[offset:offset + 1])
                self.wfile.flush()
                time.sleep(self.delay)
        except (BrokenPipeError, ConnectionResetError):
            return

    def log_message(self, format, *args):
        pass


@pytest.fixture
def slow_server():
    server = ThreadingHTTPServer(("127.0.0.1", 0), _SlowBodyHandler)
    server.daemon_threads = True
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}"
    finally:
        server.shutdown()
        server.server_close()
