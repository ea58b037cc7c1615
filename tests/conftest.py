"""Shared test fixtures for codex-login.

Provides ID-token builders, a stub token endpoint built on
``httpx.MockTransport``, loopback port helpers and a tiny HTTP client for
driving the callback server the way a browser would.
"""

from __future__ import annotations

import base64
import json
import socket
from http.client import HTTPConnection
from typing import Any, Callable
from urllib.parse import parse_qs, urlparse

import httpx
import pytest


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def encode_id_token(claims: dict[str, Any]) -> str:
    header = _b64url(json.dumps({"alg": "RS256", "typ": "JWT"}).encode())
    payload = _b64url(json.dumps(claims).encode())
    return f"{header}.{payload}.sig"


class StubTokenEndpoint:
    """Records token requests and answers with a canned response."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.body: Any = {
            "id_token": encode_id_token({"email": "a@b.com"}),
            "access_token": "AT",
            "refresh_token": "RT",
        }

    def respond_with(self, status_code: int = 200, body: Any = None) -> None:
        self.status_code = status_code
        self.body = body

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.body, (dict, list)):
            return httpx.Response(self.status_code, json=self.body)
        return httpx.Response(self.status_code, text=self.body or "")

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def last_form(self) -> dict[str, str]:
        form = parse_qs(self.requests[-1].content.decode())
        return {key: values[0] for key, values in form.items()}


@pytest.fixture()
def make_id_token() -> Callable[[dict[str, Any]], str]:
    return encode_id_token


@pytest.fixture()
def token_endpoint() -> StubTokenEndpoint:
    return StubTokenEndpoint()


@pytest.fixture()
def free_port() -> int:
    """A loopback port that was free a moment ago."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


@pytest.fixture()
def occupied_port():
    """A loopback port held by another listener for the whole test."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    sock.listen(1)
    yield sock.getsockname()[1]
    sock.close()


class BrowserResponse:
    def __init__(self, status: int, content_type: str | None, body: str) -> None:
        self.status = status
        self.content_type = content_type
        self.body = body


def browser_get(port: int, path: str) -> BrowserResponse:
    """Send a GET to the callback server the way the browser would."""
    conn = HTTPConnection("127.0.0.1", port, timeout=10)
    try:
        conn.request("GET", path)
        resp = conn.getresponse()
        return BrowserResponse(resp.status, resp.getheader("Content-Type"), resp.read().decode())
    finally:
        conn.close()


@pytest.fixture()
def browser() -> Callable[[int, str], BrowserResponse]:
    return browser_get


def state_from_url(auth_url: str) -> str:
    return parse_qs(urlparse(auth_url).query)["state"][0]


@pytest.fixture()
def url_state() -> Callable[[str], str]:
    return state_from_url


def can_bind(port: int) -> bool:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind(("127.0.0.1", port))
        sock.listen(1)
        return True
    except OSError:
        return False
    finally:
        sock.close()


@pytest.fixture()
def port_is_free() -> Callable[[int], bool]:
    return can_bind
