"""Test helper functions."""

import json
from io import BytesIO
from typing import Any, Dict, Optional


class MockSocket:
    """Socket double that feeds a raw HTTP request to a handler."""

    def __init__(self, raw_request: bytes):
        self._raw_request = raw_request

    def makefile(self, *args, **kwargs):
        return BytesIO(self._raw_request)

    def sendall(self, data):
        pass

    def close(self):
        pass


def build_raw_request(
    method: str,
    path: str,
    body: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> bytes:
    """Serialize an HTTP/1.1 request."""
    payload = json.dumps(body).encode('utf-8') if body is not None else b""
    lines = [f"{method} {path} HTTP/1.1", "Host: localhost"]
    for name, value in (headers or {}).items():
        lines.append(f"{name}: {value}")
    if payload:
        lines.append("Content-Type: application/json")
        lines.append(f"Content-Length: {len(payload)}")
    return ("\r\n".join(lines) + "\r\n\r\n").encode('utf-8') + payload


class CapturedResponse:
    """Status, headers and decoded JSON body written by a handler."""

    def __init__(self, status: int, headers: Dict[str, str], body: Any):
        self.status = status
        self.headers = headers
        self.body = body


def call_handler(
    handler_class,
    method: str,
    path: str,
    body: Optional[Dict[str, Any]] = None,
    token: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
) -> CapturedResponse:
    """Run handler_class against one request and capture what it writes.

    BaseHTTPRequestHandler handles the request inside __init__, so the
    response is read back from the socket's write buffer.
    """
    all_headers = dict(headers or {})
    if token:
        all_headers["Authorization"] = f"Bearer {token}"
    return call_handler_raw(handler_class, build_raw_request(method, path, body, all_headers))


def call_handler_raw(handler_class, raw: bytes) -> CapturedResponse:
    """Feed raw request bytes to handler_class and capture the response."""
    written = BytesIO()

    class _Handler(handler_class):
        def setup(self):
            super().setup()
            self.wfile = written

        def finish(self):
            pass

    _Handler(MockSocket(raw), ("127.0.0.1", 8000), None)
    return parse_response(written.getvalue())


def parse_response(raw: bytes) -> CapturedResponse:
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode('iso-8859-1').split("\r\n")
    status = int(lines[0].split(" ")[1])
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip()] = value.strip()
    return CapturedResponse(status, headers, json.loads(body) if body else None)
