"""JSON request handling shared by the Vercel serverless functions."""

import asyncio
import json
import os
import re
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler
from typing import Any, Iterable, Mapping, Optional
from urllib.parse import parse_qs, urlsplit

from pydantic import BaseModel

from src.models.user import RequestIdentity, Role
from src.services import identity
from src.services.role_gate import authorize
from src.utils.errors import EstateHubError, MethodNotAllowedError, NotFoundError, ValidationError
from src.utils.logging import correlation_context, get_structured_logger, mask_sensitive_data
from src.utils.logging_config import LoggingConfig

logger = get_structured_logger(__name__)

BODY_METHODS = ("POST", "PUT", "PATCH", "DELETE")


@dataclass(frozen=True)
class Route:
    """A method + path pattern bound to a handler coroutine name.

    roles=None with public=False admits any authenticated identity.
    """
    method: str
    pattern: str
    action: str
    roles: Optional[tuple[Role, ...]] = None
    public: bool = False

    def match(self, path: str) -> Optional[dict]:
        found = re.fullmatch(self.pattern, path)
        return found.groupdict() if found else None


@dataclass
class ApiRequest:
    """Parsed request passed to route actions."""
    method: str
    path: str
    headers: Mapping[str, str]
    params: dict = field(default_factory=dict)
    query: dict = field(default_factory=dict)
    body: dict = field(default_factory=dict)
    identity: Optional[RequestIdentity] = None


def to_json(value: Any) -> Any:
    """Convert models (or lists of models) to JSON-ready structures."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (list, tuple)):
        return [to_json(item) for item in value]
    if isinstance(value, dict):
        return {key: to_json(item) for key, item in value.items()}
    return value


def query_int(query: dict, name: str, default: Optional[int] = None) -> Optional[int]:
    raw = query.get(name)
    if raw in (None, ""):
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")
    if value < 1:
        raise ValidationError(f"{name} must be positive")
    return value


class JsonRequestHandler(BaseHTTPRequestHandler):
    """Base handler: routes a request, runs auth and the role gate, writes JSON."""

    routes: Iterable[Route] = ()

    def do_GET(self):
        self._handle("GET")

    def do_POST(self):
        self._handle("POST")

    def do_PUT(self):
        self._handle("PUT")

    def do_PATCH(self):
        self._handle("PATCH")

    def do_DELETE(self):
        self._handle("DELETE")

    def do_OPTIONS(self):
        self.send_response(204)
        self._send_cors_headers()
        self.send_header('Access-Control-Allow-Methods', 'GET, POST, PUT, PATCH, DELETE, OPTIONS')
        self.send_header('Access-Control-Allow-Headers', 'Authorization, Content-Type')
        self.end_headers()

    def log_message(self, format, *args):
        logger.debug("HTTP access", line=format % args)

    def _handle(self, method: str) -> None:
        LoggingConfig.setup_logging()
        incoming_id = self.headers.get(LoggingConfig.LOG_CORRELATION_ID_HEADER)
        with correlation_context(incoming_id or None) as correlation_id:
            status, payload = self._dispatch(method)
            self._send_json(status, payload, correlation_id)

    def _dispatch(self, method: str) -> tuple[int, Any]:
        try:
            path = urlsplit(self.path).path.rstrip("/") or "/"
            route, params = self._match_route(method, path)
            request = ApiRequest(
                method=method,
                path=path,
                headers=self.headers,
                params=params,
                query=self._parse_query(),
                body=self._read_json_body() if method in BODY_METHODS else {},
            )
            return asyncio.run(self._run(route, request))
        except EstateHubError as e:
            logger.warning(
                "Request failed",
                method=method,
                path=self.path,
                status_code=e.status_code,
                error_code=e.code,
                error=e.message,
            )
            return e.status_code, e.to_dict()
        except Exception as e:
            logger.exception("Unhandled error", method=method, path=self.path, error=mask_sensitive_data(str(e)))
            return 500, {"error": "internal server error"}

    async def _run(self, route: Route, request: ApiRequest) -> tuple[int, Any]:
        if not route.public:
            request.identity = await identity.authenticate_request(request.headers)
            authorize(request.identity, route.roles)

        result = await getattr(self, route.action)(request)
        if isinstance(result, tuple):
            status, payload = result
            return status, to_json(payload)
        return 200, to_json(result)

    def _match_route(self, method: str, path: str) -> tuple[Route, dict]:
        path_exists = False
        for route in self.routes:
            params = route.match(path)
            if params is None:
                continue
            if route.method == method:
                return route, params
            path_exists = True
        if path_exists:
            raise MethodNotAllowedError("Method not allowed")
        raise NotFoundError("Route not found")

    def _parse_query(self) -> dict:
        parsed = parse_qs(urlsplit(self.path).query)
        return {key: values[0] for key, values in parsed.items() if values}

    def _read_json_body(self) -> dict:
        try:
            content_length = int(self.headers.get('Content-Length', 0) or 0)
        except ValueError:
            raise ValidationError("Invalid Content-Length header")
        if content_length <= 0:
            return {}
        try:
            body = json.loads(self.rfile.read(content_length).decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError):
            raise ValidationError("Invalid JSON body")
        if not isinstance(body, dict):
            raise ValidationError("JSON body must be an object")
        return body

    def _send_cors_headers(self) -> None:
        self.send_header('Access-Control-Allow-Origin', os.environ.get("CORS_ALLOWED_ORIGIN", "*"))

    def _send_json(self, status: int, payload: Any, correlation_id: str) -> None:
        response = json.dumps(payload, default=str).encode('utf-8')
        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        self.send_header('Content-Length', str(len(response)))
        self.send_header(LoggingConfig.LOG_CORRELATION_ID_HEADER, correlation_id)
        self._send_cors_headers()
        self.end_headers()
        self.wfile.write(response)
