"""Test fixtures for cloudops-mcp."""

import asyncio
import json
import re
import socket
from collections.abc import AsyncIterator, Iterable
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any

import pytest
import uvicorn
from pydantic import BaseModel
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Route

from cloudops_mcp.cache import Cache
from cloudops_mcp.compute import ComputeClient
from cloudops_mcp.context import COMPUTE, KMS, PARAMETERS
from cloudops_mcp.gcp_types import (
    Operation,
    OperationErrorDetail,
    OperationErrorInfo,
    OperationHandle,
    OperationStatus,
    Scope,
)
from cloudops_mcp.kms import KmsClient
from cloudops_mcp.parameters import ParameterManagerClient

PROJECT = "test-project"
REGION = "europe-central2"
ZONE = "europe-central2-a"
OTHER_ZONE = "europe-central2-b"
API_ROOT = "https://www.googleapis.com/compute/v1"

# =============================================================================
# Default test data factories
# =============================================================================


def make_operation(
    name: str = "op-1",
    status: OperationStatus = OperationStatus.DONE,
    zone: str | None = ZONE,
    region: str | None = None,
    project: str = PROJECT,
    error_code: str | None = None,
    error_message: str | None = None,
    operation_type: str = "insert",
    target: str | None = None,
) -> Operation:
    """Create a test Operation with a selfLink in the right scope."""
    if region:
        location = f"projects/{project}/regions/{region}"
    elif zone:
        location = f"projects/{project}/zones/{zone}"
    else:
        location = f"projects/{project}/global"

    error = None
    if error_code is not None:
        error = OperationErrorInfo(errors=[OperationErrorDetail(code=error_code, message=error_message)])

    return Operation(
        name=name,
        status=status,
        operation_type=operation_type,
        target_link=target,
        self_link=f"{API_ROOT}/{location}/operations/{name}",
        zone=f"{API_ROOT}/projects/{project}/zones/{zone}" if zone and not region else None,
        region=f"{API_ROOT}/projects/{project}/regions/{region}" if region else None,
        progress=100 if status == OperationStatus.DONE else 0,
        http_error_status_code=400 if error_code else None,
        error=error,
    )


def zone_handle(name: str = "op-1", zone: str = ZONE) -> OperationHandle:
    return OperationHandle(name=name, scope=Scope.zonal(PROJECT, zone))


def region_handle(name: str = "op-1", region: str = REGION) -> OperationHandle:
    return OperationHandle(name=name, scope=Scope.regional(PROJECT, region))


# =============================================================================
# FakeControlPlane - scripted in-process poll source
# =============================================================================


HANG = object()


class FakeControlPlane:
    """Returns scripted poll results in order and records every poll.

    Items are Operation records, exceptions to raise, or ``HANG`` to block
    until cancelled (an open long-poll).
    """

    def __init__(self, script: Iterable[Any] = ()):
        self.script: list[Any] = list(script)
        self.polls: list[OperationHandle] = []
        self.active = 0
        self.max_active = 0
        self.cancelled = 0

    async def poll_operation(self, handle: OperationHandle) -> Operation:
        self.polls.append(handle)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if not self.script:
                raise AssertionError(f"Unexpected poll #{len(self.polls)} of {handle}")
            item = self.script.pop(0)
            if item is HANG:
                try:
                    await asyncio.Event().wait()
                except asyncio.CancelledError:
                    self.cancelled += 1
                    raise
            if isinstance(item, BaseException):
                raise item
            await asyncio.sleep(0)
            return item
        finally:
            self.active -= 1


# =============================================================================
# FakeResponse - HTTP-like response configuration
# =============================================================================


@dataclass
class FakeResponse:
    """HTTP-like response for fake server.

    Attributes:
        http_status: HTTP status code
        body: Response body (BaseModel, list, dict, str, or None)
        headers: Response headers as tuple of (name, value) pairs
        delay: Seconds to hold the request before answering (long-poll)
    """

    http_status: HTTPStatus = HTTPStatus.OK
    body: BaseModel | list | dict | str | None = None
    headers: tuple[tuple[str, str], ...] = ()
    delay: float = 0.0


def google_error(status: HTTPStatus, message: str, reason: str) -> FakeResponse:
    """Error response in the Google API error shape."""
    return FakeResponse(
        http_status=status,
        body={"error": {"code": status.value, "message": message, "status": reason}},
    )


# A list is served in order, its last element repeats once the rest are used
FakeResponses = dict[str, FakeResponse | list[FakeResponse]]


@dataclass
class RecordedRequest:
    method: str
    path: str
    params: dict[str, str]
    body: Any = None
    headers: dict[str, str] = field(default_factory=dict)


# =============================================================================
# RouteMatcher - Match URL patterns with path parameters
# =============================================================================


class RouteMatcher:
    """Match request URIs against fake_responses patterns.

    Converts patterns like "GET /projects/{project}/zones/{zone}/operations/{op}"
    to a regex that matches "GET /projects/p/zones/z/operations/op-1".
    """

    _PARAM_PATTERN = re.compile(r"\{([^}]+)\}")

    def __init__(self, responses: FakeResponses):
        self._responses = responses
        self._served: dict[str, int] = {}
        self._compiled: list[tuple[re.Pattern[str], str]] = []
        for pattern in self._responses:
            method, _, path = pattern.partition(" ")
            self._compiled.append((re.compile(f"^{re.escape(method)} {self._path_to_regex(path)}$"), pattern))

    def _path_to_regex(self, path: str) -> str:
        result = ""
        last_end = 0
        for match in self._PARAM_PATTERN.finditer(path):
            result += re.escape(path[last_end : match.start()])
            result += "([^/]+)"
            last_end = match.end()
        result += re.escape(path[last_end:])
        return result

    def _next(self, pattern: str) -> FakeResponse:
        configured = self._responses[pattern]
        if isinstance(configured, FakeResponse):
            return configured
        index = self._served.get(pattern, 0)
        self._served[pattern] = index + 1
        return configured[min(index, len(configured) - 1)]

    def match(self, method: str, path: str) -> FakeResponse | None:
        uri = f"{method} {path}"

        if uri in self._responses:
            return self._next(uri)

        for regex, pattern in self._compiled:
            if regex.match(uri):
                return self._next(pattern)

        return None


# =============================================================================
# Fixtures - Real HTTP fake server
# =============================================================================


@pytest.fixture
def fake_server_socket() -> socket.socket:
    """Create a bound socket for the fake server."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    sock.bind(("127.0.0.1", 0))
    return sock


@pytest.fixture
def fake_server_port(fake_server_socket: socket.socket) -> int:
    _, port = fake_server_socket.getsockname()
    return port


@pytest.fixture
def fake_server_url(fake_server_port: int) -> str:
    return f"http://127.0.0.1:{fake_server_port}"


def _serialize_body(body: Any) -> str:
    if body is None:
        return ""
    if isinstance(body, BaseModel):
        return body.model_dump_json(by_alias=True, exclude_none=True)
    if isinstance(body, (list, dict)):
        return json.dumps(body)
    return str(body)


@pytest.fixture
def recorded_requests() -> list[RecordedRequest]:
    """Requests received by the fake server, in arrival order."""
    return []


@pytest.fixture
async def http_fake_server(
    fake_responses: FakeResponses,
    fake_server_socket: socket.socket,
    recorded_requests: list[RecordedRequest],
) -> AsyncIterator[None]:
    """Real HTTP server returning configured fake responses."""
    matcher = RouteMatcher(fake_responses)

    async def handle_request(request: Request) -> Response:
        method = request.method
        path = request.url.path
        raw_body = await request.body()

        recorded_requests.append(
            RecordedRequest(
                method=method,
                path=path,
                params=dict(request.query_params),
                body=json.loads(raw_body) if raw_body else None,
                headers=dict(request.headers),
            )
        )

        fake_response = matcher.match(method, path)

        if fake_response is None:
            return Response(
                content=json.dumps({"error": {"code": 404, "message": f"No fake response for {method} {path}"}}),
                status_code=404,
                media_type="application/json",
            )

        if fake_response.delay:
            await asyncio.sleep(fake_response.delay)

        headers = dict(fake_response.headers)
        if "content-type" not in {k.lower() for k in headers}:
            headers["Content-Type"] = "application/json"

        return Response(
            content=_serialize_body(fake_response.body),
            status_code=fake_response.http_status.value,
            headers=headers,
        )

    app = Starlette(
        routes=[
            Route(
                "/{path:path}",
                endpoint=handle_request,
                methods=["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"],
            ),
        ],
    )

    config = uvicorn.Config(app, log_level="error", timeout_graceful_shutdown=1)
    server = uvicorn.Server(config)
    server_task = asyncio.create_task(server.serve(sockets=[fake_server_socket]))

    yield

    server.should_exit = True
    await server_task


@pytest.fixture
async def general_cache(tmp_path: Any) -> AsyncIterator[Cache]:
    """Standalone Cache fixture."""
    async with Cache(db_path=tmp_path / "cache.db") as cache:
        yield cache


@pytest.fixture
async def compute_client(
    http_fake_server: None,
    fake_server_url: str,
    general_cache: Cache,
) -> AsyncIterator[ComputeClient]:
    """Real ComputeClient pointing to the fake HTTP server."""
    async with ComputeClient(base_url=fake_server_url, token="test-token", cache=general_cache) as client:
        COMPUTE.set(client)
        yield client


@pytest.fixture
async def parameters_client(
    http_fake_server: None,
    fake_server_url: str,
    general_cache: Cache,
) -> AsyncIterator[ParameterManagerClient]:
    """Parameter Manager client; regional requests arrive under /regional/{location}."""
    async with ParameterManagerClient(
        base_url=fake_server_url,
        regional_url=f"{fake_server_url}/regional/{{location}}",
        token="test-token",
        cache=general_cache,
    ) as client:
        PARAMETERS.set(client)
        yield client


@pytest.fixture
async def kms_client(
    http_fake_server: None,
    fake_server_url: str,
    general_cache: Cache,
) -> AsyncIterator[KmsClient]:
    async with KmsClient(base_url=fake_server_url, token="test-token", cache=general_cache) as client:
        KMS.set(client)
        yield client


@pytest.fixture
def fake_responses() -> FakeResponses:
    """Default empty fake responses for tests that don't need HTTP."""
    return {}
