import importlib.metadata
import json
import logging
import platform
import sys
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass
from functools import cached_property
from types import MappingProxyType
from typing import Any, Generic, TypeVar

import httpx
from pydantic import BaseModel
from typing_extensions import Self

from .cache import Cache
from .errors import TransportError

ModelT = TypeVar("ModelT", bound=BaseModel)

log = logging.getLogger(__name__)

PAYLOAD_LIMIT = 1024 * 1024


def user_agent() -> str:
    try:
        version = importlib.metadata.version("cloudops-mcp")
    except importlib.metadata.PackageNotFoundError:
        version = "unknown"
    python = ".".join(map(str, sys.version_info[:3]))
    return f"cloudops-mcp/{version} python/{python} {platform.system()}/{platform.release()}"


@dataclass(frozen=True)
class ApiResponse(Generic[ModelT]):
    status: int
    body: ModelT


async def read_limited(response: httpx.Response, limit: int, chunk_size: int = 64 * 1024) -> bytes:
    """Read the whole body, refusing anything over ``limit`` bytes."""
    content_length = int(response.headers.get("Content-Length", "-1"))
    if content_length > limit:
        raise TransportError(f"Response too large ({content_length} bytes)", response.status_code)

    body = bytearray()
    async for chunk in response.aiter_bytes(chunk_size):
        body.extend(chunk)
        if len(body) > limit:
            raise TransportError(f"Response too large (over {limit} bytes)", response.status_code)
    return bytes(body)


def parse_error_body(body: bytes) -> tuple[str, str | None]:
    """Extract message and reason from a Google API error body.

    Google APIs answer errors with ``{"error": {"code", "message", "status"}}``.
    """
    text = body.decode("utf-8", errors="replace")
    try:
        payload = json.loads(text)
    except ValueError:
        return text or "Unknown error", None

    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict):
        return str(error.get("message") or text), error.get("status")
    if isinstance(error, str):
        return error, None
    return text, None


class GoogleApiClient:
    """Base for the REST clients: session, auth headers, error mapping."""

    def __init__(
        self,
        base_url: str,
        token: str,
        cache: Cache | None = None,
        timeout: float = 30.0,
        quota_project: str | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.quota_project = quota_project
        self.timeout = httpx.Timeout(timeout)
        self._cache = cache

    @property
    def cache(self) -> Cache:
        if self._cache is None:
            raise RuntimeError("Cache is not configured")
        return self._cache

    @cached_property
    def headers(self) -> Mapping[str, str]:
        headers = {
            "Content-Type": "application/json",
            "User-Agent": user_agent(),
            "Authorization": f"Bearer {self.token}",
        }
        # bills API quota to a project other than the credentials' own
        if self.quota_project:
            headers["x-goog-user-project"] = self.quota_project
        return MappingProxyType(headers)

    @cached_property
    def session(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(headers=dict(self.headers), timeout=self.timeout)

    async def close(self) -> None:
        if "session" in self.__dict__:
            await self.session.aclose()
            del self.__dict__["session"]

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def _request(
        self,
        method: str,
        path: str,
        *,
        model: type[ModelT],
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        timeout: float | None = None,
        payload_limit: int = PAYLOAD_LIMIT,
    ) -> ApiResponse[ModelT]:
        async with self._stream_request(method, path, params=params, json=json, timeout=timeout) as response:
            raw = await read_limited(response, payload_limit)
            status = response.status_code

        try:
            body = model.model_validate_json(raw.strip() or b"{}")
        except ValueError as e:
            raise TransportError(f"Invalid response body: {e}", status) from e
        return ApiResponse(status=status, body=body)

    @asynccontextmanager
    async def _stream_request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> AsyncIterator[httpx.Response]:
        """
        Open a request and yield the response once its status is known.
        Error statuses and connection failures raise TransportError.
        Leaving the context, normally or through cancellation, closes the connection.
        """
        if params:
            kwargs["params"] = {k: v for k, v in params.items() if v is not None}
        if timeout is not None:
            kwargs["timeout"] = httpx.Timeout(timeout)

        log.debug("%s %s", method, path)
        try:
            async with self.session.stream(method, self.url(path), **kwargs) as response:
                if response.is_error:
                    message, reason = parse_error_body(await response.aread())
                    log.debug("%s %s -> %d: %s", method, path, response.status_code, message)
                    raise TransportError(message, response.status_code, reason=reason)

                log.debug("%s %s -> %d", method, path, response.status_code)
                yield response
        except httpx.HTTPError as e:
            log.debug("%s %s failed: %r", method, path, e)
            raise TransportError(f"{method} {path} failed: {e}", transient=True) from e
