import contextvars
import logging
from collections.abc import Sequence
from contextvars import ContextVar
from typing import Any, Generic, TypeVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from cloudops_mcp.compute import ComputeClient
from cloudops_mcp.kms import KmsClient
from cloudops_mcp.parameters import ParameterManagerClient

T = TypeVar("T")
log = logging.getLogger(__name__)


class StrictContextVar(Generic[T]):
    """Context variable without a default: reading it unset is an error."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._var: ContextVar[T] = ContextVar(name)

    def get(self) -> T:
        try:
            return self._var.get()
        except LookupError:
            raise LookupError(f"Context variable '{self.name}' is not set") from None

    def set(self, value: T) -> None:
        self._var.set(value)

    def copy_from(self, ctx: contextvars.Context) -> None:
        self.set(ctx.run(self.get))


COMPUTE: StrictContextVar[ComputeClient] = StrictContextVar("COMPUTE")
PARAMETERS: StrictContextVar[ParameterManagerClient] = StrictContextVar("PARAMETERS")
KMS: StrictContextVar[KmsClient] = StrictContextVar("KMS")

CLIENTS: tuple[StrictContextVar[Any], ...] = (COMPUTE, PARAMETERS, KMS)


class ContextMiddleware(BaseHTTPMiddleware):
    """Runs every HTTP request with the API clients of the server's context."""

    def __init__(
        self,
        app: ASGIApp,
        *,
        ctx: contextvars.Context,
        variables: Sequence[StrictContextVar[Any]] = CLIENTS,
    ) -> None:
        self.ctx = ctx
        self.variables = tuple(variables)
        super().__init__(app)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        # uvicorn starts each request in a fresh context
        for variable in self.variables:
            variable.copy_from(self.ctx)
        try:
            return await call_next(request)
        except Exception:
            log.exception("Request %s %s failed", request.method, request.url.path)
            raise
