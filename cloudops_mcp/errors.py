from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cloudops_mcp.gcp_types import Operation, Scope

TRANSIENT_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})


class CloudOpsError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class TransportError(CloudOpsError):
    """A control-plane request did not complete (network, auth, not found, server error)."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        reason: str | None = None,
        transient: bool | None = None,
    ):
        super().__init__(message, status_code)
        self.reason = reason
        if transient is None:
            transient = status_code in TRANSIENT_STATUS_CODES
        self.transient = transient

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404 or self.reason == "NOT_FOUND"


class ScopeMismatchError(CloudOpsError, ValueError):
    def __init__(self, expected: Scope, actual: Scope):
        super().__init__(f"Operation lives in {expected.path!r}, but was queried with scope {actual.path!r}")
        self.expected = expected
        self.actual = actual


class OperationTimeoutError(CloudOpsError, TimeoutError):
    def __init__(self, operation: str, timeout: float):
        super().__init__(f"Operation {operation} did not finish within {timeout}s")
        self.operation = operation
        self.timeout = timeout


class OperationError(CloudOpsError):
    """Operation reached DONE carrying a server-side error payload."""

    def __init__(self, operation: Operation):
        error = operation.error
        code = error.code if error else None
        message = error.message if error else None
        super().__init__(
            f"Operation {operation.name} finished with error {code}: {message}",
            operation.http_error_status_code,
        )
        self.operation = operation
        self.code = code
