"""Drive a long-running control-plane operation to its terminal state.

The control plane's wait call long-polls: it holds the request open until the
operation finishes or a server-side window (about two minutes for Compute
Engine) elapses, then returns the current record. The awaiter therefore
issues polls back to back with no client-side sleep, strictly one at a time
per operation, and stops at the first ``DONE`` record.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Protocol

from cloudops_mcp.cache import Cache
from cloudops_mcp.errors import OperationTimeoutError, TransportError
from cloudops_mcp.gcp_types import (
    Completed,
    CompletedWithError,
    Operation,
    OperationHandle,
    Scope,
    result_of,
)

log = logging.getLogger(__name__)

_UNSET: Any = object()


class ControlPlane(Protocol):
    async def poll_operation(self, handle: OperationHandle) -> Operation: ...


@dataclass(frozen=True)
class RetryPolicy:
    """Retries for transient poll failures. ``attempts=0`` means fail fast."""

    attempts: int = 0
    delay: float = 1.0

    def should_retry(self, error: TransportError, attempt: int) -> bool:
        return error.transient and attempt < self.attempts


class OperationAwaiter:
    CACHE_KIND = "operation"

    def __init__(
        self,
        control_plane: ControlPlane,
        *,
        deadline: float | None = None,
        retry: RetryPolicy = RetryPolicy(),
        cache: Cache | None = None,
    ):
        self.control_plane = control_plane
        self.deadline = deadline
        self.retry = retry
        self.cache = cache

    async def wait(
        self,
        handle: OperationHandle,
        scope: Scope | None = None,
        *,
        initial: Operation | None = None,
        deadline: float | None = _UNSET,
    ) -> Completed | CompletedWithError:
        """Wait until ``handle`` is DONE and return its outcome.

        ``scope`` is checked against the handle before anything is sent.
        ``initial`` is the record returned by the mutating call; when it is
        already DONE no poll is made. ``deadline`` overrides the awaiter's
        default; ``None`` waits without bound.
        """
        if scope is not None:
            handle.check_scope(scope)

        if deadline is _UNSET:
            deadline = self.deadline

        if deadline is None:
            return await self._wait(handle, initial)

        try:
            return await asyncio.wait_for(self._wait(handle, initial), timeout=deadline)
        except (asyncio.TimeoutError, TimeoutError) as e:
            raise OperationTimeoutError(handle.path, deadline) from e

    async def _wait(self, handle: OperationHandle, initial: Operation | None) -> Completed | CompletedWithError:
        operation = initial
        if operation is None:
            operation = await self._cached(handle)

        polls = 0
        while operation is None or not operation.status.is_terminal():
            operation = await self._poll(handle)
            polls += 1
            log.debug("Operation %s is %s after %d poll(s)", handle, operation.status.value, polls)

        if self.cache is not None:
            await self.cache.put(self.CACHE_KIND, handle.path, operation.to_api())
        return result_of(operation)

    async def _cached(self, handle: OperationHandle) -> Operation | None:
        if self.cache is None:
            return None
        entry = await self.cache.get(self.CACHE_KIND, handle.path)
        if entry is None:
            return None
        return Operation.model_validate(dict(entry.data))

    async def _poll(self, handle: OperationHandle) -> Operation:
        attempt = 0
        while True:
            try:
                return await self.control_plane.poll_operation(handle)
            except TransportError as e:
                if not self.retry.should_retry(e, attempt):
                    raise
                attempt += 1
                log.warning(
                    "Polling %s failed (%s), retry %d/%d in %.1fs",
                    handle,
                    e.message,
                    attempt,
                    self.retry.attempts,
                    self.retry.delay,
                )
                await asyncio.sleep(self.retry.delay)
