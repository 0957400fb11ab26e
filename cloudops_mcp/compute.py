import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from .awaiter import OperationAwaiter, RetryPolicy
from .cache import Cache
from .client import GoogleApiClient
from .errors import OperationTimeoutError
from .gcp_types import (
    AttachedDisk,
    AttachedDiskInitializeParams,
    Completed,
    CompletedWithError,
    Disk,
    Instance,
    NetworkInterface,
    Operation,
    OperationHandle,
    OperationList,
    Scope,
)

log = logging.getLogger(__name__)

OperationOutcome = Completed | CompletedWithError


@dataclass
class TrackedOperation:
    task: "asyncio.Task[OperationOutcome]"
    waiters: int = 0


def region_disk_path(project: str, region: str, disk: str) -> str:
    return f"projects/{project}/regions/{region}/disks/{disk}"


class ComputeClient(GoogleApiClient):
    DEFAULT_URL = "https://compute.googleapis.com/compute/v1"
    POLL_CONCURRENCY = 10
    # operations.wait holds the request for up to two minutes
    WAIT_REQUEST_TIMEOUT = 150.0

    DEFAULT_IMAGE = "projects/debian-cloud/global/images/family/debian-12"
    DEFAULT_NETWORK = "global/networks/default"

    def __init__(
        self,
        base_url: str = DEFAULT_URL,
        token: str = "",
        cache: Cache | None = None,
        timeout: float = 30.0,
        quota_project: str | None = None,
        deadline: float | None = None,
        retry: RetryPolicy = RetryPolicy(),
        poll_concurrency: int = POLL_CONCURRENCY,
    ):
        super().__init__(base_url, token, cache=cache, timeout=timeout, quota_project=quota_project)
        self.awaiter = OperationAwaiter(self, deadline=deadline, retry=retry, cache=cache)
        self._poll_semaphore = asyncio.Semaphore(poll_concurrency)
        self._tracked_operations: dict[str, TrackedOperation] = {}

    async def close(self) -> None:
        if self._tracked_operations:
            log.info("Cancelling %d tracked operation waits", len(self._tracked_operations))
            tasks = [tracked.task for tracked in self._tracked_operations.values()]
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            self._tracked_operations.clear()

        await super().close()

    # =========================================================================
    # Operations
    # =========================================================================

    async def poll_operation(self, handle: OperationHandle) -> Operation:
        response = await self._request(
            "POST",
            f"{handle.path}/wait",
            model=Operation,
            timeout=self.WAIT_REQUEST_TIMEOUT,
        )
        return response.body

    async def get_operation(self, handle: OperationHandle) -> Operation:
        if self._cache is not None:
            entry = await self.cache.get(OperationAwaiter.CACHE_KIND, handle.path)
            if entry:
                return Operation.model_validate(dict(entry.data))

        response = await self._request("GET", handle.path, model=Operation)
        operation = response.body
        if operation.status.is_terminal() and self._cache is not None:
            await self.cache.put(OperationAwaiter.CACHE_KIND, handle.path, operation.to_api())
        return operation

    async def list_operations(
        self,
        scope: Scope,
        filter: str | None = None,
        max_results: int = 100,
        page_token: str | None = None,
    ) -> OperationList:
        params: dict[str, Any] = {"filter": filter, "maxResults": max_results, "pageToken": page_token}
        response = await self._request("GET", f"{scope.path}/operations", model=OperationList, params=params)
        return response.body

    async def _mutate(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Operation:
        # requestId lets the server drop duplicates of a retried mutation
        request_params = {"requestId": str(uuid4()), **(params or {})}
        response = await self._request(method, path, model=Operation, params=request_params, json=json)
        operation = response.body
        log.info("%s %s -> operation %s (%s)", method, path, operation.name, operation.status.value)
        return operation

    # =========================================================================
    # Regional disks
    # =========================================================================

    async def insert_region_disk(
        self,
        project: str,
        region: str,
        name: str,
        replica_zones: Sequence[str],
        size_gb: int = 10,
        disk_type: str = "pd-balanced",
    ) -> Operation:
        if len(replica_zones) != 2:
            raise ValueError(f"A regional disk is replicated across exactly two zones, got {list(replica_zones)}")

        disk = Disk(
            name=name,
            size_gb=size_gb,
            type=f"projects/{project}/regions/{region}/diskTypes/{disk_type}",
            replica_zones=[f"projects/{project}/zones/{zone}" for zone in replica_zones],
        )
        return await self._mutate("POST", f"projects/{project}/regions/{region}/disks", json=disk.to_api())

    async def get_region_disk(self, project: str, region: str, name: str) -> Disk:
        response = await self._request("GET", region_disk_path(project, region, name), model=Disk)
        return response.body

    async def delete_region_disk(self, project: str, region: str, name: str) -> Operation:
        return await self._mutate("DELETE", region_disk_path(project, region, name))

    # =========================================================================
    # Instances
    # =========================================================================

    async def insert_instance(
        self,
        project: str,
        zone: str,
        name: str,
        machine_type: str = "e2-small",
        source_image: str = DEFAULT_IMAGE,
        disk_size_gb: int = 10,
        network: str = DEFAULT_NETWORK,
    ) -> Operation:
        instance = Instance(
            name=name,
            machine_type=f"zones/{zone}/machineTypes/{machine_type}",
            disks=[
                AttachedDisk(
                    boot=True,
                    auto_delete=True,
                    initialize_params=AttachedDiskInitializeParams(
                        source_image=source_image,
                        disk_size_gb=disk_size_gb,
                    ),
                )
            ],
            network_interfaces=[NetworkInterface(network=network)],
        )
        return await self._mutate("POST", f"projects/{project}/zones/{zone}/instances", json=instance.to_api())

    async def delete_instance(self, project: str, zone: str, name: str) -> Operation:
        return await self._mutate("DELETE", f"projects/{project}/zones/{zone}/instances/{name}")

    async def attach_disk(
        self,
        project: str,
        zone: str,
        instance: str,
        source: str,
        device_name: str | None = None,
        force: bool = False,
    ) -> Operation:
        """Attach an existing disk; ``force`` takes it over from another VM."""
        attached = AttachedDisk(source=source, device_name=device_name)
        return await self._mutate(
            "POST",
            f"projects/{project}/zones/{zone}/instances/{instance}/attachDisk",
            json=attached.to_api(),
            params={"forceAttach": "true"} if force else None,
        )

    # =========================================================================
    # Waiting
    # =========================================================================

    @staticmethod
    def _resolve(target: Operation | OperationHandle) -> tuple[OperationHandle, Operation | None]:
        if isinstance(target, OperationHandle):
            return target, None
        return OperationHandle.from_operation(target), target

    def track(self, target: Operation | OperationHandle) -> OperationHandle:
        """Start waiting for ``target`` in the background and return its handle."""
        handle, initial = self._resolve(target)
        self._track_operation(handle, initial)
        return handle

    def is_tracked(self, handle: OperationHandle) -> bool:
        return handle.path in self._tracked_operations

    async def wait_for_operation(
        self,
        target: Operation | OperationHandle,
        scope: Scope | None = None,
        max_wait: float | None = None,
    ) -> OperationOutcome:
        handle, initial = self._resolve(target)
        if scope is not None:
            handle.check_scope(scope)

        tracked = self._track_operation(handle, initial)
        tracked.waiters += 1
        try:
            return await asyncio.wait_for(asyncio.shield(tracked.task), timeout=max_wait)
        except (asyncio.TimeoutError, TimeoutError) as e:
            raise OperationTimeoutError(handle.path, max_wait or 0) from e
        finally:
            tracked.waiters -= 1
            if tracked.waiters == 0 and not tracked.task.done():
                # last waiter gone: drop the open long-poll
                tracked.task.cancel()
                await asyncio.gather(tracked.task, return_exceptions=True)

    async def cancel_wait(self, handle: OperationHandle) -> bool:
        tracked = self._tracked_operations.get(handle.path)
        if tracked is None:
            return False
        tracked.task.cancel()
        await asyncio.gather(tracked.task, return_exceptions=True)
        log.info("Cancelled wait for operation %s", handle)
        return True

    def _track_operation(self, handle: OperationHandle, initial: Operation | None = None) -> TrackedOperation:
        tracked = self._tracked_operations.get(handle.path)
        if tracked is not None:
            return tracked

        log.debug("Tracking operation %s", handle)
        task = asyncio.create_task(
            self._poll_until_complete(handle, initial),
            name=f"wait-{handle.name[:24]}",
        )
        task.add_done_callback(self._log_task_failure)
        tracked = TrackedOperation(task=task)
        self._tracked_operations[handle.path] = tracked
        return tracked

    async def _poll_until_complete(self, handle: OperationHandle, initial: Operation | None) -> OperationOutcome:
        try:
            async with self._poll_semaphore:
                outcome = await self.awaiter.wait(handle, initial=initial)
            log.debug("Operation %s completed: %s", handle, outcome.outcome)
            return outcome
        finally:
            self._tracked_operations.pop(handle.path, None)

    @staticmethod
    def _log_task_failure(task: "asyncio.Task[OperationOutcome]") -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log.warning("Waiting for %s failed: %s", task.get_name(), exc)
