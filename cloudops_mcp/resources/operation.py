import json

from cloudops_mcp.context import COMPUTE
from cloudops_mcp.gcp_types import Operation, OperationHandle, OperationStatus, Scope, result_of


async def _describe(handle: OperationHandle) -> str:
    client = COMPUTE.get()
    # Terminal records come from the cache, others are fetched fresh
    op: Operation = await client.get_operation(handle)

    data: dict[str, object] = {
        "operation": handle.path,
        "status": op.status.value,
        "operation_type": op.operation_type,
        "target_link": op.target_link,
        "progress": op.progress,
    }

    if op.status == OperationStatus.DONE:
        outcome = result_of(op)
        data["outcome"] = outcome.outcome
        if outcome.error is not None:
            data["error"] = outcome.error.to_api()

    return json.dumps(data, indent=2)


async def zone_operation(project: str, zone: str, operation: str) -> str:
    """Read a zonal Compute Engine operation.

    URI: gcp://projects/{project}/zones/{zone}/operations/{operation}

    Returns status, operation_type, target_link, progress and, once DONE,
    the outcome (completed or completed_with_error) with the error payload.
    """
    return await _describe(OperationHandle(name=operation, scope=Scope.zonal(project, zone)))


async def region_operation(project: str, region: str, operation: str) -> str:
    """Read a regional Compute Engine operation.

    URI: gcp://projects/{project}/regions/{region}/operations/{operation}
    """
    return await _describe(OperationHandle(name=operation, scope=Scope.regional(project, region)))


async def global_operation(project: str, operation: str) -> str:
    """Read a global Compute Engine operation.

    URI: gcp://projects/{project}/global/operations/{operation}
    """
    return await _describe(OperationHandle(name=operation, scope=Scope.global_(project)))
