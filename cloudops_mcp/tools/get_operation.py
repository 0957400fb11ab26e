from cloudops_mcp.context import COMPUTE
from cloudops_mcp.gcp_types import Operation, OperationHandle


async def get_operation(operation: str) -> Operation:
    """
    Get the current record of a Compute Engine operation. Does not wait.

    TL;DR:
    - PURPOSE: Check progress of an operation started with wait=false
    - PREFER: wait_operations to block until DONE
    - FORMAT: projects/{project}/(zones/{zone}|regions/{region}|global)/operations/{name}

    RETURNS: name, status (PENDING, RUNNING, DONE), progress, error, target_link

    NOTE: status DONE with a non-empty error means the operation FAILED.

    GUIDES:
    - [ESSENTIAL] gcp://guide/operations - Operation lifecycle
    """

    client = COMPUTE.get()
    return await client.get_operation(OperationHandle.parse(operation))
