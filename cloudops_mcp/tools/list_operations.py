from pydantic import BaseModel, Field

from cloudops_mcp.context import COMPUTE
from cloudops_mcp.gcp_types import Operation, OperationHandle, Scope


class ListOperationsOutput(BaseModel):
    operations: list[Operation] = Field(description="Operations, newest last as returned by the API")
    paths: list[str] = Field(description="Operation paths in the same order, for wait_operations")


# noinspection PyShadowingBuiltins
async def list_operations(
    project: str,
    zone: str | None = None,
    region: str | None = None,
    filter: str | None = None,
    limit: int = 100,
) -> ListOperationsOutput:
    """
    List Compute Engine operations of a zone, a region, or the global scope.

    TL;DR:
    - SCOPE: Pass zone OR region; neither lists global operations
    - FILTER: Compute filter syntax, e.g. `status != DONE`

    RETURNS: operations[], paths[]
    """

    client = COMPUTE.get()
    scope = Scope(project=project, zone=zone, region=region)
    result = await client.list_operations(scope, filter=filter, max_results=limit)
    paths = [OperationHandle(name=op.name, scope=scope).path for op in result.items]
    return ListOperationsOutput(operations=result.items, paths=paths)
