from pydantic import BaseModel, Field

from cloudops_mcp.context import COMPUTE
from cloudops_mcp.gcp_types import Operation, OperationHandle, OperationStatus, Scope


class MutationOutput(BaseModel):
    message: str = Field(description="Confirmation, or a note that the operation is still running")
    operation: str = Field(description="Operation path, pass it to wait_operations or get_operation")
    status: OperationStatus = Field(description="Last observed operation status")
    target: str | None = Field(default=None, description="Resource the operation acts on")


async def finish_mutation(operation: Operation, scope: Scope, message: str, wait: bool) -> MutationOutput:
    """Wait for (or start tracking) a mutation's operation.

    The operation must live in ``scope``, the location the tool was asked to
    act on; otherwise ScopeMismatchError is raised before any poll. An
    operation that ends DONE with an error payload raises OperationError,
    so the caller sees a failed tool call instead of a confirmation.
    """
    client = COMPUTE.get()
    handle = OperationHandle.from_operation(operation, project=scope.project)
    handle.check_scope(scope)

    if not wait:
        client.track(operation)
        return MutationOutput(
            message=f"Operation {handle.name} is {operation.status.value}",
            operation=handle.path,
            status=operation.status,
            target=operation.target_link,
        )

    outcome = await client.wait_for_operation(operation, scope=scope)
    done = outcome.raise_for_error()
    return MutationOutput(
        message=message,
        operation=handle.path,
        status=done.status,
        target=done.target_link or operation.target_link,
    )
