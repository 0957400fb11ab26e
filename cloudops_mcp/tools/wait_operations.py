import asyncio
from typing import Literal

from pydantic import BaseModel, Field

from cloudops_mcp.context import COMPUTE
from cloudops_mcp.errors import CloudOpsError, OperationTimeoutError
from cloudops_mcp.gcp_types import OperationHandle, OperationResult


class WaitOperationsOutput(BaseModel):
    results: dict[str, OperationResult] = Field(description="Map of operation path to its final outcome")
    completed: list[str] = Field(description="Operations that finished without error")
    failed: list[str] = Field(description="Operations that finished DONE with an error payload")
    errors: dict[str, str] = Field(default_factory=dict, description="Operations that could not be polled")
    cancelled: list[str] = Field(description="Operations whose wait timed out or was cancelled")
    timed_out: bool = Field(default=False, description="True if any wait exceeded timeout")


async def wait_operations(
    operations: list[str],
    timeout: float = 300.0,
    mode: Literal["all", "any"] = "all",
) -> WaitOperationsOutput:
    """
    Wait for Compute Engine operations to reach DONE.

    TL;DR:
    - PURPOSE: Block until operations started with wait=false finish
    - MODES: 'all' waits for all, 'any' returns once one operation reaches DONE and stops waiting for the rest
      (operations that could not be polled are reported in `errors` and do not end an 'any' wait)
    - TIMEOUT: Stops waiting locally; the operations keep running in Google Cloud

    USAGE:
    - Create several VMs or disks with wait=false, then wait for all of them
    - Check `failed`: DONE does not mean success

    RETURNS: results, completed, failed, errors, cancelled, timed_out

    GUIDES:
    - [ESSENTIAL] gcp://guide/operations - Operation lifecycle
    """

    if not operations:
        return WaitOperationsOutput(results={}, completed=[], failed=[], cancelled=[])

    client = COMPUTE.get()

    # parse everything first so a bad reference fails before any request
    handles = {ref: OperationHandle.parse(ref) for ref in dict.fromkeys(operations)}

    results: dict[str, OperationResult] = {}
    errors: dict[str, str] = {}
    timeouts: set[str] = set()

    async def wait_one(ref: str, handle: OperationHandle) -> None:
        try:
            results[ref] = await client.wait_for_operation(handle, max_wait=timeout)
        except OperationTimeoutError:
            timeouts.add(ref)
        except CloudOpsError as e:
            errors[ref] = e.message

    return_when = asyncio.ALL_COMPLETED if mode == "all" else asyncio.FIRST_COMPLETED
    pending = {asyncio.create_task(wait_one(ref, handle)) for ref, handle in handles.items()}
    while pending:
        _, pending = await asyncio.wait(pending, return_when=return_when)
        if results:
            break

    for task in pending:
        task.cancel()
    await asyncio.gather(*pending, return_exceptions=True)

    return WaitOperationsOutput(
        results=results,
        completed=[ref for ref, outcome in results.items() if outcome.error is None],
        failed=[ref for ref, outcome in results.items() if outcome.error is not None],
        errors=errors,
        cancelled=[ref for ref in handles if ref not in results and ref not in errors],
        timed_out=bool(timeouts),
    )
