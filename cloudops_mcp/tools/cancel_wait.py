from pydantic import BaseModel, Field

from cloudops_mcp.context import COMPUTE
from cloudops_mcp.gcp_types import OperationHandle


class CancelWaitOutput(BaseModel):
    cancelled: bool = Field(description="Whether a background wait was running and got cancelled")
    operation: str = Field(description="Operation path")


async def cancel_wait(operation: str) -> CancelWaitOutput:
    """
    Stop waiting for an operation started with wait=false.

    TL;DR:
    - PURPOSE: Release the open long-poll of an operation you no longer care about
    - SCOPE: Only the local wait stops. The operation keeps running in Google Cloud
      and can be waited for again later.

    RETURNS: cancelled, operation
    """

    client = COMPUTE.get()
    handle = OperationHandle.parse(operation)
    cancelled = await client.cancel_wait(handle)
    return CancelWaitOutput(cancelled=cancelled, operation=handle.path)
