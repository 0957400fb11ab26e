from cloudops_mcp.compute import region_disk_path
from cloudops_mcp.context import COMPUTE
from cloudops_mcp.gcp_types import Scope

from .mutation import MutationOutput, finish_mutation


async def create_regional_disk(
    project: str,
    region: str,
    disk: str,
    zones: list[str],
    size_gb: int = 10,
    disk_type: str = "pd-balanced",
    wait: bool = True,
) -> MutationOutput:
    """
    Create a regional persistent disk replicated across two zones.

    TL;DR:
    - PURPOSE: Storage that survives the loss of one zone
    - ZONES: Exactly two zones of `region`, e.g. ["europe-central2-a", "europe-central2-b"]
    - ASYNC: wait=false returns the operation path immediately

    RETURNS: message, operation, status, target

    GUIDES:
    - [ESSENTIAL] gcp://guide/operations - How waiting works
    """
    client = COMPUTE.get()
    operation = await client.insert_region_disk(
        project=project,
        region=region,
        name=disk,
        replica_zones=zones,
        size_gb=size_gb,
        disk_type=disk_type,
    )
    return await finish_mutation(
        operation, Scope.regional(project, region), f"Regional replicated disk: {disk} created.", wait
    )


async def attach_regional_disk(
    project: str,
    region: str,
    disk: str,
    zone: str,
    instance: str,
    force: bool = False,
    wait: bool = True,
) -> MutationOutput:
    """
    Attach a regional disk to a VM in one of the disk's replica zones.

    TL;DR:
    - PURPOSE: Give a VM access to a replicated disk
    - FORCE: force=true takes the disk over even if another VM still holds it
      (used for failover when the other zone is unavailable)

    RETURNS: message, operation, status, target
    """
    client = COMPUTE.get()
    operation = await client.attach_disk(
        project=project,
        zone=zone,
        instance=instance,
        source=region_disk_path(project, region, disk),
        force=force,
    )
    if force:
        message = f"Replicated disk: {disk} was forced to be attached to VM: {instance}."
    else:
        message = f"Replicated disk: {disk} attached to VM: {instance}."
    return await finish_mutation(operation, Scope.zonal(project, zone), message, wait)


async def delete_regional_disk(project: str, region: str, disk: str, wait: bool = True) -> MutationOutput:
    """
    Delete a regional disk. The disk must not be attached to any VM.

    RETURNS: message, operation, status, target
    """
    client = COMPUTE.get()
    operation = await client.delete_region_disk(project=project, region=region, name=disk)
    return await finish_mutation(operation, Scope.regional(project, region), f"Regional disk: {disk} deleted.", wait)
