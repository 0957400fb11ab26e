from cloudops_mcp.compute import ComputeClient
from cloudops_mcp.context import COMPUTE
from cloudops_mcp.gcp_types import Scope

from .mutation import MutationOutput, finish_mutation


async def create_instance(
    project: str,
    zone: str,
    instance: str,
    machine_type: str = "e2-small",
    source_image: str = ComputeClient.DEFAULT_IMAGE,
    disk_size_gb: int = 10,
    wait: bool = True,
) -> MutationOutput:
    """
    Create a VM with a boot disk on the default network.

    TL;DR:
    - PURPOSE: A VM to attach disks to
    - ASYNC: wait=false returns the operation path immediately

    RETURNS: message, operation, status, target
    """
    client = COMPUTE.get()
    operation = await client.insert_instance(
        project=project,
        zone=zone,
        name=instance,
        machine_type=machine_type,
        source_image=source_image,
        disk_size_gb=disk_size_gb,
    )
    return await finish_mutation(operation, Scope.zonal(project, zone), f"Instance {instance} created.", wait)


async def delete_instance(project: str, zone: str, instance: str, wait: bool = True) -> MutationOutput:
    """
    Delete a VM. Its boot disk is deleted with it; attached regional disks are kept.

    RETURNS: message, operation, status, target
    """
    client = COMPUTE.get()
    operation = await client.delete_instance(project=project, zone=zone, name=instance)
    return await finish_mutation(operation, Scope.zonal(project, zone), f"Instance {instance} deleted.", wait)
