"""Cloud operations MCP prompts for common workflows."""

from textwrap import dedent


def _prompt(text: str) -> str:
    return dedent(text).strip()


def replicated_disk_workflow(
    project: str,
    region: str,
    primary_zone: str,
    secondary_zone: str,
    disk: str = "replicated-disk",
    instance: str = "replicated-vm",
) -> str:
    """Create a VM, a regional replicated disk, and attach the disk to the VM."""
    return _prompt(
        f"""
        Set up a replicated disk in project `{project}`.

        1. Create the VM and the disk in parallel, without blocking:
           `create_instance(project="{project}", zone="{primary_zone}", instance="{instance}", wait=false)`
           `create_regional_disk(project="{project}", region="{region}", disk="{disk}",
               zones=["{primary_zone}", "{secondary_zone}"], wait=false)`
        2. `wait_operations(operations=[<both operation paths>], mode="all")`.
           Stop if anything is listed in `failed` or `errors` and report its error code.
        3. `attach_regional_disk(project="{project}", region="{region}", disk="{disk}",
               zone="{primary_zone}", instance="{instance}")`
        4. Report each confirmation message.

        For failover to `{secondary_zone}`, create a VM there and attach with `force=true`.
        """
    )


def cleanup_resources(
    project: str,
    zone: str,
    region: str,
    instance: str,
    disk: str,
    parameter: str = "",
    parameter_location: str = "global",
) -> str:
    """Delete the resources of a replicated disk setup in dependency order."""
    steps = [
        f'`delete_instance(project="{project}", zone="{zone}", instance="{instance}")`',
        f'`delete_regional_disk(project="{project}", region="{region}", disk="{disk}")`',
    ]
    if parameter:
        steps.append(
            f"Delete every version of parameter `{parameter}` with "
            f'`delete_parameter_version(project="{project}", parameter="{parameter}", version=..., '
            f'location="{parameter_location}")`'
        )
        steps.append(f'`delete_parameter(project="{project}", parameter="{parameter}", location="{parameter_location}")`')

    numbered = "\n".join(f"{i}. {step}" for i, step in enumerate(steps, 1))
    return "\n\n".join(
        (
            f'Clean up resources in project `{project}`. Read `get_guide(section="cleanup")` first.',
            numbered,
            "Treat NOT_FOUND as already deleted. Report every confirmation message.",
        )
    )
