"""
## WORKFLOW

Compute Engine mutations are asynchronous. Every mutating tool returns the
path of a long-running operation.

### Step 1: START the change
```
create_regional_disk(project="p", region="us-central1", disk="d1",
                     zones=["us-central1-a", "us-central1-b"], wait=false)
```
Use `wait=false` to start several independent changes at once.

### Step 2: WAIT for completion
```
wait_operations(operations=["projects/p/regions/us-central1/operations/operation-123"])
```

### Step 3: CHECK the outcome
`DONE` is not success. Inspect `failed` and each result's `error.code`.

---

## NEVER DO THESE

| Anti-pattern | Consequence | Correct approach |
|--------------|-------------|------------------|
| Treat DONE as success | Missed quota and capacity failures | Check `outcome` / `failed` |
| Poll `get_operation` in a loop | Wasted calls | `wait_operations` long-polls |
| Force-attach a disk in normal operation | Disk yanked from a live VM | `force=true` only for failover |
| Delete a disk before its VM | `RESOURCE_IN_USE` errors | Delete instances first |

---

## Guides

| Guide | Resource URI | Tool Alternative |
|-------|--------------|------------------|
| Operation lifecycle | `gcp://guide/operations` | `get_guide(section="operations")` |
| Replicated disks | `gcp://guide/workflow` | `get_guide(section="workflow")` |
| Cleanup order | `gcp://guide/cleanup` | `get_guide(section="cleanup")` |
| Error handling | `gcp://guide/errors` | `get_guide(section="errors")` |

Use resources if supported by your agent runtime, otherwise use `get_guide()`.
"""

from collections.abc import Awaitable, Callable
from textwrap import dedent
from typing import Any

from mcp.server import FastMCP
from mcp.server.fastmcp.prompts import Prompt
from pydantic import AnyUrl

from cloudops_mcp import prompts

from . import resources, tools


def register_resource_template(mcp: FastMCP, url: str, resource_template_func: Callable[..., Awaitable[Any]]) -> None:
    description = dedent(resource_template_func.__doc__ or "") or ""
    decorator = mcp.resource(url, description=description)
    decorator(resource_template_func)


def register_tool(mcp: FastMCP, tool_func: Callable[..., Awaitable[Any]], **kwargs: Any) -> None:
    mcp.add_tool(tool_func, description=dedent(tool_func.__doc__ or "") or "", **kwargs)


def create_mcp_app(**kwargs: Any) -> FastMCP:
    mcp = FastMCP(
        name="cloudops-mcp",
        instructions=dedent(__doc__ or "").strip(),
        streamable_http_path="/mcp",
        json_response=True,
        **kwargs,
    )

    register_tool(mcp, tools.create_instance)
    register_tool(mcp, tools.delete_instance)
    register_tool(mcp, tools.create_regional_disk)
    register_tool(mcp, tools.attach_regional_disk)
    register_tool(mcp, tools.delete_regional_disk)
    register_tool(mcp, tools.get_operation)
    register_tool(mcp, tools.list_operations)
    register_tool(mcp, tools.wait_operations)
    register_tool(mcp, tools.cancel_wait)
    register_tool(mcp, tools.delete_parameter)
    register_tool(mcp, tools.delete_parameter_version)
    register_tool(mcp, tools.disable_parameter_version)
    register_tool(mcp, tools.enable_parameter_version)
    register_tool(mcp, tools.update_parameter_kms_key)
    register_tool(mcp, tools.ensure_crypto_key)
    register_tool(mcp, tools.destroy_crypto_key_version)

    # some agents can not use resources, so we expose these as tools too
    register_tool(mcp, tools.get_guide)

    mcp.add_prompt(Prompt.from_function(prompts.replicated_disk_workflow, name="replicated-disk-workflow"))
    mcp.add_prompt(Prompt.from_function(prompts.cleanup_resources, name="cleanup-resources"))

    register_resource_template(
        mcp, "gcp://projects/{project}/zones/{zone}/operations/{operation}", resources.zone_operation
    )
    register_resource_template(
        mcp, "gcp://projects/{project}/regions/{region}/operations/{operation}", resources.region_operation
    )
    register_resource_template(mcp, "gcp://projects/{project}/global/operations/{operation}", resources.global_operation)

    # Register guide sections as static resources for discovery
    for section, content in resources.SECTIONS.items():
        mcp.add_resource(
            resources.StaticResource(
                content,
                uri=AnyUrl(f"gcp://guide/{section}"),
                name=section,
                title=f"Cloud Operations Guide: {section.title()}",
                description=f"Guide section on {section}",
                mime_type="text/markdown",
            )
        )

    return mcp
