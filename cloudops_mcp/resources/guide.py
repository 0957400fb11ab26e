from collections.abc import Mapping
from textwrap import dedent
from types import MappingProxyType

OPERATIONS_GUIDE = """
    # Long-Running Operations

    Every Compute Engine mutation (insert, delete, attachDisk) returns an
    Operation record immediately. The change happens asynchronously.

    ## Lifecycle

    ```
    PENDING -> RUNNING -> DONE
    ```

    `DONE` is the only terminal status. **DONE does not mean success**:
    a finished operation may carry an `error` payload.

    | Outcome | Meaning |
    |---------|---------|
    | `completed` | DONE, no error. The resource change took effect |
    | `completed_with_error` | DONE with `error.errors[]`. Read `error.code` |

    ## Scopes

    Operations live in exactly one scope. The path encodes it:

    | Scope | Path |
    |-------|------|
    | Zonal | `projects/{p}/zones/{zone}/operations/{name}` |
    | Regional | `projects/{p}/regions/{region}/operations/{name}` |
    | Global | `projects/{p}/global/operations/{name}` |

    Regional disks produce regional operations; instances and disk
    attachments produce zonal operations.

    ## Waiting

    The server long-polls `.../operations/{name}/wait`. Each poll returns
    when the operation finishes or after about two minutes, whichever
    comes first; polling repeats immediately until DONE.

    ```json
    // start without blocking
    {"project": "p", "region": "us-central1", "disk": "d1", "zones": ["us-central1-a", "us-central1-b"], "wait": false}
    // later: wait_operations
    {"operations": ["projects/p/regions/us-central1/operations/operation-123"], "timeout": 600}
    ```

    A timeout or `cancel_wait` only stops the local wait. The operation
    keeps running in Google Cloud; wait for it again with the same path.
"""

WORKFLOW_GUIDE = """
    # Replicated Disk Workflow

    A regional persistent disk is synchronously replicated across two
    zones of one region. If the VM's zone fails, force-attach the disk to
    a VM in the other replica zone.

    ## Steps

    1. `create_instance(project, zone="us-central1-a", instance="vm-a")`
    2. `create_regional_disk(project, region="us-central1", disk="data",
       zones=["us-central1-a", "us-central1-b"])`
    3. `attach_regional_disk(project, region="us-central1", disk="data",
       zone="us-central1-a", instance="vm-a")`

    ## Failover

    1. `create_instance(project, zone="us-central1-b", instance="vm-b")`
    2. `attach_regional_disk(..., zone="us-central1-b", instance="vm-b", force=true)`

    `force=true` attaches even when the disk is still attached to an
    unreachable VM in the other zone. Use it only for failover.

    ## Parallel Creation

    Create independent resources with `wait=false`, then
    `wait_operations(operations=[...], mode="all")`.
"""

CLEANUP_GUIDE = """
    # Cleanup Order

    Resources depend on each other. Delete in this order:

    1. Instances: `delete_instance` (detaches their disks)
    2. Regional disks: `delete_regional_disk`
    3. Parameter versions: `delete_parameter_version`
    4. Parameters: `delete_parameter`
    5. KMS key versions: `destroy_crypto_key_version`

    Key rings and crypto keys cannot be deleted in Cloud KMS. Destroying
    a key version schedules destruction; a version that is already gone
    is reported as "Already destroyed".

    Parameter Manager calls are synchronous. Regional parameters
    (location other than `global`) go through the regional endpoint
    `parametermanager.{location}.rep.googleapis.com`.
"""

ERRORS_GUIDE = """
    # Error Handling

    | Error | Cause | What to do |
    |-------|-------|------------|
    | Operation `completed_with_error` | Control plane rejected the change | Read `error.code`, e.g. `RESOURCE_EXHAUSTED`, `QUOTA_EXCEEDED` |
    | Transport error, HTTP 4xx | Bad request, permission, not found | Fix the request; not retried |
    | Transport error, HTTP 429/5xx | Transient server condition | Retry the wait; the operation is unaffected |
    | Scope mismatch | Handle path and expected scope disagree | Use the path returned by the mutation |
    | Operation timeout | Local deadline exceeded | `wait_operations` again, the operation still runs |

    ## Common Codes

    - `RESOURCE_EXHAUSTED`: zone is out of capacity for the machine or disk type
    - `QUOTA_EXCEEDED`: raise the project quota or pick another region
    - `RESOURCE_IN_USE_BY_ANOTHER_RESOURCE`: detach or delete the dependent first
    - `NOT_FOUND`: the resource was already deleted
"""


SECTIONS: Mapping[str, str] = MappingProxyType(
    {
        "operations": dedent(OPERATIONS_GUIDE).strip(),
        "workflow": dedent(WORKFLOW_GUIDE).strip(),
        "cleanup": dedent(CLEANUP_GUIDE).strip(),
        "errors": dedent(ERRORS_GUIDE).strip(),
    }
)
