from pydantic import BaseModel, Field

from cloudops_mcp.context import PARAMETERS


class ParameterOutput(BaseModel):
    message: str
    name: str = Field(description="Full resource name of the parameter or version")


def _qualifier(location: str) -> str:
    return "parameter" if location == "global" else "regional parameter"


async def delete_parameter(project: str, parameter: str, location: str = "global") -> ParameterOutput:
    """
    Delete a Parameter Manager parameter. All its versions must be deleted first.

    TL;DR:
    - LOCATION: "global" or a region such as "us-central1" (uses the regional endpoint)

    RETURNS: message, name
    """
    client = PARAMETERS.get()
    name = await client.delete_parameter(project, location, parameter)
    return ParameterOutput(message=f"Deleted {_qualifier(location)}: {name}", name=name)


async def delete_parameter_version(
    project: str,
    parameter: str,
    version: str,
    location: str = "global",
) -> ParameterOutput:
    """
    Delete one version of a Parameter Manager parameter.

    RETURNS: message, name
    """
    client = PARAMETERS.get()
    name = await client.delete_parameter_version(project, location, parameter, version)
    return ParameterOutput(message=f"Deleted {_qualifier(location)} version: {name}", name=name)


async def disable_parameter_version(
    project: str,
    parameter: str,
    version: str,
    location: str = "global",
) -> ParameterOutput:
    """
    Disable a parameter version so it can no longer be rendered. Reversible with enable_parameter_version.

    RETURNS: message, name
    """
    client = PARAMETERS.get()
    result = await client.set_parameter_version_disabled(project, location, parameter, version, disabled=True)
    name = result.name or ""
    return ParameterOutput(message=f"Disabled parameter version {name} for parameter {parameter}", name=name)


async def enable_parameter_version(
    project: str,
    parameter: str,
    version: str,
    location: str = "global",
) -> ParameterOutput:
    """
    Re-enable a disabled parameter version.

    RETURNS: message, name
    """
    client = PARAMETERS.get()
    result = await client.set_parameter_version_disabled(project, location, parameter, version, disabled=False)
    name = result.name or ""
    return ParameterOutput(message=f"Enabled parameter version {name} for parameter {parameter}", name=name)


async def update_parameter_kms_key(
    project: str,
    parameter: str,
    kms_key: str | None = None,
    location: str = "global",
) -> ParameterOutput:
    """
    Set or remove the Cloud KMS key (CMEK) that encrypts a parameter.

    TL;DR:
    - SET: kms_key="projects/{p}/locations/{location}/keyRings/{ring}/cryptoKeys/{key}"
    - REMOVE: omit kms_key
    - The key must be in the same location as the parameter

    RETURNS: message, name
    """
    client = PARAMETERS.get()
    result = await client.update_parameter_kms_key(project, location, parameter, kms_key)
    name = result.name or ""
    if kms_key is None:
        message = f"Removed kms_key for {_qualifier(location)} {name}"
    else:
        message = f"Updated {_qualifier(location)} {name} with kms_key {result.kms_key}"
    return ParameterOutput(message=message, name=name)
