from pydantic import BaseModel

from cloudops_mcp.context import KMS
from cloudops_mcp.errors import TransportError
from cloudops_mcp.kms import KmsClient, crypto_key_path


class CryptoKeyOutput(BaseModel):
    message: str
    name: str


class DestroyKeyVersionOutput(BaseModel):
    message: str
    destroyed: bool


async def ensure_crypto_key(
    project: str,
    key_ring: str,
    crypto_key: str,
    location: str = "global",
    purpose: str = KmsClient.DEFAULT_PURPOSE,
    algorithm: str = KmsClient.DEFAULT_ALGORITHM,
) -> CryptoKeyOutput:
    """
    Get a Cloud KMS crypto key, creating the key ring and key when they do not exist.

    TL;DR:
    - PURPOSE: Prepare a CMEK key for update_parameter_kms_key
    - LOCATION: Must match the location of the parameter it will protect

    RETURNS: message, name
    """
    client = KMS.get()
    key = await client.ensure_crypto_key(project, location, key_ring, crypto_key, purpose, algorithm)
    name = key.name or crypto_key_path(project, location, key_ring, crypto_key)
    return CryptoKeyOutput(message=f"Crypto key {name} is ready", name=name)


async def destroy_crypto_key_version(
    project: str,
    key_ring: str,
    crypto_key: str,
    version: str = "1",
    location: str = "global",
) -> DestroyKeyVersionOutput:
    """
    Schedule destruction of a crypto key version. Key rings and keys cannot be deleted.

    RETURNS: message, destroyed
    """
    client = KMS.get()
    try:
        result = await client.destroy_crypto_key_version(project, location, key_ring, crypto_key, version)
    except TransportError as e:
        if not e.is_not_found:
            raise
        return DestroyKeyVersionOutput(message=f"Already destroyed: {e.message}", destroyed=False)
    return DestroyKeyVersionOutput(message=f"Crypto key version {result.name} is {result.state}", destroyed=True)
