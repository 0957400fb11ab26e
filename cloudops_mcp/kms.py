import logging

from .client import GoogleApiClient
from .errors import TransportError
from .gcp_types import CryptoKey, CryptoKeyVersion, CryptoKeyVersionTemplate, KeyRing

log = logging.getLogger(__name__)


def key_ring_path(project: str, location: str, key_ring: str) -> str:
    return f"projects/{project}/locations/{location}/keyRings/{key_ring}"


def crypto_key_path(project: str, location: str, key_ring: str, crypto_key: str) -> str:
    return f"{key_ring_path(project, location, key_ring)}/cryptoKeys/{crypto_key}"


class KmsClient(GoogleApiClient):
    DEFAULT_URL = "https://cloudkms.googleapis.com/v1"

    DEFAULT_PURPOSE = "ASYMMETRIC_DECRYPT"
    DEFAULT_ALGORITHM = "RSA_DECRYPT_OAEP_2048_SHA256"

    async def get_key_ring(self, project: str, location: str, key_ring: str) -> KeyRing:
        response = await self._request("GET", key_ring_path(project, location, key_ring), model=KeyRing)
        return response.body

    async def create_key_ring(self, project: str, location: str, key_ring: str) -> KeyRing:
        response = await self._request(
            "POST",
            f"projects/{project}/locations/{location}/keyRings",
            model=KeyRing,
            params={"keyRingId": key_ring},
            json={},
        )
        log.info("Created key ring %s", response.body.name)
        return response.body

    async def ensure_key_ring(self, project: str, location: str, key_ring: str) -> KeyRing:
        try:
            return await self.get_key_ring(project, location, key_ring)
        except TransportError as e:
            if not e.is_not_found:
                raise
        return await self.create_key_ring(project, location, key_ring)

    async def get_crypto_key(self, project: str, location: str, key_ring: str, crypto_key: str) -> CryptoKey:
        name = crypto_key_path(project, location, key_ring, crypto_key)
        response = await self._request("GET", name, model=CryptoKey)
        return response.body

    async def create_crypto_key(
        self,
        project: str,
        location: str,
        key_ring: str,
        crypto_key: str,
        purpose: str = DEFAULT_PURPOSE,
        algorithm: str = DEFAULT_ALGORITHM,
    ) -> CryptoKey:
        body = CryptoKey(purpose=purpose, version_template=CryptoKeyVersionTemplate(algorithm=algorithm))
        response = await self._request(
            "POST",
            f"{key_ring_path(project, location, key_ring)}/cryptoKeys",
            model=CryptoKey,
            params={"cryptoKeyId": crypto_key},
            json=body.to_api(),
        )
        log.info("Created crypto key %s", response.body.name)
        return response.body

    async def ensure_crypto_key(
        self,
        project: str,
        location: str,
        key_ring: str,
        crypto_key: str,
        purpose: str = DEFAULT_PURPOSE,
        algorithm: str = DEFAULT_ALGORITHM,
    ) -> CryptoKey:
        """Return the crypto key, creating it and its key ring when missing."""
        try:
            return await self.get_crypto_key(project, location, key_ring, crypto_key)
        except TransportError as e:
            if not e.is_not_found:
                raise
        await self.ensure_key_ring(project, location, key_ring)
        return await self.create_crypto_key(project, location, key_ring, crypto_key, purpose, algorithm)

    async def destroy_crypto_key_version(
        self, project: str, location: str, key_ring: str, crypto_key: str, version: str
    ) -> CryptoKeyVersion:
        name = f"{crypto_key_path(project, location, key_ring, crypto_key)}/cryptoKeyVersions/{version}"
        response = await self._request("POST", f"{name}:destroy", model=CryptoKeyVersion, json={})
        log.info("Scheduled destruction of %s", name)
        return response.body
