import logging
from typing import Any, TypeVar

from .cache import Cache
from .client import GoogleApiClient
from .errors import TransportError
from .gcp_types import Empty, Parameter, ParameterFormat, ParameterVersion

log = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", Parameter, ParameterVersion)


def parameter_path(project: str, location: str, parameter: str) -> str:
    return f"projects/{project}/locations/{location}/parameters/{parameter}"


def parameter_version_path(project: str, location: str, parameter: str, version: str) -> str:
    return f"{parameter_path(project, location, parameter)}/versions/{version}"


class ParameterManagerClient(GoogleApiClient):
    """Parameter Manager REST client.

    Global parameters live behind the global endpoint; parameters in a region
    must be addressed through that region's endpoint, picked per request from
    the location in the resource name.
    """

    DEFAULT_URL = "https://parametermanager.googleapis.com/v1"
    DEFAULT_REGIONAL_URL = "https://parametermanager.{location}.rep.googleapis.com/v1"

    def __init__(
        self,
        base_url: str = DEFAULT_URL,
        token: str = "",
        cache: Cache | None = None,
        timeout: float = 30.0,
        quota_project: str | None = None,
        regional_url: str = DEFAULT_REGIONAL_URL,
    ):
        super().__init__(base_url, token, cache=cache, timeout=timeout, quota_project=quota_project)
        self.regional_url = regional_url

    def endpoint(self, location: str) -> str:
        if location == "global":
            return self.base_url
        return self.regional_url.format(location=location).rstrip("/")

    def url(self, path: str) -> str:
        # projects/{project}/locations/{location}/...
        parts = path.lstrip("/").split("/")
        location = parts[3] if len(parts) > 3 and parts[2] == "locations" else "global"
        return f"{self.endpoint(location)}/{path.lstrip('/')}"

    async def _remember(self, kind: str, name: str | None, record: Parameter | ParameterVersion) -> None:
        if self._cache is not None and name:
            await self.cache.put(kind, name, record.to_api())

    async def _forget(self, kind: str, name: str) -> None:
        if self._cache is not None:
            await self.cache.delete(kind, name)

    async def _read(self, kind: str, name: str, model: type[RecordT]) -> RecordT:
        """GET a record; while the API is unreachable, serve the last known copy."""
        try:
            response = await self._request("GET", name, model=model)
        except TransportError as e:
            if not e.transient or self._cache is None:
                raise
            entry = await self.cache.get(kind, name)
            if entry is None:
                raise
            log.warning("Parameter Manager unavailable (%s), using cached %s", e.message, name)
            return model.model_validate(dict(entry.data))

        await self._remember(kind, name, response.body)
        return response.body

    # =========================================================================
    # Parameters
    # =========================================================================

    async def get_parameter(self, project: str, location: str, parameter: str) -> Parameter:
        return await self._read("parameter", parameter_path(project, location, parameter), Parameter)

    async def create_parameter(
        self,
        project: str,
        location: str,
        parameter: str,
        format: ParameterFormat = ParameterFormat.UNFORMATTED,
        kms_key: str | None = None,
    ) -> Parameter:
        body = Parameter(format=format, kms_key=kms_key)
        response = await self._request(
            "POST",
            f"projects/{project}/locations/{location}/parameters",
            model=Parameter,
            params={"parameterId": parameter},
            json=body.to_api(),
        )
        log.info("Created parameter %s", response.body.name)
        await self._remember("parameter", response.body.name, response.body)
        return response.body

    async def update_parameter_kms_key(
        self,
        project: str,
        location: str,
        parameter: str,
        kms_key: str | None,
    ) -> Parameter:
        """Set the CMEK key of a parameter; ``None`` removes it."""
        name = parameter_path(project, location, parameter)
        body: dict[str, Any] = {"name": name}
        if kms_key is not None:
            body["kmsKey"] = kms_key
        response = await self._request(
            "PATCH",
            name,
            model=Parameter,
            params={"updateMask": "kmsKey"},
            json=body,
        )
        await self._remember("parameter", response.body.name, response.body)
        return response.body

    async def delete_parameter(self, project: str, location: str, parameter: str) -> str:
        name = parameter_path(project, location, parameter)
        await self._request("DELETE", name, model=Empty)
        log.info("Deleted parameter %s", name)
        await self._forget("parameter", name)
        return name

    # =========================================================================
    # Parameter versions
    # =========================================================================

    async def get_parameter_version(
        self, project: str, location: str, parameter: str, version: str
    ) -> ParameterVersion:
        name = parameter_version_path(project, location, parameter, version)
        return await self._read("parameter_version", name, ParameterVersion)

    async def set_parameter_version_disabled(
        self,
        project: str,
        location: str,
        parameter: str,
        version: str,
        disabled: bool = True,
    ) -> ParameterVersion:
        name = parameter_version_path(project, location, parameter, version)
        response = await self._request(
            "PATCH",
            name,
            model=ParameterVersion,
            params={"updateMask": "disabled"},
            json={"name": name, "disabled": disabled},
        )
        await self._remember("parameter_version", response.body.name, response.body)
        return response.body

    async def delete_parameter_version(self, project: str, location: str, parameter: str, version: str) -> str:
        name = parameter_version_path(project, location, parameter, version)
        await self._request("DELETE", name, model=Empty)
        log.info("Deleted parameter version %s", name)
        await self._forget("parameter_version", name)
        return name
