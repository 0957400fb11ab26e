"""Typed records for the Google Cloud control-plane resources the server touches.

Field names are snake_case in Python and camelCase on the wire; every model
accepts either spelling on input.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from typing_extensions import Self

from cloudops_mcp.errors import OperationError, ScopeMismatchError

OPERATION_REF_PATTERN = re.compile(
    r"(?:^|/)projects/(?P<project>[^/]+)/"
    r"(?:zones/(?P<zone>[^/]+)|regions/(?P<region>[^/]+)|global)"
    r"/operations/(?P<name>[^/?#]+)(?:[?#].*)?$"
)
LOCATION_URL_PATTERN = re.compile(r"(?:^|/)projects/(?P<project>[^/]+)/(?P<collection>zones|regions)/(?P<location>[^/]+)$")


class GcpModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_api(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_defaults=True, mode="json")


class Empty(GcpModel):
    pass


# =============================================================================
# Scope and operation handles
# =============================================================================


class ScopeKind(str, Enum):
    GLOBAL = "global"
    REGION = "region"
    ZONE = "zone"


class Scope(BaseModel):
    model_config = ConfigDict(frozen=True)

    project: str
    region: str | None = None
    zone: str | None = None

    @model_validator(mode="after")
    def _single_location(self) -> Self:
        if self.region and self.zone:
            raise ValueError("Scope takes either a region or a zone, not both")
        return self

    @classmethod
    def global_(cls, project: str) -> Scope:
        return cls(project=project)

    @classmethod
    def regional(cls, project: str, region: str) -> Scope:
        return cls(project=project, region=region)

    @classmethod
    def zonal(cls, project: str, zone: str) -> Scope:
        return cls(project=project, zone=zone)

    @classmethod
    def from_location_url(cls, url: str) -> Scope:
        """Build a scope from a Compute zone or region URL."""
        match = LOCATION_URL_PATTERN.search(url)
        if match is None:
            raise ValueError(f"Not a zone or region URL: {url!r}")
        if match["collection"] == "zones":
            return cls.zonal(match["project"], match["location"])
        return cls.regional(match["project"], match["location"])

    @property
    def kind(self) -> ScopeKind:
        if self.zone:
            return ScopeKind.ZONE
        if self.region:
            return ScopeKind.REGION
        return ScopeKind.GLOBAL

    @property
    def location(self) -> str:
        return self.zone or self.region or "global"

    @property
    def path(self) -> str:
        if self.zone:
            return f"projects/{self.project}/zones/{self.zone}"
        if self.region:
            return f"projects/{self.project}/regions/{self.region}"
        return f"projects/{self.project}/global"


class OperationHandle(BaseModel):
    """Name of a server-side operation plus the scope it must be re-queried in."""

    model_config = ConfigDict(frozen=True)

    name: str
    scope: Scope

    @property
    def path(self) -> str:
        return f"{self.scope.path}/operations/{self.name}"

    @classmethod
    def parse(cls, ref: str) -> OperationHandle:
        """Parse a relative operation path or a full Compute selfLink."""
        match = OPERATION_REF_PATTERN.search(ref.strip())
        if match is None:
            raise ValueError(
                f"Invalid operation reference: {ref!r}. "
                "Use 'projects/{project}/(zones/{zone}|regions/{region}|global)/operations/{name}'."
            )
        scope = Scope(project=match["project"], zone=match["zone"], region=match["region"])
        return cls(name=match["name"], scope=scope)

    @classmethod
    def from_operation(cls, operation: Operation, project: str | None = None) -> OperationHandle:
        if operation.self_link:
            return cls.parse(operation.self_link)

        if operation.zone or operation.region:
            scope = Scope.from_location_url(operation.zone or operation.region or "")
        elif project:
            scope = Scope.global_(project)
        else:
            raise ValueError(f"Cannot determine scope of operation {operation.name!r}")
        return cls(name=operation.name, scope=scope)

    def check_scope(self, scope: Scope) -> None:
        if scope != self.scope:
            raise ScopeMismatchError(expected=self.scope, actual=scope)

    def __str__(self) -> str:
        return self.path


# =============================================================================
# Compute Engine operations
# =============================================================================


class OperationStatus(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    DONE = "DONE"

    def is_terminal(self) -> bool:
        return self is OperationStatus.DONE


class OperationErrorDetail(GcpModel):
    code: str
    message: str | None = None
    location: str | None = None


class OperationErrorInfo(GcpModel):
    errors: list[OperationErrorDetail] = Field(default_factory=list)

    @property
    def code(self) -> str | None:
        return self.errors[0].code if self.errors else None

    @property
    def message(self) -> str | None:
        return self.errors[0].message if self.errors else None


class OperationWarning(GcpModel):
    code: str
    message: str | None = None


class Operation(GcpModel):
    name: str
    status: OperationStatus
    id: str | None = None
    operation_type: str | None = None
    target_link: str | None = None
    self_link: str | None = None
    zone: str | None = None
    region: str | None = None
    progress: int | None = None
    insert_time: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    http_error_status_code: int | None = None
    http_error_message: str | None = None
    error: OperationErrorInfo | None = None
    warnings: list[OperationWarning] = Field(default_factory=list)


class OperationList(GcpModel):
    items: list[Operation] = Field(default_factory=list)
    next_page_token: str | None = None


class Completed(BaseModel):
    outcome: Literal["completed"] = "completed"
    operation: Operation
    error: None = None

    @property
    def status(self) -> OperationStatus:
        return self.operation.status

    def raise_for_error(self) -> Operation:
        return self.operation


class CompletedWithError(BaseModel):
    outcome: Literal["completed_with_error"] = "completed_with_error"
    operation: Operation
    error: OperationErrorInfo

    @property
    def status(self) -> OperationStatus:
        return self.operation.status

    def raise_for_error(self) -> Operation:
        raise OperationError(self.operation)


OperationResult = Annotated[Union[Completed, CompletedWithError], Field(discriminator="outcome")]


def result_of(operation: Operation) -> Completed | CompletedWithError:
    if not operation.status.is_terminal():
        raise ValueError(f"Operation {operation.name} is still {operation.status.value}")
    if operation.error is not None and operation.error.errors:
        return CompletedWithError(operation=operation, error=operation.error)
    return Completed(operation=operation)


# =============================================================================
# Compute Engine disks and instances
# =============================================================================


class Disk(GcpModel):
    name: str
    size_gb: int | None = None
    type: str | None = None
    zone: str | None = None
    region: str | None = None
    replica_zones: list[str] = Field(default_factory=list)
    users: list[str] = Field(default_factory=list)
    status: str | None = None
    self_link: str | None = None


class AttachedDiskInitializeParams(GcpModel):
    source_image: str | None = None
    disk_size_gb: int | None = None


class AttachedDisk(GcpModel):
    source: str | None = None
    device_name: str | None = None
    boot: bool | None = None
    auto_delete: bool | None = None
    mode: str | None = None
    initialize_params: AttachedDiskInitializeParams | None = None


class NetworkInterface(GcpModel):
    network: str | None = None


class Instance(GcpModel):
    name: str
    machine_type: str | None = None
    status: str | None = None
    zone: str | None = None
    self_link: str | None = None
    disks: list[AttachedDisk] = Field(default_factory=list)
    network_interfaces: list[NetworkInterface] = Field(default_factory=list)


# =============================================================================
# Parameter Manager
# =============================================================================


class ParameterFormat(str, Enum):
    UNFORMATTED = "UNFORMATTED"
    YAML = "YAML"
    JSON = "JSON"


class Parameter(GcpModel):
    name: str | None = None
    format: ParameterFormat | None = None
    kms_key: str | None = None
    labels: dict[str, str] = Field(default_factory=dict)
    create_time: str | None = None
    update_time: str | None = None


class ParameterVersion(GcpModel):
    name: str | None = None
    disabled: bool | None = None
    kms_key_version: str | None = None
    create_time: str | None = None
    update_time: str | None = None


# =============================================================================
# Cloud KMS
# =============================================================================


class KeyRing(GcpModel):
    name: str
    create_time: str | None = None


class CryptoKeyVersionTemplate(GcpModel):
    algorithm: str
    protection_level: str | None = None


class CryptoKey(GcpModel):
    name: str | None = None
    purpose: str | None = None
    version_template: CryptoKeyVersionTemplate | None = None
    create_time: str | None = None


class CryptoKeyVersion(GcpModel):
    name: str
    state: str | None = None
    destroy_time: str | None = None
