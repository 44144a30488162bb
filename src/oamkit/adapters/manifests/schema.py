"""Pydantic models describing the stored workload, trait and definition manifests."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from oamkit.domain.model import CPUArchitecture, OperatingSystem, PortProtocol


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _none_to_empty(value: object) -> object:
    return "" if value is None else value


class ManifestBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ObjectMetaPayload(ManifestBaseModel):
    name: str
    namespace: str | None = None
    uid: str | None = None
    resource_version: str | None = Field(default=None, alias="resourceVersion")
    labels: dict[str, str] = Field(default_factory=dict)

    _normalize = field_validator("namespace", "uid", "resource_version", mode="before")(
        _blank_to_none
    )


class ResourceReferencePayload(ManifestBaseModel):
    api_version: str = Field(default="", alias="apiVersion")
    kind: str = ""
    name: str = ""
    uid: str | None = None

    _normalize_uid = field_validator("uid", mode="before")(_blank_to_none)
    _normalize_strings = field_validator("api_version", "kind", "name", mode="before")(
        _none_to_empty
    )


class ConditionPayload(ManifestBaseModel):
    type: str
    status: str
    reason: str = ""
    message: str = ""
    last_transition_time: datetime | None = Field(default=None, alias="lastTransitionTime")


class ContainerPortPayload(ManifestBaseModel):
    container_port: int = Field(alias="containerPort")
    name: str | None = None
    protocol: PortProtocol | None = None

    _normalize = field_validator("name", "protocol", mode="before")(_blank_to_none)


class ContainerPayload(ManifestBaseModel):
    # name and image are checked by the renderer so a missing one surfaces as a render error
    name: str = ""
    image: str = ""
    ports: list[ContainerPortPayload] = Field(default_factory=list)
    command: list[str] = Field(default_factory=list)
    args: list[str] = Field(default_factory=list)
    env: list[dict[str, Any]] = Field(default_factory=list)
    resources: dict[str, Any] | None = None

    _normalize = field_validator("name", "image", mode="before")(_none_to_empty)


class WorkloadSpecPayload(ManifestBaseModel):
    containers: list[ContainerPayload] = Field(default_factory=list)
    os_type: OperatingSystem | None = Field(default=None, alias="osType")
    arch: CPUArchitecture | None = None

    _normalize = field_validator("os_type", "arch", mode="before")(_blank_to_none)


class WorkloadStatusPayload(ManifestBaseModel):
    resources: list[ResourceReferencePayload] = Field(default_factory=list)
    conditions: list[ConditionPayload] = Field(default_factory=list)


class WorkloadPayload(ManifestBaseModel):
    api_version: str = Field(alias="apiVersion")
    kind: str
    metadata: ObjectMetaPayload
    spec: WorkloadSpecPayload = Field(default_factory=WorkloadSpecPayload)
    status: WorkloadStatusPayload = Field(default_factory=WorkloadStatusPayload)


class TraitSpecPayload(ManifestBaseModel):
    replica_count: int = Field(alias="replicaCount")
    workload_ref: ResourceReferencePayload = Field(
        default_factory=ResourceReferencePayload, alias="workloadRef"
    )


class TraitStatusPayload(ManifestBaseModel):
    conditions: list[ConditionPayload] = Field(default_factory=list)


class TraitPayload(ManifestBaseModel):
    api_version: str = Field(alias="apiVersion")
    kind: str
    metadata: ObjectMetaPayload
    spec: TraitSpecPayload
    status: TraitStatusPayload = Field(default_factory=TraitStatusPayload)


class ChildResourceKindPayload(ManifestBaseModel):
    api_version: str = Field(alias="apiVersion")
    kind: str
    selector: dict[str, str] = Field(default_factory=dict)

    @field_validator("selector", mode="before")
    @classmethod
    def _none_selector(cls, value: object) -> object:
        return {} if value is None else value


class DefinitionReferencePayload(ManifestBaseModel):
    name: str


class WorkloadDefinitionSpecPayload(ManifestBaseModel):
    definition_ref: DefinitionReferencePayload | None = Field(default=None, alias="definitionRef")
    child_resource_kinds: list[ChildResourceKindPayload] = Field(
        default_factory=list, alias="childResourceKinds"
    )


class WorkloadDefinitionPayload(ManifestBaseModel):
    api_version: str = Field(alias="apiVersion")
    kind: str
    metadata: ObjectMetaPayload
    spec: WorkloadDefinitionSpecPayload = Field(default_factory=WorkloadDefinitionSpecPayload)
