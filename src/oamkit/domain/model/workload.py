"""Containerized workload: the runnable unit this controller renders."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from oamkit.domain.model.meta import ObjectKey

if TYPE_CHECKING:
    from collections.abc import Mapping

    from oamkit.domain.model.enums import CPUArchitecture, OperatingSystem, PortProtocol
    from oamkit.domain.model.meta import Condition, ResourceReference

OAM_API_VERSION = "core.oam.dev/v1alpha2"
WORKLOAD_KIND = "ContainerizedWorkload"


@dataclass(frozen=True, slots=True)
class ContainerPort:
    port: int
    name: str | None = None
    protocol: PortProtocol | None = None


@dataclass(frozen=True, slots=True)
class Container:
    """Container descriptor. ``resources`` and ``env`` are passed through untouched."""

    name: str
    image: str
    ports: tuple[ContainerPort, ...] = ()
    command: tuple[str, ...] = ()
    args: tuple[str, ...] = ()
    env: tuple[Mapping[str, object], ...] = ()
    resources: Mapping[str, object] | None = None


@dataclass(frozen=True, slots=True)
class WorkloadStatus:
    resources: tuple[ResourceReference, ...] = ()
    conditions: tuple[Condition, ...] = ()


@dataclass(frozen=True, slots=True)
class ContainerizedWorkload:
    API_VERSION: ClassVar[str] = OAM_API_VERSION
    KIND: ClassVar[str] = WORKLOAD_KIND

    name: str
    namespace: str
    uid: str
    containers: tuple[Container, ...] = ()
    os_type: OperatingSystem | None = None
    arch: CPUArchitecture | None = None
    api_version: str = OAM_API_VERSION
    kind: str = WORKLOAD_KIND
    resource_version: str | None = None
    labels: Mapping[str, str] = field(default_factory=dict[str, str])
    status: WorkloadStatus = field(default_factory=WorkloadStatus)

    @property
    def key(self) -> ObjectKey:
        return ObjectKey(self.api_version, self.kind, self.name, self.namespace)
