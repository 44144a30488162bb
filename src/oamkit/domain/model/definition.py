"""Workload definitions: the child-resource-kind index a trait scales through."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from oamkit.domain.model.meta import GroupVersionKind
from oamkit.domain.model.workload import OAM_API_VERSION

if TYPE_CHECKING:
    from collections.abc import Mapping

WORKLOAD_DEFINITION_KIND = "WorkloadDefinition"


@dataclass(frozen=True, slots=True)
class ChildResourceKind:
    api_version: str
    kind: str
    selector: Mapping[str, str] = field(default_factory=dict[str, str])

    @property
    def gvk(self) -> GroupVersionKind:
        return GroupVersionKind(self.api_version, self.kind)


@dataclass(frozen=True, slots=True)
class WorkloadDefinition:
    """Cluster-scoped; named ``<plural>.<group>`` after the workload type it describes."""

    API_VERSION: ClassVar[str] = OAM_API_VERSION
    KIND: ClassVar[str] = WORKLOAD_DEFINITION_KIND

    name: str
    child_resource_kinds: tuple[ChildResourceKind, ...] = ()
    reference_name: str | None = None
