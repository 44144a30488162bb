"""Manual scaler trait: pins the replica count of a workload's children."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from oamkit.domain.model.meta import ObjectKey, OwnerReference, ResourceReference
from oamkit.domain.model.workload import OAM_API_VERSION

if TYPE_CHECKING:
    from oamkit.domain.model.meta import Condition

TRAIT_KIND = "ManualScalerTrait"


@dataclass(frozen=True, slots=True)
class TraitStatus:
    conditions: tuple[Condition, ...] = ()


@dataclass(frozen=True, slots=True)
class ManualScalerTrait:
    API_VERSION: ClassVar[str] = OAM_API_VERSION
    KIND: ClassVar[str] = TRAIT_KIND

    name: str
    namespace: str
    replica_count: int
    workload_reference: ResourceReference
    uid: str = ""
    api_version: str = OAM_API_VERSION
    kind: str = TRAIT_KIND
    resource_version: str | None = None
    status: TraitStatus = field(default_factory=TraitStatus)

    @property
    def key(self) -> ObjectKey:
        return ObjectKey(self.api_version, self.kind, self.name, self.namespace)

    @property
    def workload_key(self) -> ObjectKey:
        return self.workload_reference.key(self.namespace)

    def owner_reference(self) -> OwnerReference:
        """Non-controller reference: the workload keeps lifecycle, the trait owns scale."""

        return OwnerReference(
            api_version=self.api_version,
            kind=self.kind,
            name=self.name,
            uid=self.uid,
            controller=False,
            block_owner_deletion=True,
        )
