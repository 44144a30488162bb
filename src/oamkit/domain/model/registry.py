"""Statically constructed type registry.

Maps ``(apiVersion, kind)`` to what the controller needs to know about a type:
its REST plural, whether it is namespaced, which object adapter wraps it and
where its replica field lives (if it can be scaled). Registries are immutable
and passed explicitly to the components that need them.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING

from oamkit.domain.model.definition import WORKLOAD_DEFINITION_KIND
from oamkit.domain.model.meta import GroupVersionKind
from oamkit.domain.model.objects import DeploymentObject, ServiceObject, Unstructured
from oamkit.domain.model.trait import TRAIT_KIND
from oamkit.domain.model.workload import OAM_API_VERSION, WORKLOAD_KIND

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping

DEPLOYMENT_GVK = GroupVersionKind("apps/v1", "Deployment")
SERVICE_GVK = GroupVersionKind("v1", "Service")
WORKLOAD_GVK = GroupVersionKind(OAM_API_VERSION, WORKLOAD_KIND)
TRAIT_GVK = GroupVersionKind(OAM_API_VERSION, TRAIT_KIND)
WORKLOAD_DEFINITION_GVK = GroupVersionKind(OAM_API_VERSION, WORKLOAD_DEFINITION_KIND)


def guess_plural(kind: str) -> str:
    lowered = kind.lower()
    if lowered.endswith(("s", "x", "ch", "sh")):
        return lowered + "es"
    if lowered.endswith("y") and lowered[-2:-1] not in {"a", "e", "i", "o", "u"}:
        return lowered[:-1] + "ies"
    return lowered + "s"


@dataclass(frozen=True, slots=True)
class TypeInfo:
    gvk: GroupVersionKind
    plural: str
    namespaced: bool = True
    adapter: type[Unstructured] = Unstructured
    replicas_path: tuple[str, ...] | None = None

    @property
    def scalable(self) -> bool:
        return self.replicas_path is not None


class UnknownKindError(LookupError):
    """Raised when a kind name cannot be resolved to a single registered type."""


class TypeRegistry:
    def __init__(self, types: Iterable[TypeInfo]) -> None:
        self._types: Mapping[GroupVersionKind, TypeInfo] = MappingProxyType(
            {info.gvk: info for info in types}
        )

    def __contains__(self, gvk: object) -> bool:
        return gvk in self._types

    def __iter__(self) -> Iterator[TypeInfo]:
        return iter(self._types.values())

    def lookup(self, gvk: GroupVersionKind) -> TypeInfo:
        """Return the registered type, or a generic namespaced entry for unknown kinds."""

        info = self._types.get(gvk)
        if info is not None:
            return info
        return TypeInfo(gvk=gvk, plural=guess_plural(gvk.kind))

    def by_name(self, name: str) -> TypeInfo:
        """Resolve a kind or plural name (case-insensitive), e.g. ``deployment``."""

        lowered = name.lower()
        matches = [
            info
            for info in self._types.values()
            if lowered in {info.gvk.kind.lower(), info.plural}
        ]
        if not matches:
            raise UnknownKindError(f"unknown kind {name!r}")
        if len(matches) > 1:
            options = ", ".join(str(info.gvk) for info in matches)
            raise UnknownKindError(f"kind {name!r} is ambiguous: {options}")
        return matches[0]

    def wrap(self, manifest: Mapping[str, object]) -> Unstructured:
        gvk = GroupVersionKind(str(manifest.get("apiVersion", "")), str(manifest.get("kind", "")))
        return self.lookup(gvk).adapter(manifest)

    def definition_name(self, gvk: GroupVersionKind) -> str:
        """Name of the WorkloadDefinition describing ``gvk``: ``<plural>.<group>``."""

        plural = self.lookup(gvk).plural
        return f"{plural}.{gvk.group}" if gvk.group else plural


DEFAULT_REGISTRY = TypeRegistry(
    (
        TypeInfo(
            gvk=DEPLOYMENT_GVK,
            plural="deployments",
            adapter=DeploymentObject,
            replicas_path=("spec", "replicas"),
        ),
        TypeInfo(gvk=SERVICE_GVK, plural="services", adapter=ServiceObject),
        TypeInfo(gvk=WORKLOAD_GVK, plural="containerizedworkloads"),
        TypeInfo(gvk=TRAIT_GVK, plural="manualscalertraits"),
        TypeInfo(gvk=WORKLOAD_DEFINITION_GVK, plural="workloaddefinitions", namespaced=False),
    )
)
