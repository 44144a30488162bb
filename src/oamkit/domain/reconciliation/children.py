"""Discover a workload's children through its definition's child-resource-kind index."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from oamkit.domain.model import WORKLOAD_DEFINITION_GVK, ObjectKey

if TYPE_CHECKING:
    from oamkit.domain.model import TypeRegistry, Unstructured, WorkloadDefinition
    from oamkit.domain.ports.manifests import ManifestTranslator
    from oamkit.domain.ports.store import ObjectStore

log = getLogger(__name__)


def fetch_workload_definition(
    store: ObjectStore,
    registry: TypeRegistry,
    translator: ManifestTranslator,
    workload: Unstructured,
) -> WorkloadDefinition:
    name = registry.definition_name(workload.gvk)
    key = ObjectKey(WORKLOAD_DEFINITION_GVK.api_version, WORKLOAD_DEFINITION_GVK.kind, name)
    return translator.definition_from_manifest(store.get(key))


def fetch_child_resources(
    store: ObjectStore,
    registry: TypeRegistry,
    translator: ManifestTranslator,
    workload: Unstructured,
) -> list[Unstructured]:
    """List every declared child kind and keep objects owned by ``workload``.

    Ownership is decided child to parent: a child belongs to the workload when
    one of its owner references carries the workload's uid. Each child is
    returned once even if it references the workload more than once.
    """

    definition = fetch_workload_definition(store, registry, translator, workload)
    owner_uid = workload.uid
    if owner_uid is None:
        return []

    children: list[Unstructured] = []
    seen: set[str] = set()
    for child_kind in definition.child_resource_kinds:
        manifests = store.list(
            child_kind.api_version,
            child_kind.kind,
            workload.namespace,
            dict(child_kind.selector) or None,
        )
        for manifest in manifests:
            child = registry.wrap(manifest)
            if child.uid is None or child.uid in seen:
                continue
            if child.is_owned_by(owner_uid):
                seen.add(child.uid)
                children.append(child)
    log.debug("Workload %s owns %d child resources", workload.key, len(children))
    return children
