"""Narrow views over unstructured manifests.

Every stored object is a plain JSON-shaped dict. The adapters here expose only
what the reconcilers need (identity, owner references, nested field access) so
that arbitrary child kinds can be inspected without a typed schema for each.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any, Protocol, TypeAlias, cast, runtime_checkable

from oamkit.domain.model.meta import GroupVersionKind, ObjectKey, OwnerReference

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

Manifest: TypeAlias = dict[str, Any]


def owner_reference_from_manifest(data: Mapping[str, Any]) -> OwnerReference:
    return OwnerReference(
        api_version=str(data.get("apiVersion", "")),
        kind=str(data.get("kind", "")),
        name=str(data.get("name", "")),
        uid=str(data.get("uid", "")),
        controller=bool(data.get("controller", False)),
        block_owner_deletion=bool(data.get("blockOwnerDeletion", False)),
    )


def owner_reference_to_manifest(reference: OwnerReference) -> Manifest:
    return {
        "apiVersion": reference.api_version,
        "kind": reference.kind,
        "name": reference.name,
        "uid": reference.uid,
        "controller": reference.controller,
        "blockOwnerDeletion": reference.block_owner_deletion,
    }


@runtime_checkable
class ManagedObject(Protocol):
    """Capabilities the reconcilers rely on for any stored object."""

    @property
    def gvk(self) -> GroupVersionKind: ...

    @property
    def uid(self) -> str | None: ...

    @property
    def owner_references(self) -> tuple[OwnerReference, ...]: ...

    def get_nested(self, *path: str) -> object | None: ...


class Unstructured:
    """Generic adapter for any declared child kind."""

    def __init__(self, manifest: Mapping[str, Any]) -> None:
        self._manifest: Manifest = copy.deepcopy(dict(manifest))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.key}, uid={self.uid})"

    @property
    def manifest(self) -> Manifest:
        """Deep copy of the underlying manifest."""

        return copy.deepcopy(self._manifest)

    @property
    def gvk(self) -> GroupVersionKind:
        return GroupVersionKind(
            str(self._manifest.get("apiVersion", "")), str(self._manifest.get("kind", ""))
        )

    @property
    def metadata(self) -> Manifest:
        metadata = self._manifest.setdefault("metadata", {})
        return cast("Manifest", metadata)

    @property
    def name(self) -> str:
        return str(self.metadata.get("name", ""))

    @property
    def namespace(self) -> str | None:
        namespace = self.metadata.get("namespace")
        return str(namespace) if namespace else None

    @namespace.setter
    def namespace(self, value: str | None) -> None:
        if value:
            self.metadata["namespace"] = value
        else:
            self.metadata.pop("namespace", None)

    @property
    def uid(self) -> str | None:
        uid = self.metadata.get("uid")
        return str(uid) if uid else None

    @property
    def resource_version(self) -> str | None:
        version = self.metadata.get("resourceVersion")
        return str(version) if version else None

    @property
    def labels(self) -> dict[str, str]:
        labels = cast("Mapping[str, object]", self.metadata.get("labels") or {})
        return {str(key): str(value) for key, value in labels.items()}

    @property
    def key(self) -> ObjectKey:
        gvk = self.gvk
        return ObjectKey(gvk.api_version, gvk.kind, self.name, self.namespace)

    @property
    def owner_references(self) -> tuple[OwnerReference, ...]:
        raw = cast("list[Mapping[str, Any]]", self.metadata.get("ownerReferences") or [])
        return tuple(owner_reference_from_manifest(item) for item in raw)

    def set_owner_references(self, references: Iterable[OwnerReference]) -> None:
        self.metadata["ownerReferences"] = [
            owner_reference_to_manifest(reference) for reference in references
        ]

    def is_owned_by(self, uid: str) -> bool:
        return any(reference.uid == uid for reference in self.owner_references)

    def controller_reference(self) -> OwnerReference | None:
        for reference in self.owner_references:
            if reference.controller:
                return reference
        return None

    def get_nested(self, *path: str) -> object | None:
        current: object = self._manifest
        for segment in path:
            if not isinstance(current, dict):
                return None
            current = cast("Mapping[str, object]", current).get(segment)
            if current is None:
                return None
        return copy.deepcopy(current)

    def set_nested(self, value: object, *path: str) -> None:
        if not path:
            raise ValueError("A field path needs at least one segment")
        current = self._manifest
        for segment in path[:-1]:
            child = current.get(segment)
            if not isinstance(child, dict):
                child = {}
                current[segment] = child
            current = cast("Manifest", child)
        current[path[-1]] = copy.deepcopy(value)


class DeploymentObject(Unstructured):
    @property
    def replicas(self) -> int | None:
        replicas = self.get_nested("spec", "replicas")
        return int(cast("int", replicas)) if replicas is not None else None

    @property
    def selector(self) -> dict[str, str]:
        labels = cast("Mapping[str, object]", self.get_nested("spec", "selector", "matchLabels") or {})
        return {str(key): str(value) for key, value in labels.items()}

    @property
    def containers(self) -> list[Manifest]:
        containers = self.get_nested("spec", "template", "spec", "containers") or []
        return cast("list[Manifest]", containers)


class ServiceObject(Unstructured):
    @property
    def selector(self) -> dict[str, str]:
        labels = cast("Mapping[str, object]", self.get_nested("spec", "selector") or {})
        return {str(key): str(value) for key, value in labels.items()}

    @property
    def ports(self) -> list[Manifest]:
        return cast("list[Manifest]", self.get_nested("spec", "ports") or [])
