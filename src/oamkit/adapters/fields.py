"""Field ownership rules shared by the store adapters.

A store keeps, next to every manifest, the set of leaf field paths each field
manager last claimed. Apply merges a submitted object into the live one under
these rules:

* every leaf in the submission is claimed by the applying manager,
* a leaf owned by another manager that would change value is a conflict unless
  the apply is forced, in which case ownership moves to the applier,
* leaves the applier claimed before, dropped from this submission and owned by
  nobody else are removed,
* lists are atomic, except ``metadata.ownerReferences`` which is keyed by uid.

A merge patch (RFC 7386) takes ownership of every leaf it sets.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, TypeAlias, cast
from uuid import uuid4

from oamkit.domain.model import ObjectKey
from oamkit.domain.ports.store import ConflictError, ObjectStoreError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from oamkit.domain.model import Manifest

FieldPath: TypeAlias = tuple[str, ...]
ManagedFields: TypeAlias = dict[str, set[FieldPath]]

OWNER_REFERENCES: FieldPath = ("metadata", "ownerReferences")
_KEYED_PREFIX = "k:"
_SERVER_METADATA = frozenset(
    {"name", "namespace", "uid", "resourceVersion", "creationTimestamp", "generation", "managedFields"}
)
_SERVER_TOP_LEVEL = frozenset({"apiVersion", "kind", "status"})
# assigned once at creation, carried over by every later write
_IDENTITY_METADATA = ("name", "namespace", "uid", "resourceVersion", "creationTimestamp")


def object_key(manifest: Mapping[str, Any]) -> ObjectKey:
    metadata = cast(Mapping[str, Any], manifest.get("metadata") or {})
    name = metadata.get("name")
    if not name:
        raise ObjectStoreError("manifest has no metadata.name")
    return ObjectKey(
        api_version=str(manifest.get("apiVersion", "")),
        kind=str(manifest.get("kind", "")),
        name=str(name),
        namespace=metadata.get("namespace") or None,
    )


def matches_labels(manifest: Mapping[str, Any], selector: Mapping[str, str] | None) -> bool:
    if not selector:
        return True
    labels = cast(Mapping[str, str], (manifest.get("metadata") or {}).get("labels") or {})
    return all(labels.get(name) == value for name, value in selector.items())


def leaf_paths(manifest: Mapping[str, Any]) -> set[FieldPath]:
    """Leaf field paths a manager can own, server-assigned identity excluded."""

    paths: set[FieldPath] = set()
    for key, value in manifest.items():
        if key in _SERVER_TOP_LEVEL:
            continue
        if key == "metadata":
            if not isinstance(value, Mapping):
                continue
            # claims start below metadata, never at it
            for name, item in cast(Mapping[str, Any], value).items():
                if name not in _SERVER_METADATA:
                    paths.update(_walk(("metadata", str(name)), item))
        else:
            paths.update(_walk((key,), value))
    return paths


def _walk(prefix: FieldPath, value: Any) -> Iterator[FieldPath]:
    if prefix == OWNER_REFERENCES and isinstance(value, list):
        for entry in cast(list[Any], value):
            if isinstance(entry, Mapping) and entry.get("uid"):
                yield (*prefix, f"{_KEYED_PREFIX}{entry['uid']}")
        return
    if isinstance(value, Mapping) and value:
        for key, item in cast(Mapping[str, Any], value).items():
            yield from _walk((*prefix, str(key)), item)
        return
    yield prefix


def get_path(manifest: Mapping[str, Any], path: FieldPath) -> tuple[bool, Any]:
    node: Any = manifest
    for segment in path:
        if segment.startswith(_KEYED_PREFIX) and isinstance(node, list):
            node = _keyed_entry(cast(list[Any], node), segment)
            if node is None:
                return False, None
        elif isinstance(node, Mapping) and segment in node:
            node = cast(Mapping[str, Any], node)[segment]
        else:
            return False, None
    return True, node


def set_path(manifest: dict[str, Any], path: FieldPath, value: Any) -> None:
    node: Any = manifest
    for index, segment in enumerate(path[:-1]):
        following = path[index + 1]
        default: Any = [] if following.startswith(_KEYED_PREFIX) else {}
        child = node.get(segment)
        if not isinstance(child, type(default)):
            child = default
            node[segment] = child
        node = child
    last = path[-1]
    if last.startswith(_KEYED_PREFIX) and isinstance(node, list):
        entries = cast(list[Any], node)
        uid = last.removeprefix(_KEYED_PREFIX)
        for position, entry in enumerate(entries):
            if isinstance(entry, Mapping) and entry.get("uid") == uid:
                entries[position] = copy.deepcopy(value)
                return
        entries.append(copy.deepcopy(value))
        return
    node[last] = copy.deepcopy(value)


def delete_path(manifest: dict[str, Any], path: FieldPath) -> None:
    """Remove the leaf at ``path`` and prune parents left empty."""

    parents: list[tuple[Any, str]] = []
    node: Any = manifest
    for segment in path[:-1]:
        parents.append((node, segment))
        if isinstance(node, Mapping) and segment in node:
            node = node[segment]
        else:
            return
    last = path[-1]
    if last.startswith(_KEYED_PREFIX) and isinstance(node, list):
        uid = last.removeprefix(_KEYED_PREFIX)
        node[:] = [entry for entry in node if not (isinstance(entry, Mapping) and entry.get("uid") == uid)]
    elif isinstance(node, dict) and last in node:
        del node[last]
    else:
        return
    for parent, segment in reversed(parents):
        if parent[segment] or parent is manifest:
            break
        del parent[segment]


def _keyed_entry(entries: list[Any], segment: str) -> Any:
    uid = segment.removeprefix(_KEYED_PREFIX)
    for entry in entries:
        if isinstance(entry, Mapping) and entry.get("uid") == uid:
            return entry
    return None


def json_merge_patch(target: Any, patch: Any) -> Any:
    """RFC 7386: objects merge recursively, ``None`` deletes, anything else replaces."""

    if not isinstance(patch, Mapping):
        return copy.deepcopy(patch)
    result: dict[str, Any] = (
        copy.deepcopy(dict(cast(Mapping[str, Any], target))) if isinstance(target, Mapping) else {}
    )
    for key, value in cast(Mapping[str, Any], patch).items():
        if value is None:
            result.pop(key, None)
        else:
            result[key] = json_merge_patch(result.get(key), value)
    return result


def _null_paths(patch: Mapping[str, Any], prefix: FieldPath = ()) -> Iterator[FieldPath]:
    for key, value in patch.items():
        if value is None:
            yield (*prefix, key)
        elif isinstance(value, Mapping):
            yield from _null_paths(cast(Mapping[str, Any], value), (*prefix, key))


def _same_value(current: Any, wanted: Any) -> bool:
    """An empty mapping asserts only that the mapping exists, not that it is empty."""

    if isinstance(wanted, Mapping) and not wanted:
        return isinstance(current, Mapping)
    return current == wanted


def _without_versions(manifest: Mapping[str, Any]) -> Manifest:
    stripped = copy.deepcopy(dict(manifest))
    (stripped.get("metadata") or {}).pop("resourceVersion", None)
    return stripped


def _next_version(version: object) -> str:
    try:
        return str(int(str(version)) + 1)
    except ValueError:
        return "1"


def _clear_stale(managed: ManagedFields, manifest: Mapping[str, Any]) -> ManagedFields:
    """Drop owned paths that no longer exist and managers that own nothing."""

    cleaned: ManagedFields = {}
    for manager, paths in managed.items():
        alive = {path for path in paths if get_path(manifest, path)[0]}
        if alive:
            cleaned[manager] = alive
    return cleaned


@dataclass(slots=True)
class StoredObject:
    """A manifest together with the field ownership the store keeps for it."""

    manifest: Manifest
    managed_fields: ManagedFields = field(default_factory=dict)

    @property
    def key(self) -> ObjectKey:
        return object_key(self.manifest)

    @property
    def uid(self) -> str:
        return str(self.manifest["metadata"]["uid"])

    @property
    def resource_version(self) -> str:
        return str(self.manifest["metadata"]["resourceVersion"])

    @classmethod
    def create(cls, desired: Mapping[str, Any], *, manager: str) -> StoredObject:
        manifest = copy.deepcopy(dict(desired))
        manifest.pop("status", None)
        metadata = manifest.setdefault("metadata", {})
        metadata["uid"] = str(uuid4())
        metadata["resourceVersion"] = "1"
        metadata["creationTimestamp"] = (
            datetime.now(tz=UTC).replace(microsecond=0).isoformat().replace("+00:00", "Z")
        )
        return cls(manifest=manifest, managed_fields={manager: leaf_paths(desired)})

    def apply(self, desired: Mapping[str, Any], *, manager: str, force: bool) -> StoredObject:
        claimed = leaf_paths(desired)
        managed = {name: set(paths) for name, paths in self.managed_fields.items()}
        conflicts: list[str] = []
        for path in sorted(claimed):
            found, current = get_path(self.manifest, path)
            _, wanted = get_path(desired, path)
            if not found or _same_value(current, wanted):
                continue
            for other, paths in managed.items():
                if other == manager or path not in paths:
                    continue
                if not force:
                    conflicts.append(f"{'.'.join(path)} (owned by {other})")
                    continue
                paths.discard(path)
        if conflicts:
            raise ConflictError(f"apply conflicts on {self.key}: {', '.join(conflicts)}")

        result = copy.deepcopy(self.manifest)
        previous = managed.get(manager, set())
        for path in previous - claimed:
            if not any(path in paths for other, paths in managed.items() if other != manager):
                delete_path(result, path)
        for path in sorted(claimed):
            wanted = get_path(desired, path)[1]
            found, current = get_path(result, path)
            if found and _same_value(current, wanted):
                continue
            set_path(result, path, wanted)
        managed[manager] = claimed
        return self._updated(result, managed)

    def merge_patch(self, patch: Mapping[str, Any], *, manager: str) -> StoredObject:
        body = copy.deepcopy(dict(patch))
        body.pop("status", None)
        body.pop("apiVersion", None)
        body.pop("kind", None)
        metadata = body.get("metadata")
        if isinstance(metadata, dict):
            for name in _SERVER_METADATA:
                cast(dict[str, Any], metadata).pop(name, None)
        elif "metadata" in body:
            del body["metadata"]

        result = cast("Manifest", json_merge_patch(self.manifest, body))
        touched = {path for path in leaf_paths(body) if get_path(result, path)[0]}
        managed: ManagedFields = {}
        for name, paths in self.managed_fields.items():
            managed[name] = paths - touched if name != manager else set(paths)
        managed.setdefault(manager, set()).update(touched)
        for path in _null_paths(body):
            for paths in managed.values():
                paths.difference_update({owned for owned in paths if owned[: len(path)] == path})
        return self._updated(result, managed)

    def with_status(self, status: Any) -> StoredObject:
        result = copy.deepcopy(self.manifest)
        if status is None:
            result.pop("status", None)
        else:
            result["status"] = copy.deepcopy(status)
        return self._updated(result, self.managed_fields)

    def check_version(self, resource_version: str | None) -> None:
        if resource_version is not None and resource_version != self.resource_version:
            raise ConflictError(
                f"{self.key} has resourceVersion {self.resource_version}, not {resource_version}"
            )

    def _updated(self, manifest: Manifest, managed: ManagedFields) -> StoredObject:
        live = self.manifest["metadata"]
        metadata = manifest.setdefault("metadata", {})
        for name in _IDENTITY_METADATA:
            if name in live:
                metadata[name] = live[name]
        managed = _clear_stale(managed, manifest)
        if _without_versions(manifest) != _without_versions(self.manifest):
            manifest["metadata"]["resourceVersion"] = _next_version(self.resource_version)
        return StoredObject(manifest=manifest, managed_fields=managed)


def managed_fields_to_json(managed: ManagedFields) -> dict[str, list[list[str]]]:
    return {manager: sorted(list(path) for path in paths) for manager, paths in managed.items()}


def managed_fields_from_json(data: Mapping[str, Iterable[Iterable[str]]] | None) -> ManagedFields:
    if not data:
        return {}
    return {manager: {tuple(path) for path in paths} for manager, paths in data.items()}
