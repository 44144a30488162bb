"""In-process object store with field ownership tracking."""

from __future__ import annotations

import copy
import threading
from logging import getLogger
from typing import TYPE_CHECKING

from oamkit.domain.ports.store import NotFoundError

from .fields import StoredObject, matches_labels, object_key

if TYPE_CHECKING:
    from collections.abc import Mapping

    from oamkit.domain.model import Manifest, ObjectKey

log = getLogger(__name__)


class InMemoryObjectStore:
    """``ObjectStore`` keeping every object in a dict guarded by a lock."""

    def __init__(self, objects: list[Manifest] | None = None, *, field_owner: str = "oamkit") -> None:
        self._lock = threading.Lock()
        self._objects: dict[ObjectKey, StoredObject] = {}
        for manifest in objects or []:
            self.apply(manifest, field_owner=field_owner, force=True)

    def __len__(self) -> int:
        with self._lock:
            return len(self._objects)

    def get(self, key: ObjectKey) -> Manifest:
        with self._lock:
            return _copy(self._require(key).manifest)

    def list(
        self,
        api_version: str,
        kind: str,
        namespace: str | None = None,
        label_selector: Mapping[str, str] | None = None,
    ) -> list[Manifest]:
        with self._lock:
            found = [
                stored.manifest
                for key, stored in self._objects.items()
                if key.api_version == api_version
                and key.kind == kind
                and (namespace is None or key.namespace == namespace)
                and matches_labels(stored.manifest, label_selector)
            ]
        return [_copy(manifest) for manifest in sorted(found, key=_sort_key)]

    def apply(self, manifest: Manifest, *, field_owner: str, force: bool = False) -> Manifest:
        key = object_key(manifest)
        with self._lock:
            current = self._objects.get(key)
            if current is None:
                stored = StoredObject.create(manifest, manager=field_owner)
                log.debug("Created %s (uid=%s)", key, stored.uid)
            else:
                stored = current.apply(manifest, manager=field_owner, force=force)
            self._objects[key] = stored
            return _copy(stored.manifest)

    def patch(
        self,
        key: ObjectKey,
        patch: Mapping[str, object],
        *,
        field_owner: str,
        resource_version: str | None = None,
    ) -> Manifest:
        with self._lock:
            current = self._require(key)
            current.check_version(resource_version)
            stored = current.merge_patch(patch, manager=field_owner)
            self._objects[key] = stored
            return _copy(stored.manifest)

    def delete(self, key: ObjectKey) -> None:
        with self._lock:
            self._require(key)
            del self._objects[key]
        log.debug("Deleted %s", key)

    def update_status(self, manifest: Manifest) -> Manifest:
        key = object_key(manifest)
        with self._lock:
            current = self._require(key)
            current.check_version(manifest.get("metadata", {}).get("resourceVersion"))
            stored = current.with_status(manifest.get("status"))
            self._objects[key] = stored
            return _copy(stored.manifest)

    def managed_fields(self, key: ObjectKey) -> dict[str, set[tuple[str, ...]]]:
        """Field ownership of ``key``, for inspection."""

        with self._lock:
            return {manager: set(paths) for manager, paths in self._require(key).managed_fields.items()}

    def _require(self, key: ObjectKey) -> StoredObject:
        stored = self._objects.get(key)
        if stored is None:
            raise NotFoundError(f"{key} not found")
        return stored


def _copy(manifest: Manifest) -> Manifest:
    return copy.deepcopy(manifest)


def _sort_key(manifest: Manifest) -> tuple[str, str]:
    metadata = manifest.get("metadata", {})
    return (metadata.get("namespace") or "", metadata.get("name", ""))
