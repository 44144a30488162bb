"""Field-scoped apply of rendered resources.

Only the fields present in a rendered object are claimed by the field owner;
fields written by other actors (a trait's replica count, defaults filled in by
the store) are left alone. Declared fields are always applied with force.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from oamkit.domain.model import DEFAULT_REGISTRY
from oamkit.domain.ports.store import ObjectStoreError

if TYPE_CHECKING:
    from oamkit.domain.model import TypeRegistry, Unstructured
    from oamkit.domain.ports.store import ObjectStore

log = getLogger(__name__)


@dataclass(slots=True)
class Applier:
    store: ObjectStore
    registry: TypeRegistry = DEFAULT_REGISTRY
    force: bool = True

    def apply(self, resource: Unstructured, *, namespace: str, field_owner: str) -> Unstructured:
        """Apply ``resource`` into ``namespace`` and return the live object."""

        desired = self.registry.wrap(resource.manifest)
        if self.registry.lookup(desired.gvk).namespaced:
            desired.namespace = namespace

        applied = self.registry.wrap(
            self.store.apply(desired.manifest, field_owner=field_owner, force=self.force)
        )
        if applied.uid is None:
            raise ObjectStoreError(f"store returned {applied.key} without a uid")
        log.info(
            "Applied %s (uid=%s, resourceVersion=%s)",
            applied.key,
            applied.uid,
            applied.resource_version,
        )
        return applied
