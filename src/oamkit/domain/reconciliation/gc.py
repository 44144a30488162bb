"""Garbage collection of resources a workload no longer renders.

The policy is a diff by uid per kind: for every previously recorded reference
of a tracked kind whose uid is not the uid just applied for that kind, the live
object is deleted. At most one live object per tracked kind is kept per
workload.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from oamkit.domain.errors import GarbageCollectionError
from oamkit.domain.model import DEFAULT_REGISTRY, DEPLOYMENT_GVK, SERVICE_GVK
from oamkit.domain.ports.store import NotFoundError, ObjectStoreError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from oamkit.domain.model import ResourceReference, TypeRegistry
    from oamkit.domain.ports.store import ObjectStore

log = getLogger(__name__)

TRACKED_KINDS = frozenset({DEPLOYMENT_GVK.kind, SERVICE_GVK.kind})


@dataclass(slots=True)
class GarbageCollector:
    store: ObjectStore
    registry: TypeRegistry = DEFAULT_REGISTRY
    tracked_kinds: frozenset[str] = field(default=TRACKED_KINDS)

    def collect(
        self,
        namespace: str,
        previous: Iterable[ResourceReference],
        kept: Mapping[str, str | None],
    ) -> list[ResourceReference]:
        """Delete orphans among ``previous`` and return the references removed.

        ``kept`` maps each kind to the uid applied in this pass; a kind that is
        missing or maps to ``None`` keeps nothing. Objects that are already
        gone are skipped, any other failure aborts the collection.
        """

        deleted: list[ResourceReference] = []
        for reference in previous:
            if reference.kind not in self.tracked_kinds:
                continue
            kept_uid = kept.get(reference.kind)
            if reference.uid is not None and reference.uid == kept_uid:
                continue

            key = reference.key(namespace)
            log.info("Found an orphaned %s (uid=%s, kept uid=%s)", key, reference.uid, kept_uid)
            try:
                live = self.registry.wrap(self.store.get(key))
            except NotFoundError:
                log.info("Orphaned %s is already gone", key)
                continue
            except ObjectStoreError as exc:
                raise GarbageCollectionError(
                    "cannot clean up stale resources", cause=exc
                ) from exc

            if live.uid is not None and live.uid == kept_uid:
                continue
            if reference.uid is not None and live.uid != reference.uid:
                log.info("Name of orphaned %s now belongs to uid %s, leaving it", key, live.uid)
                continue

            try:
                self.store.delete(key)
            except NotFoundError:
                log.info("Orphaned %s disappeared before deletion", key)
                continue
            except ObjectStoreError as exc:
                raise GarbageCollectionError(
                    "cannot clean up stale resources", cause=exc
                ) from exc
            log.info("Removed orphaned %s (uid=%s)", key, reference.uid)
            deleted.append(reference)
        return deleted
