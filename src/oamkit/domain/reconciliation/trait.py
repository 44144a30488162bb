"""Manual scaler reconciler: pin the replica count of a workload's children."""

from __future__ import annotations

import copy
from dataclasses import dataclass, replace
from datetime import timedelta
from logging import getLogger
from typing import TYPE_CHECKING

from oamkit.domain.errors import (
    LocateError,
    ReconcileError,
    ReferenceMismatchError,
    RenderError,
    ScaleError,
    StatusUpdateError,
)
from oamkit.domain.model import (
    DEFAULT_REGISTRY,
    TraitStatus,
    merge_owner_reference,
    reconcile_error,
    reconcile_success,
    set_condition,
)
from oamkit.domain.model.objects import owner_reference_to_manifest
from oamkit.domain.ports.manifests import ManifestError
from oamkit.domain.ports.store import NotFoundError, ObjectStoreError

from .children import fetch_child_resources
from .result import DEFAULT_REQUEUE_AFTER, ReconcileResult

if TYPE_CHECKING:
    from oamkit.domain.model import (
        ManualScalerTrait,
        Manifest,
        ObjectKey,
        TypeRegistry,
        Unstructured,
    )
    from oamkit.domain.ports.manifests import ManifestTranslator
    from oamkit.domain.ports.store import ObjectStore

log = getLogger(__name__)


def scale_patch(child: Unstructured, trait: ManualScalerTrait, replicas_path: tuple[str, ...]) -> Manifest:
    """Merge patch setting the replica field and the trait's owner reference.

    Merge patches replace lists, so the full owner reference list is sent with
    the trait's reference merged in by uid.
    """

    references = merge_owner_reference(child.owner_references, trait.owner_reference())
    patch: Manifest = {
        "metadata": {"ownerReferences": [owner_reference_to_manifest(ref) for ref in references]}
    }
    node = patch
    for part in replicas_path[:-1]:
        node = node.setdefault(part, {})
    node[replicas_path[-1]] = trait.replica_count
    return patch


@dataclass(slots=True)
class TraitReconciler:
    """Run one pass for one manual scaler trait.

    Children are found through the workload's definition, never through the
    workload's own status, so the trait converges even when the workload
    reconciler has not recorded anything yet.
    """

    store: ObjectStore
    translator: ManifestTranslator
    registry: TypeRegistry = DEFAULT_REGISTRY
    requeue_after: timedelta = DEFAULT_REQUEUE_AFTER

    def reconcile(self, key: ObjectKey) -> ReconcileResult:
        log.info("Reconciling trait %s", key)
        try:
            manifest = self.store.get(key)
        except NotFoundError:
            log.info("Trait %s is deleted, nothing to do", key)
            return ReconcileResult()
        except ObjectStoreError as exc:
            log.error("Cannot get trait %s: %s", key, exc)
            return self._retry(LocateError("cannot get trait", cause=exc))

        try:
            trait = self.translator.trait_from_manifest(manifest)
        except ManifestError as exc:
            status = self.translator.trait_status_from_manifest(manifest)
            return self._fail(manifest, status, RenderError("cannot decode trait", cause=exc))

        try:
            scaled = self._scale(trait)
        except ReconcileError as exc:
            return self._fail(manifest, trait.status, exc)

        status = TraitStatus(conditions=set_condition(trait.status.conditions, reconcile_success()))
        try:
            self._write_status(manifest, status)
        except ObjectStoreError as exc:
            log.error("Cannot update status of trait %s: %s", key, exc)
            return self._retry(StatusUpdateError("cannot update trait status", cause=exc))

        log.info("Trait %s scaled %d resources to %d replicas", key, scaled, trait.replica_count)
        return ReconcileResult()

    def _scale(self, trait: ManualScalerTrait) -> int:
        workload = self._fetch_workload(trait)

        try:
            children = fetch_child_resources(self.store, self.registry, self.translator, workload)
        except (ObjectStoreError, ManifestError) as exc:
            raise LocateError("cannot find resources", cause=exc) from exc

        field_owner = trait.uid or trait.name
        scaled = 0
        for child in children:
            info = self.registry.lookup(child.gvk)
            if info.replicas_path is None:
                continue
            patch = scale_patch(child, trait, info.replicas_path)
            try:
                self.store.patch(
                    child.key,
                    patch,
                    field_owner=field_owner,
                    resource_version=child.resource_version,
                )
            except ObjectStoreError as exc:
                raise ScaleError("cannot scale the deployment", cause=exc) from exc
            log.info("Scaled %s to %d replicas", child.key, trait.replica_count)
            scaled += 1

        if scaled == 0:
            raise LocateError(f"cannot find deployment owned by workload {workload.key}")
        return scaled

    def _fetch_workload(self, trait: ManualScalerTrait) -> Unstructured:
        key = trait.workload_key
        try:
            workload = self.registry.wrap(self.store.get(key))
        except ObjectStoreError as exc:
            raise LocateError("cannot find workload", cause=exc) from exc

        expected = trait.workload_reference.uid
        if expected and workload.uid != expected:
            raise ReferenceMismatchError(
                f"workload reference uid {expected} does not match {key} uid {workload.uid}"
            )
        return workload

    def _fail(self, manifest: Manifest, status: TraitStatus, error: ReconcileError) -> ReconcileResult:
        log.error("Trait reconcile failed at stage %s: %s", error.stage, error)
        failed = replace(status, conditions=set_condition(status.conditions, reconcile_error(error)))
        try:
            self._write_status(manifest, failed)
        except ObjectStoreError as exc:
            log.error("Cannot publish error condition: %s", exc)
        return self._retry(error)

    def _retry(self, error: ReconcileError) -> ReconcileResult:
        return ReconcileResult(requeue_after=self.requeue_after, error=error)

    def _write_status(self, manifest: Manifest, status: TraitStatus) -> None:
        body = copy.deepcopy(manifest)
        body["status"] = self.translator.trait_status_to_manifest(status)
        self.store.update_status(body)
