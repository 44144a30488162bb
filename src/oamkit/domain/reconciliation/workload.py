"""Workload reconciler: render, apply, collect orphans, record ownership."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from datetime import timedelta
from logging import getLogger
from typing import TYPE_CHECKING

from oamkit.domain.errors import (
    ApplyError,
    LocateError,
    ReconcileError,
    RenderError,
    StatusUpdateError,
)
from oamkit.domain.model import (
    DEFAULT_REGISTRY,
    OwnershipIndex,
    ResourceReference,
    WorkloadStatus,
    reconcile_error,
    reconcile_success,
    set_condition,
    uids_by_kind,
)
from oamkit.domain.ports.manifests import ManifestError
from oamkit.domain.ports.store import NotFoundError, ObjectStoreError

from .apply import Applier
from .gc import GarbageCollector
from .render import render_workload
from .result import DEFAULT_REQUEUE_AFTER, ReconcileResult

if TYPE_CHECKING:
    from oamkit.domain.model import ContainerizedWorkload, Manifest, ObjectKey, TypeRegistry, Unstructured
    from oamkit.domain.ports.manifests import ManifestTranslator
    from oamkit.domain.ports.store import ObjectStore

log = getLogger(__name__)


def resource_reference(obj: Unstructured) -> ResourceReference:
    gvk = obj.gvk
    return ResourceReference(api_version=gvk.api_version, kind=gvk.kind, name=obj.name, uid=obj.uid)


@dataclass(slots=True)
class WorkloadReconciler:
    """Run one pass for one workload.

    ``fetch -> render -> apply deployment -> apply service -> collect orphans ->
    update the ownership index -> replace status.resources -> Ready``. Orphans
    are looked for among the recorded status resources and the index entry, so
    an apply whose status write was lost is still collected later.

    Any failing stage publishes an Error condition instead and asks for a
    requeue after ``requeue_after``. Every step is idempotent, so a pass
    interrupted anywhere can simply be run again.
    """

    store: ObjectStore
    translator: ManifestTranslator
    registry: TypeRegistry = DEFAULT_REGISTRY
    requeue_after: timedelta = DEFAULT_REQUEUE_AFTER
    index: OwnershipIndex = field(default_factory=OwnershipIndex)
    applier: Applier = field(init=False)
    collector: GarbageCollector = field(init=False)

    def __post_init__(self) -> None:
        self.applier = Applier(self.store, self.registry)
        self.collector = GarbageCollector(self.store, self.registry)

    def reconcile(self, key: ObjectKey) -> ReconcileResult:
        log.info("Reconciling workload %s", key)
        try:
            manifest = self.store.get(key)
        except NotFoundError:
            log.info("Workload %s is deleted, nothing to do", key)
            self.index.forget(key)
            return ReconcileResult()
        except ObjectStoreError as exc:
            log.error("Cannot get workload %s: %s", key, exc)
            return self._retry(LocateError("cannot get workload", cause=exc))

        try:
            workload = self.translator.workload_from_manifest(manifest)
        except ManifestError as exc:
            status = self.translator.workload_status_from_manifest(manifest)
            return self._fail(manifest, status, RenderError("cannot render workload", cause=exc))

        try:
            references = self._sync(key, workload)
        except ReconcileError as exc:
            return self._fail(manifest, workload.status, exc)
        self.index.replace(key, references)

        status = WorkloadStatus(
            resources=references,
            conditions=set_condition(workload.status.conditions, reconcile_success()),
        )
        try:
            self._write_status(manifest, status)
        except ObjectStoreError as exc:
            log.error("Cannot update status of workload %s: %s", key, exc)
            return self._retry(StatusUpdateError("cannot update workload status", cause=exc))

        log.info("Workload %s reconciled, owns %d resources", key, len(references))
        return ReconcileResult()

    def _sync(self, key: ObjectKey, workload: ContainerizedWorkload) -> tuple[ResourceReference, ...]:
        try:
            rendered = render_workload(workload)
        except RenderError as exc:
            raise RenderError("cannot render workload", cause=exc) from exc

        # the workload uid is stable for its whole life, names are not
        field_owner = workload.uid
        try:
            deployment = self.applier.apply(
                rendered.deployment, namespace=workload.namespace, field_owner=field_owner
            )
        except ObjectStoreError as exc:
            raise ApplyError("cannot apply the deployment", cause=exc) from exc

        service: Unstructured | None = None
        if rendered.service is not None:
            try:
                service = self.applier.apply(
                    rendered.service, namespace=workload.namespace, field_owner=field_owner
                )
            except ObjectStoreError as exc:
                raise ApplyError("cannot apply the service", cause=exc) from exc

        applied = (deployment,) if service is None else (deployment, service)
        references = tuple(resource_reference(obj) for obj in applied)
        previous = self.index.previous(key, workload.status.resources)
        self.collector.collect(workload.namespace, previous, uids_by_kind(references))
        return references

    def _fail(self, manifest: Manifest, status: WorkloadStatus, error: ReconcileError) -> ReconcileResult:
        log.error("Workload reconcile failed at stage %s: %s", error.stage, error)
        failed = replace(status, conditions=set_condition(status.conditions, reconcile_error(error)))
        try:
            self._write_status(manifest, failed)
        except ObjectStoreError as exc:
            log.error("Cannot publish error condition: %s", exc)
        return self._retry(error)

    def _retry(self, error: ReconcileError) -> ReconcileResult:
        return ReconcileResult(requeue_after=self.requeue_after, error=error)

    def _write_status(self, manifest: Manifest, status: WorkloadStatus) -> None:
        body = copy.deepcopy(manifest)
        body["status"] = self.translator.workload_status_to_manifest(status)
        self.store.update_status(body)
