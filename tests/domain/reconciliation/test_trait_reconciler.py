from __future__ import annotations

from typing import Any

import pytest

from oamkit.domain.errors import LocateError, ReferenceMismatchError, ScaleError
from oamkit.domain.model import ManualScalerTrait, ResourceReference, Unstructured
from oamkit.domain.ports.store import ConflictError
from oamkit.domain.reconciliation import TraitReconciler, WorkloadReconciler, scale_patch
from tests.helpers.manifests import (
    definition_manifest,
    deployment_key,
    trait_key,
    trait_manifest,
    workload_key,
    workload_manifest,
)
from tests.helpers.stores import RecordingObjectStore


@pytest.fixture
def reconciled(
    recording_store: RecordingObjectStore, workload_reconciler: WorkloadReconciler
) -> dict[str, Any]:
    """A reconciled workload plus its definition; returns the stored workload."""

    recording_store.inner.apply(definition_manifest(), field_owner="user")
    recording_store.inner.apply(workload_manifest(), field_owner="user")
    assert workload_reconciler.reconcile(workload_key()).succeeded
    return recording_store.inner.get(workload_key())


def _seed_trait(store: RecordingObjectStore, **kwargs: Any) -> dict[str, Any]:
    return store.inner.apply(trait_manifest(**kwargs), field_owner="user")


def _conditions(store: RecordingObjectStore) -> list[dict[str, Any]]:
    return store.inner.get(trait_key()).get("status", {}).get("conditions", [])


def test_scales_deployment_and_adds_owner_reference(
    recording_store: RecordingObjectStore,
    trait_reconciler: TraitReconciler,
    reconciled: dict[str, Any],
) -> None:
    trait = _seed_trait(recording_store, replica_count=5)

    result = trait_reconciler.reconcile(trait_key())

    assert result.succeeded
    deployment = Unstructured(recording_store.inner.get(deployment_key()))
    assert deployment.get_nested("spec", "replicas") == 5
    references = {ref.uid: ref for ref in deployment.owner_references}
    assert references[reconciled["metadata"]["uid"]].controller
    trait_reference = references[trait["metadata"]["uid"]]
    assert not trait_reference.controller
    assert trait_reference.block_owner_deletion
    assert _conditions(recording_store)[0]["status"] == "True"
    patches = recording_store.operations("patch")
    assert [call.field_owner for call in patches] == [trait["metadata"]["uid"]]


def test_services_are_not_scaled(
    recording_store: RecordingObjectStore,
    trait_reconciler: TraitReconciler,
    reconciled: dict[str, Any],
) -> None:
    _seed_trait(recording_store)

    trait_reconciler.reconcile(trait_key())

    assert [call.target for call in recording_store.operations("patch")] == [
        "Deployment default/web-deployment"
    ]


def test_repeated_passes_keep_a_single_trait_reference(
    recording_store: RecordingObjectStore,
    trait_reconciler: TraitReconciler,
    reconciled: dict[str, Any],
) -> None:
    _seed_trait(recording_store)

    trait_reconciler.reconcile(trait_key())
    trait_reconciler.reconcile(trait_key())

    deployment = Unstructured(recording_store.inner.get(deployment_key()))
    assert len(deployment.owner_references) == 2


def test_workload_pass_keeps_trait_replicas(
    recording_store: RecordingObjectStore,
    trait_reconciler: TraitReconciler,
    workload_reconciler: WorkloadReconciler,
    reconciled: dict[str, Any],
) -> None:
    _seed_trait(recording_store, replica_count=3)
    trait_reconciler.reconcile(trait_key())

    assert workload_reconciler.reconcile(workload_key()).succeeded

    deployment = Unstructured(recording_store.inner.get(deployment_key()))
    assert deployment.get_nested("spec", "replicas") == 3
    assert len(deployment.owner_references) == 2


def test_missing_trait_is_success(trait_reconciler: TraitReconciler) -> None:
    result = trait_reconciler.reconcile(trait_key())

    assert result.succeeded
    assert not result.requeue


def test_missing_workload_is_a_locate_error(
    recording_store: RecordingObjectStore, trait_reconciler: TraitReconciler
) -> None:
    _seed_trait(recording_store)

    result = trait_reconciler.reconcile(trait_key())

    assert isinstance(result.error, LocateError)
    assert str(result.error).startswith("cannot find workload")
    assert result.requeue
    assert _conditions(recording_store)[0]["status"] == "False"


def test_workload_uid_mismatch(
    recording_store: RecordingObjectStore,
    trait_reconciler: TraitReconciler,
    reconciled: dict[str, Any],
) -> None:
    _seed_trait(
        recording_store,
        workload_ref={
            "apiVersion": "core.oam.dev/v1alpha2",
            "kind": "ContainerizedWorkload",
            "name": "web",
            "uid": "recreated-long-ago",
        },
    )

    result = trait_reconciler.reconcile(trait_key())

    assert isinstance(result.error, ReferenceMismatchError)
    assert result.requeue
    assert recording_store.operations("patch") == []


def test_missing_definition_cannot_find_resources(
    recording_store: RecordingObjectStore, trait_reconciler: TraitReconciler
) -> None:
    recording_store.inner.apply(workload_manifest(), field_owner="user")
    _seed_trait(recording_store)

    result = trait_reconciler.reconcile(trait_key())

    assert isinstance(result.error, LocateError)
    assert str(result.error).startswith("cannot find resources")


def test_no_owned_deployment_is_a_locate_error(
    recording_store: RecordingObjectStore, trait_reconciler: TraitReconciler
) -> None:
    recording_store.inner.apply(definition_manifest(), field_owner="user")
    recording_store.inner.apply(workload_manifest(), field_owner="user")
    _seed_trait(recording_store)

    result = trait_reconciler.reconcile(trait_key())

    assert isinstance(result.error, LocateError)
    assert str(result.error).startswith("cannot find deployment")


def test_patch_conflict_is_a_scale_error(
    recording_store: RecordingObjectStore,
    trait_reconciler: TraitReconciler,
    reconciled: dict[str, Any],
) -> None:
    _seed_trait(recording_store)
    recording_store.fail("patch", "Deployment", ConflictError("stale resourceVersion"))

    result = trait_reconciler.reconcile(trait_key())

    assert isinstance(result.error, ScaleError)
    assert str(result.error) == "cannot scale the deployment: stale resourceVersion"
    assert trait_reconciler.reconcile(trait_key()).succeeded


def test_scale_patch_carries_replicas_and_merged_references() -> None:
    child = Unstructured(
        {
            "apiVersion": "apps/v1",
            "kind": "Deployment",
            "metadata": {
                "name": "web-deployment",
                "ownerReferences": [
                    {"apiVersion": "v1", "kind": "X", "name": "x", "uid": "t-1", "controller": False}
                ],
            },
        }
    )
    trait = ManualScalerTrait(
        name="web-scaler",
        namespace="default",
        replica_count=2,
        workload_reference=ResourceReference("core.oam.dev/v1alpha2", "ContainerizedWorkload", "web"),
        uid="t-1",
    )

    patch = scale_patch(child, trait, ("spec", "replicas"))

    assert patch["spec"] == {"replicas": 2}
    assert patch["metadata"]["ownerReferences"] == [
        {
            "apiVersion": "core.oam.dev/v1alpha2",
            "kind": "ManualScalerTrait",
            "name": "web-scaler",
            "uid": "t-1",
            "controller": False,
            "blockOwnerDeletion": True,
        }
    ]
