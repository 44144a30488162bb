from __future__ import annotations

from oamkit.adapters.memory import InMemoryObjectStore
from oamkit.domain.model import Container, ContainerizedWorkload, ContainerPort, DeploymentObject
from oamkit.domain.reconciliation import Applier, render_workload
from tests.helpers.manifests import deployment_key


def _rendered_deployment(image: str = "app:v1") -> DeploymentObject:
    workload = ContainerizedWorkload(
        name="web",
        namespace="default",
        uid="w-1",
        containers=(Container("app", image, ports=(ContainerPort(80),)),),
    )
    return render_workload(workload).deployment


def test_apply_sets_namespace_and_returns_live_object(store: InMemoryObjectStore) -> None:
    applied = Applier(store).apply(_rendered_deployment(), namespace="team-a", field_owner="w-1")

    assert applied.namespace == "team-a"
    assert applied.uid is not None
    assert store.get(deployment_key(namespace="team-a"))["metadata"]["uid"] == applied.uid


def test_apply_is_idempotent(store: InMemoryObjectStore) -> None:
    applier = Applier(store)

    first = applier.apply(_rendered_deployment(), namespace="default", field_owner="w-1")
    second = applier.apply(_rendered_deployment(), namespace="default", field_owner="w-1")

    assert second.uid == first.uid
    assert second.resource_version == first.resource_version


def test_apply_keeps_fields_owned_by_others(store: InMemoryObjectStore) -> None:
    applier = Applier(store)
    applied = applier.apply(_rendered_deployment(), namespace="default", field_owner="w-1")
    store.patch(
        deployment_key(),
        {"spec": {"replicas": 4}},
        field_owner="scaler",
        resource_version=applied.resource_version,
    )

    updated = applier.apply(_rendered_deployment("app:v2"), namespace="default", field_owner="w-1")

    assert updated.get_nested("spec", "replicas") == 4
    assert updated.get_nested("spec", "template", "spec", "containers") == [
        {"name": "app", "image": "app:v2", "ports": [{"containerPort": 80, "protocol": "TCP"}]}
    ]
    assert updated.resource_version != applied.resource_version
