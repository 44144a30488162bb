from __future__ import annotations

from typing import Any

import pytest

from oamkit.adapters.sqlalchemy import SqlAlchemyObjectStore
from oamkit.domain.model import ObjectKey
from oamkit.domain.ports.store import ConflictError, NotFoundError, ObjectStore
from tests.helpers.manifests import workload_key, workload_manifest

KEY = ObjectKey("apps/v1", "Deployment", "web-deployment", "default")


def _deployment(name: str = "web-deployment", *, namespace: str = "default", **labels: str) -> dict[str, Any]:
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": name, "namespace": namespace, "labels": dict(labels)},
        "spec": {"template": {"spec": {"containers": [{"name": "app", "image": "app:v1"}]}}},
    }


@pytest.fixture(params=["memory", "sqlalchemy"])
def object_store(request: pytest.FixtureRequest) -> ObjectStore:
    fixture = "store" if request.param == "memory" else "sqlalchemy_store"
    return request.getfixturevalue(fixture)


def test_store_implements_port(object_store: ObjectStore) -> None:
    assert isinstance(object_store, ObjectStore)


def test_apply_creates_then_updates(object_store: ObjectStore) -> None:
    created = object_store.apply(_deployment(), field_owner="w-1")
    updated = object_store.apply(_deployment(tier="web"), field_owner="w-1")

    assert updated["metadata"]["uid"] == created["metadata"]["uid"]
    assert updated["metadata"]["labels"] == {"tier": "web"}
    assert int(updated["metadata"]["resourceVersion"]) > int(created["metadata"]["resourceVersion"])
    assert object_store.get(KEY) == updated


def test_get_missing_raises_not_found(object_store: ObjectStore) -> None:
    with pytest.raises(NotFoundError):
        object_store.get(KEY)


def test_list_filters_by_namespace_and_labels(object_store: ObjectStore) -> None:
    object_store.apply(_deployment("a", tier="web"), field_owner="u")
    object_store.apply(_deployment("b", tier="db"), field_owner="u")
    object_store.apply(_deployment("c", namespace="other", tier="web"), field_owner="u")

    everywhere = object_store.list("apps/v1", "Deployment", None, {"tier": "web"})
    in_default = object_store.list("apps/v1", "Deployment", "default")

    assert sorted(item["metadata"]["name"] for item in everywhere) == ["a", "c"]
    assert sorted(item["metadata"]["name"] for item in in_default) == ["a", "b"]
    assert object_store.list("v1", "Service", "default") == []


def test_apply_conflict_without_force(object_store: ObjectStore) -> None:
    object_store.apply(_deployment(tier="web"), field_owner="w-1")

    with pytest.raises(ConflictError):
        object_store.apply(_deployment(tier="db"), field_owner="intruder")

    forced = object_store.apply(_deployment(tier="db"), field_owner="intruder", force=True)
    assert forced["metadata"]["labels"] == {"tier": "db"}


def test_patch_checks_resource_version(object_store: ObjectStore) -> None:
    created = object_store.apply(_deployment(), field_owner="w-1")
    version = created["metadata"]["resourceVersion"]

    patched = object_store.patch(KEY, {"spec": {"replicas": 2}}, field_owner="t-1", resource_version=version)

    assert patched["spec"]["replicas"] == 2
    with pytest.raises(ConflictError):
        object_store.patch(KEY, {"spec": {"replicas": 3}}, field_owner="t-1", resource_version=version)


def test_patch_missing_object(object_store: ObjectStore) -> None:
    with pytest.raises(NotFoundError):
        object_store.patch(KEY, {"spec": {"replicas": 1}}, field_owner="t-1")


def test_update_status_writes_only_status(object_store: ObjectStore) -> None:
    created = object_store.apply(_deployment(), field_owner="w-1")
    body = {**created, "spec": {"replicas": 9}, "status": {"readyReplicas": 1}}

    updated = object_store.update_status(body)

    assert updated["status"] == {"readyReplicas": 1}
    assert "replicas" not in updated["spec"]
    with pytest.raises(ConflictError):
        object_store.update_status({**created, "status": {"readyReplicas": 2}})


def test_delete(object_store: ObjectStore) -> None:
    object_store.apply(_deployment(), field_owner="w-1")

    object_store.delete(KEY)

    with pytest.raises(NotFoundError):
        object_store.get(KEY)
    with pytest.raises(NotFoundError):
        object_store.delete(KEY)


def test_recreated_object_gets_new_uid(object_store: ObjectStore) -> None:
    first = object_store.apply(_deployment(), field_owner="w-1")
    object_store.delete(KEY)

    second = object_store.apply(_deployment(), field_owner="w-1")

    assert second["metadata"]["uid"] != first["metadata"]["uid"]


def test_cluster_scoped_objects(object_store: ObjectStore) -> None:
    definition = {
        "apiVersion": "core.oam.dev/v1alpha2",
        "kind": "WorkloadDefinition",
        "metadata": {"name": "containerizedworkloads.core.oam.dev"},
        "spec": {"childResourceKinds": []},
    }
    object_store.apply(definition, field_owner="user")

    key = ObjectKey("core.oam.dev/v1alpha2", "WorkloadDefinition", "containerizedworkloads.core.oam.dev")
    assert object_store.get(key)["metadata"]["name"] == key.name


def test_sqlalchemy_store_persists_across_instances(sqlalchemy_store: SqlAlchemyObjectStore) -> None:
    created = sqlalchemy_store.apply(_deployment(), field_owner="w-1")

    assert SqlAlchemyObjectStore().get(KEY) == created


def test_reapplying_unchanged_manifest_keeps_identity(object_store: ObjectStore) -> None:
    first = object_store.apply(workload_manifest(), field_owner="oamkit-cli", force=True)

    for _ in range(2):
        again = object_store.apply(workload_manifest(), field_owner="oamkit-cli", force=True)
        assert again["metadata"] == first["metadata"]

    stored = object_store.get(workload_key())
    assert stored["metadata"]["uid"] == first["metadata"]["uid"]
    assert stored["metadata"]["resourceVersion"] == "1"
    assert stored["metadata"]["creationTimestamp"] == first["metadata"]["creationTimestamp"]
