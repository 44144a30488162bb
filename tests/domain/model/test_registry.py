from __future__ import annotations

import pytest

from oamkit.domain.model import (
    DEFAULT_REGISTRY,
    DEPLOYMENT_GVK,
    SERVICE_GVK,
    WORKLOAD_GVK,
    DeploymentObject,
    GroupVersionKind,
    ServiceObject,
    Unstructured,
    UnknownKindError,
)


def test_deployment_is_the_only_scalable_default_type() -> None:
    scalable = [info.gvk for info in DEFAULT_REGISTRY if info.scalable]

    assert scalable == [DEPLOYMENT_GVK]
    assert DEFAULT_REGISTRY.lookup(DEPLOYMENT_GVK).replicas_path == ("spec", "replicas")


def test_lookup_falls_back_to_generic_entry() -> None:
    gvk = GroupVersionKind("batch/v1", "CronJob")

    info = DEFAULT_REGISTRY.lookup(gvk)

    assert gvk not in DEFAULT_REGISTRY
    assert info.plural == "cronjobs"
    assert info.namespaced
    assert not info.scalable


def test_wrap_picks_kind_specific_adapter() -> None:
    deployment = DEFAULT_REGISTRY.wrap({"apiVersion": "apps/v1", "kind": "Deployment"})
    service = DEFAULT_REGISTRY.wrap({"apiVersion": "v1", "kind": "Service"})
    other = DEFAULT_REGISTRY.wrap({"apiVersion": "v1", "kind": "ConfigMap"})

    assert isinstance(deployment, DeploymentObject)
    assert isinstance(service, ServiceObject)
    assert type(other) is Unstructured


def test_definition_name_is_plural_dot_group() -> None:
    assert DEFAULT_REGISTRY.definition_name(WORKLOAD_GVK) == "containerizedworkloads.core.oam.dev"
    assert DEFAULT_REGISTRY.definition_name(SERVICE_GVK) == "services"


@pytest.mark.parametrize("name", ["Deployment", "deployment", "deployments"])
def test_by_name_resolves_kind_and_plural(name: str) -> None:
    assert DEFAULT_REGISTRY.by_name(name).gvk == DEPLOYMENT_GVK


def test_by_name_rejects_unknown_kind() -> None:
    with pytest.raises(UnknownKindError):
        DEFAULT_REGISTRY.by_name("gizmo")


def test_workload_definitions_are_cluster_scoped() -> None:
    assert not DEFAULT_REGISTRY.by_name("workloaddefinitions").namespaced
