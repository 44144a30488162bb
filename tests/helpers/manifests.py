"""Builders for workload, trait and definition manifests used across tests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from oamkit.domain.model import (
    DEPLOYMENT_GVK,
    SERVICE_GVK,
    TRAIT_GVK,
    WORKLOAD_DEFINITION_GVK,
    WORKLOAD_GVK,
    ObjectKey,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from oamkit.domain.model import Manifest

NAMESPACE = "default"


def container(
    name: str = "app",
    image: str = "app:v1",
    *,
    port: int | None = 80,
    protocol: str | None = None,
) -> Manifest:
    rendered: Manifest = {"name": name, "image": image}
    if port is not None:
        entry: Manifest = {"containerPort": port, "name": "http"}
        if protocol is not None:
            entry["protocol"] = protocol
        rendered["ports"] = [entry]
    return rendered


def workload_manifest(
    name: str = "web",
    *,
    namespace: str = NAMESPACE,
    containers: Sequence[Manifest] | None = None,
    uid: str | None = None,
    **spec: Any,
) -> Manifest:
    metadata: Manifest = {"name": name, "namespace": namespace}
    if uid is not None:
        metadata["uid"] = uid
    return {
        "apiVersion": WORKLOAD_GVK.api_version,
        "kind": WORKLOAD_GVK.kind,
        "metadata": metadata,
        "spec": {"containers": list(containers if containers is not None else [container()]), **spec},
    }


def trait_manifest(
    name: str = "web-scaler",
    *,
    namespace: str = NAMESPACE,
    replica_count: int = 5,
    workload: str | None = "web",
    workload_ref: Manifest | None = None,
) -> Manifest:
    reference = (
        workload_ref
        if workload_ref is not None
        else {"apiVersion": WORKLOAD_GVK.api_version, "kind": WORKLOAD_GVK.kind, "name": workload}
    )
    return {
        "apiVersion": TRAIT_GVK.api_version,
        "kind": TRAIT_GVK.kind,
        "metadata": {"name": name, "namespace": namespace},
        "spec": {"replicaCount": replica_count, "workloadRef": reference},
    }


def definition_manifest(
    name: str = "containerizedworkloads.core.oam.dev",
    *,
    child_kinds: Sequence[Manifest] | None = None,
) -> Manifest:
    kinds = (
        child_kinds
        if child_kinds is not None
        else [
            {"apiVersion": DEPLOYMENT_GVK.api_version, "kind": DEPLOYMENT_GVK.kind},
            {"apiVersion": SERVICE_GVK.api_version, "kind": SERVICE_GVK.kind},
        ]
    )
    return {
        "apiVersion": WORKLOAD_DEFINITION_GVK.api_version,
        "kind": WORKLOAD_DEFINITION_GVK.kind,
        "metadata": {"name": name},
        "spec": {
            "definitionRef": {"name": name},
            "childResourceKinds": list(kinds),
        },
    }


def workload_key(name: str = "web", namespace: str = NAMESPACE) -> ObjectKey:
    return ObjectKey(WORKLOAD_GVK.api_version, WORKLOAD_GVK.kind, name, namespace)


def trait_key(name: str = "web-scaler", namespace: str = NAMESPACE) -> ObjectKey:
    return ObjectKey(TRAIT_GVK.api_version, TRAIT_GVK.kind, name, namespace)


def deployment_key(name: str = "web-deployment", namespace: str = NAMESPACE) -> ObjectKey:
    return ObjectKey(DEPLOYMENT_GVK.api_version, DEPLOYMENT_GVK.kind, name, namespace)


def service_key(name: str = "web-deployment-service", namespace: str = NAMESPACE) -> ObjectKey:
    return ObjectKey(SERVICE_GVK.api_version, SERVICE_GVK.kind, name, namespace)
