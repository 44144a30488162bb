"""Render a containerized workload into the resources that run it.

Rendering is pure: the same workload always yields byte-identical manifests,
in particular identical labels and selectors, because most back-ends reject a
selector change on an existing deployment. Namespaces are left unset; the
applier fills them from the owner.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from oamkit.domain.errors import RenderError
from oamkit.domain.model import (
    DEPLOYMENT_GVK,
    SERVICE_GVK,
    DeploymentObject,
    OwnerReference,
    PortProtocol,
    ServiceObject,
)
from oamkit.domain.model.objects import owner_reference_to_manifest

if TYPE_CHECKING:
    from oamkit.domain.model import Container, ContainerizedWorkload, Manifest, Unstructured

log = getLogger(__name__)

WORKLOAD_LABEL = "containerizedworkload.oam.dev/name"
OS_NODE_LABEL = "kubernetes.io/os"
ARCH_NODE_LABEL = "kubernetes.io/arch"
MAX_PORT = 65535


@dataclass(frozen=True, slots=True)
class RenderedResources:
    deployment: DeploymentObject
    service: ServiceObject | None = None

    def objects(self) -> tuple[Unstructured, ...]:
        if self.service is None:
            return (self.deployment,)
        return (self.deployment, self.service)


def deployment_name(workload: ContainerizedWorkload) -> str:
    return f"{workload.name}-deployment"


def service_name(workload: ContainerizedWorkload) -> str:
    return f"{deployment_name(workload)}-service"


def selector_labels(workload: ContainerizedWorkload) -> dict[str, str]:
    return {WORKLOAD_LABEL: workload.name}


def controller_reference(workload: ContainerizedWorkload) -> OwnerReference:
    if not workload.uid:
        raise RenderError(f"workload {workload.name!r} has no uid to own its resources")
    return OwnerReference(
        api_version=workload.api_version,
        kind=workload.kind,
        name=workload.name,
        uid=workload.uid,
        controller=True,
        block_owner_deletion=True,
    )


def render_workload(workload: ContainerizedWorkload) -> RenderedResources:
    """Render the deployment and, when any container exposes a port, its service."""

    deployment = render_deployment(workload)
    service = render_service(workload)
    log.debug(
        "Rendered workload %s: deployment=%s, service=%s",
        workload.name,
        deployment.name,
        service.name if service else None,
    )
    return RenderedResources(deployment=deployment, service=service)


def render_deployment(workload: ContainerizedWorkload) -> DeploymentObject:
    if not workload.containers:
        raise RenderError(f"workload {workload.name!r} declares no containers")

    labels = selector_labels(workload)
    pod_spec: Manifest = {
        "containers": [_render_container(container) for container in workload.containers]
    }
    node_selector = _node_selector(workload)
    if node_selector:
        pod_spec["nodeSelector"] = node_selector

    return DeploymentObject(
        {
            "apiVersion": DEPLOYMENT_GVK.api_version,
            "kind": DEPLOYMENT_GVK.kind,
            "metadata": _object_metadata(deployment_name(workload), workload),
            "spec": {
                "selector": {"matchLabels": dict(labels)},
                "template": {
                    "metadata": {"labels": dict(labels)},
                    "spec": pod_spec,
                },
            },
        }
    )


def render_service(workload: ContainerizedWorkload) -> ServiceObject | None:
    """Expose each container's first declared port; ``None`` when nothing is exposed."""

    ports: list[Manifest] = []
    seen: set[tuple[int, str]] = set()
    names: set[str] = set()
    for container in workload.containers:
        if not container.ports:
            continue
        first = container.ports[0]
        _check_port(container, first.port)
        protocol = str(first.protocol or PortProtocol.TCP)
        if (first.port, protocol) in seen:
            continue
        seen.add((first.port, protocol))
        name = _port_name(names, first.name or container.name, container.name, first.port)
        names.add(name)
        ports.append(
            {
                "name": name,
                "protocol": protocol,
                "port": first.port,
                "targetPort": first.port,
            }
        )
    if not ports:
        return None

    return ServiceObject(
        {
            "apiVersion": SERVICE_GVK.api_version,
            "kind": SERVICE_GVK.kind,
            "metadata": _object_metadata(service_name(workload), workload),
            "spec": {
                "selector": selector_labels(workload),
                "ports": ports,
            },
        }
    )


def _port_name(taken: set[str], preferred: str, container_name: str, port: int) -> str:
    """Service port names must be unique within the service."""

    for candidate in (preferred, container_name, f"{container_name}-{port}"):
        if candidate not in taken:
            return candidate
    suffix = 2
    while f"{container_name}-{port}-{suffix}" in taken:
        suffix += 1
    return f"{container_name}-{port}-{suffix}"


def _object_metadata(name: str, workload: ContainerizedWorkload) -> Manifest:
    return {
        "name": name,
        "labels": selector_labels(workload),
        "ownerReferences": [owner_reference_to_manifest(controller_reference(workload))],
    }


def _render_container(container: Container) -> Manifest:
    if not container.name:
        raise RenderError("container declares no name")
    if not container.image:
        raise RenderError(f"container {container.name!r} declares no image")

    rendered: Manifest = {"name": container.name, "image": container.image}
    if container.command:
        rendered["command"] = list(container.command)
    if container.args:
        rendered["args"] = list(container.args)
    if container.env:
        rendered["env"] = [copy.deepcopy(dict(item)) for item in container.env]
    if container.resources:
        rendered["resources"] = copy.deepcopy(dict(container.resources))
    if container.ports:
        ports: list[Manifest] = []
        for port in container.ports:
            _check_port(container, port.port)
            # apply rejects ports without an explicit protocol
            entry: Manifest = {
                "containerPort": port.port,
                "protocol": str(port.protocol or PortProtocol.TCP),
            }
            if port.name:
                entry["name"] = port.name
            ports.append(entry)
        rendered["ports"] = ports
    return rendered


def _check_port(container: Container, port: int) -> None:
    if not 0 < port <= MAX_PORT:
        raise RenderError(f"container {container.name!r} declares invalid port {port}")


def _node_selector(workload: ContainerizedWorkload) -> dict[str, str]:
    selector: dict[str, str] = {}
    if workload.os_type is not None:
        selector[OS_NODE_LABEL] = str(workload.os_type)
    if workload.arch is not None:
        selector[ARCH_NODE_LABEL] = str(workload.arch)
    return selector
