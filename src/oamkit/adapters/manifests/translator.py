"""Translate stored manifests into domain objects and statuses back into manifests."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, TypeVar

from pydantic import ValidationError

from oamkit.domain.model import (
    DEFAULT_NAMESPACE,
    ChildResourceKind,
    Condition,
    ConditionReason,
    ConditionStatus,
    ConditionType,
    Container,
    ContainerizedWorkload,
    ContainerPort,
    ManualScalerTrait,
    ResourceReference,
    TraitStatus,
    WorkloadDefinition,
    WorkloadStatus,
)
from oamkit.domain.ports.manifests import ManifestError

from .schema import (
    ConditionPayload,
    ContainerPayload,
    ResourceReferencePayload,
    TraitPayload,
    TraitStatusPayload,
    WorkloadDefinitionPayload,
    WorkloadPayload,
    WorkloadStatusPayload,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from pydantic import BaseModel

    from oamkit.domain.model import Manifest

log = getLogger(__name__)

TModel = TypeVar("TModel", bound="BaseModel")


def _validate(model: type[TModel], manifest: Mapping[str, object]) -> TModel:
    try:
        return model.model_validate(manifest)
    except ValidationError as exc:
        raise ManifestError(f"invalid {model.__name__}: {exc}") from exc


def _reference(payload: ResourceReferencePayload) -> ResourceReference:
    return ResourceReference(
        api_version=payload.api_version, kind=payload.kind, name=payload.name, uid=payload.uid
    )


def _container(payload: ContainerPayload) -> Container:
    return Container(
        name=payload.name,
        image=payload.image,
        ports=tuple(
            ContainerPort(port=port.container_port, name=port.name, protocol=port.protocol)
            for port in payload.ports
        ),
        command=tuple(payload.command),
        args=tuple(payload.args),
        env=tuple(payload.env),
        resources=payload.resources,
    )


def _conditions(payloads: Iterable[ConditionPayload]) -> tuple[Condition, ...]:
    conditions: list[Condition] = []
    for payload in payloads:
        try:
            condition = Condition(
                type=ConditionType(payload.type),
                status=ConditionStatus(payload.status),
                reason=ConditionReason(payload.reason),
                message=payload.message,
                last_transition_time=payload.last_transition_time,
            )
        except ValueError:
            # written by someone else, not ours to interpret
            log.debug("Skipping foreign condition %s/%s", payload.type, payload.reason)
            continue
        conditions.append(condition)
    return tuple(conditions)


def _conditions_to_manifest(conditions: Iterable[Condition]) -> list[Manifest]:
    return [
        ConditionPayload(
            type=condition.type,
            status=condition.status,
            reason=condition.reason,
            message=condition.message,
            last_transition_time=condition.last_transition_time,
        ).model_dump(mode="json", by_alias=True, exclude_none=True)
        for condition in conditions
    ]


def _workload_status(payload: WorkloadStatusPayload) -> WorkloadStatus:
    return WorkloadStatus(
        resources=tuple(_reference(ref) for ref in payload.resources),
        conditions=_conditions(payload.conditions),
    )


class PydanticManifestTranslator:
    """``ManifestTranslator`` backed by the pydantic schemas in this package."""

    def workload_from_manifest(self, manifest: Mapping[str, object]) -> ContainerizedWorkload:
        payload = _validate(WorkloadPayload, manifest)
        return ContainerizedWorkload(
            name=payload.metadata.name,
            namespace=payload.metadata.namespace or DEFAULT_NAMESPACE,
            uid=payload.metadata.uid or "",
            containers=tuple(_container(container) for container in payload.spec.containers),
            os_type=payload.spec.os_type,
            arch=payload.spec.arch,
            api_version=payload.api_version,
            kind=payload.kind,
            resource_version=payload.metadata.resource_version,
            labels=dict(payload.metadata.labels),
            status=_workload_status(payload.status),
        )

    def trait_from_manifest(self, manifest: Mapping[str, object]) -> ManualScalerTrait:
        payload = _validate(TraitPayload, manifest)
        return ManualScalerTrait(
            name=payload.metadata.name,
            namespace=payload.metadata.namespace or DEFAULT_NAMESPACE,
            replica_count=payload.spec.replica_count,
            workload_reference=_reference(payload.spec.workload_ref),
            uid=payload.metadata.uid or "",
            api_version=payload.api_version,
            kind=payload.kind,
            resource_version=payload.metadata.resource_version,
            status=TraitStatus(conditions=_conditions(payload.status.conditions)),
        )

    def definition_from_manifest(self, manifest: Mapping[str, object]) -> WorkloadDefinition:
        payload = _validate(WorkloadDefinitionPayload, manifest)
        definition_ref = payload.spec.definition_ref
        return WorkloadDefinition(
            name=payload.metadata.name,
            child_resource_kinds=tuple(
                ChildResourceKind(
                    api_version=child.api_version, kind=child.kind, selector=dict(child.selector)
                )
                for child in payload.spec.child_resource_kinds
            ),
            reference_name=definition_ref.name if definition_ref is not None else None,
        )

    def workload_status_from_manifest(self, manifest: Mapping[str, object]) -> WorkloadStatus:
        try:
            payload = WorkloadStatusPayload.model_validate(manifest.get("status") or {})
        except ValidationError:
            log.warning("Ignoring unreadable workload status")
            return WorkloadStatus()
        return _workload_status(payload)

    def trait_status_from_manifest(self, manifest: Mapping[str, object]) -> TraitStatus:
        try:
            payload = TraitStatusPayload.model_validate(manifest.get("status") or {})
        except ValidationError:
            log.warning("Ignoring unreadable trait status")
            return TraitStatus()
        return TraitStatus(conditions=_conditions(payload.conditions))

    def workload_status_to_manifest(self, status: WorkloadStatus) -> Manifest:
        return {
            "resources": [
                ResourceReferencePayload(
                    api_version=ref.api_version, kind=ref.kind, name=ref.name, uid=ref.uid
                ).model_dump(mode="json", by_alias=True, exclude_none=True)
                for ref in status.resources
            ],
            "conditions": _conditions_to_manifest(status.conditions),
        }

    def trait_status_to_manifest(self, status: TraitStatus) -> Manifest:
        return {"conditions": _conditions_to_manifest(status.conditions)}
