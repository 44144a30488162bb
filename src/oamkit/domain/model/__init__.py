"""Domain model for workloads, traits and the objects they render."""

from __future__ import annotations

from .definition import ChildResourceKind, WorkloadDefinition
from .enums import (
    ConditionReason,
    ConditionStatus,
    ConditionType,
    CPUArchitecture,
    OperatingSystem,
    PortProtocol,
    Stage,
)
from .meta import (
    DEFAULT_NAMESPACE,
    Condition,
    GroupVersionKind,
    ObjectKey,
    OwnerReference,
    ResourceReference,
    find_condition,
    merge_owner_reference,
    reconcile_error,
    reconcile_success,
    set_condition,
)
from .objects import DeploymentObject, ManagedObject, Manifest, ServiceObject, Unstructured
from .ownership import OwnershipIndex, uids_by_kind
from .registry import (
    DEFAULT_REGISTRY,
    DEPLOYMENT_GVK,
    SERVICE_GVK,
    TRAIT_GVK,
    WORKLOAD_DEFINITION_GVK,
    WORKLOAD_GVK,
    TypeInfo,
    TypeRegistry,
    UnknownKindError,
)
from .trait import ManualScalerTrait, TraitStatus
from .workload import Container, ContainerizedWorkload, ContainerPort, WorkloadStatus

__all__ = [
    "DEFAULT_NAMESPACE",
    "DEFAULT_REGISTRY",
    "DEPLOYMENT_GVK",
    "SERVICE_GVK",
    "TRAIT_GVK",
    "WORKLOAD_DEFINITION_GVK",
    "WORKLOAD_GVK",
    "CPUArchitecture",
    "ChildResourceKind",
    "Condition",
    "ConditionReason",
    "ConditionStatus",
    "ConditionType",
    "Container",
    "ContainerPort",
    "ContainerizedWorkload",
    "DeploymentObject",
    "GroupVersionKind",
    "ManagedObject",
    "ManualScalerTrait",
    "Manifest",
    "ObjectKey",
    "OperatingSystem",
    "OwnerReference",
    "OwnershipIndex",
    "PortProtocol",
    "ResourceReference",
    "ServiceObject",
    "Stage",
    "TraitStatus",
    "TypeInfo",
    "TypeRegistry",
    "UnknownKindError",
    "Unstructured",
    "WorkloadDefinition",
    "WorkloadStatus",
    "find_condition",
    "merge_owner_reference",
    "reconcile_error",
    "reconcile_success",
    "set_condition",
    "uids_by_kind",
]
