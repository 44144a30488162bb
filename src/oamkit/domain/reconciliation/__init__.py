"""Reconciliation core: renderer, applier, garbage collector and reconcilers."""

from __future__ import annotations

from .apply import Applier
from .children import fetch_child_resources, fetch_workload_definition
from .gc import TRACKED_KINDS, GarbageCollector
from .render import (
    WORKLOAD_LABEL,
    RenderedResources,
    deployment_name,
    render_deployment,
    render_service,
    render_workload,
    selector_labels,
    service_name,
)
from .result import DEFAULT_REQUEUE_AFTER, ReconcileResult
from .trait import TraitReconciler, scale_patch
from .workload import WorkloadReconciler, resource_reference

__all__ = [
    "DEFAULT_REQUEUE_AFTER",
    "TRACKED_KINDS",
    "WORKLOAD_LABEL",
    "Applier",
    "GarbageCollector",
    "ReconcileResult",
    "RenderedResources",
    "TraitReconciler",
    "WorkloadReconciler",
    "deployment_name",
    "fetch_child_resources",
    "fetch_workload_definition",
    "render_deployment",
    "render_service",
    "render_workload",
    "resource_reference",
    "scale_patch",
    "selector_labels",
    "service_name",
]
