"""Application orchestration: store wiring, manifest loading and the resync loop."""

from __future__ import annotations

import copy
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal, TypeAlias, cast

import yaml

from oamkit.adapters.manifests import PydanticManifestTranslator
from oamkit.adapters.memory import InMemoryObjectStore
from oamkit.config import ReconcileConfig, get_apiserver_config, get_reconcile_config
from oamkit.domain.admission import mutate_trait, validate_trait
from oamkit.domain.model import (
    DEFAULT_NAMESPACE,
    DEFAULT_REGISTRY,
    TRAIT_GVK,
    WORKLOAD_GVK,
    GroupVersionKind,
    ObjectKey,
)
from oamkit.domain.reconciliation import ReconcileResult, TraitReconciler, WorkloadReconciler

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence
    from datetime import timedelta

    from oamkit.domain.model import Manifest, TypeRegistry
    from oamkit.domain.ports.manifests import ManifestTranslator
    from oamkit.domain.ports.store import ObjectStore

StoreKind: TypeAlias = Literal["sqlite", "memory", "kubernetes"]

STORE_KINDS: tuple[StoreKind, ...] = ("sqlite", "memory", "kubernetes")
CLI_FIELD_OWNER = "oamkit-cli"

log = getLogger(__name__)


class AdmissionDeniedError(ValueError):
    """Raised when a trait submitted through ``apply_manifests`` is rejected."""

    def __init__(self, key: ObjectKey, reason: str, code: int) -> None:
        super().__init__(f"{key} denied ({code}): {reason}")
        self.key = key
        self.reason = reason
        self.code = code


def build_store(kind: StoreKind = "sqlite") -> ObjectStore:
    if kind == "memory":
        return InMemoryObjectStore()
    if kind == "kubernetes":
        from oamkit.adapters.kubernetes import KubernetesObjectStore  # noqa: PLC0415

        return KubernetesObjectStore(get_apiserver_config())
    if kind == "sqlite":
        from oamkit.adapters.sqlalchemy import SqlAlchemyObjectStore, is_started, startup  # noqa: PLC0415

        if not is_started():
            startup()
        return SqlAlchemyObjectStore()
    raise ValueError(f"Unknown store {kind!r}, expected one of {', '.join(STORE_KINDS)}")


def load_manifest_files(paths: Iterable[str | Path]) -> list[Manifest]:
    """Read every YAML/JSON document from ``paths``; ``List`` documents are flattened."""

    manifests: list[Manifest] = []
    for path in paths:
        with Path(path).open(encoding="utf-8") as handle:
            documents = list(yaml.safe_load_all(handle))
        for document in documents:
            if document is None:
                continue
            if not isinstance(document, dict):
                raise ValueError(f"{path}: expected a mapping, got {type(document).__name__}")
            manifest = cast("Manifest", document)
            if manifest.get("kind") == "List":
                manifests.extend(cast("list[Manifest]", manifest.get("items") or []))
            else:
                manifests.append(manifest)
    return manifests


def admit_trait(
    manifest: Manifest,
    *,
    translator: ManifestTranslator,
    max_replicas: int,
) -> Manifest:
    """Run a trait through defaulting and validation, return the manifest to store."""

    mutation = mutate_trait(translator.trait_from_manifest(manifest))
    admitted = copy.deepcopy(manifest)
    if mutation.changed:
        reference = admitted.setdefault("spec", {}).setdefault("workloadRef", {})
        reference.update(mutation.defaults)
    decision = validate_trait(mutation.trait, max_replicas=max_replicas)
    if not decision.allowed:
        raise AdmissionDeniedError(mutation.trait.key, decision.reason, decision.code)
    return admitted


def with_default_namespace(manifest: Manifest, registry: TypeRegistry = DEFAULT_REGISTRY) -> Manifest:
    """Namespaced objects submitted without a namespace land in ``default``."""

    gvk = GroupVersionKind(str(manifest.get("apiVersion", "")), str(manifest.get("kind", "")))
    metadata = manifest.get("metadata") or {}
    if not registry.lookup(gvk).namespaced or metadata.get("namespace"):
        return manifest
    defaulted = copy.deepcopy(manifest)
    defaulted["metadata"] = {**(defaulted.get("metadata") or {}), "namespace": DEFAULT_NAMESPACE}
    return defaulted


def apply_manifests(
    store: ObjectStore,
    manifests: Iterable[Manifest],
    *,
    translator: ManifestTranslator | None = None,
    max_replicas: int | None = None,
    field_owner: str = CLI_FIELD_OWNER,
    registry: TypeRegistry = DEFAULT_REGISTRY,
) -> list[Manifest]:
    effective_translator = translator or PydanticManifestTranslator()
    limit = max_replicas if max_replicas is not None else get_reconcile_config().max_replicas
    applied: list[Manifest] = []
    for submitted in manifests:
        manifest = with_default_namespace(submitted, registry)
        if (manifest.get("apiVersion"), manifest.get("kind")) == (
            TRAIT_GVK.api_version,
            TRAIT_GVK.kind,
        ):
            manifest = admit_trait(manifest, translator=effective_translator, max_replicas=limit)
        stored = store.apply(manifest, field_owner=field_owner, force=True)
        log.info(
            "Stored %s %s", stored.get("kind"), (stored.get("metadata") or {}).get("name")
        )
        applied.append(stored)
    return applied


@dataclass(slots=True)
class PassSummary:
    results: dict[ObjectKey, ReconcileResult] = field(default_factory=dict)

    @property
    def failed(self) -> dict[ObjectKey, ReconcileResult]:
        return {key: result for key, result in self.results.items() if not result.succeeded}

    @property
    def next_requeue(self) -> timedelta | None:
        delays = [result.requeue_after for result in self.results.values() if result.requeue_after]
        return min(delays) if delays else None


@dataclass(slots=True)
class Controller:
    """Level-triggered driver: every pass reconciles every workload, then every trait.

    Keys within a batch run concurrently, one task per key, so no key is ever
    reconciled by two workers at once.
    """

    store: ObjectStore
    config: ReconcileConfig = field(default_factory=get_reconcile_config)
    translator: ManifestTranslator = field(default_factory=PydanticManifestTranslator)
    registry: TypeRegistry = DEFAULT_REGISTRY
    workloads: WorkloadReconciler = field(init=False)
    traits: TraitReconciler = field(init=False)

    def __post_init__(self) -> None:
        self.workloads = WorkloadReconciler(
            self.store, self.translator, self.registry, requeue_after=self.config.requeue_after
        )
        self.traits = TraitReconciler(
            self.store, self.translator, self.registry, requeue_after=self.config.requeue_after
        )

    def keys(self, gvk: GroupVersionKind) -> list[ObjectKey]:
        return [
            ObjectKey(
                gvk.api_version,
                gvk.kind,
                str(manifest["metadata"]["name"]),
                manifest["metadata"].get("namespace"),
            )
            for manifest in self.store.list(gvk.api_version, gvk.kind, self.config.namespace)
        ]

    def run_once(self) -> PassSummary:
        summary = PassSummary()
        with ThreadPoolExecutor(max_workers=self.config.workers) as executor:
            for gvk, reconcile in (
                (WORKLOAD_GVK, self.workloads.reconcile),
                (TRAIT_GVK, self.traits.reconcile),
            ):
                summary.results.update(self._run_batch(executor, self.keys(gvk), reconcile))
        log.info(
            "Pass finished: %d reconciled, %d failed",
            len(summary.results),
            len(summary.failed),
        )
        return summary

    def run(
        self,
        *,
        interval: timedelta | None = None,
        stop: threading.Event | None = None,
        max_passes: int | None = None,
    ) -> int:
        """Repeat passes until ``stop`` is set; returns the number of passes run."""

        period = interval or self.config.resync_interval
        stop_event = stop or threading.Event()
        passes = 0
        while not stop_event.is_set():
            summary = self.run_once()
            passes += 1
            if max_passes is not None and passes >= max_passes:
                break
            wait = period
            if summary.next_requeue is not None:
                wait = min(wait, summary.next_requeue)
            stop_event.wait(wait.total_seconds())
        return passes

    @staticmethod
    def _run_batch(
        executor: ThreadPoolExecutor,
        keys: Sequence[ObjectKey],
        reconcile: Callable[[ObjectKey], ReconcileResult],
    ) -> dict[ObjectKey, ReconcileResult]:
        futures = {key: executor.submit(reconcile, key) for key in dict.fromkeys(keys)}
        return {key: future.result() for key, future in futures.items()}


def describe(manifest: Manifest) -> dict[str, Any]:
    """Short summary of a stored object for CLI output."""

    metadata = manifest.get("metadata") or {}
    return {
        "kind": manifest.get("kind"),
        "name": metadata.get("name"),
        "namespace": metadata.get("namespace"),
        "uid": metadata.get("uid"),
        "resourceVersion": metadata.get("resourceVersion"),
    }
