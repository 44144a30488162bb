"""Port for translating stored manifests into domain objects and back."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from oamkit.domain.model import (
        ContainerizedWorkload,
        Manifest,
        ManualScalerTrait,
        TraitStatus,
        WorkloadDefinition,
        WorkloadStatus,
    )


class ManifestError(ValueError):
    """Raised when a manifest does not match the expected schema."""


@runtime_checkable
class ManifestTranslator(Protocol):
    def workload_from_manifest(self, manifest: Mapping[str, object]) -> ContainerizedWorkload: ...

    def trait_from_manifest(self, manifest: Mapping[str, object]) -> ManualScalerTrait: ...

    def definition_from_manifest(self, manifest: Mapping[str, object]) -> WorkloadDefinition: ...

    def workload_status_to_manifest(self, status: WorkloadStatus) -> Manifest: ...

    def trait_status_to_manifest(self, status: TraitStatus) -> Manifest: ...

    def workload_status_from_manifest(self, manifest: Mapping[str, object]) -> WorkloadStatus:
        """Best effort read of a stored status, used when the object itself cannot be decoded."""
        ...

    def trait_status_from_manifest(self, manifest: Mapping[str, object]) -> TraitStatus: ...
