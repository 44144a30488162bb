"""Synchronous admission checks for manual scaler traits.

``validate_trait`` only ever decides, ``mutate_trait`` only ever defaults. The
HTTP status codes mirror what an admission webhook would answer with.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from http import HTTPStatus
from typing import TYPE_CHECKING

from oamkit.domain.model.workload import WORKLOAD_KIND

if TYPE_CHECKING:
    from oamkit.domain.model import ManualScalerTrait

DEFAULT_MAX_REPLICAS = 10


@dataclass(frozen=True, slots=True)
class AdmissionDecision:
    allowed: bool
    code: int = HTTPStatus.OK
    reason: str = ""

    @classmethod
    def allow(cls) -> AdmissionDecision:
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str, code: int = HTTPStatus.FORBIDDEN) -> AdmissionDecision:
        return cls(allowed=False, code=code, reason=reason)


@dataclass(frozen=True, slots=True)
class MutationResult:
    """The defaulted trait and the ``workloadRef`` fields that were filled in."""

    trait: ManualScalerTrait
    defaults: dict[str, str]

    @property
    def changed(self) -> bool:
        return bool(self.defaults)


def validate_trait(
    trait: ManualScalerTrait, max_replicas: int = DEFAULT_MAX_REPLICAS
) -> AdmissionDecision:
    if trait.replica_count > max_replicas:
        return AdmissionDecision.deny(
            f"maximum replica count {max_replicas}, got {trait.replica_count}"
        )
    if trait.replica_count < 0:
        return AdmissionDecision.deny(f"replica count must not be negative, got {trait.replica_count}")

    reference = trait.workload_reference
    missing = [
        field
        for field, value in (
            ("name", reference.name),
            ("apiVersion", reference.api_version),
            ("kind", reference.kind),
        )
        if not value
    ]
    if missing:
        return AdmissionDecision.deny(
            f"missing workloadRef {', '.join(missing)}: {reference}"
        )
    return AdmissionDecision.allow()


def mutate_trait(trait: ManualScalerTrait) -> MutationResult:
    reference = trait.workload_reference
    defaults: dict[str, str] = {}
    if not reference.kind:
        defaults["kind"] = WORKLOAD_KIND
    if not reference.api_version:
        defaults["apiVersion"] = trait.api_version
    if not defaults:
        return MutationResult(trait=trait, defaults=defaults)

    defaulted = replace(
        reference,
        kind=defaults.get("kind", reference.kind),
        api_version=defaults.get("apiVersion", reference.api_version),
    )
    return MutationResult(trait=replace(trait, workload_reference=defaulted), defaults=defaults)
