"""
Object metadata building blocks:
addressing keys, references between objects, status conditions.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from oamkit.domain.model.enums import ConditionReason, ConditionStatus, ConditionType

if TYPE_CHECKING:
    from collections.abc import Iterable

DEFAULT_NAMESPACE = "default"


@dataclass(frozen=True, slots=True)
class GroupVersionKind:
    api_version: str
    kind: str

    @property
    def group(self) -> str:
        group, _, _ = self.api_version.rpartition("/")
        return group

    @property
    def version(self) -> str:
        return self.api_version.rpartition("/")[2]

    def __str__(self) -> str:
        return f"{self.api_version}, Kind={self.kind}"


@dataclass(frozen=True, slots=True)
class ObjectKey:
    """Human-addressable location of an object. Not unique over time; use uid for identity."""

    api_version: str
    kind: str
    name: str
    namespace: str | None = None

    @property
    def gvk(self) -> GroupVersionKind:
        return GroupVersionKind(self.api_version, self.kind)

    def __str__(self) -> str:
        location = f"{self.namespace}/{self.name}" if self.namespace else self.name
        return f"{self.kind} {location}"


@dataclass(frozen=True, slots=True)
class ResourceReference:
    api_version: str
    kind: str
    name: str
    uid: str | None = None

    def key(self, namespace: str | None) -> ObjectKey:
        return ObjectKey(self.api_version, self.kind, self.name, namespace)


@dataclass(frozen=True, slots=True)
class OwnerReference:
    api_version: str
    kind: str
    name: str
    uid: str
    controller: bool = False
    block_owner_deletion: bool = False


def merge_owner_reference(
    existing: Iterable[OwnerReference], reference: OwnerReference
) -> list[OwnerReference]:
    """Replace the first reference with the same uid in place, otherwise append."""

    merged = list(existing)
    for index, current in enumerate(merged):
        if current.uid == reference.uid:
            merged[index] = reference
            return merged
    merged.append(reference)
    return merged


@dataclass(frozen=True, slots=True)
class Condition:
    type: ConditionType
    status: ConditionStatus
    reason: ConditionReason
    message: str = ""
    last_transition_time: datetime | None = None

    def equivalent(self, other: Condition) -> bool:
        """Compare everything except the transition time."""

        return (
            self.type == other.type
            and self.status == other.status
            and self.reason == other.reason
            and self.message == other.message
        )


def _now() -> datetime:
    return datetime.now(tz=UTC).replace(microsecond=0)


def reconcile_success(*, now: datetime | None = None) -> Condition:
    return Condition(
        type=ConditionType.READY,
        status=ConditionStatus.TRUE,
        reason=ConditionReason.RECONCILE_SUCCESS,
        last_transition_time=now or _now(),
    )


def reconcile_error(error: BaseException, *, now: datetime | None = None) -> Condition:
    return Condition(
        type=ConditionType.READY,
        status=ConditionStatus.FALSE,
        reason=ConditionReason.RECONCILE_ERROR,
        message=str(error),
        last_transition_time=now or _now(),
    )


def set_condition(conditions: Iterable[Condition], condition: Condition) -> tuple[Condition, ...]:
    """Return ``conditions`` with ``condition`` set, one condition per type.

    An equivalent existing condition is kept as is so its transition time
    survives repeated passes.
    """

    updated: list[Condition] = []
    placed = False
    for current in conditions:
        if current.type != condition.type:
            updated.append(current)
            continue
        if placed:
            continue
        placed = True
        if current.equivalent(condition):
            updated.append(current)
        elif condition.last_transition_time is None:
            updated.append(replace(condition, last_transition_time=_now()))
        else:
            updated.append(condition)
    if not placed:
        updated.append(condition)
    return tuple(updated)


def find_condition(
    conditions: Iterable[Condition], condition_type: ConditionType
) -> Condition | None:
    for condition in conditions:
        if condition.type == condition_type:
            return condition
    return None
