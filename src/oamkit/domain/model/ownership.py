"""Ownership bookkeeping: which concrete resources each spec instance manages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from oamkit.domain.model.meta import ObjectKey, ResourceReference


def uids_by_kind(references: Iterable[ResourceReference]) -> dict[str, str | None]:
    """Collapse references to one uid per kind (the last one wins)."""

    return {reference.kind: reference.uid for reference in references}


@dataclass(slots=True)
class OwnershipIndex:
    """Maps an owner (addressed by key) to the resources it currently owns.

    Entries are replaced wholesale, never patched, so an entry always mirrors the
    last successful reconciliation of its owner. The persisted workload status is
    the durable copy; this index is rebuilt from it as owners are reconciled.
    """

    _entries: dict[ObjectKey, tuple[ResourceReference, ...]] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, owner: object) -> bool:
        return owner in self._entries

    def replace(self, owner: ObjectKey, references: Iterable[ResourceReference]) -> None:
        self._entries[owner] = tuple(references)

    def references(self, owner: ObjectKey) -> tuple[ResourceReference, ...]:
        return self._entries.get(owner, ())

    def forget(self, owner: ObjectKey) -> tuple[ResourceReference, ...]:
        return self._entries.pop(owner, ())

    def previous(
        self, owner: ObjectKey, recorded: Iterable[ResourceReference]
    ) -> tuple[ResourceReference, ...]:
        """``recorded`` plus indexed references for ``owner`` not already among them.

        Covers a pass whose applies succeeded but whose status write was lost:
        the index still names what was applied, the status does not.
        """

        merged = list(recorded)
        known = {(reference.kind, reference.name, reference.uid) for reference in merged}
        merged.extend(
            reference
            for reference in self.references(owner)
            if (reference.kind, reference.name, reference.uid) not in known
        )
        return tuple(merged)
