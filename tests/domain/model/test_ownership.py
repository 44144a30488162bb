from __future__ import annotations

from oamkit.domain.model import ObjectKey, OwnershipIndex, ResourceReference, uids_by_kind

OWNER = ObjectKey("core.oam.dev/v1alpha2", "ContainerizedWorkload", "web", "default")


def _refs() -> tuple[ResourceReference, ...]:
    return (
        ResourceReference("apps/v1", "Deployment", "web-deployment", "d-1"),
        ResourceReference("v1", "Service", "web-deployment-service", "s-1"),
    )


def test_replace_swaps_entries_wholesale() -> None:
    index = OwnershipIndex()
    index.replace(OWNER, _refs())

    index.replace(OWNER, _refs()[:1])

    assert index.references(OWNER) == _refs()[:1]
    assert len(index) == 1


def test_forget_drops_owner() -> None:
    index = OwnershipIndex()
    index.replace(OWNER, _refs())

    forgotten = index.forget(OWNER)

    assert forgotten == _refs()
    assert OWNER not in index
    assert index.references(OWNER) == ()
    assert index.forget(OWNER) == ()


def test_previous_merges_recorded_and_indexed_without_duplicates() -> None:
    index = OwnershipIndex()
    index.replace(OWNER, _refs())
    recorded = (ResourceReference("apps/v1", "Deployment", "web-deployment", "d-1"),)

    previous = index.previous(OWNER, recorded)

    assert previous == _refs()


def test_previous_without_entry_is_recorded_only() -> None:
    recorded = _refs()[1:]

    assert OwnershipIndex().previous(OWNER, recorded) == recorded


def test_uids_by_kind() -> None:
    assert uids_by_kind(_refs()) == {"Deployment": "d-1", "Service": "s-1"}
