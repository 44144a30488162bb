"""Port for the persistent object store the controller reads and writes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from oamkit.domain.model import Manifest, ObjectKey


class ObjectStoreError(RuntimeError):
    """Raised when the store cannot complete a request."""


class NotFoundError(ObjectStoreError):
    """Raised when the addressed object does not exist."""


class ConflictError(ObjectStoreError):
    """Raised on field ownership conflicts and stale resource versions."""


@runtime_checkable
class ObjectStore(Protocol):
    """Minimal object store contract.

    Manifests are JSON-shaped dicts. Every call returns (or raises) within the
    store's own timeout; none of them block indefinitely.
    """

    def get(self, key: ObjectKey) -> Manifest: ...

    def list(
        self,
        api_version: str,
        kind: str,
        namespace: str | None = None,
        label_selector: Mapping[str, str] | None = None,
    ) -> list[Manifest]: ...

    def apply(self, manifest: Manifest, *, field_owner: str, force: bool = False) -> Manifest:
        """Field-scoped merge apply: claim the submitted fields for ``field_owner``."""
        ...

    def patch(
        self,
        key: ObjectKey,
        patch: Mapping[str, object],
        *,
        field_owner: str,
        resource_version: str | None = None,
    ) -> Manifest:
        """JSON merge patch, rejected with ConflictError if ``resource_version`` is stale."""
        ...

    def delete(self, key: ObjectKey) -> None: ...

    def update_status(self, manifest: Manifest) -> Manifest:
        """Write only ``status``; spec changes in ``manifest`` are ignored."""
        ...
