"""Object store persisted in a single SQL table."""

from __future__ import annotations

from contextlib import contextmanager
from logging import getLogger
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from oamkit.adapters.fields import (
    StoredObject,
    managed_fields_from_json,
    managed_fields_to_json,
    matches_labels,
    object_key,
)
from oamkit.domain.ports.store import ConflictError, NotFoundError, ObjectStoreError

from .engine import session_factory
from .mappings import CLUSTER_NAMESPACE, objects_table

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping
    from contextlib import AbstractContextManager

    from sqlalchemy import Row
    from sqlalchemy.orm import Session, sessionmaker

    from oamkit.domain.model import Manifest, ObjectKey

log = getLogger(__name__)


def _stored(row: Row[Any]) -> StoredObject:
    return StoredObject(
        manifest=dict(row.manifest),
        managed_fields=managed_fields_from_json(row.managed_fields),
    )


class SqlAlchemyObjectStore:
    """``ObjectStore`` backed by the ``objects`` table.

    Every call runs in its own transaction. Updates are guarded by the stored
    ``resourceVersion`` so concurrent writers surface as ``ConflictError``.
    """

    def __init__(self, sessions: sessionmaker[Session] | None = None) -> None:
        self._sessions = sessions or session_factory()

    def get(self, key: ObjectKey) -> Manifest:
        with self._transaction() as session:
            return _stored(self._require(session, key)).manifest

    def list(
        self,
        api_version: str,
        kind: str,
        namespace: str | None = None,
        label_selector: Mapping[str, str] | None = None,
    ) -> list[Manifest]:
        statement = select(objects_table.c.manifest).where(
            objects_table.c.api_version == api_version, objects_table.c.kind == kind
        )
        if namespace is not None:
            statement = statement.where(objects_table.c.namespace == namespace)
        statement = statement.order_by(objects_table.c.namespace, objects_table.c.name)
        with self._transaction() as session:
            manifests = [dict(manifest) for manifest in session.scalars(statement)]
        return [manifest for manifest in manifests if matches_labels(manifest, label_selector)]

    def apply(self, manifest: Manifest, *, field_owner: str, force: bool = False) -> Manifest:
        key = object_key(manifest)
        with self._transaction() as session:
            row = self._find(session, key)
            if row is None:
                stored = StoredObject.create(manifest, manager=field_owner)
                self._insert(session, stored)
                log.debug("Created %s (uid=%s)", key, stored.uid)
            else:
                current = _stored(row)
                stored = current.apply(manifest, manager=field_owner, force=force)
                self._update(session, current, stored)
        return stored.manifest

    def patch(
        self,
        key: ObjectKey,
        patch: Mapping[str, object],
        *,
        field_owner: str,
        resource_version: str | None = None,
    ) -> Manifest:
        with self._transaction() as session:
            current = _stored(self._require(session, key))
            current.check_version(resource_version)
            stored = current.merge_patch(patch, manager=field_owner)
            self._update(session, current, stored)
        return stored.manifest

    def delete(self, key: ObjectKey) -> None:
        with self._transaction() as session:
            result = session.execute(
                delete(objects_table).where(*self._key_clause(key))
            )
            if result.rowcount == 0:
                raise NotFoundError(f"{key} not found")
        log.debug("Deleted %s", key)

    def update_status(self, manifest: Manifest) -> Manifest:
        key = object_key(manifest)
        with self._transaction() as session:
            current = _stored(self._require(session, key))
            current.check_version(manifest.get("metadata", {}).get("resourceVersion"))
            stored = current.with_status(manifest.get("status"))
            self._update(session, current, stored)
        return stored.manifest

    def _transaction(self) -> AbstractContextManager[Session]:
        return _translated(self._sessions)

    @staticmethod
    def _key_clause(key: ObjectKey) -> tuple[Any, ...]:
        return (
            objects_table.c.api_version == key.api_version,
            objects_table.c.kind == key.kind,
            objects_table.c.namespace == (key.namespace or CLUSTER_NAMESPACE),
            objects_table.c.name == key.name,
        )

    def _find(self, session: Session, key: ObjectKey) -> Row[Any] | None:
        return session.execute(select(objects_table).where(*self._key_clause(key))).first()

    def _require(self, session: Session, key: ObjectKey) -> Row[Any]:
        row = self._find(session, key)
        if row is None:
            raise NotFoundError(f"{key} not found")
        return row

    @staticmethod
    def _insert(session: Session, stored: StoredObject) -> None:
        key = stored.key
        try:
            session.execute(
                insert(objects_table).values(
                    uid=stored.uid,
                    api_version=key.api_version,
                    kind=key.kind,
                    namespace=key.namespace or CLUSTER_NAMESPACE,
                    name=key.name,
                    resource_version=stored.resource_version,
                    manifest=stored.manifest,
                    managed_fields=managed_fields_to_json(stored.managed_fields),
                )
            )
        except IntegrityError as exc:
            raise ConflictError(f"{key} was created concurrently") from exc

    @staticmethod
    def _update(session: Session, current: StoredObject, stored: StoredObject) -> None:
        result = session.execute(
            update(objects_table)
            .where(
                objects_table.c.uid == current.uid,
                objects_table.c.resource_version == current.resource_version,
            )
            .values(
                resource_version=stored.resource_version,
                manifest=stored.manifest,
                managed_fields=managed_fields_to_json(stored.managed_fields),
            )
        )
        if result.rowcount == 0:
            raise ConflictError(f"{current.key} was modified concurrently")


@contextmanager
def _translated(sessions: sessionmaker[Session]) -> Iterator[Session]:
    """Transaction scope that reports database failures as store errors."""

    try:
        with sessions.begin() as session:
            yield session
    except SQLAlchemyError as exc:
        raise ObjectStoreError(f"database error: {exc}") from exc
