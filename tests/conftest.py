from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.pool import StaticPool

from oamkit.adapters.manifests import PydanticManifestTranslator
from oamkit.adapters.memory import InMemoryObjectStore
from oamkit.adapters.sqlalchemy import SqlAlchemyObjectStore, shutdown, startup
from oamkit.domain.model import OwnershipIndex
from oamkit.domain.reconciliation import TraitReconciler, WorkloadReconciler
from tests.helpers.stores import RecordingObjectStore

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def translator() -> PydanticManifestTranslator:
    return PydanticManifestTranslator()


@pytest.fixture
def store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def recording_store() -> RecordingObjectStore:
    return RecordingObjectStore()


@pytest.fixture
def workload_reconciler(
    recording_store: RecordingObjectStore, translator: PydanticManifestTranslator
) -> WorkloadReconciler:
    return WorkloadReconciler(recording_store, translator, index=OwnershipIndex())


@pytest.fixture
def trait_reconciler(
    recording_store: RecordingObjectStore, translator: PydanticManifestTranslator
) -> TraitReconciler:
    return TraitReconciler(recording_store, translator)


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlalchemy_store(sqlite_engine: Engine) -> Iterator[SqlAlchemyObjectStore]:
    startup(engine=sqlite_engine, force=True)
    try:
        yield SqlAlchemyObjectStore()
    finally:
        shutdown()
