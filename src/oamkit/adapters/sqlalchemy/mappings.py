"""SQLAlchemy table metadata for stored objects."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Column,
    Index,
    MetaData,
    String,
    Table,
    UniqueConstraint,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

# cluster-scoped objects are stored with an empty namespace so the unique
# constraint holds (NULLs never compare equal)
CLUSTER_NAMESPACE = ""

metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "pk": "pk_%(table_name)s",
    }
)

objects_table = Table(
    "objects",
    metadata,
    Column("uid", String(36), primary_key=True),
    Column("api_version", String, nullable=False),
    Column("kind", String, nullable=False),
    Column("namespace", String, nullable=False, default=CLUSTER_NAMESPACE),
    Column("name", String, nullable=False),
    Column("resource_version", String, nullable=False),
    Column("manifest", JSON, nullable=False),
    Column("managed_fields", JSON, nullable=False, default=dict),
    UniqueConstraint("api_version", "kind", "namespace", "name"),
    Index(None, "api_version", "kind", "namespace"),
)


def create_all_tables(engine: Engine) -> None:
    log.debug("Creating tables on %s", engine.url)
    metadata.create_all(engine)
