"""SQLAlchemy adapter package for oamkit."""

from __future__ import annotations

from .engine import StartupError, is_started, shutdown, startup
from .mappings import create_all_tables, objects_table
from .store import SqlAlchemyObjectStore

__all__ = [
    "SqlAlchemyObjectStore",
    "StartupError",
    "create_all_tables",
    "is_started",
    "objects_table",
    "shutdown",
    "startup",
]
