"""Domain port definitions for adapters."""

from __future__ import annotations

from .manifests import ManifestError, ManifestTranslator
from .store import ConflictError, NotFoundError, ObjectStore, ObjectStoreError

__all__ = [
    "ConflictError",
    "ManifestError",
    "ManifestTranslator",
    "NotFoundError",
    "ObjectStore",
    "ObjectStoreError",
]
