"""Public interface for the API server adapter."""

from __future__ import annotations

from .client import APPLY_PATCH, MERGE_PATCH, KubernetesObjectStore, format_label_selector

__all__ = ["APPLY_PATCH", "MERGE_PATCH", "KubernetesObjectStore", "format_label_selector"]
