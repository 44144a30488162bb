"""Admission checks applied to traits before they are stored."""

from __future__ import annotations

from .gate import (
    DEFAULT_MAX_REPLICAS,
    AdmissionDecision,
    MutationResult,
    mutate_trait,
    validate_trait,
)

__all__ = [
    "DEFAULT_MAX_REPLICAS",
    "AdmissionDecision",
    "MutationResult",
    "mutate_trait",
    "validate_trait",
]
