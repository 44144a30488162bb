"""Public interface for the admission review adapter."""

from __future__ import annotations

from .handler import AdmissionDecodeError, json_patch, mutate, review, validate
from .schema import AdmissionRequest, AdmissionResponse, AdmissionReview

__all__ = [
    "AdmissionDecodeError",
    "AdmissionRequest",
    "AdmissionResponse",
    "AdmissionReview",
    "json_patch",
    "mutate",
    "review",
    "validate",
]
