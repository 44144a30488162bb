"""Public interface for the manifest schema adapter."""

from __future__ import annotations

from .schema import TraitPayload, WorkloadDefinitionPayload, WorkloadPayload
from .translator import PydanticManifestTranslator

__all__ = [
    "PydanticManifestTranslator",
    "TraitPayload",
    "WorkloadDefinitionPayload",
    "WorkloadPayload",
]
