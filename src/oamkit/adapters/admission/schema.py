"""Pydantic models for the ``admission.k8s.io/v1`` review envelope."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

ADMISSION_API_VERSION = "admission.k8s.io/v1"

PatchType = Literal["JSONPatch"]


class AdmissionBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class GroupVersionResourcePayload(AdmissionBaseModel):
    group: str = ""
    version: str = ""
    resource: str = ""

    @property
    def group_version(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version


class AdmissionRequest(AdmissionBaseModel):
    uid: str
    resource: GroupVersionResourcePayload = Field(default_factory=GroupVersionResourcePayload)
    operation: str | None = None
    namespace: str | None = None
    name: str | None = None
    object: dict[str, Any] | None = None


class StatusPayload(AdmissionBaseModel):
    code: int
    message: str = ""


class AdmissionResponse(AdmissionBaseModel):
    uid: str = ""
    allowed: bool
    status: StatusPayload | None = None
    patch: str | None = None
    patch_type: PatchType | None = Field(default=None, alias="patchType")


class AdmissionReview(AdmissionBaseModel):
    api_version: str = Field(default=ADMISSION_API_VERSION, alias="apiVersion")
    kind: Literal["AdmissionReview"] = "AdmissionReview"
    request: AdmissionRequest | None = None
    response: AdmissionResponse | None = None
