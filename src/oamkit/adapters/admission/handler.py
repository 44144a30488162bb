"""Answer admission reviews for manual scaler traits.

``validate`` and ``mutate`` take the raw trait object (bytes, text or an
already decoded mapping) and return an ``AdmissionResponse``. ``review`` wraps
them for a complete ``AdmissionReview`` body.
"""

from __future__ import annotations

import base64
import json
from http import HTTPStatus
from logging import getLogger
from typing import TYPE_CHECKING, Any, Literal, TypeAlias

from pydantic import ValidationError

from oamkit.adapters.manifests import PydanticManifestTranslator
from oamkit.domain.admission import DEFAULT_MAX_REPLICAS, mutate_trait, validate_trait
from oamkit.domain.model import DEFAULT_REGISTRY, TRAIT_GVK
from oamkit.domain.ports.manifests import ManifestError

from .schema import AdmissionResponse, AdmissionReview, StatusPayload

if TYPE_CHECKING:
    from collections.abc import Mapping

    from oamkit.domain.model import ManualScalerTrait
    from oamkit.domain.ports.manifests import ManifestTranslator

log = getLogger(__name__)

RawObject: TypeAlias = "bytes | str | Mapping[str, Any]"
ReviewMode: TypeAlias = Literal["validate", "mutate"]

TRAIT_RESOURCE = DEFAULT_REGISTRY.lookup(TRAIT_GVK).plural

_TRANSLATOR = PydanticManifestTranslator()


class AdmissionDecodeError(ValueError):
    """Raised when the submitted object is not a readable trait."""


def _deny(code: int, message: str) -> AdmissionResponse:
    return AdmissionResponse(allowed=False, status=StatusPayload(code=int(code), message=message))


def _decode(raw: RawObject) -> dict[str, Any]:
    if isinstance(raw, (bytes, str)):
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise AdmissionDecodeError(f"object is not valid JSON: {exc}") from exc
    else:
        data = dict(raw)
    if not isinstance(data, dict):
        raise AdmissionDecodeError("object must be a JSON object")
    return data


def _trait(data: Mapping[str, Any], translator: ManifestTranslator) -> ManualScalerTrait:
    try:
        return translator.trait_from_manifest(data)
    except ManifestError as exc:
        raise AdmissionDecodeError(str(exc)) from exc


def validate(
    raw: RawObject,
    *,
    max_replicas: int = DEFAULT_MAX_REPLICAS,
    translator: ManifestTranslator = _TRANSLATOR,
) -> AdmissionResponse:
    try:
        trait = _trait(_decode(raw), translator)
    except AdmissionDecodeError as exc:
        log.info("Rejecting undecodable trait: %s", exc)
        return _deny(HTTPStatus.BAD_REQUEST, str(exc))

    decision = validate_trait(trait, max_replicas=max_replicas)
    if not decision.allowed:
        log.info("Denied trait %s: %s", trait.key, decision.reason)
        return _deny(decision.code, decision.reason)
    return AdmissionResponse(allowed=True)


def mutate(raw: RawObject, *, translator: ManifestTranslator = _TRANSLATOR) -> AdmissionResponse:
    try:
        data = _decode(raw)
        trait = _trait(data, translator)
    except AdmissionDecodeError as exc:
        log.info("Rejecting undecodable trait: %s", exc)
        return _deny(HTTPStatus.BAD_REQUEST, str(exc))

    result = mutate_trait(trait)
    if not result.changed:
        return AdmissionResponse(allowed=True)

    log.info("Defaulted workloadRef of trait %s: %s", trait.key, result.defaults)
    operations = json_patch(data, result.defaults)
    return AdmissionResponse(
        allowed=True,
        patch=base64.b64encode(json.dumps(operations).encode()).decode(),
        patch_type="JSONPatch",
    )


def json_patch(data: Mapping[str, Any], defaults: Mapping[str, str]) -> list[dict[str, Any]]:
    """RFC 6902 operations that add ``defaults`` under ``/spec/workloadRef``."""

    spec = data.get("spec") or {}
    if not isinstance(spec.get("workloadRef"), dict):
        return [{"op": "add", "path": "/spec/workloadRef", "value": dict(defaults)}]
    return [
        {"op": "add", "path": f"/spec/workloadRef/{name}", "value": value}
        for name, value in defaults.items()
    ]


def review(
    body: RawObject,
    mode: ReviewMode,
    *,
    max_replicas: int = DEFAULT_MAX_REPLICAS,
) -> AdmissionReview:
    """Answer an ``AdmissionReview``; the request uid is echoed back."""

    try:
        envelope = AdmissionReview.model_validate(_decode(body))
    except (AdmissionDecodeError, ValidationError) as exc:
        return AdmissionReview(response=_deny(HTTPStatus.BAD_REQUEST, f"invalid review: {exc}"))

    request = envelope.request
    if request is None:
        return AdmissionReview(
            api_version=envelope.api_version,
            response=_deny(HTTPStatus.BAD_REQUEST, "review carries no request"),
        )

    resource = request.resource
    if resource.group_version != TRAIT_GVK.api_version or resource.resource != TRAIT_RESOURCE:
        response = _deny(
            HTTPStatus.BAD_REQUEST,
            f"expected resource {TRAIT_RESOURCE}.{TRAIT_GVK.group}, got "
            f"{resource.resource}.{resource.group}",
        )
    elif request.object is None:
        response = _deny(HTTPStatus.BAD_REQUEST, "review carries no object")
    elif mode == "mutate":
        response = mutate(request.object)
    else:
        response = validate(request.object, max_replicas=max_replicas)

    response.uid = request.uid
    return AdmissionReview(api_version=envelope.api_version, response=response)
