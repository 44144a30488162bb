from __future__ import annotations

import base64
import json
from typing import Any

import pytest

from oamkit.adapters.admission import json_patch, mutate, review, validate
from tests.helpers.manifests import trait_manifest


def _review(obj: dict[str, Any] | None, *, resource: str = "manualscalertraits") -> dict[str, Any]:
    return {
        "apiVersion": "admission.k8s.io/v1",
        "kind": "AdmissionReview",
        "request": {
            "uid": "req-1",
            "resource": {"group": "core.oam.dev", "version": "v1alpha2", "resource": resource},
            "operation": "CREATE",
            "object": obj,
        },
    }


def _decoded_patch(encoded: str | None) -> list[dict[str, Any]]:
    assert encoded is not None
    return json.loads(base64.b64decode(encoded))


def test_validate_allows_five_replicas() -> None:
    response = validate(json.dumps(trait_manifest(replica_count=5)).encode())

    assert response.allowed
    assert response.status is None


def test_validate_denies_eleven_replicas() -> None:
    response = validate(trait_manifest(replica_count=11))

    assert not response.allowed
    assert response.status is not None
    assert response.status.code == 403
    assert response.status.message == "maximum replica count 10, got 11"


def test_validate_denies_incomplete_reference() -> None:
    response = validate(trait_manifest(workload_ref={"name": "web"}))

    assert not response.allowed
    assert response.status is not None
    assert response.status.code == 403


@pytest.mark.parametrize("raw", [b"not json", b"[]", json.dumps({"kind": "ManualScalerTrait"})])
def test_undecodable_object_is_a_bad_request(raw: bytes | str) -> None:
    response = validate(raw)

    assert not response.allowed
    assert response.status is not None
    assert response.status.code == 400


def test_mutate_defaults_missing_kind() -> None:
    manifest = trait_manifest(workload_ref={"name": "web", "apiVersion": "core.oam.dev/v1alpha2"})

    response = mutate(manifest)

    assert response.allowed
    assert response.patch_type == "JSONPatch"
    assert _decoded_patch(response.patch) == [
        {"op": "add", "path": "/spec/workloadRef/kind", "value": "ContainerizedWorkload"}
    ]


def test_mutate_complete_trait_has_no_patch() -> None:
    response = mutate(trait_manifest())

    assert response.allowed
    assert response.patch is None


def test_json_patch_adds_whole_reference_when_absent() -> None:
    operations = json_patch({"spec": {"replicaCount": 1}}, {"kind": "ContainerizedWorkload"})

    assert operations == [
        {"op": "add", "path": "/spec/workloadRef", "value": {"kind": "ContainerizedWorkload"}}
    ]


def test_review_echoes_uid() -> None:
    answer = review(json.dumps(_review(trait_manifest(replica_count=11))), "validate")

    assert answer.response is not None
    assert answer.response.uid == "req-1"
    assert not answer.response.allowed
    dumped = answer.model_dump(mode="json", by_alias=True, exclude_none=True)
    assert dumped["apiVersion"] == "admission.k8s.io/v1"
    assert dumped["response"]["status"]["code"] == 403


def test_review_mutate_returns_patch() -> None:
    answer = review(_review(trait_manifest(workload_ref={"name": "web"})), "mutate")

    assert answer.response is not None
    assert answer.response.allowed
    assert answer.response.uid == "req-1"
    assert {op["path"] for op in _decoded_patch(answer.response.patch)} == {
        "/spec/workloadRef/kind",
        "/spec/workloadRef/apiVersion",
    }


def test_review_rejects_other_resources() -> None:
    answer = review(_review(trait_manifest(), resource="deployments"), "validate")

    assert answer.response is not None
    assert not answer.response.allowed
    assert answer.response.status is not None
    assert answer.response.status.code == 400


def test_review_without_request_is_a_bad_request() -> None:
    answer = review({"apiVersion": "admission.k8s.io/v1", "kind": "AdmissionReview"}, "validate")

    assert answer.response is not None
    assert answer.response.status is not None
    assert answer.response.status.code == 400
