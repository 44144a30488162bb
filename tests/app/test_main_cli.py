from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest
import yaml

from oamkit import main as main_module
from oamkit.adapters.memory import InMemoryObjectStore
from tests.helpers.manifests import definition_manifest, trait_manifest, workload_manifest

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def manifests_file(tmp_path: Path) -> Path:
    path = tmp_path / "app.yaml"
    path.write_text(
        yaml.safe_dump_all([definition_manifest(), workload_manifest(), trait_manifest()]),
        encoding="utf-8",
    )
    return path


def test_reconcile_once_succeeds(manifests_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main_module.main(["--store", "memory", "reconcile", "--once", "-f", str(manifests_file)])

    assert excinfo.value.code == 0
    assert "ContainerizedWorkload/web stored" in capsys.readouterr().out


def test_reconcile_once_reports_failures(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    path = tmp_path / "orphan.yaml"
    path.write_text(yaml.safe_dump(trait_manifest(workload="ghost")), encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main_module.main(["--store", "memory", "reconcile", "--once", "-f", str(path)])

    assert excinfo.value.code == 1
    assert "cannot find workload" in capsys.readouterr().err


def test_get_prints_stored_object(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    store = InMemoryObjectStore()
    store.apply(workload_manifest(), field_owner="test")
    monkeypatch.setattr(main_module, "build_store", lambda _kind: store)

    main_module.main(["get", "containerizedworkload", "web"])

    printed = yaml.safe_load(capsys.readouterr().out)
    assert printed["metadata"]["name"] == "web"


def test_get_unknown_kind_exits_with_usage_error() -> None:
    with pytest.raises(SystemExit) as excinfo:
        main_module.main(["--store", "memory", "get", "gizmo", "web"])

    assert excinfo.value.code == 2


def test_invalid_interval_exits_with_usage_error() -> None:
    with pytest.raises(SystemExit) as excinfo:
        main_module.main(["--store", "memory", "reconcile", "--interval", "0"])

    assert excinfo.value.code == 2


def test_admit_validate_prints_review(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "review.json"
    path.write_text(
        json.dumps(
            {
                "apiVersion": "admission.k8s.io/v1",
                "kind": "AdmissionReview",
                "request": {
                    "uid": "req-7",
                    "resource": {
                        "group": "core.oam.dev",
                        "version": "v1alpha2",
                        "resource": "manualscalertraits",
                    },
                    "object": trait_manifest(replica_count=11),
                },
            }
        ),
        encoding="utf-8",
    )

    main_module.main(["admit", "validate", str(path)])

    answer = json.loads(capsys.readouterr().out)
    assert answer["response"]["uid"] == "req-7"
    assert answer["response"]["allowed"] is False
    assert answer["response"]["status"]["code"] == 403
