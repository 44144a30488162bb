"""Object store talking to a Kubernetes-compatible API server."""

from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING, Any, Self, cast

import httpx

from oamkit.adapters.fields import object_key
from oamkit.domain.model import DEFAULT_REGISTRY, GroupVersionKind
from oamkit.domain.ports.store import ConflictError, NotFoundError, ObjectStoreError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from oamkit.config import ApiServerConfig
    from oamkit.domain.model import Manifest, ObjectKey, TypeRegistry

log = getLogger(__name__)

APPLY_PATCH = "application/apply-patch+yaml"
MERGE_PATCH = "application/merge-patch+json"


def _default_client(config: ApiServerConfig) -> httpx.Client:
    headers = {"Accept": "application/json"}
    if config.token:
        headers["Authorization"] = f"Bearer {config.token}"
    return httpx.Client(
        base_url=config.base_url,
        headers=headers,
        verify=config.verify,
        timeout=config.timeout_seconds,
    )


def format_label_selector(selector: Mapping[str, str] | None) -> str | None:
    if not selector:
        return None
    return ",".join(f"{name}={value}" for name, value in sorted(selector.items()))


class KubernetesObjectStore:
    """``ObjectStore`` over the API server REST interface.

    Field ownership, conflict detection and resource versions are the server's
    business; this adapter only translates calls and status codes.
    """

    def __init__(
        self,
        config: ApiServerConfig | None = None,
        *,
        registry: TypeRegistry = DEFAULT_REGISTRY,
        client: httpx.Client | None = None,
    ) -> None:
        if client is None:
            if config is None:
                raise ValueError("either config or client is required")
            client = _default_client(config)
        self._client = client
        self._registry = registry

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def collection_path(self, gvk: GroupVersionKind, namespace: str | None) -> str:
        info = self._registry.lookup(gvk)
        base = f"/api/{gvk.version}" if not gvk.group else f"/apis/{gvk.group}/{gvk.version}"
        if info.namespaced and namespace:
            return f"{base}/namespaces/{namespace}/{info.plural}"
        return f"{base}/{info.plural}"

    def object_path(self, key: ObjectKey) -> str:
        return f"{self.collection_path(key.gvk, key.namespace)}/{key.name}"

    def get(self, key: ObjectKey) -> Manifest:
        return self._request("GET", self.object_path(key))

    def list(
        self,
        api_version: str,
        kind: str,
        namespace: str | None = None,
        label_selector: Mapping[str, str] | None = None,
    ) -> list[Manifest]:
        params: dict[str, str] = {}
        selector = format_label_selector(label_selector)
        if selector is not None:
            params["labelSelector"] = selector
        gvk = GroupVersionKind(api_version, kind)
        payload = self._request("GET", self.collection_path(gvk, namespace), params=params)
        items: list[Manifest] = []
        # list responses leave apiVersion and kind off the items
        for item in payload.get("items") or []:
            item.setdefault("apiVersion", api_version)
            item.setdefault("kind", kind)
            items.append(item)
        return items

    def apply(self, manifest: Manifest, *, field_owner: str, force: bool = False) -> Manifest:
        params = {"fieldManager": field_owner}
        if force:
            params["force"] = "true"
        return self._request(
            "PATCH",
            self.object_path(object_key(manifest)),
            params=params,
            content=json.dumps(manifest),
            content_type=APPLY_PATCH,
        )

    def patch(
        self,
        key: ObjectKey,
        patch: Mapping[str, object],
        *,
        field_owner: str,
        resource_version: str | None = None,
    ) -> Manifest:
        body = dict(patch)
        if resource_version is not None:
            metadata = dict(cast("Mapping[str, object]", body.get("metadata") or {}))
            metadata["resourceVersion"] = resource_version
            body["metadata"] = metadata
        return self._request(
            "PATCH",
            self.object_path(key),
            params={"fieldManager": field_owner},
            content=json.dumps(body),
            content_type=MERGE_PATCH,
        )

    def delete(self, key: ObjectKey) -> None:
        self._request("DELETE", self.object_path(key), params={"propagationPolicy": "Background"})

    def update_status(self, manifest: Manifest) -> Manifest:
        return self._request(
            "PUT",
            f"{self.object_path(object_key(manifest))}/status",
            content=json.dumps(manifest),
            content_type="application/json",
        )

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        content: str | None = None,
        content_type: str | None = None,
    ) -> Manifest:
        headers = {"Content-Type": content_type} if content_type else None
        try:
            response = self._client.request(
                method, path, params=params, content=content, headers=headers
            )
        except httpx.HTTPError as exc:
            raise ObjectStoreError(f"{method} {path} failed: {exc}") from exc

        if response.status_code == httpx.codes.NOT_FOUND:
            raise NotFoundError(f"{path} not found")
        if response.status_code == httpx.codes.CONFLICT:
            raise ConflictError(f"{method} {path}: {_status_message(response)}")
        if response.is_error:
            log.error("API server answered %s to %s %s", response.status_code, method, path)
            raise ObjectStoreError(
                f"{method} {path} returned {response.status_code}: {_status_message(response)}"
            )
        if not response.content:
            return {}
        payload: Any = response.json()
        if not isinstance(payload, dict):
            raise ObjectStoreError(f"unexpected response payload from {method} {path}")
        return payload


def _status_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text
    if isinstance(payload, dict) and "message" in payload:
        return str(payload["message"])
    return response.text
