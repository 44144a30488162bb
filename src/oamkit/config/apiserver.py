"""API server connection settings."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_bool, env_float, optional_env_var, require_env_vars

DEFAULT_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True, slots=True)
class ApiServerConfig:
    """Holds the connection values for a Kubernetes-compatible API server."""

    base_url: str
    token: str | None = None
    ca_file: str | None = None
    insecure: bool = False
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @property
    def verify(self) -> bool | str:
        if self.insecure:
            return False
        return self.ca_file or True


def get_apiserver_config() -> ApiServerConfig:
    values = require_env_vars(("KUBE_API_SERVER",))
    return ApiServerConfig(
        base_url=values["KUBE_API_SERVER"].rstrip("/"),
        token=optional_env_var("KUBE_TOKEN"),
        ca_file=optional_env_var("KUBE_CA_FILE"),
        insecure=env_bool("KUBE_INSECURE", False),
        timeout_seconds=env_float("KUBE_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
    )
