"""Reconciliation defaults for the workload and trait controllers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from .env import env_float, env_int, optional_env_var

DEFAULT_REQUEUE_SECONDS = 30.0
DEFAULT_RESYNC_SECONDS = 30.0
DEFAULT_MAX_REPLICAS = 10
DEFAULT_WORKERS = 4


@dataclass(frozen=True, slots=True)
class ReconcileConfig:
    requeue_after: timedelta = timedelta(seconds=DEFAULT_REQUEUE_SECONDS)
    resync_interval: timedelta = timedelta(seconds=DEFAULT_RESYNC_SECONDS)
    max_replicas: int = DEFAULT_MAX_REPLICAS
    workers: int = DEFAULT_WORKERS
    # None watches every namespace
    namespace: str | None = None


def get_reconcile_config() -> ReconcileConfig:
    return ReconcileConfig(
        requeue_after=timedelta(
            seconds=env_float("OAMKIT_REQUEUE_SECONDS", DEFAULT_REQUEUE_SECONDS)
        ),
        resync_interval=timedelta(
            seconds=env_float("OAMKIT_RESYNC_SECONDS", DEFAULT_RESYNC_SECONDS)
        ),
        max_replicas=env_int("OAMKIT_MAX_REPLICAS", DEFAULT_MAX_REPLICAS),
        workers=max(1, env_int("OAMKIT_WORKERS", DEFAULT_WORKERS)),
        namespace=optional_env_var("OAMKIT_NAMESPACE"),
    )
