"""Outcome of one reconciliation pass."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from oamkit.domain.errors import ReconcileError

DEFAULT_REQUEUE_AFTER = timedelta(seconds=30)


@dataclass(frozen=True, slots=True)
class ReconcileResult:
    """``requeue_after`` asks the caller to run the same key again after that delay."""

    requeue_after: timedelta | None = None
    error: ReconcileError | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def requeue(self) -> bool:
        return self.requeue_after is not None
