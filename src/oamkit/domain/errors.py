"""Stage-tagged reconciliation errors.

Each error names the pipeline stage it was raised from so operators can tell
where a pass failed from the condition message alone. The original cause is
always chained (``raise ... from exc``).
"""

from __future__ import annotations

from typing import ClassVar

from oamkit.domain.model.enums import Stage


class ReconcileError(RuntimeError):
    """Base class for failures inside one reconciliation pass."""

    stage: ClassVar[Stage]

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        detail = f"{message}: {cause}" if cause is not None else message
        super().__init__(detail)
        self.message = message
        if cause is not None:
            self.__cause__ = cause


class RenderError(ReconcileError):
    """The workload spec is malformed or incomplete."""

    stage = Stage.RENDER


class ApplyError(ReconcileError):
    """A rendered resource could not be applied (e.g. field ownership conflict)."""

    stage = Stage.APPLY


class GarbageCollectionError(ReconcileError):
    """An orphaned resource could not be deleted."""

    stage = Stage.GC


class StatusUpdateError(ReconcileError):
    stage = Stage.STATUS


class LocateError(ReconcileError):
    """The workload, its definition or its children could not be found."""

    stage = Stage.LOCATE


class ReferenceMismatchError(LocateError):
    """The trait names a workload whose uid differs from the live object."""


class ScaleError(ReconcileError):
    stage = Stage.SCALE
