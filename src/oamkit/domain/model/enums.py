"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class OperatingSystem(StrEnum):
    LINUX = "linux"
    WINDOWS = "windows"


class CPUArchitecture(StrEnum):
    I386 = "i386"
    AMD64 = "amd64"
    ARM = "arm"
    ARM64 = "arm64"


class PortProtocol(StrEnum):
    TCP = "TCP"
    UDP = "UDP"
    SCTP = "SCTP"


class ConditionType(StrEnum):
    READY = "Ready"


class ConditionStatus(StrEnum):
    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


class ConditionReason(StrEnum):
    RECONCILE_SUCCESS = "ReconcileSuccess"
    RECONCILE_ERROR = "ReconcileError"


class Stage(StrEnum):
    """Pipeline stage a reconciliation error originated from."""

    RENDER = "render"
    APPLY = "apply"
    GC = "gc"
    STATUS = "status"
    LOCATE = "locate"
    SCALE = "scale"
