"""Error taxonomy for deploy routing and recovery.

Transport collaborators signal failures by raising an exception that carries a
``kind`` attribute.  The recovery workflows branch on :func:`failure_kind`
only; they never guess the kind from the exception type or message.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final


class FailureKind(StrEnum):
    """Classification attached to a transport failure."""

    REPAIR_BOOTLOADER = "repairbootloader"
    DEVICE_NOT_FOUND = "devicenotfound"
    TIMEOUT = "timeout"
    OTHER = "other"


class DeployError(Exception):
    """Base class for deploy engine errors."""


class CompileFailed(DeployError):
    """Raised when a failed compile result is handed to a device path."""


class TransportError(DeployError):
    """Failure reported by a transport collaborator."""

    kind: FailureKind = FailureKind.OTHER

    def __init__(self, message: str = "", *, kind: FailureKind | str | None = None) -> None:
        super().__init__(message or self.__class__.__name__)
        if kind is not None:
            self.kind = _coerce_kind(kind)


class TransportRepairable(TransportError):
    """Device is in bootloader mode and must be paired again."""

    kind = FailureKind.REPAIR_BOOTLOADER


class TransportDeviceNotFound(TransportError):
    """No device answered on the selected transport."""

    kind = FailureKind.DEVICE_NOT_FOUND


class TransportTimeout(TransportError):
    """The wrapped deploy did not settle within its time bound."""

    kind = FailureKind.TIMEOUT


class TransportOther(TransportError):
    """Unclassified transport failure."""


class DisconnectFailed(DeployError):
    """Best-effort transport disconnect failed."""


class DeployInFlightError(DeployError):
    """A deploy was requested while another one is still running."""


class ConfigurationError(ValueError):
    """Raised when configuration fails validation."""

    def __init__(self, message: str, *, errors: dict[str, object] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or {}


_KIND_ALIASES: Final[dict[str, FailureKind]] = {kind.value: kind for kind in FailureKind}


def _coerce_kind(value: FailureKind | str) -> FailureKind:
    if isinstance(value, FailureKind):
        return value
    return _KIND_ALIASES.get(str(value).strip().lower(), FailureKind.OTHER)


def failure_kind(exc: BaseException) -> FailureKind:
    """Return the classification carried by *exc*.

    Exceptions without a ``kind`` (or with an unknown one) are ``OTHER``.
    """
    kind = getattr(exc, "kind", None)
    if kind is None:
        return FailureKind.OTHER
    return _coerce_kind(kind)


__all__ = [
    "CompileFailed",
    "ConfigurationError",
    "DeployError",
    "DeployInFlightError",
    "DisconnectFailed",
    "FailureKind",
    "TransportDeviceNotFound",
    "TransportError",
    "TransportOther",
    "TransportRepairable",
    "TransportTimeout",
    "failure_kind",
]
