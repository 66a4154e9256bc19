"""Shared constants for Deploy Bridge components."""

from __future__ import annotations

from typing import Final

DEFAULT_WINRT_DEPLOY_TIMEOUT: Final[float] = 20.0
DEFAULT_BOOTLOADER_REPAIR_LIMIT: Final[int] = 1
DEFAULT_LOCAL_DEPLOY_URL: Final[str] = "/api/deploy"
DEFAULT_LOCAL_DEPLOY_TIMEOUT: Final[float] = 30.0
DEFAULT_DEBUG_LOGGING: Final[bool] = False
DEFAULT_LOG_STREAM: Final[bool] = False
DEFAULT_METRICS_ENABLED: Final[bool] = False

DEFAULT_OUTPUT_NAME: Final[str] = "binary.hex"
DEFAULT_HEX_MIME_TYPE: Final[str] = "application/x-microbit-hex"
UF2_MIME_TYPE: Final[str] = "application/x-uf2"
DEFAULT_DEVICE_LABEL: Final[str] = "device"
UNKNOWN_DRIVE_LABEL: Final[str] = "???"

# Milliseconds; 0 keeps the dialog open until dismissed.
UPLOAD_INSTRUCTIONS_TIMEOUT_MS: Final[int] = 10000

FORCE_DOWNLOAD_PATTERN: Final[str] = r"force(Hex)?(Browser)?Download"
FILE_NAME_UNSAFE_PATTERN: Final[str] = r"[\\/.?*^:<>|\"\x00-\x1F ]"

PACKETIO_API_PREFIX: Final[str] = "packetio"
PACKETIO_ICON: Final[str] = "usb"

METRICS_NAMESPACE: Final[str] = "deploybridge"

__all__ = [
    "DEFAULT_WINRT_DEPLOY_TIMEOUT",
    "DEFAULT_BOOTLOADER_REPAIR_LIMIT",
    "DEFAULT_LOCAL_DEPLOY_URL",
    "DEFAULT_LOCAL_DEPLOY_TIMEOUT",
    "DEFAULT_DEBUG_LOGGING",
    "DEFAULT_LOG_STREAM",
    "DEFAULT_METRICS_ENABLED",
    "DEFAULT_OUTPUT_NAME",
    "DEFAULT_HEX_MIME_TYPE",
    "UF2_MIME_TYPE",
    "DEFAULT_DEVICE_LABEL",
    "UNKNOWN_DRIVE_LABEL",
    "UPLOAD_INSTRUCTIONS_TIMEOUT_MS",
    "FORCE_DOWNLOAD_PATTERN",
    "FILE_NAME_UNSAFE_PATTERN",
    "PACKETIO_API_PREFIX",
    "PACKETIO_ICON",
    "METRICS_NAMESPACE",
]
