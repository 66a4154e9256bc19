"""Deployment channel identifiers."""

from __future__ import annotations

from enum import StrEnum


class DeploymentChannel(StrEnum):
    """Transport a compiled program is delivered through."""

    NATIVE_HOST = "native-host"
    WINRT_HF2 = "winrt-hf2"
    WINRT_CUSTOM = "winrt-custom"
    ELECTRON = "electron"
    WEBUSB_AUTO = "webusb-auto"
    WEBUSB_PAIRED = "webusb-paired"
    HID_BRIDGE = "hid-bridge"
    LOCAL_SERVER = "local-server"
    BROWSER_ONLY = "browser-only"


__all__ = ["DeploymentChannel"]
