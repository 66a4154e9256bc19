"""Protocols describing the collaborators the engine routes deploys to.

Transport implementations, dialogs and browser downloads live outside this
package; only the surface the engine calls is declared here.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol

from .structures import CompileResult, ConfirmOptions, NativeHostMessage

ConfirmCallable = Callable[[ConfirmOptions], Awaitable[int]]
NativePostMessage = Callable[[NativeHostMessage], None]
ErrorCallback = Callable[[BaseException], None]
PacketIOFactory = Callable[..., Awaitable[Any]]
PacketIOWrapperFactory = Callable[..., Any]
CompileDeploy = Callable[[CompileResult], Awaitable[Any]]


class DeviceHandle(Protocol):
    async def reflash_async(self, resp: CompileResult) -> Any: ...


class PacketIOService(Protocol):
    """Packet I/O layer shared by the WebUSB, HID bridge and WinRT transports."""

    mk_packet_io: PacketIOFactory | None
    mk_packet_io_wrapper: PacketIOWrapperFactory | None

    async def init_async(self, force: bool = False) -> DeviceHandle: ...

    async def disconnect_wrapper(self) -> None: ...

    def is_connected(self) -> bool: ...


class WebUsbService(Protocol):
    mk_packet_io: PacketIOFactory

    def is_available(self) -> bool: ...

    def set_enabled(self, enabled: bool) -> None: ...

    async def pair_async(self) -> Any: ...


class WinRTService(Protocol):
    mk_packet_io: PacketIOFactory

    def init_winrt_hid(
        self,
        connect: Callable[[], Awaitable[None]] | None,
        disconnect: Callable[[], Awaitable[None]] | None,
    ) -> None: ...

    async def drive_deploy_core(self, resp: CompileResult) -> Any: ...

    async def browser_download(self, text: str, name: str, content_type: str) -> Any: ...

    async def save_only(self, resp: CompileResult) -> bool: ...


class UserInterface(Protocol):
    """Dialogs and notifications; rendering is not this package's concern."""

    async def confirm(self, options: ConfirmOptions) -> int: ...

    def info(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class BrowserDownloader(Protocol):
    def is_download_within_user_context(self) -> bool: ...

    def is_download_in_same_window(self) -> bool: ...

    def has_save_as(self) -> bool: ...

    def can_download_again(self) -> bool: ...

    def to_data_uri(self, data: bytes | str, mime_type: str) -> str: ...

    def download_base64(
        self,
        data: bytes | str,
        name: str,
        content_type: str,
        window: Any = None,
        on_error: ErrorCallback | None = None,
    ) -> str: ...

    def download_bin_text(
        self,
        text: bytes | str,
        name: str,
        content_type: str,
        window: Any = None,
        on_error: ErrorCallback | None = None,
    ) -> str: ...


class HostEnvironment(Protocol):
    """Read-only view of the platform the engine runs in."""

    def location_href(self) -> str: ...

    def native_host_messenger(self) -> NativePostMessage | None: ...

    def is_winrt(self) -> bool: ...

    def is_electron(self) -> bool: ...

    def hid_bridge_should_use(self) -> bool: ...

    def is_localhost(self) -> bool: ...

    def local_token(self) -> str | None: ...


@dataclass(slots=True)
class Transports:
    """Collaborator bundle the selector binds channels to."""

    packet_io: PacketIOService
    usb: WebUsbService
    winrt: WinRTService
    webusb_deploy_core: CompileDeploy
    electron_drive_deploy: CompileDeploy
    hid_bridge_factory: PacketIOFactory
    hf2_wrapper_factory: PacketIOWrapperFactory | None = None


__all__ = [
    "BrowserDownloader",
    "CompileDeploy",
    "ConfirmCallable",
    "DeviceHandle",
    "ErrorCallback",
    "HostEnvironment",
    "NativePostMessage",
    "PacketIOFactory",
    "PacketIOService",
    "PacketIOWrapperFactory",
    "Transports",
    "UserInterface",
    "WebUsbService",
    "WinRTService",
]
