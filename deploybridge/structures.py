"""Data records exchanged between the engine and its collaborators."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

import msgspec


class CompileResult(msgspec.Struct, frozen=True, rename="camel"):
    """Compiled artifact bundle handed to the deploy commands.

    The engine never mutates it; ``user_context_window`` is an opaque handle
    owned by the browser download collaborator.
    """

    success: bool
    outfiles: dict[str, bytes | str] = msgspec.field(default_factory=dict)
    download_file_base_name: str = ""
    save_only: bool = False
    user_context_window: Any = None

    def output(self, name: str) -> bytes | str | None:
        return self.outfiles.get(name)

    def wire_payload(self) -> bytes:
        """JSON body for the local development server."""
        return msgspec.json.encode(msgspec.structs.replace(self, user_context_window=None))


class EnvironmentFacts(msgspec.Struct, frozen=True):
    """Probe results valid for a single channel selection pass."""

    force_download: bool = False
    no_deploy: bool = False
    native_host: bool = False
    winrt: bool = False
    winrt_use_hf2: bool = False
    winrt_raw_hid: bool = False
    electron: bool = False
    webusb_available: bool = False
    webusb_config_enabled: bool = False
    auto_webusb_download: bool = False
    paired_once: bool = False
    hid_bridge: bool = False
    local_server: bool = False
    local_token_present: bool = False

    @property
    def webusb_usable(self) -> bool:
        return self.webusb_available and self.webusb_config_enabled


class OutcomeAction(StrEnum):
    """Terminal path a deploy command took."""

    FLASHED = "flashed"
    SAVED = "saved"
    DOWNLOADED = "downloaded"
    UPLOADED = "uploaded"
    INSTRUCTED = "instructed"
    REPORTED = "reported"
    SKIPPED = "skipped"


class DeployOutcome(msgspec.Struct, frozen=True, omit_defaults=True):
    action: OutcomeAction
    channel: str | None = None
    file_name: str | None = None
    url: str | None = None
    detail: str | None = None


class DialogButton(msgspec.Struct, frozen=True, omit_defaults=True):
    label: str
    icon: str | None = None
    class_name: str | None = None
    url: str | None = None
    file_name: str | None = None


class ConfirmOptions(msgspec.Struct, frozen=True, omit_defaults=True):
    """Dialog request passed to the user interaction surface."""

    header: str
    body: str = ""
    agree_label: str | None = None
    disagree_label: str | None = None
    hide_agree: bool = False
    hide_cancel: bool = False
    has_close_icon: bool = False
    buttons: tuple[DialogButton, ...] = ()
    timeout_ms: int = 0


class NativeHostMessage(msgspec.Struct, frozen=True, omit_defaults=True):
    """Message posted to a native (webkit/android) host shell."""

    name: str
    download: bytes | str | None = None
    save: bytes | str | None = None


class ConnectionStatus(msgspec.Struct, frozen=True):
    connected: bool


class LocalDeployResponse(msgspec.Struct, frozen=True, rename="camel"):
    board_count: int | None = None


__all__ = [
    "CompileResult",
    "ConfirmOptions",
    "ConnectionStatus",
    "DeployOutcome",
    "DialogButton",
    "EnvironmentFacts",
    "LocalDeployResponse",
    "NativeHostMessage",
    "OutcomeAction",
]
