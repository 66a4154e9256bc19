"""Deploy command table, its holder, and extension overrides.

The table is a value object: selection builds a fresh one and the holder swaps
it in whole, so a deploy that pinned a snapshot never sees a half-updated set
of bindings.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Final

from .errors import DeployError
from .interfaces import ConfirmCallable, PacketIOFactory, PacketIOWrapperFactory
from .structures import CompileResult

logger = logging.getLogger("deploybridge.commands")

DeviceNotFoundReporter = Callable[[str | None, CompileResult], Awaitable[Any]]


@dataclass(frozen=True, slots=True)
class DeployOptions:
    """Per-call options for ``deploy_core``."""

    report_device_not_found: DeviceNotFoundReporter | None = None
    commands: CommandTable | None = None


DeployCore = Callable[[CompileResult, DeployOptions], Awaitable[Any]]
SaveOnly = Callable[[CompileResult, DeployOptions | None], Awaitable[Any]]
BrowserDownload = Callable[[str, str, str], Awaitable[Any]]
ShowUploadInstructions = Callable[[str, str, ConfirmCallable], Awaitable[Any]]

REQUIRED_SLOTS: Final[tuple[str, ...]] = (
    "deploy_core",
    "save_only",
    "browser_download",
    "show_upload_instructions",
)


@dataclass(frozen=True, slots=True)
class CommandTable:
    """The four deploy operations plus optional auxiliary hooks."""

    deploy_core: DeployCore
    save_only: SaveOnly
    browser_download: BrowserDownload
    show_upload_instructions: ShowUploadInstructions
    packet_io_factory: PacketIOFactory | None = None
    mk_packet_io_wrapper: PacketIOWrapperFactory | None = None
    electron_deploy: DeployCore | None = None
    save_project: Callable[..., Awaitable[Any]] | None = None
    patch_compile_result: Callable[..., Awaitable[Any]] | None = None
    blockly_patch: Callable[..., Any] | None = None
    webusb_pair_dialog: Callable[..., Awaitable[Any]] | None = None
    on_tutorial_completed: Callable[..., Any] | None = None

    def __post_init__(self) -> None:
        for name in REQUIRED_SLOTS:
            if getattr(self, name) is None:
                raise ValueError(f"command slot {name} must be bound")

    def replace(self, **changes: Any) -> CommandTable:
        return dataclasses.replace(self, **changes)


class CommandTableHolder:
    """Single-writer owner of the active command table."""

    def __init__(self, table: CommandTable | None = None) -> None:
        self._table = table
        self._generation = 0

    @property
    def bound(self) -> bool:
        return self._table is not None

    @property
    def current(self) -> CommandTable:
        if self._table is None:
            raise DeployError("no deploy channel has been selected yet")
        return self._table

    @property
    def generation(self) -> int:
        """Incremented on every replacement that changed the bindings."""
        return self._generation

    def replace(self, table: CommandTable) -> bool:
        if table == self._table:
            return False
        self._table = table
        self._generation += 1
        return True


@dataclass(frozen=True, slots=True)
class ExtensionOverride:
    """Functions an editor extension supplies to replace built-in behaviour."""

    mk_packet_io_wrapper: PacketIOWrapperFactory | None = None
    deploy: DeployCore | None = None
    save_only: SaveOnly | None = None
    save_project: Callable[..., Awaitable[Any]] | None = None
    show_upload_instructions: ShowUploadInstructions | None = None
    patch_compile_result: Callable[..., Awaitable[Any]] | None = None
    blockly_patch: Callable[..., Any] | None = None
    webusb_pair_dialog: Callable[..., Awaitable[Any]] | None = None
    on_tutorial_completed: Callable[..., Any] | None = None

    def apply(self, table: CommandTable) -> CommandTable:
        """Return *table* with every populated field taking precedence."""
        changes: dict[str, Any] = {}
        for override_field, slot in _OVERRIDE_SLOTS.items():
            value = getattr(self, override_field)
            if value is None:
                continue
            logger.debug("extension %s", override_field)
            changes[slot] = value
        if not changes:
            return table
        return table.replace(**changes)


_OVERRIDE_SLOTS: Final[dict[str, str]] = {
    "mk_packet_io_wrapper": "mk_packet_io_wrapper",
    "deploy": "deploy_core",
    "save_only": "save_only",
    "save_project": "save_project",
    "show_upload_instructions": "show_upload_instructions",
    "patch_compile_result": "patch_compile_result",
    "blockly_patch": "blockly_patch",
    "webusb_pair_dialog": "webusb_pair_dialog",
    "on_tutorial_completed": "on_tutorial_completed",
}


def resolve_commands(options: DeployOptions | None, holder: CommandTableHolder) -> CommandTable:
    """Prefer the snapshot pinned for this deploy over the live table."""
    if options is not None and options.commands is not None:
        return options.commands
    return holder.current


__all__ = [
    "BrowserDownload",
    "CommandTable",
    "CommandTableHolder",
    "DeployCore",
    "DeployOptions",
    "DeviceNotFoundReporter",
    "ExtensionOverride",
    "REQUIRED_SLOTS",
    "SaveOnly",
    "ShowUploadInstructions",
    "resolve_commands",
]
