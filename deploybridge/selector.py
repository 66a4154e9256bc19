"""Channel selection and command table construction.

:func:`select_channel` is the priority rule set and has no side effects.
:class:`ChannelSelector` turns the chosen channel into a :class:`CommandTable`
built from strategy objects it creates once, so rebuilding the table from the
same facts yields an equal table.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .channels import DeploymentChannel
from .commands import CommandTable, CommandTableHolder, DeployOptions, ExtensionOverride
from .config.model import EngineConfig, TargetConfig
from .deploy import (
    BrowserDeployer,
    HidDeployWorkflow,
    LocalServerDeployer,
    NativeHostDeployer,
    WinRTDeployer,
)
from .deploy.winrt import ExceptionReporter
from .interfaces import (
    BrowserDownloader,
    CompileDeploy,
    HostEnvironment,
    PacketIOFactory,
    Transports,
    UserInterface,
)
from .metrics import DeployMetrics
from .structures import CompileResult, EnvironmentFacts

logger = logging.getLogger("deploybridge.selector")


def select_channel(facts: EnvironmentFacts) -> DeploymentChannel:
    """Pick the single active channel; the first matching rule wins."""
    if facts.force_download or facts.no_deploy:
        return DeploymentChannel.BROWSER_ONLY
    if facts.native_host:
        return DeploymentChannel.NATIVE_HOST
    if facts.winrt:
        return DeploymentChannel.WINRT_HF2 if facts.winrt_use_hf2 else DeploymentChannel.WINRT_CUSTOM
    if facts.electron:
        return DeploymentChannel.ELECTRON
    if facts.webusb_usable and facts.auto_webusb_download:
        return DeploymentChannel.WEBUSB_AUTO
    if facts.webusb_usable and facts.paired_once:
        return DeploymentChannel.WEBUSB_PAIRED
    if facts.hid_bridge:
        return DeploymentChannel.HID_BRIDGE
    if facts.local_server and facts.local_token_present:
        return DeploymentChannel.LOCAL_SERVER
    return DeploymentChannel.BROWSER_ONLY


class _CompileDeployAdapter:
    """Expose a ``deploy(resp)`` transport as a ``deploy_core(resp, options)`` slot."""

    def __init__(self, name: str, deploy: CompileDeploy) -> None:
        self.name = name
        self._deploy = deploy

    async def deploy_core(self, resp: CompileResult, options: DeployOptions | None = None) -> Any:
        logger.info("%s deploy", self.name)
        return await self._deploy(resp)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}>"


@dataclass(frozen=True, slots=True)
class Selection:
    """Result of one selection pass."""

    channel: DeploymentChannel
    facts: EnvironmentFacts
    table: CommandTable


class ChannelSelector:
    """Builds command tables for one target configuration."""

    def __init__(
        self,
        *,
        target: TargetConfig,
        engine: EngineConfig,
        host: HostEnvironment,
        browser: BrowserDownloader,
        ui: UserInterface,
        transports: Transports,
        commands: CommandTableHolder,
        metrics: DeployMetrics | None = None,
        report_exception: ExceptionReporter | None = None,
    ) -> None:
        self.target = target
        self._transports = transports

        self.browser = BrowserDeployer(target=target, browser=browser, ui=ui, commands=commands)
        self.native = NativeHostDeployer(target=target, host=host, ui=ui)
        self.local = LocalServerDeployer(target=target, engine=engine, host=host, ui=ui)
        self.hid = HidDeployWorkflow(
            target=target,
            engine=engine,
            packet_io=transports.packet_io,
            usb=transports.usb,
            ui=ui,
            browser=self.browser,
            commands=commands,
            metrics=metrics,
            channel=DeploymentChannel.HID_BRIDGE,
        )
        self.winrt = WinRTDeployer(
            target=target,
            engine=engine,
            packet_io=transports.packet_io,
            winrt=transports.winrt,
            ui=ui,
            hid=HidDeployWorkflow(
                target=target,
                engine=engine,
                packet_io=transports.packet_io,
                usb=transports.usb,
                ui=ui,
                browser=self.browser,
                commands=commands,
                metrics=metrics,
                channel=DeploymentChannel.WINRT_HF2,
            ),
            commands=commands,
            metrics=metrics,
            report_exception=report_exception,
        )
        self.webusb = _CompileDeployAdapter("webusb", transports.webusb_deploy_core)
        self.electron = _CompileDeployAdapter("electron", transports.electron_drive_deploy)

    def default_table(self, facts: EnvironmentFacts) -> CommandTable:
        return CommandTable(
            deploy_core=self.browser.deploy_core,
            save_only=self.browser.save_only,
            browser_download=self.browser.browser_download,
            show_upload_instructions=self.browser.show_upload_instructions,
            packet_io_factory=self._default_packet_io_factory(facts),
            mk_packet_io_wrapper=self._transports.hf2_wrapper_factory,
        )

    def _default_packet_io_factory(self, facts: EnvironmentFacts) -> PacketIOFactory:
        if facts.webusb_usable:
            return self._transports.usb.mk_packet_io
        return self._transports.hid_bridge_factory

    def build_table(self, channel: DeploymentChannel, facts: EnvironmentFacts) -> CommandTable:
        table = self.default_table(facts)
        winrt = self._transports.winrt

        if channel is DeploymentChannel.NATIVE_HOST:
            return table.replace(deploy_core=self.native.deploy_core, save_only=self.native.save_only)
        if channel is DeploymentChannel.WINRT_HF2:
            return table.replace(
                deploy_core=self.winrt.deploy_core,
                save_only=self.winrt.save_only,
                browser_download=self.winrt.browser_download,
                packet_io_factory=winrt.mk_packet_io,
            )
        if channel is DeploymentChannel.WINRT_CUSTOM:
            changes: dict[str, Any] = {
                "deploy_core": self.winrt.drive_deploy_core,
                "save_only": self.winrt.save_only,
                "browser_download": self.winrt.browser_download,
            }
            if facts.winrt_raw_hid:
                changes["packet_io_factory"] = winrt.mk_packet_io
            return table.replace(**changes)
        if channel is DeploymentChannel.ELECTRON:
            return table.replace(
                deploy_core=self.electron.deploy_core,
                electron_deploy=self.electron.deploy_core,
            )
        if channel in (DeploymentChannel.WEBUSB_AUTO, DeploymentChannel.WEBUSB_PAIRED):
            return table.replace(deploy_core=self.webusb.deploy_core)
        if channel is DeploymentChannel.HID_BRIDGE:
            return table.replace(deploy_core=self.hid.deploy_core)
        if channel is DeploymentChannel.LOCAL_SERVER:
            return table.replace(deploy_core=self.local.deploy_core)
        return table

    def select(self, facts: EnvironmentFacts, override: ExtensionOverride | None = None) -> Selection:
        channel = select_channel(facts)
        table = self.build_table(channel, facts)
        if override is not None:
            table = override.apply(table)
        logger.info("deploy channel: %s", channel.value)
        return Selection(channel=channel, facts=facts, table=table)


__all__ = ["ChannelSelector", "Selection", "select_channel"]
