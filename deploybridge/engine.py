"""Deploy engine: selection lifecycle, transport wiring and the deploy entry point."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Any

from .channels import DeploymentChannel
from .commands import CommandTable, CommandTableHolder, DeployOptions, ExtensionOverride
from .config.model import DeployConfig, TargetConfig
from .const import PACKETIO_API_PREFIX, PACKETIO_ICON
from .deploy.winrt import ExceptionReporter
from .errors import DeployInFlightError
from .interfaces import BrowserDownloader, HostEnvironment, Transports, UserInterface
from .metrics import DeployMetrics
from .probe import EnvironmentProbe
from .selector import ChannelSelector, Selection
from .structures import CompileResult, ConnectionStatus, EnvironmentFacts

logger = logging.getLogger("deploybridge.engine")


class DeployEngine:
    """Owns the active channel and routes deploys through the command table.

    Only :meth:`init`, :meth:`reselect` and :meth:`set_extension_result` write
    the command table; every deploy runs against the snapshot current when it
    started.
    """

    def __init__(
        self,
        config: DeployConfig,
        *,
        host: HostEnvironment,
        browser: BrowserDownloader,
        ui: UserInterface,
        transports: Transports,
        metrics: DeployMetrics | None = None,
        report_exception: ExceptionReporter | None = None,
    ) -> None:
        self.config = config
        self._host = host
        self._browser = browser
        self._ui = ui
        self._transports = transports
        if metrics is None and config.engine.metrics_enabled:
            metrics = DeployMetrics()
        self.metrics = metrics
        self._report_exception = report_exception

        self._holder = CommandTableHolder()
        self._override: ExtensionOverride | None = None
        self._paired_once = False
        self._selection: Selection | None = None
        self._lock = asyncio.Lock()
        self._deploy_task: asyncio.Task[Any] | None = None

        self._probe, self._selector = self._build(config.target)

    def _build(self, target: TargetConfig) -> tuple[EnvironmentProbe, ChannelSelector]:
        probe = EnvironmentProbe(host=self._host, usb=self._transports.usb, target=target)
        selector = ChannelSelector(
            target=target,
            engine=self.config.engine,
            host=self._host,
            browser=self._browser,
            ui=self._ui,
            transports=self._transports,
            commands=self._holder,
            metrics=self.metrics,
            report_exception=self._report_exception,
        )
        return probe, selector

    # ------------------------------------------------------------------
    # Selection lifecycle
    # ------------------------------------------------------------------

    def init(self) -> Selection:
        return self.reselect()

    def reselect(self) -> Selection:
        """Probe the host and bind the channel the rules pick."""
        facts = self._probe.probe(paired_once=self._paired_once)
        selection = self._selector.select(facts, self._override)
        self._install(selection)
        if self.metrics is not None:
            self.metrics.record_selection(selection.channel.value)
        return selection

    def on_app_target_changed(self, target: TargetConfig) -> Selection:
        logger.info("target changed to %s", target.id)
        self.config = dataclasses.replace(self.config, target=target)
        self._probe, self._selector = self._build(target)
        return self.reselect()

    def set_webusb_paired(self, enabled: bool) -> Selection | None:
        if enabled == self._paired_once:
            return None
        logger.debug("webusb paired once: %s", enabled)
        self._paired_once = enabled
        return self.reselect()

    def set_extension_result(self, override: ExtensionOverride | None) -> None:
        """Register extension overrides and apply them to the active channel."""
        self._override = override
        selection = self._selection
        if selection is None:
            return
        table = self._selector.build_table(selection.channel, selection.facts)
        if override is not None:
            table = override.apply(table)
        self._install(dataclasses.replace(selection, table=table))

    def _install(self, selection: Selection) -> None:
        self._wire(selection)
        if self._holder.replace(selection.table):
            logger.debug("command table generation %d", self._holder.generation)
        self._selection = selection

    def _wire(self, selection: Selection) -> None:
        transports = self._transports
        table = selection.table
        transports.usb.set_enabled(selection.facts.webusb_usable)
        transports.packet_io.mk_packet_io = table.packet_io_factory
        transports.packet_io.mk_packet_io_wrapper = table.mk_packet_io_wrapper
        if selection.channel is DeploymentChannel.WINRT_HF2:
            transports.winrt.init_winrt_hid(self._winrt_connect, transports.packet_io.disconnect_wrapper)
        elif selection.channel is DeploymentChannel.WINRT_CUSTOM:
            # Targets without HF2 run their own deploy; no connect hooks.
            transports.winrt.init_winrt_hid(None, None)

    async def _winrt_connect(self) -> None:
        await self._transports.packet_io.init_async(True)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def channel(self) -> DeploymentChannel | None:
        return self._selection.channel if self._selection is not None else None

    @property
    def facts(self) -> EnvironmentFacts | None:
        return self._selection.facts if self._selection is not None else None

    @property
    def commands(self) -> CommandTable:
        return self._holder.current

    @property
    def paired_once(self) -> bool:
        return self._paired_once

    @property
    def deploying(self) -> bool:
        return self._lock.locked()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def deploy(self, resp: CompileResult, options: DeployOptions | None = None) -> Any:
        if self._lock.locked():
            raise DeployInFlightError("a deploy is already in progress")
        async with self._lock:
            table = self._holder.current
            pinned = dataclasses.replace(options or DeployOptions(), commands=table)
            channel = self.channel
            if self.metrics is not None and channel is not None:
                self.metrics.record_deploy(channel.value)
            logger.info("deploy via %s", channel.value if channel is not None else "?")
            self._deploy_task = asyncio.create_task(table.deploy_core(resp, pinned))
            try:
                return await self._deploy_task
            finally:
                self._deploy_task = None

    def cancel(self) -> bool:
        task = self._deploy_task
        if task is None or task.done():
            return False
        logger.info("cancelling deploy")
        return task.cancel()

    async def save_only(self, resp: CompileResult) -> Any:
        table = self._holder.current
        return await table.save_only(resp, DeployOptions(commands=table))

    async def browser_download(self, text: str, name: str, content_type: str) -> Any:
        return await self._holder.current.browser_download(text, name, content_type)

    async def show_upload_instructions(self, file_name: str, url: str) -> Any:
        return await self._holder.current.show_upload_instructions(file_name, url, self._ui.confirm)

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def status(self) -> ConnectionStatus:
        return ConnectionStatus(connected=bool(self._transports.packet_io.is_connected()))

    def query(self, path: str) -> Any:
        prefix, _, name = path.partition(":")
        if prefix != PACKETIO_API_PREFIX:
            return False
        if name == "connected":
            return self.status().connected
        if name == "icon":
            return PACKETIO_ICON
        return False


__all__ = ["DeployEngine"]
