"""WinRT app deploys: hard timeout around the HID workflow, and WinRT saves."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Callable
from typing import Any

from ..commands import CommandTableHolder, DeployOptions, resolve_commands
from ..config.model import EngineConfig, TargetConfig
from ..const import DEFAULT_DEVICE_LABEL
from ..errors import DisconnectFailed, TransportTimeout, failure_kind
from ..interfaces import PacketIOService, UserInterface, WinRTService
from ..metrics import DeployMetrics
from ..structures import CompileResult, ConfirmOptions, DeployOutcome, OutcomeAction
from .hid import HidDeployWorkflow

logger = logging.getLogger("deploybridge.winrt")

ExceptionReporter = Callable[[BaseException], None]

_SAVE_CHANNEL = "winrt"


def _log_exception(exc: BaseException) -> None:
    logger.warning("%s", exc, exc_info=exc)


class WinRTDeployer:
    """Deploy, save and download bindings for the Windows app host."""

    def __init__(
        self,
        *,
        target: TargetConfig,
        engine: EngineConfig,
        packet_io: PacketIOService,
        winrt: WinRTService,
        ui: UserInterface,
        hid: HidDeployWorkflow,
        commands: CommandTableHolder,
        metrics: DeployMetrics | None = None,
        report_exception: ExceptionReporter | None = None,
    ) -> None:
        self._target = target
        self._engine = engine
        self._packet_io = packet_io
        self._winrt = winrt
        self._ui = ui
        self._hid = hid
        self._commands = commands
        self._metrics = metrics
        self._report_exception = report_exception or _log_exception

    async def deploy_core(self, resp: CompileResult, options: DeployOptions | None = None) -> Any:
        logger.info("winrt deploy")
        commands = resolve_commands(options, self._commands)
        pinned = dataclasses.replace(options or DeployOptions(), commands=commands)
        try:
            async with asyncio.timeout(self._engine.winrt_deploy_timeout):
                return await self._hid.deploy_core(resp, pinned)
        except Exception as exc:
            failure: Exception = exc
            if isinstance(exc, TimeoutError):
                failure = TransportTimeout(
                    f"deploy did not finish within {self._engine.winrt_deploy_timeout:g} s"
                )
                failure.__cause__ = exc
            kind = failure_kind(failure)
            logger.warning("WinRT deploy gave up (%s): %s", kind.value, failure)
            if self._metrics is not None:
                self._metrics.record_fallback(kind.value)

        await self._disconnect()
        board_name = self._target.board_name or DEFAULT_DEVICE_LABEL
        await self._ui.confirm(
            ConfirmOptions(
                header="Something went wrong...",
                body=(
                    f"Flashing your {board_name} took too long. Please disconnect your {board_name} "
                    "from your computer and try reconnecting it."
                ),
                disagree_label="Ok",
                hide_agree=True,
            )
        )
        return await commands.save_only(resp, pinned)

    async def _disconnect(self) -> None:
        # The device state is unknown at this point; failures are only reported.
        try:
            await self._packet_io.disconnect_wrapper()
        except Exception as exc:
            if self._metrics is not None:
                self._metrics.record_disconnect_failure()
            failure = DisconnectFailed(f"disconnect after failed deploy: {exc}")
            failure.__cause__ = exc
            self._report_exception(failure)

    async def drive_deploy_core(self, resp: CompileResult, options: DeployOptions | None = None) -> Any:
        logger.info("winrt + custom deploy")
        return await self._winrt.drive_deploy_core(resp)

    async def browser_download(self, text: str, name: str, content_type: str) -> Any:
        return await self._winrt.browser_download(text, name, content_type)

    async def save_only(self, resp: CompileResult, options: DeployOptions | None = None) -> DeployOutcome:
        try:
            saved = await self._winrt.save_only(resp)
        except Exception as exc:
            logger.warning("WinRT save failed: %s", exc)
            self._ui.error("saving file failed...")
            return DeployOutcome(
                action=OutcomeAction.SKIPPED,
                channel=_SAVE_CHANNEL,
                detail=str(exc),
            )
        if saved:
            self._ui.info("file saved!")
            return DeployOutcome(action=OutcomeAction.SAVED, channel=_SAVE_CHANNEL)
        return DeployOutcome(
            action=OutcomeAction.SKIPPED,
            channel=_SAVE_CHANNEL,
            detail="save cancelled",
        )


__all__ = ["WinRTDeployer"]
