"""Deploy over a paired packet I/O device with bootloader repair and fallback.

The workflow is a small state machine::

    idle -> attempting -> succeeded
                       -> repairing_bootloader -> attempting
                       -> reporting_not_found
                       -> falling_back_to_save
    * -> failed   (repair limit reached or pairing error, re-raised)

Failure kinds come from the transport's ``kind`` attribute; the workflow only
branches on them.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import tenacity
from transitions import Machine

from ..channels import DeploymentChannel
from ..commands import CommandTable, CommandTableHolder, DeployOptions, resolve_commands
from ..config.model import EngineConfig, TargetConfig
from ..errors import CompileFailed, FailureKind, failure_kind
from ..interfaces import PacketIOService, UserInterface, WebUsbService
from ..metrics import DeployMetrics
from ..structures import CompileResult, ConfirmOptions, DeployOutcome, OutcomeAction
from .browser import BrowserDeployer

logger = logging.getLogger("deploybridge.hid")


def _needs_bootloader_repair(exc: BaseException) -> bool:
    return failure_kind(exc) is FailureKind.REPAIR_BOOTLOADER


def _log_repair_retry(retry_state: tenacity.RetryCallState) -> None:
    logger.warning(
        "Deploy attempt %d needs a bootloader repair; pairing and retrying",
        retry_state.attempt_number,
    )


class HidDeployWorkflow:
    """Deploy core for channels that flash through ``packet_io``."""

    if TYPE_CHECKING:
        # FSM generated methods and attributes for static analysis
        fsm_state: str
        reset_fsm: Callable[[], None]
        begin: Callable[[], None]
        succeed: Callable[[], None]
        request_repair: Callable[[], None]
        resume: Callable[[], None]
        report_missing: Callable[[], None]
        fall_back: Callable[[], None]
        fail: Callable[[], None]

    STATE_IDLE = "idle"
    STATE_ATTEMPTING = "attempting"
    STATE_SUCCEEDED = "succeeded"
    STATE_REPAIRING = "repairing_bootloader"
    STATE_REPORTING = "reporting_not_found"
    STATE_SAVING = "falling_back_to_save"
    STATE_FAILED = "failed"

    def __init__(
        self,
        *,
        target: TargetConfig,
        engine: EngineConfig,
        packet_io: PacketIOService,
        usb: WebUsbService,
        ui: UserInterface,
        browser: BrowserDeployer,
        commands: CommandTableHolder,
        metrics: DeployMetrics | None = None,
        channel: DeploymentChannel = DeploymentChannel.HID_BRIDGE,
    ) -> None:
        self._target = target
        self._engine = engine
        self._packet_io = packet_io
        self._usb = usb
        self._ui = ui
        self._browser = browser
        self._commands = commands
        self._metrics = metrics
        self.channel = channel
        self.attempts = 0

        self.state_machine = Machine(
            model=self,
            states=[
                self.STATE_IDLE,
                self.STATE_ATTEMPTING,
                self.STATE_SUCCEEDED,
                self.STATE_REPAIRING,
                self.STATE_REPORTING,
                self.STATE_SAVING,
                self.STATE_FAILED,
            ],
            initial=self.STATE_IDLE,
            ignore_invalid_triggers=True,
            model_attribute="fsm_state",
        )

        self.state_machine.add_transition(trigger="reset_fsm", source="*", dest=self.STATE_IDLE)
        self.state_machine.add_transition(trigger="begin", source=self.STATE_IDLE, dest=self.STATE_ATTEMPTING)
        self.state_machine.add_transition(trigger="succeed", source=self.STATE_ATTEMPTING, dest=self.STATE_SUCCEEDED)
        self.state_machine.add_transition(
            trigger="request_repair", source=self.STATE_ATTEMPTING, dest=self.STATE_REPAIRING
        )
        self.state_machine.add_transition(trigger="resume", source=self.STATE_REPAIRING, dest=self.STATE_ATTEMPTING)
        self.state_machine.add_transition(
            trigger="report_missing", source=self.STATE_ATTEMPTING, dest=self.STATE_REPORTING
        )
        self.state_machine.add_transition(trigger="fall_back", source=self.STATE_ATTEMPTING, dest=self.STATE_SAVING)
        self.state_machine.add_transition(trigger="fail", source="*", dest=self.STATE_FAILED)

    async def deploy_core(self, resp: CompileResult, options: DeployOptions | None = None) -> Any:
        logger.info("hid deploy")
        self.reset_fsm()
        if not resp.success:
            # A failed compile never reaches the device; the download path reports it.
            return await self._browser.deploy_core(resp, options)

        commands = resolve_commands(options, self._commands)
        pinned = dataclasses.replace(options or DeployOptions(), commands=commands)
        self.begin()
        self.attempts = 0

        retryer = tenacity.AsyncRetrying(
            stop=tenacity.stop_after_attempt(self._engine.bootloader_repair_limit + 1),
            wait=tenacity.wait_none(),
            retry=tenacity.retry_if_exception(_needs_bootloader_repair),
            before_sleep=_log_repair_retry,
            reraise=True,
        )

        try:
            async for attempt in retryer:
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        await self._repair_bootloader()
                    await self._reflash(resp)
        except Exception as exc:
            if self.fsm_state == self.STATE_REPAIRING:
                logger.error("Bootloader repair did not recover the device: %s", exc)
                self.fail()
                raise
            return await self._recover(exc, resp, pinned, commands)

        self.succeed()
        return DeployOutcome(action=OutcomeAction.FLASHED, channel=self.channel.value)

    async def _reflash(self, resp: CompileResult) -> None:
        if not resp.success:
            raise CompileFailed("refusing to flash a failed compile")
        self.attempts += 1
        self._ui.info("Downloading...")
        try:
            device = await self._packet_io.init_async()
            await device.reflash_async(resp)
        except Exception as exc:
            if failure_kind(exc) is FailureKind.REPAIR_BOOTLOADER:
                self.request_repair()
            raise

    async def _repair_bootloader(self) -> None:
        logger.info("pair bootloader")
        if self._metrics is not None:
            self._metrics.record_repair()
        await self._ui.confirm(
            ConfirmOptions(
                header="Just one more time...",
                body="You need to pair the board again, now in bootloader mode. We know...",
                agree_label="Ok, pair!",
            )
        )
        await self._usb.pair_async()
        self.resume()

    async def _recover(
        self,
        exc: Exception,
        resp: CompileResult,
        options: DeployOptions,
        commands: CommandTable,
    ) -> Any:
        kind = failure_kind(exc)
        if self._metrics is not None:
            self._metrics.record_fallback(kind.value)

        reporter = options.report_device_not_found
        if kind is FailureKind.DEVICE_NOT_FOUND and reporter is not None:
            logger.warning("Device not found; handing over to troubleshooting")
            self.report_missing()
            return await reporter(self._target.flashing_troubleshoot_doc, resp)

        logger.warning("HID deploy failed (%s: %s); saving instead", kind.value, exc)
        self.fall_back()
        return await commands.save_only(resp, options)


__all__ = ["HidDeployWorkflow"]
