"""Deploy and save through a native (webkit/android) host shell."""

from __future__ import annotations

import logging

from ..channels import DeploymentChannel
from ..commands import DeployOptions
from ..config.model import TargetConfig
from ..errors import TransportOther
from ..interfaces import HostEnvironment, NativePostMessage, UserInterface
from ..structures import CompileResult, DeployOutcome, NativeHostMessage, OutcomeAction

logger = logging.getLogger("deploybridge.native")


class NativeHostDeployer:
    channel = DeploymentChannel.NATIVE_HOST

    def __init__(self, *, target: TargetConfig, host: HostEnvironment, ui: UserInterface) -> None:
        self._target = target
        self._host = host
        self._ui = ui

    def _messenger(self) -> NativePostMessage:
        post = self._host.native_host_messenger()
        if post is None:
            raise TransportOther("native host bridge is gone")
        return post

    async def deploy_core(self, resp: CompileResult, options: DeployOptions | None = None) -> DeployOutcome:
        logger.info("native deploy")
        self._ui.info("Flashing device...")
        post = self._messenger()
        post(NativeHostMessage(name=resp.download_file_base_name, download=resp.output(self._target.output_name)))
        return DeployOutcome(
            action=OutcomeAction.FLASHED,
            channel=self.channel.value,
            file_name=resp.download_file_base_name,
        )

    async def save_only(self, resp: CompileResult, options: DeployOptions | None = None) -> DeployOutcome:
        logger.info("native save")
        self._ui.info("Saving file...")
        post = self._messenger()
        post(NativeHostMessage(name=resp.download_file_base_name, save=resp.output(self._target.output_name)))
        return DeployOutcome(
            action=OutcomeAction.SAVED,
            channel=self.channel.value,
            file_name=resp.download_file_base_name,
        )


__all__ = ["NativeHostDeployer"]
