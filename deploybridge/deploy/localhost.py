"""Deploy through the local development server (``/api/deploy``)."""

from __future__ import annotations

import logging
from urllib.parse import urlsplit

import httpx
import msgspec

from ..channels import DeploymentChannel
from ..commands import DeployOptions
from ..config.model import EngineConfig, TargetConfig
from ..const import DEFAULT_DEVICE_LABEL
from ..interfaces import HostEnvironment, UserInterface
from ..structures import CompileResult, DeployOutcome, LocalDeployResponse, OutcomeAction

logger = logging.getLogger("deploybridge.localhost")


def _origin(href: str) -> str:
    parts = urlsplit(href)
    if not parts.scheme or not parts.netloc:
        return "http://localhost"
    return f"{parts.scheme}://{parts.netloc}"


class LocalServerDeployer:
    channel = DeploymentChannel.LOCAL_SERVER

    def __init__(
        self,
        *,
        target: TargetConfig,
        engine: EngineConfig,
        host: HostEnvironment,
        ui: UserInterface,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._target = target
        self._engine = engine
        self._host = host
        self._ui = ui
        self._transport = transport

    def _outcome(self, action: OutcomeAction, detail: str | None = None) -> DeployOutcome:
        return DeployOutcome(action=action, channel=self.channel.value, detail=detail)

    async def deploy_core(self, resp: CompileResult, options: DeployOptions | None = None) -> DeployOutcome:
        logger.info("local deploy")
        self._ui.info("Uploading...")
        headers = {
            "Authorization": self._host.local_token() or "",
            "Content-Type": "application/json",
        }
        async with httpx.AsyncClient(
            base_url=_origin(self._host.location_href()),
            timeout=self._engine.local_deploy_timeout,
            transport=self._transport,
        ) as client:
            try:
                response = await client.post(
                    self._engine.local_deploy_url,
                    content=resp.wire_payload(),
                    headers=headers,
                )
            except httpx.HTTPError as exc:
                logger.warning("Local deploy request failed: %s", exc)
                self._ui.error("There was a problem, please try again")
                return self._outcome(OutcomeAction.SKIPPED, detail=str(exc))

        if response.status_code != httpx.codes.OK:
            logger.warning("Local deploy returned HTTP %d", response.status_code)
            self._ui.error("There was a problem, please try again")
            return self._outcome(OutcomeAction.SKIPPED, detail=f"http {response.status_code}")

        try:
            body = msgspec.json.decode(response.content, type=LocalDeployResponse)
        except msgspec.DecodeError as exc:
            logger.debug("Ignoring unparseable local deploy reply: %s", exc)
            body = LocalDeployResponse()

        if body.board_count == 0:
            board_name = self._target.board_name or DEFAULT_DEVICE_LABEL
            self._ui.warning(f"Please connect your {board_name} to your computer and try again")
            return self._outcome(OutcomeAction.SKIPPED, detail="no board connected")
        return self._outcome(OutcomeAction.UPLOADED)


__all__ = ["LocalServerDeployer"]
