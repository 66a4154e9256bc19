"""Browser download deploy path and upload instructions dialog."""

from __future__ import annotations

import base64
import logging
import re

from ..channels import DeploymentChannel
from ..commands import CommandTableHolder, DeployOptions, resolve_commands
from ..config.model import TargetConfig
from ..const import (
    DEFAULT_DEVICE_LABEL,
    FILE_NAME_UNSAFE_PATTERN,
    UF2_MIME_TYPE,
    UNKNOWN_DRIVE_LABEL,
    UPLOAD_INSTRUCTIONS_TIMEOUT_MS,
)
from ..interfaces import BrowserDownloader, ConfirmCallable, UserInterface
from ..structures import (
    CompileResult,
    ConfirmOptions,
    DeployOutcome,
    DialogButton,
    OutcomeAction,
)

logger = logging.getLogger("deploybridge.browser")

_UNSAFE_CHARS = re.compile(FILE_NAME_UNSAFE_PATTERN)


def gen_file_name(target: TargetConfig, base_name: str, extension: str) -> str:
    """Build ``<target>-<sanitised base name><extension>``."""
    sanitized = _UNSAFE_CHARS.sub("-", base_name or "")
    return f"{target.file_prefix}-{sanitized}{extension}"


def _encode_base64(data: bytes | str) -> str:
    raw = data.encode("utf-8") if isinstance(data, str) else data
    return base64.b64encode(raw).decode("ascii")


class BrowserDeployer:
    """Deliver artifacts as browser downloads; the default for every slot."""

    channel = DeploymentChannel.BROWSER_ONLY

    def __init__(
        self,
        *,
        target: TargetConfig,
        browser: BrowserDownloader,
        ui: UserInterface,
        commands: CommandTableHolder,
    ) -> None:
        self._target = target
        self._browser = browser
        self._ui = ui
        self._commands = commands

    def _on_download_error(self, exc: BaseException) -> None:
        logger.warning("Browser download failed: %s", exc)
        self._ui.error("saving file failed...")

    async def browser_download(self, text: str, name: str, content_type: str) -> DeployOutcome:
        url = self._browser.download_bin_text(text, name, content_type, None, self._on_download_error)
        return DeployOutcome(action=OutcomeAction.DOWNLOADED, channel=self.channel.value, file_name=name, url=url)

    async def deploy_core(self, resp: CompileResult, options: DeployOptions | None = None) -> DeployOutcome:
        target = self._target
        out = resp.output(target.output_name)
        if out is None:
            logger.warning("Compile result has no %s output", target.output_name)
            out = b""
        file_name = gen_file_name(target, resp.download_file_base_name, target.output_extension)
        user_context = self._browser.is_download_within_user_context()

        if user_context:
            data = _encode_base64(out) if target.is_output_text else out
            url = self._browser.to_data_uri(data, target.hex_mime_type)
        elif not target.is_output_text:
            logger.info("saving %s", file_name)
            url = self._browser.download_base64(
                out,
                file_name,
                UF2_MIME_TYPE,
                resp.user_context_window,
                self._on_download_error,
            )
        else:
            logger.info("saving %s", file_name)
            url = self._browser.download_bin_text(
                out,
                file_name,
                target.hex_mime_type,
                resp.user_context_window,
                self._on_download_error,
            )

        downloaded = DeployOutcome(
            action=OutcomeAction.DOWNLOADED,
            channel=self.channel.value,
            file_name=file_name,
            url=url,
        )
        if not resp.success:
            return downloaded

        show_instructions = resolve_commands(options, self._commands).show_upload_instructions
        if resp.save_only and user_context:
            # Saving is the same as downloading on hosts that need a user gesture.
            return await show_instructions(file_name, url, self._ui.confirm)
        if resp.save_only or (self._browser.is_download_in_same_window() and not user_context):
            return downloaded
        return await show_instructions(file_name, url, self._ui.confirm)

    async def save_only(self, resp: CompileResult, options: DeployOptions | None = None) -> DeployOutcome:
        return await self.deploy_core(resp, options)

    async def show_upload_instructions(
        self,
        file_name: str,
        url: str,
        confirm: ConfirmCallable,
    ) -> DeployOutcome:
        target = self._target
        board_name = target.board_name or DEFAULT_DEVICE_LABEL
        drive_name = target.drive_display_name or target.drive_name or UNKNOWN_DRIVE_LABEL
        user_download = self._browser.is_download_within_user_context()
        extension = ".uf2" if target.use_uf2 else ".hex"

        if user_download:
            body = f"Click 'Download' to open the {board_name} app."
        elif self._browser.has_save_as():
            body = (
                f"Click 'Save As' and save the {extension} file to the {drive_name} drive "
                f"to transfer the code into your {board_name}."
            )
        else:
            body = f"Move the {extension} file to the {drive_name} drive to transfer the code into your {board_name}."

        buttons: list[DialogButton] = []
        if self._browser.can_download_again():
            buttons.append(
                DialogButton(
                    label="Download" if user_download else "Click to download again",
                    icon="download",
                    class_name="primary" if user_download else "lightgrey",
                    url=url,
                    file_name=file_name,
                )
            )
        if target.usb_docs:
            buttons.append(DialogButton(label="Help", icon="help", class_name="lightgrey", url=target.usb_docs))

        await confirm(
            ConfirmOptions(
                header="Download ready..." if user_download else "Download completed...",
                body=body,
                has_close_icon=True,
                hide_cancel=True,
                hide_agree=True,
                buttons=tuple(buttons),
                timeout_ms=0 if user_download else UPLOAD_INSTRUCTIONS_TIMEOUT_MS,
            )
        )
        return DeployOutcome(
            action=OutcomeAction.INSTRUCTED,
            channel=self.channel.value,
            file_name=file_name,
            url=url,
        )


__all__ = ["BrowserDeployer", "gen_file_name"]
