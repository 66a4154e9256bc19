"""Data model for Deploy Bridge configuration."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..const import (
    DEFAULT_BOOTLOADER_REPAIR_LIMIT,
    DEFAULT_DEBUG_LOGGING,
    DEFAULT_HEX_MIME_TYPE,
    DEFAULT_LOCAL_DEPLOY_TIMEOUT,
    DEFAULT_LOCAL_DEPLOY_URL,
    DEFAULT_LOG_STREAM,
    DEFAULT_METRICS_ENABLED,
    DEFAULT_OUTPUT_NAME,
    DEFAULT_WINRT_DEPLOY_TIMEOUT,
)


@dataclass(slots=True)
class TargetConfig:
    """Per-target settings that steer channel selection and file naming."""

    id: str = "target"
    nickname: str | None = None
    board_name: str | None = None
    drive_display_name: str | None = None
    drive_name: str | None = None
    output_name: str = DEFAULT_OUTPUT_NAME
    use_uf2: bool = False
    hex_mime_type: str = DEFAULT_HEX_MIME_TYPE
    web_usb: bool = False
    auto_webusb_download: bool = False
    no_deploy: bool = False
    use_hf2: bool = False
    raw_hid: bool = False
    usb_docs: str | None = None
    flashing_troubleshoot_doc: str | None = None

    @property
    def output_extension(self) -> str:
        """Output name with everything up to the first dot removed."""
        _, dot, rest = self.output_name.partition(".")
        return f"{dot}{rest}"

    @property
    def is_output_text(self) -> bool:
        return not self.use_uf2

    @property
    def file_prefix(self) -> str:
        return self.nickname or self.id


@dataclass(slots=True)
class EngineConfig:
    """Runtime bounds for the deploy workflows."""

    winrt_deploy_timeout: float = DEFAULT_WINRT_DEPLOY_TIMEOUT
    bootloader_repair_limit: int = DEFAULT_BOOTLOADER_REPAIR_LIMIT
    local_deploy_url: str = DEFAULT_LOCAL_DEPLOY_URL
    local_deploy_timeout: float = DEFAULT_LOCAL_DEPLOY_TIMEOUT
    debug_logging: bool = DEFAULT_DEBUG_LOGGING
    log_stream: bool = DEFAULT_LOG_STREAM
    metrics_enabled: bool = DEFAULT_METRICS_ENABLED


@dataclass(slots=True)
class DeployConfig:
    target: TargetConfig = field(default_factory=TargetConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)


__all__ = ["DeployConfig", "EngineConfig", "TargetConfig"]
