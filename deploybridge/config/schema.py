"""Marshmallow schemas for Deploy Bridge configuration validation."""

from __future__ import annotations

from typing import Any, Dict

from marshmallow import EXCLUDE, Schema, ValidationError, fields, post_load, validate, validates_schema

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
from .model import DeployConfig, EngineConfig, TargetConfig


class TargetConfigSchema(Schema):
    """Declarative validation for the application target block."""

    class Meta:
        unknown = EXCLUDE

    id = fields.Str(load_default="target", validate=validate.Length(min=1))
    nickname = fields.Str(load_default=None, allow_none=True)
    board_name = fields.Str(load_default=None, allow_none=True)
    drive_display_name = fields.Str(load_default=None, allow_none=True)
    drive_name = fields.Str(load_default=None, allow_none=True)
    output_name = fields.Str(load_default=DEFAULT_OUTPUT_NAME, validate=validate.Length(min=1))
    use_uf2 = fields.Bool(load_default=False)
    hex_mime_type = fields.Str(load_default=DEFAULT_HEX_MIME_TYPE, validate=validate.Length(min=1))
    web_usb = fields.Bool(load_default=False)
    auto_webusb_download = fields.Bool(load_default=False)
    no_deploy = fields.Bool(load_default=False)
    use_hf2 = fields.Bool(load_default=False)
    raw_hid = fields.Bool(load_default=False)
    usb_docs = fields.Str(load_default=None, allow_none=True)
    flashing_troubleshoot_doc = fields.Str(load_default=None, allow_none=True)

    @validates_schema
    def validate_output_name(self, data: Dict[str, Any], **kwargs: Any) -> None:
        if "." not in data["output_name"]:
            raise ValidationError(
                "output_name must carry a file extension",
                field_name="output_name",
            )

    @post_load
    def make_target(self, data: Dict[str, Any], **kwargs: Any) -> TargetConfig:
        return TargetConfig(**data)


class EngineConfigSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    winrt_deploy_timeout = fields.Float(
        load_default=DEFAULT_WINRT_DEPLOY_TIMEOUT, validate=validate.Range(min=0.1)
    )
    bootloader_repair_limit = fields.Int(
        load_default=DEFAULT_BOOTLOADER_REPAIR_LIMIT, validate=validate.Range(min=0, max=5)
    )
    local_deploy_url = fields.Str(load_default=DEFAULT_LOCAL_DEPLOY_URL, validate=validate.Length(min=1))
    local_deploy_timeout = fields.Float(
        load_default=DEFAULT_LOCAL_DEPLOY_TIMEOUT, validate=validate.Range(min=0.1)
    )
    debug_logging = fields.Bool(load_default=DEFAULT_DEBUG_LOGGING)
    log_stream = fields.Bool(load_default=DEFAULT_LOG_STREAM)
    metrics_enabled = fields.Bool(load_default=DEFAULT_METRICS_ENABLED)

    @post_load
    def make_engine(self, data: Dict[str, Any], **kwargs: Any) -> EngineConfig:
        return EngineConfig(**data)


class DeployConfigSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    target = fields.Nested(TargetConfigSchema, load_default=TargetConfig)
    engine = fields.Nested(EngineConfigSchema, load_default=EngineConfig)

    @post_load
    def make_config(self, data: Dict[str, Any], **kwargs: Any) -> DeployConfig:
        return DeployConfig(**data)


__all__ = ["DeployConfigSchema", "EngineConfigSchema", "TargetConfigSchema"]
