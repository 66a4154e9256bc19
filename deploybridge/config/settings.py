"""Settings loader for the deploy engine.

Configuration is a JSON document with optional ``target`` and ``engine``
sections; anything missing falls back to the defaults in
:mod:`deploybridge.const`.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import msgspec
from marshmallow import ValidationError

from ..errors import ConfigurationError
from .model import DeployConfig
from .schema import DeployConfigSchema

logger = logging.getLogger("deploybridge.config")

_SCHEMA = DeployConfigSchema()


def load_config(raw: Mapping[str, Any] | None = None) -> DeployConfig:
    """Validate *raw* and build a :class:`DeployConfig`."""
    try:
        config = _SCHEMA.load(dict(raw or {}))
    except ValidationError as exc:
        logger.error("Invalid deploy configuration: %s", exc.messages)
        raise ConfigurationError("invalid deploy configuration", errors=exc.normalized_messages()) from exc
    if config.engine.bootloader_repair_limit == 0:
        logger.warning("Bootloader repair disabled; repair requests will fail immediately.")
    return config


def load_config_file(path: str | Path) -> DeployConfig:
    source = Path(path)
    try:
        raw = msgspec.json.decode(source.read_bytes())
    except OSError as exc:
        raise ConfigurationError(f"cannot read configuration {source}: {exc}") from exc
    except msgspec.DecodeError as exc:
        raise ConfigurationError(f"malformed configuration {source}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigurationError(f"configuration {source} must be a JSON object")
    logger.debug("Loaded deploy configuration from %s", source)
    return load_config(raw)


__all__ = ["load_config", "load_config_file"]
