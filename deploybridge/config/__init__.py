"""Configuration helpers for the deploy engine."""

from .model import DeployConfig, EngineConfig, TargetConfig
from .settings import load_config, load_config_file

__all__ = [
    "DeployConfig",
    "EngineConfig",
    "TargetConfig",
    "load_config",
    "load_config_file",
]
