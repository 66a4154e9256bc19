"""Deploy Bridge package initialisation."""

__version__ = "1.0.0"

import logging

from .channels import DeploymentChannel
from .engine import DeployEngine
from .errors import (
    DeployError,
    DeployInFlightError,
    TransportError,
)
from .structures import CompileResult, DeployOutcome, EnvironmentFacts

logger = logging.getLogger(__name__)

__all__ = [
    "CompileResult",
    "DeployEngine",
    "DeployError",
    "DeployInFlightError",
    "DeployOutcome",
    "DeploymentChannel",
    "EnvironmentFacts",
    "TransportError",
    "__version__",
]
