"""Concrete deploy strategies bound into the command table."""

from .browser import BrowserDeployer, gen_file_name
from .hid import HidDeployWorkflow
from .localhost import LocalServerDeployer
from .native import NativeHostDeployer
from .winrt import WinRTDeployer

__all__ = [
    "BrowserDeployer",
    "HidDeployWorkflow",
    "LocalServerDeployer",
    "NativeHostDeployer",
    "WinRTDeployer",
    "gen_file_name",
]
