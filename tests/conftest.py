"""Pytest configuration for Deploy Bridge tests."""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock

import pytest
from mocks import (
    FakeBrowser,
    FakeHost,
    FakePacketIO,
    FakeUI,
    FakeUsb,
    FakeWinRT,
    hf2_wrapper_factory,
    hid_bridge_factory,
)

from deploybridge.commands import CommandTableHolder
from deploybridge.config.model import DeployConfig, EngineConfig, TargetConfig
from deploybridge.interfaces import Transports
from deploybridge.metrics import DeployMetrics
from deploybridge.structures import CompileResult


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Put the root logger back the way the test found it."""
    root = logging.getLogger()
    level, handlers = root.level, list(root.handlers)
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def events() -> list[str]:
    return []


@pytest.fixture
def target_config() -> TargetConfig:
    return TargetConfig(
        id="microbit",
        nickname="microbit",
        board_name="micro:bit",
        drive_name="MICROBIT",
        output_name="binary.hex",
        usb_docs="/device/usb",
        flashing_troubleshoot_doc="/device/troubleshoot",
    )


@pytest.fixture
def engine_config() -> EngineConfig:
    return EngineConfig(winrt_deploy_timeout=0.2)


@pytest.fixture
def deploy_config(target_config: TargetConfig, engine_config: EngineConfig) -> DeployConfig:
    return DeployConfig(target=target_config, engine=engine_config)


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def ui(events: list[str]) -> FakeUI:
    return FakeUI(events=events)


@pytest.fixture
def browser() -> FakeBrowser:
    return FakeBrowser()


@pytest.fixture
def packet_io(events: list[str]) -> FakePacketIO:
    return FakePacketIO(events)


@pytest.fixture
def usb(events: list[str]) -> FakeUsb:
    return FakeUsb(events)


@pytest.fixture
def winrt(events: list[str]) -> FakeWinRT:
    return FakeWinRT(events)


@pytest.fixture
def transports(packet_io: FakePacketIO, usb: FakeUsb, winrt: FakeWinRT) -> Transports:
    return Transports(
        packet_io=packet_io,
        usb=usb,
        winrt=winrt,
        webusb_deploy_core=AsyncMock(return_value="webusb"),
        electron_drive_deploy=AsyncMock(return_value="electron"),
        hid_bridge_factory=hid_bridge_factory,
        hf2_wrapper_factory=hf2_wrapper_factory,
    )


@pytest.fixture
def holder() -> CommandTableHolder:
    return CommandTableHolder()


@pytest.fixture
def metrics() -> DeployMetrics:
    return DeployMetrics()


@pytest.fixture
def compiled() -> CompileResult:
    return CompileResult(
        success=True,
        outfiles={"binary.hex": ":10000000DEADBEEF"},
        download_file_base_name="my game",
    )


@pytest.fixture
def failed_compile() -> CompileResult:
    return CompileResult(success=False, outfiles={}, download_file_base_name="broken")
