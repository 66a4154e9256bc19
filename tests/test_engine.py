"""Tests for the deploy engine facade and re-selection triggers."""

from __future__ import annotations

import asyncio
import dataclasses
from unittest.mock import AsyncMock

import pytest

from deploybridge.channels import DeploymentChannel
from deploybridge.commands import ExtensionOverride
from deploybridge.config.model import DeployConfig, EngineConfig
from deploybridge.engine import DeployEngine
from deploybridge.errors import DeployError, DeployInFlightError, TransportOther
from deploybridge.structures import ConnectionStatus, OutcomeAction


@pytest.fixture
def engine(deploy_config, host, browser, ui, transports, metrics) -> DeployEngine:
    return DeployEngine(
        deploy_config,
        host=host,
        browser=browser,
        ui=ui,
        transports=transports,
        metrics=metrics,
    )


def test_metrics_enabled_creates_private_registry(target_config, host, browser, ui, transports) -> None:
    config = DeployConfig(target=target_config, engine=EngineConfig(metrics_enabled=True))
    first = DeployEngine(config, host=host, browser=browser, ui=ui, transports=transports)
    second = DeployEngine(config, host=host, browser=browser, ui=ui, transports=transports)

    first.init()

    assert first.metrics is not None and second.metrics is not None
    assert first.metrics.sample("channel_selections", channel="browser-only") == 1
    assert second.metrics.sample("channel_selections", channel="browser-only") == 0


def test_init_wires_browser_defaults(engine: DeployEngine, packet_io, usb, metrics) -> None:
    selection = engine.init()

    assert selection.channel is DeploymentChannel.BROWSER_ONLY
    assert engine.channel is DeploymentChannel.BROWSER_ONLY
    assert usb.enabled is False
    assert packet_io.mk_packet_io.__name__ == "hid_bridge_factory"
    assert packet_io.mk_packet_io_wrapper.__name__ == "hf2_wrapper_factory"
    assert metrics.sample("channel_selections", channel="browser-only") == 1


@pytest.mark.asyncio
async def test_deploy_before_init_raises(engine: DeployEngine, compiled) -> None:
    with pytest.raises(DeployError):
        await engine.deploy(compiled)


def test_pairing_toggle_reselects_once(engine: DeployEngine, target_config, usb, metrics) -> None:
    engine.on_app_target_changed(dataclasses.replace(target_config, web_usb=True))
    usb.available = True
    assert engine.channel is DeploymentChannel.BROWSER_ONLY

    selection = engine.set_webusb_paired(True)
    assert selection is not None
    assert engine.channel is DeploymentChannel.WEBUSB_PAIRED
    assert engine.paired_once is True
    assert usb.enabled is True

    assert engine.set_webusb_paired(True) is None
    assert metrics.sample("channel_selections", channel="webusb-paired") == 1


def test_reselect_with_same_facts_keeps_bindings(engine: DeployEngine, host) -> None:
    host.hid_bridge = True
    engine.init()
    table = engine.commands

    engine.reselect()

    assert engine.commands is table


def test_target_change_reselects(engine: DeployEngine, host, target_config) -> None:
    host.hid_bridge = True
    engine.init()
    assert engine.channel is DeploymentChannel.HID_BRIDGE

    engine.on_app_target_changed(dataclasses.replace(target_config, no_deploy=True))

    assert engine.channel is DeploymentChannel.BROWSER_ONLY
    assert engine.config.target.no_deploy is True


def test_winrt_hf2_wiring(engine: DeployEngine, host, target_config, packet_io, winrt) -> None:
    host.winrt = True
    engine.on_app_target_changed(dataclasses.replace(target_config, use_hf2=True))

    assert engine.channel is DeploymentChannel.WINRT_HF2
    assert packet_io.mk_packet_io == winrt.mk_packet_io
    connect, disconnect = winrt.hid_hooks[-1]
    assert connect is not None
    assert disconnect == packet_io.disconnect_wrapper

    asyncio.run(connect())
    assert packet_io.init_calls == [True]


def test_winrt_custom_wiring(engine: DeployEngine, host, winrt, packet_io) -> None:
    host.winrt = True
    engine.init()

    assert engine.channel is DeploymentChannel.WINRT_CUSTOM
    assert winrt.hid_hooks[-1] == (None, None)
    assert packet_io.mk_packet_io.__name__ == "hid_bridge_factory"


def test_extension_override_applies_without_reprobe(engine: DeployEngine, host) -> None:
    host.hid_bridge = True
    engine.init()
    deploy_core = engine.commands.deploy_core
    custom_save = AsyncMock()

    host.hid_bridge = False
    engine.set_extension_result(ExtensionOverride(save_only=custom_save))

    assert engine.channel is DeploymentChannel.HID_BRIDGE
    assert engine.commands.save_only is custom_save
    assert engine.commands.deploy_core == deploy_core

    # Overrides survive the next selection pass.
    host.hid_bridge = True
    engine.reselect()
    assert engine.commands.save_only is custom_save

    engine.set_extension_result(None)
    assert engine.commands.save_only is not custom_save


@pytest.mark.asyncio
async def test_deploy_routes_through_active_table(engine: DeployEngine, host, compiled, metrics) -> None:
    host.hid_bridge = True
    engine.init()

    outcome = await engine.deploy(compiled)

    assert outcome.action is OutcomeAction.FLASHED
    assert metrics.sample("deploy_attempts", channel="hid-bridge") == 1


@pytest.mark.asyncio
async def test_second_deploy_while_in_flight_is_rejected(engine: DeployEngine, host, packet_io, compiled) -> None:
    host.hid_bridge = True
    engine.init()
    packet_io.hang = True

    first = asyncio.create_task(engine.deploy(compiled))
    await asyncio.sleep(0.01)
    assert engine.deploying is True

    with pytest.raises(DeployInFlightError):
        await engine.deploy(compiled)

    assert engine.cancel() is True
    with pytest.raises(asyncio.CancelledError):
        await first
    assert engine.deploying is False
    assert engine.cancel() is False


@pytest.mark.asyncio
async def test_override_registered_mid_deploy_waits_for_next_deploy(
    engine: DeployEngine, host, packet_io, compiled
) -> None:
    host.hid_bridge = True
    engine.init()
    packet_io.gate = asyncio.Event()
    packet_io.failures = [TransportOther("cable pulled")]
    late = AsyncMock(return_value="late")

    running = asyncio.create_task(engine.deploy(compiled))
    await asyncio.sleep(0.01)
    engine.set_extension_result(ExtensionOverride(show_upload_instructions=late))
    packet_io.gate.set()
    outcome = await running

    assert outcome.action is OutcomeAction.INSTRUCTED
    late.assert_not_awaited()
    assert engine.commands.show_upload_instructions is late


@pytest.mark.asyncio
async def test_engine_save_and_download_use_current_table(engine: DeployEngine, browser, compiled) -> None:
    engine.init()

    saved = await engine.save_only(compiled)
    downloaded = await engine.browser_download("text", "file.hex", "text/plain")

    assert saved.action is OutcomeAction.INSTRUCTED
    assert downloaded.action is OutcomeAction.DOWNLOADED
    assert browser.calls[-1] == ("bin_text", "text", "file.hex", "text/plain")


def test_status_and_query(engine: DeployEngine, packet_io) -> None:
    engine.init()

    assert engine.status() == ConnectionStatus(connected=False)
    packet_io.connected = True
    assert engine.status() == ConnectionStatus(connected=True)
    assert engine.query("packetio:connected") is True
    assert engine.query("packetio:icon") == "usb"
    assert engine.query("packetio:unknown") is False
    assert engine.query("serial:connected") is False
