"""Tests for the browser download deploy path."""

from __future__ import annotations

import base64
import dataclasses

import pytest
from mocks import FakeBrowser

from deploybridge.commands import CommandTable, CommandTableHolder, DeployOptions
from deploybridge.const import DEFAULT_DEVICE_LABEL, UF2_MIME_TYPE, UPLOAD_INSTRUCTIONS_TIMEOUT_MS
from deploybridge.deploy import BrowserDeployer, gen_file_name
from deploybridge.structures import CompileResult, OutcomeAction


def _deployer(target, browser, ui) -> BrowserDeployer:
    holder = CommandTableHolder()
    deployer = BrowserDeployer(target=target, browser=browser, ui=ui, commands=holder)
    holder.replace(
        CommandTable(
            deploy_core=deployer.deploy_core,
            save_only=deployer.save_only,
            browser_download=deployer.browser_download,
            show_upload_instructions=deployer.show_upload_instructions,
        )
    )
    return deployer


def test_gen_file_name_sanitises(target_config) -> None:
    assert gen_file_name(target_config, "my game: v1/2", ".hex") == "microbit-my-game--v1-2.hex"


def test_gen_file_name_falls_back_to_target_id(target_config) -> None:
    target = dataclasses.replace(target_config, nickname=None, id="arcade")
    assert gen_file_name(target, "demo", ".uf2") == "arcade-demo.uf2"


def test_output_extension_keeps_everything_after_first_dot(target_config) -> None:
    target = dataclasses.replace(target_config, output_name="binary.uf2.txt")
    assert target.output_extension == ".uf2.txt"


@pytest.mark.asyncio
async def test_hex_download_shows_instructions(target_config, ui, compiled) -> None:
    browser = FakeBrowser(save_as=True)

    outcome = await _deployer(target_config, browser, ui).deploy_core(compiled)

    assert browser.calls[0] == ("bin_text", ":10000000DEADBEEF", "microbit-my-game.hex", target_config.hex_mime_type)
    assert outcome.action is OutcomeAction.INSTRUCTED
    dialog = ui.dialogs[-1]
    assert dialog.header == "Download completed..."
    assert "Save As" in dialog.body
    assert "MICROBIT" in dialog.body
    assert dialog.timeout_ms == UPLOAD_INSTRUCTIONS_TIMEOUT_MS
    assert [b.label for b in dialog.buttons] == ["Click to download again", "Help"]


@pytest.mark.asyncio
async def test_uf2_download_uses_base64(target_config, ui) -> None:
    target = dataclasses.replace(target_config, use_uf2=True, output_name="binary.uf2", usb_docs=None)
    browser = FakeBrowser(download_again=False)
    resp = CompileResult(success=True, outfiles={"binary.uf2": b"UF2\n"}, download_file_base_name="game")

    await _deployer(target, browser, ui).deploy_core(resp)

    assert browser.calls[0] == ("base64", b"UF2\n", "microbit-game.uf2", UF2_MIME_TYPE)
    dialog = ui.dialogs[-1]
    assert ".uf2 file" in dialog.body
    assert dialog.buttons == ()


@pytest.mark.asyncio
async def test_user_context_builds_data_uri(target_config, ui, compiled) -> None:
    browser = FakeBrowser(user_context=True)

    outcome = await _deployer(target_config, browser, ui).deploy_core(compiled)

    encoded = base64.b64encode(b":10000000DEADBEEF").decode("ascii")
    assert browser.calls[0] == ("data_uri", encoded, "", target_config.hex_mime_type)
    assert outcome.url.endswith(encoded)
    dialog = ui.dialogs[-1]
    assert dialog.header == "Download ready..."
    assert dialog.timeout_ms == 0
    assert dialog.buttons[0].label == "Download"


@pytest.mark.asyncio
async def test_failed_compile_only_downloads(target_config, ui, failed_compile) -> None:
    browser = FakeBrowser()

    outcome = await _deployer(target_config, browser, ui).deploy_core(failed_compile)

    assert outcome.action is OutcomeAction.DOWNLOADED
    assert ui.dialogs == []


@pytest.mark.asyncio
async def test_save_only_outside_user_context_skips_instructions(target_config, ui, compiled) -> None:
    browser = FakeBrowser()
    save_resp = CompileResult(
        success=True,
        outfiles=compiled.outfiles,
        download_file_base_name="saved",
        save_only=True,
    )

    outcome = await _deployer(target_config, browser, ui).save_only(save_resp)

    assert outcome.action is OutcomeAction.DOWNLOADED
    assert ui.dialogs == []


@pytest.mark.asyncio
async def test_save_only_in_user_context_shows_instructions(target_config, ui, compiled) -> None:
    browser = FakeBrowser(user_context=True)
    save_resp = CompileResult(success=True, outfiles=compiled.outfiles, save_only=True)

    outcome = await _deployer(target_config, browser, ui).deploy_core(save_resp)

    assert outcome.action is OutcomeAction.INSTRUCTED


@pytest.mark.asyncio
async def test_same_window_download_is_done(target_config, ui, compiled) -> None:
    browser = FakeBrowser(same_window=True)

    outcome = await _deployer(target_config, browser, ui).deploy_core(compiled)

    assert outcome.action is OutcomeAction.DOWNLOADED
    assert ui.dialogs == []


@pytest.mark.asyncio
async def test_download_error_notifies(target_config, ui, compiled) -> None:
    browser = FakeBrowser(same_window=True)
    browser.fail_with = OSError("quota exceeded")

    await _deployer(target_config, browser, ui).deploy_core(compiled)

    assert ui.messages("error") == ["saving file failed..."]


@pytest.mark.asyncio
async def test_overridden_instructions_slot_is_used(target_config, ui, compiled) -> None:
    holder = CommandTableHolder()
    deployer = BrowserDeployer(target=target_config, browser=FakeBrowser(), ui=ui, commands=holder)
    seen = []

    async def custom_instructions(file_name, url, confirm):
        seen.append(file_name)
        return "custom"

    holder.replace(
        CommandTable(
            deploy_core=deployer.deploy_core,
            save_only=deployer.save_only,
            browser_download=deployer.browser_download,
            show_upload_instructions=custom_instructions,
        )
    )

    assert await deployer.deploy_core(compiled) == "custom"
    assert seen == ["microbit-my-game.hex"]


@pytest.mark.asyncio
async def test_save_only_honours_pinned_table(target_config, ui, compiled) -> None:
    holder = CommandTableHolder()
    deployer = BrowserDeployer(target=target_config, browser=FakeBrowser(), ui=ui, commands=holder)
    pinned = CommandTable(
        deploy_core=deployer.deploy_core,
        save_only=deployer.save_only,
        browser_download=deployer.browser_download,
        show_upload_instructions=deployer.show_upload_instructions,
    )
    late = []

    async def late_instructions(file_name, url, confirm):
        late.append(file_name)
        return "late"

    holder.replace(dataclasses.replace(pinned, show_upload_instructions=late_instructions))

    outcome = await deployer.save_only(compiled, DeployOptions(commands=pinned))

    assert outcome.action is OutcomeAction.INSTRUCTED
    assert late == []


@pytest.mark.asyncio
async def test_user_context_body_without_board_name(target_config, ui, compiled) -> None:
    target = dataclasses.replace(target_config, board_name=None)
    browser = FakeBrowser(user_context=True)

    await _deployer(target, browser, ui).deploy_core(compiled)

    body = ui.dialogs[-1].body
    assert "None" not in body
    assert f"open the {DEFAULT_DEVICE_LABEL} app" in body
