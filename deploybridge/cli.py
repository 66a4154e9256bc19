"""Diagnostic entry point: which deploy channel would a given environment pick?

Reads an :class:`~deploybridge.structures.EnvironmentFacts` JSON document and
prints the selected channel together with the facts it was derived from.
"""

from __future__ import annotations

import argparse
import dataclasses
import sys
from collections.abc import Sequence
from pathlib import Path

import msgspec

from .config import DeployConfig, load_config, load_config_file
from .config.logging import configure_logging
from .errors import ConfigurationError
from .selector import select_channel
from .structures import EnvironmentFacts


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="deploybridge-select",
        description="Print the deploy channel selected for a set of environment facts.",
    )
    parser.add_argument(
        "facts",
        type=Path,
        help="Path to a JSON object of environment facts.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Deploy configuration; its target flags override the facts file.",
    )
    parser.add_argument(
        "--paired",
        action="store_true",
        help="Treat WebUSB as paired at least once.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log selection details to stderr.",
    )
    return parser


def _load_facts(path: Path) -> EnvironmentFacts:
    try:
        return msgspec.json.decode(path.read_bytes(), type=EnvironmentFacts)
    except OSError as exc:
        raise ValueError(f"cannot read facts {path}: {exc}") from exc
    except msgspec.ValidationError as exc:
        raise ValueError(f"invalid facts {path}: {exc}") from exc
    except msgspec.DecodeError as exc:
        raise ValueError(f"malformed facts {path}: {exc}") from exc


def apply_target(facts: EnvironmentFacts, config: DeployConfig) -> EnvironmentFacts:
    target = config.target
    return msgspec.structs.replace(
        facts,
        no_deploy=target.no_deploy,
        winrt_use_hf2=facts.winrt and target.use_hf2,
        winrt_raw_hid=facts.winrt and target.raw_hid,
        webusb_config_enabled=target.web_usb,
        auto_webusb_download=target.auto_webusb_download,
    )


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else list(argv))

    try:
        facts = _load_facts(args.facts)
        config = load_config_file(args.config) if args.config else load_config()
    except (ValueError, ConfigurationError) as exc:
        parser.error(str(exc))

    if args.verbose:
        configure_logging(dataclasses.replace(config.engine, debug_logging=True, log_stream=True))

    if args.config:
        facts = apply_target(facts, config)
    if args.paired:
        facts = msgspec.structs.replace(facts, paired_once=True)

    channel = select_channel(facts)
    print(msgspec.json.encode({"channel": channel.value, "facts": facts}).decode("utf-8"))
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
