"""Transport capability probe.

Every call reads the host afresh; pairing and target changes invalidate any
earlier snapshot, so nothing is cached here.
"""

from __future__ import annotations

import logging
import re

from .config.model import TargetConfig
from .const import FORCE_DOWNLOAD_PATTERN
from .interfaces import HostEnvironment, WebUsbService
from .structures import EnvironmentFacts

logger = logging.getLogger("deploybridge.probe")

_FORCE_DOWNLOAD_RE = re.compile(FORCE_DOWNLOAD_PATTERN, re.IGNORECASE)


def is_force_download(href: str) -> bool:
    return _FORCE_DOWNLOAD_RE.search(href or "") is not None


class EnvironmentProbe:
    def __init__(self, *, host: HostEnvironment, usb: WebUsbService, target: TargetConfig) -> None:
        self._host = host
        self._usb = usb
        self._target = target

    def probe(self, *, paired_once: bool = False) -> EnvironmentFacts:
        host = self._host
        target = self._target
        winrt = host.is_winrt()
        facts = EnvironmentFacts(
            force_download=is_force_download(host.location_href()),
            no_deploy=target.no_deploy,
            native_host=host.native_host_messenger() is not None,
            winrt=winrt,
            winrt_use_hf2=winrt and target.use_hf2,
            winrt_raw_hid=winrt and target.raw_hid,
            electron=host.is_electron(),
            webusb_available=self._usb.is_available(),
            webusb_config_enabled=target.web_usb,
            auto_webusb_download=target.auto_webusb_download,
            paired_once=paired_once,
            hid_bridge=host.hid_bridge_should_use(),
            local_server=host.is_localhost(),
            local_token_present=bool(host.local_token()),
        )
        logger.debug("probe: %s", facts)
        return facts


__all__ = ["EnvironmentProbe", "is_force_download"]
