"""Prometheus counters for deploy routing and recovery."""

from __future__ import annotations

import logging

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, generate_latest

from .const import METRICS_NAMESPACE

logger = logging.getLogger("deploybridge.metrics")


class DeployMetrics:
    """Counters kept in a private registry so engines never collide."""

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry(auto_describe=True)
        self._selections = Counter(
            "channel_selections",
            "Channel selection passes by chosen channel",
            ["channel"],
            namespace=METRICS_NAMESPACE,
            registry=self.registry,
        )
        self._deploys = Counter(
            "deploy_attempts",
            "Deploy invocations by active channel",
            ["channel"],
            namespace=METRICS_NAMESPACE,
            registry=self.registry,
        )
        self._fallbacks = Counter(
            "deploy_fallbacks",
            "Recovery fallbacks by failure kind",
            ["kind"],
            namespace=METRICS_NAMESPACE,
            registry=self.registry,
        )
        self._repairs = Counter(
            "bootloader_repairs",
            "Bootloader re-pairing cycles",
            namespace=METRICS_NAMESPACE,
            registry=self.registry,
        )
        self._disconnect_failures = Counter(
            "disconnect_failures",
            "Best-effort disconnects that raised",
            namespace=METRICS_NAMESPACE,
            registry=self.registry,
        )

    def record_selection(self, channel: str) -> None:
        self._selections.labels(channel=channel).inc()

    def record_deploy(self, channel: str) -> None:
        self._deploys.labels(channel=channel).inc()

    def record_fallback(self, kind: str) -> None:
        self._fallbacks.labels(kind=kind).inc()

    def record_repair(self) -> None:
        self._repairs.inc()

    def record_disconnect_failure(self) -> None:
        self._disconnect_failures.inc()

    def sample(self, name: str, **labels: str) -> float:
        value = self.registry.get_sample_value(f"{METRICS_NAMESPACE}_{name}_total", labels or None)
        return value or 0.0

    def render(self) -> bytes:
        return generate_latest(self.registry)


__all__ = ["DeployMetrics"]
