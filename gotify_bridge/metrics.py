import platform
import re
import threading
from typing import Dict, Iterable, Optional

from prometheus_client import CollectorRegistry
from prometheus_client.core import GaugeMetricFamily

from .constants import METRIC_COUNTERS, VERSION
from .services import probe_gotify_health

_INVALID_METRIC_CHARS = re.compile(r'[^a-zA-Z0-9_]')


class MetricsState:
    """Contadores compartilhados entre as threads de requisição; lidos a cada scrape."""

    def __init__(self, names: Iterable[str] = METRIC_COUNTERS):
        self._lock = threading.Lock()
        self._counters: Dict[str, int] = {name: 0 for name in names}

    def inc(self, name: str, amount: int = 1):
        with self._lock:
            self._counters[name] = self._counters.get(name, 0) + amount

    def get(self, name: str) -> int:
        with self._lock:
            return self._counters.get(name, 0)

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counters)


def _metric_name(*parts: str) -> str:
    return "_".join(_INVALID_METRIC_CHARS.sub("_", p) for p in parts if p)


class BridgeCollector:
    """
    Collector do prometheus_client: exporta os contadores da bridge e faz o
    health check do Gotify a cada coleta.
    """

    def __init__(self, state: MetricsState, config, health_probe=probe_gotify_health):
        self.state = state
        self.config = config
        self.health_probe = health_probe

    def describe(self):
        # Sem descrição prévia: evita o health check no momento do register()
        return []

    def collect(self):
        namespace = self.config.metrics_namespace

        for key, value in sorted(self.state.snapshot().items()):
            yield GaugeMetricFamily(
                _metric_name(namespace, key),
                f"Alertmanager-Gotify bridge {key} metric",
                value=value,
            )

        up, status = self.health_probe(self.config.gotify_endpoint, self.config.timeout)
        yield GaugeMetricFamily(
            _metric_name(namespace, "gotify_up"),
            "Base scrape status for Gotify",
            value=1 if up else 0,
        )
        for key, value in sorted(status.items()):
            yield GaugeMetricFamily(
                _metric_name(namespace, "gotify_health", key),
                f"Gotify health metric '{key}'",
                value=1 if value == "green" else 0,
            )

        build_info = GaugeMetricFamily(
            _metric_name(namespace, "build_info"),
            "A metric with a constant '1' value labeled by version and python version.",
            labels=["version", "pythonversion"],
        )
        build_info.add_metric([VERSION, platform.python_version()], 1)
        yield build_info


def build_registry(state: MetricsState, config, health_probe=probe_gotify_health, registry: Optional[CollectorRegistry] = None):
    registry = registry or CollectorRegistry(auto_describe=False)
    registry.register(BridgeCollector(state, config, health_probe=health_probe))
    return registry
