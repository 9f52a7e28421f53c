"""
Prometheus metrics for API calls and websocket reconciliation.

Each ClientMetrics owns its own CollectorRegistry unless one is passed
in, so several clients (or tests) never collide on metric names.
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest


class ClientMetrics:
    """Counters and latency histograms for the broker client."""

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        reg = registry or CollectorRegistry()
        self._registry = reg

        # === API Metrics ===
        self.api_requests = Counter(
            'api_requests_total',
            'REST operations by outcome (ok, auth, network)',
            labelnames=['operation', 'outcome'],
            registry=reg
        )
        self.api_latency_ms = Histogram(
            'api_latency_ms',
            'REST round trip time (milliseconds)',
            labelnames=['operation'],
            buckets=[25, 50, 100, 250, 500, 1000, 2500, 5000, 10000],
            registry=reg
        )

        # === Websocket Metrics ===
        self.ws_events = Counter(
            'ws_events_total',
            'Websocket events by kind and decode result',
            labelnames=['kind', 'result'],
            registry=reg
        )
        self.order_updates_dropped = Counter(
            'order_updates_dropped_total',
            'Order updates for tokens not held by the view',
            registry=reg
        )

    def get_registry(self) -> CollectorRegistry:
        return self._registry

    def render(self) -> bytes:
        """Prometheus text exposition of this registry."""
        return generate_latest(self._registry)
