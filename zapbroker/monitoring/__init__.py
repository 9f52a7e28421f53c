"""
Monitoring package.

Prometheus metrics for REST calls and websocket event handling.
"""

from zapbroker.monitoring.metrics import ClientMetrics

__all__ = ["ClientMetrics"]
