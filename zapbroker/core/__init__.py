"""
Core utilities package.

This package contains the JSON codec, time/decimal helpers and the
event bus used to deliver websocket events to held views.
"""

from zapbroker.core.event_bus import Event, EventBus, EventType, Subscription
from zapbroker.core.utils import now_ms, to_decimal

__all__ = [
    "EventBus",
    "EventType",
    "Event",
    "Subscription",
    "now_ms",
    "to_decimal",
]
