"""
Execution package.

Websocket event decoding and reconciliation of pushed order/user state
into held views.
"""

from zapbroker.execution.order_sync import (
    ActionInProgressError,
    OrderListView,
    OrderView,
    UserInfoView,
    apply_order_created,
    apply_order_to_view,
    apply_order_updated,
)
from zapbroker.execution.ws_events import WebsocketBridge, WsEventKind

__all__ = [
    "ActionInProgressError",
    "OrderListView",
    "OrderView",
    "UserInfoView",
    "WebsocketBridge",
    "WsEventKind",
    "apply_order_created",
    "apply_order_to_view",
    "apply_order_updated",
]
