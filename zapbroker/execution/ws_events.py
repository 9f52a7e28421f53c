"""
Websocket event decoding.

The websocket transport (owned by the host application) hands us
`(event_kind, json_payload)` pairs. WebsocketBridge decodes the payload
into a model and publishes it on the EventBus; it never raises back into
the transport. Unknown kinds are ignored and undecodable payloads are
dropped with a warning.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from zapbroker.core.event_bus import EventBus, EventType
from zapbroker.core.json_utils import loads
from zapbroker.infra.logging_cfg import DEBUG, WARNING, log_event
from zapbroker.models.errors import DecodeError
from zapbroker.models.order import BrokerOrder
from zapbroker.models.user import UserInfo
from zapbroker.monitoring.metrics import ClientMetrics

log = logging.getLogger("zapbroker")

Payload = Union[str, bytes, Mapping[str, Any]]


class WsEventKind(str, Enum):
    BROKER_ORDER_NEW = "broker_order_new"
    BROKER_ORDER_UPDATE = "broker_order_update"
    USER_INFO_UPDATE = "user_info_update"


# kind -> (bus event type, data key, decoder)
_ROUTES: Dict[WsEventKind, Tuple[EventType, str, Callable[[Any], Any]]] = {
    WsEventKind.BROKER_ORDER_NEW: (EventType.ORDER_CREATED, "order", BrokerOrder.parse),
    WsEventKind.BROKER_ORDER_UPDATE: (EventType.ORDER_UPDATED, "order", BrokerOrder.parse),
    WsEventKind.USER_INFO_UPDATE: (EventType.USER_INFO_UPDATED, "info", UserInfo.parse),
}


class WebsocketBridge:
    def __init__(self, bus: EventBus, metrics: Optional[ClientMetrics] = None) -> None:
        self.bus = bus
        self.metrics = metrics

    def dispatch(self, kind: str, payload: Payload) -> bool:
        """
        Decode one transport event and publish it.

        Returns True if an event was published.
        """
        try:
            ws_kind = WsEventKind(kind)
        except ValueError:
            log_event(log, "ws_event_unknown", level=DEBUG, kind=kind)
            self._count("unknown", "ignored")
            return False

        event_type, key, decoder = _ROUTES[ws_kind]
        try:
            obj = loads(payload) if isinstance(payload, (str, bytes)) else payload
            model = decoder(obj)
        except (DecodeError, ValueError, KeyError, TypeError, AttributeError) as exc:
            log_event(log, "ws_event_decode_error", level=WARNING, kind=ws_kind.value, error=str(exc))
            self._count(ws_kind.value, "decode_error")
            return False

        self._count(ws_kind.value, "ok")
        return self.bus.emit(event_type, source="websocket", **{key: model})

    def _count(self, kind: str, result: str) -> None:
        if self.metrics is not None:
            self.metrics.ws_events.labels(kind=kind, result=result).inc()
