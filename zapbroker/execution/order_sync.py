"""
Order Sync: reconciles websocket-pushed state into held views.

REST calls and websocket events both produce full BrokerOrder snapshots
keyed by token. Views hold those snapshots and replace them wholesale, so
applying the same event twice gives the same state as applying it once.
There is no sequencing: whichever snapshot is applied last wins.

Views:
- OrderListView  most-recent-first list of orders
                 created -> prepend (no dedup)
                 updated -> replace every entry with the same token; drop on miss
- OrderView      a single order; updated -> replace on token match
                 user actions (accept/refresh) suppress websocket updates
                 while the request is in flight
- UserInfoView   user info; updates merge, keeping permissions the
                 incoming snapshot omits

Usage:
    view = OrderListView(initial_orders)
    view.attach(bus)
    ...
    view.detach()   # no further delivery after this returns
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, AsyncIterator, Callable, List, Optional, Sequence, Tuple

from zapbroker.core.event_bus import Event, EventBus, EventType, Subscription
from zapbroker.infra.logging_cfg import DEBUG, INFO, log_event
from zapbroker.models.errors import ApiError
from zapbroker.models.order import BrokerOrder
from zapbroker.models.results import BrokerOrderResult
from zapbroker.models.user import UserInfo
from zapbroker.monitoring.metrics import ClientMetrics

if TYPE_CHECKING:
    from zapbroker.infra.api_client import ApiClient

log = logging.getLogger("zapbroker")

ChangeCallback = Callable[[EventType, Any], None]


class ActionInProgressError(RuntimeError):
    """A user action on this order is already awaiting its response."""


# -----------------------------------------------------------------------------
# Pure reconciliation rules
# -----------------------------------------------------------------------------

def apply_order_created(orders: Sequence[BrokerOrder], order: BrokerOrder) -> List[BrokerOrder]:
    """Prepend a newly created order."""
    return [order, *orders]


def apply_order_updated(orders: Sequence[BrokerOrder], order: BrokerOrder) -> Tuple[List[BrokerOrder], int]:
    """
    Replace every entry whose token matches `order`.

    Returns the new list and the number of entries replaced (0 means the
    update was for an order we don't hold and nothing changed).
    """
    replaced = 0
    out: List[BrokerOrder] = []
    for held in orders:
        if held.token == order.token:
            out.append(order)
            replaced += 1
        else:
            out.append(held)
    return out, replaced


def apply_order_to_view(held: BrokerOrder, order: BrokerOrder) -> BrokerOrder:
    return order if held.token == order.token else held


# -----------------------------------------------------------------------------
# Views
# -----------------------------------------------------------------------------

class _BusView:
    """Subscribe/unsubscribe bookkeeping shared by the views."""

    EVENT_TYPES: Tuple[EventType, ...] = ()

    def __init__(self, on_change: Optional[ChangeCallback] = None) -> None:
        self.on_change = on_change
        self._bus: Optional[EventBus] = None
        self._subs: List[Subscription] = []

    @property
    def attached(self) -> bool:
        return self._bus is not None

    def attach(self, bus: EventBus) -> None:
        if self._bus is not None:
            raise RuntimeError(f"{type(self).__name__} is already attached")
        self._bus = bus
        self._subs = [
            bus.subscribe(event_type, self.handle, name=f"{type(self).__name__}.{event_type.name}")
            for event_type in self.EVENT_TYPES
        ]

    def detach(self) -> None:
        """Unsubscribe. Held state stays as it was."""
        if self._bus is None:
            return
        for sub in self._subs:
            self._bus.unsubscribe(sub)
        self._subs = []
        self._bus = None

    def handle(self, event: Event) -> None:
        raise NotImplementedError

    def _notify(self, event_type: EventType, value: Any) -> None:
        if self.on_change is not None:
            self.on_change(event_type, value)


class OrderListView(_BusView):
    EVENT_TYPES = (EventType.ORDER_CREATED, EventType.ORDER_UPDATED)

    def __init__(
        self,
        orders: Optional[Sequence[BrokerOrder]] = None,
        on_change: Optional[ChangeCallback] = None,
        metrics: Optional[ClientMetrics] = None,
    ) -> None:
        super().__init__(on_change)
        self._orders: List[BrokerOrder] = list(orders or [])
        self.metrics = metrics

    @property
    def orders(self) -> List[BrokerOrder]:
        return list(self._orders)

    def __len__(self) -> int:
        return len(self._orders)

    async def load(self, client: ApiClient, offset: int = 0, limit: int = 100) -> ApiError:
        """Replace the held list with a page fetched over REST."""
        res = await client.order_list(offset, limit)
        if res.error.ok:
            self._orders = list(res.orders)
        return res.error

    def handle(self, event: Event) -> None:
        order: BrokerOrder = event.data["order"]
        if event.type is EventType.ORDER_CREATED:
            self._orders = apply_order_created(self._orders, order)
            log_event(log, "order_created_applied", level=INFO, token=order.token, status=order.status.value)
            self._notify(event.type, order)
        elif event.type is EventType.ORDER_UPDATED:
            self._orders, replaced = apply_order_updated(self._orders, order)
            if replaced == 0:
                log_event(log, "order_update_dropped", level=DEBUG, token=order.token)
                if self.metrics is not None:
                    self.metrics.order_updates_dropped.inc()
                return
            log_event(log, "order_updated_applied", level=INFO, token=order.token, status=order.status.value)
            self._notify(event.type, order)


class OrderView(_BusView):
    EVENT_TYPES = (EventType.ORDER_UPDATED,)

    def __init__(self, order: BrokerOrder, on_change: Optional[ChangeCallback] = None) -> None:
        super().__init__(on_change)
        self.order = order
        self.process_updates = True
        self._busy = False

    @property
    def busy(self) -> bool:
        """True while a user action is awaiting its response."""
        return self._busy

    def handle(self, event: Event) -> None:
        if not self.process_updates:
            return
        order: BrokerOrder = event.data["order"]
        if order.token != self.order.token:
            return
        self.order = order
        log_event(log, "order_updated_applied", level=INFO, token=order.token, status=order.status.value)
        self._notify(event.type, order)

    @asynccontextmanager
    async def action(self) -> AsyncIterator["OrderView"]:
        """
        Run a user-initiated request against this order.

        Websocket updates are ignored until the block exits, successfully
        or not. A second action while one is in flight is refused.
        """
        if self._busy:
            raise ActionInProgressError(f"order {self.order.token} has an action in flight")
        self._busy = True
        self.process_updates = False
        try:
            yield self
        finally:
            self.process_updates = True
            self._busy = False

    async def accept(self, client: ApiClient) -> ApiError:
        async with self.action():
            res = await client.order_accept(self.order.token)
        return self._adopt(res)

    async def refresh(self, client: ApiClient) -> ApiError:
        async with self.action():
            res = await client.order_status(self.order.token)
        return self._adopt(res)

    def _adopt(self, res: BrokerOrderResult) -> ApiError:
        if res.error.ok:
            self.order = res.order
            self._notify(EventType.ORDER_UPDATED, res.order)
        return res.error


class UserInfoView(_BusView):
    EVENT_TYPES = (EventType.USER_INFO_UPDATED,)

    def __init__(self, info: Optional[UserInfo] = None, on_change: Optional[ChangeCallback] = None) -> None:
        super().__init__(on_change)
        self.info = info

    def handle(self, event: Event) -> None:
        incoming: UserInfo = event.data["info"]
        self.info = incoming if self.info is None else self.info.merge(incoming)
        self._notify(event.type, self.info)

    async def load(self, client: ApiClient, email: Optional[str] = None) -> ApiError:
        res = await client.user_info(email)
        if res.error.ok and res.info is not None:
            self.info = res.info if self.info is None else self.info.merge(res.info)
        return res.error
