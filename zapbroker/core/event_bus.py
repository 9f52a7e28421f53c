"""
Event Bus: observer channel between the websocket feed and held views.

The websocket bridge publishes decoded order/user events; views subscribe
to the event types they render. Delivery is asynchronous through a queue,
so publishing never waits on a handler and a handler never waits on a
REST request.

Features:
- Typed events with dataclasses
- Async or sync handlers
- Priority-based handler execution
- Error isolation (one handler failure doesn't stop others)
- Disposal: an unsubscribed handler receives nothing further, including
  events already queued at the time of unsubscription
- Event history and statistics
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Coroutine, Dict, List, Optional, Union

from zapbroker.infra.logging_cfg import DEBUG, WARNING, log_event

log = logging.getLogger("zapbroker")


class EventType(Enum):
    """Event types carried by the bus."""
    ORDER_CREATED = auto()       # New broker order pushed by the server
    ORDER_UPDATED = auto()       # Full snapshot of an existing broker order
    USER_INFO_UPDATED = auto()   # User info snapshot (may omit permissions)


@dataclass
class Event:
    """
    Event container.

    `data` holds the decoded payload under a type-specific key
    ("order" for order events, "info" for user info events).
    """
    type: EventType
    data: Dict[str, Any]
    timestamp_ms: int = field(default_factory=lambda: int(time.time() * 1000))
    source: Optional[str] = None

    def __str__(self) -> str:
        return f"Event({self.type.name}, ts={self.timestamp_ms}, source={self.source})"


Handler = Union[
    Callable[[Event], Coroutine[Any, Any, None]],
    Callable[[Event], None],
]


@dataclass(eq=False)
class Subscription:
    """Subscription record returned by subscribe(); pass it back to unsubscribe()."""
    event_type: EventType
    handler: Handler
    priority: int = 0  # Higher = called first
    name: Optional[str] = None
    active: bool = True


class EventBus:
    """
    Central event bus.

    Usage:
        bus = EventBus()
        sub = bus.subscribe(EventType.ORDER_UPDATED, view.handle_update)

        await bus.publish(Event(type=EventType.ORDER_UPDATED, data={"order": order}))

        # Either run the loop in the background...
        task = asyncio.create_task(bus.start())
        # ...or process what is queued right now
        await bus.drain()

        bus.unsubscribe(sub)
        bus.stop()
    """

    DEFAULT_HISTORY_SIZE = 200
    DEFAULT_QUEUE_SIZE = 0

    def __init__(
        self,
        history_size: int = DEFAULT_HISTORY_SIZE,
        queue_size: int = DEFAULT_QUEUE_SIZE,
    ) -> None:
        self._subscribers: Dict[EventType, List[Subscription]] = {}
        self._queue: asyncio.Queue[Event] = asyncio.Queue(maxsize=max(queue_size, 0))
        self._running = False

        self._history_size = history_size
        self._history: List[Event] = []

        self._stats = {
            "events_published": 0,
            "events_processed": 0,
            "events_dropped": 0,
            "handler_errors": 0,
        }

    # -------------------------------------------------------------------------
    # Subscription Management
    # -------------------------------------------------------------------------

    def subscribe(
        self,
        event_type: EventType,
        handler: Handler,
        priority: int = 0,
        name: Optional[str] = None,
    ) -> Subscription:
        """
        Subscribe to a specific event type.

        Args:
            event_type: Type of events to receive
            handler: Async or sync function to handle events
            priority: Higher priority handlers called first (default 0)
            name: Optional name for debugging

        Returns:
            Subscription object (for unsubscribing)
        """
        sub = Subscription(event_type=event_type, handler=handler, priority=priority, name=name)
        subs = self._subscribers.setdefault(event_type, [])

        # Insert sorted by priority (descending), stable for equal priorities
        insert_idx = len(subs)
        for i, existing in enumerate(subs):
            if existing.priority < priority:
                insert_idx = i
                break
        subs.insert(insert_idx, sub)

        log_event(
            log,
            "event_bus_subscribe",
            level=DEBUG,
            event_type=event_type.name,
            handler_name=name or getattr(handler, "__name__", "handler"),
            total_subscribers=len(subs),
        )
        return sub

    def unsubscribe(self, subscription: Subscription) -> bool:
        """
        Remove a subscription.

        After this returns the handler is never called again, even for
        events that were published before the call and are still queued.

        Returns:
            True if removed, False if it was not subscribed
        """
        subscription.active = False
        subs = self._subscribers.get(subscription.event_type, [])
        if subscription in subs:
            subs.remove(subscription)
            return True
        return False

    # -------------------------------------------------------------------------
    # Event Publishing
    # -------------------------------------------------------------------------

    async def publish(self, event: Event) -> bool:
        """Queue an event for delivery. Returns False if the queue is full."""
        return self.publish_nowait(event)

    def publish_nowait(self, event: Event) -> bool:
        """Publish from sync context (transport callbacks)."""
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self._stats["events_dropped"] += 1
            log_event(log, "event_bus_queue_full", level=WARNING, event_type=event.type.name)
            return False
        self._stats["events_published"] += 1
        return True

    def emit(self, event_type: EventType, source: Optional[str] = None, **data: Any) -> bool:
        """Create and publish an event in one call."""
        return self.publish_nowait(Event(type=event_type, data=data, source=source))

    # -------------------------------------------------------------------------
    # Event Processing
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """
        Process events until stop() is called.

        Should be run as a background task.
        """
        self._running = True
        log_event(log, "event_bus_started", level=DEBUG)

        while self._running:
            try:
                try:
                    event = await asyncio.wait_for(self._queue.get(), timeout=1.0)
                except asyncio.TimeoutError:
                    continue
                await self._process_event(event)
            except asyncio.CancelledError:
                break

        self._running = False
        log_event(log, "event_bus_stopped", level=DEBUG)

    async def _process_event(self, event: Event) -> None:
        """Deliver a single event to the current subscribers of its type."""
        if self._history_size > 0:
            self._history.append(event)
            if len(self._history) > self._history_size:
                self._history.pop(0)

        # Snapshot: handlers may unsubscribe while we iterate
        for sub in list(self._subscribers.get(event.type, [])):
            if not sub.active:
                continue
            try:
                if inspect.iscoroutinefunction(sub.handler):
                    await sub.handler(event)
                else:
                    sub.handler(event)
            except Exception as e:
                self._stats["handler_errors"] += 1
                log_event(
                    log,
                    "event_bus_handler_error",
                    level=WARNING,
                    event_type=event.type.name,
                    handler_name=sub.name or "unknown",
                    error=str(e),
                    error_type=type(e).__name__,
                )

        self._stats["events_processed"] += 1

    def stop(self) -> None:
        """Stop processing events."""
        self._running = False

    async def drain(self) -> int:
        """
        Process all queued events now.

        Returns:
            Number of events processed
        """
        count = 0
        while True:
            try:
                event = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            await self._process_event(event)
            count += 1
        return count

    # -------------------------------------------------------------------------
    # Query Methods
    # -------------------------------------------------------------------------

    def get_history(self, event_type: Optional[EventType] = None, limit: int = 100) -> List[Event]:
        """Recent events, most recent last."""
        events = self._history
        if event_type:
            events = [e for e in events if e.type == event_type]
        return events[-limit:]

    def get_stats(self) -> Dict[str, Any]:
        return {
            **self._stats,
            "queue_size": self._queue.qsize(),
            "history_size": len(self._history),
            "subscriber_count": sum(len(s) for s in self._subscribers.values()),
            "running": self._running,
        }

    def get_subscriber_count(self, event_type: EventType) -> int:
        return len(self._subscribers.get(event_type, []))
