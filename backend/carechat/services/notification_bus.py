"""
In-process publish/subscribe bus.

Decouples the chat window from the chat list. Delivery is fire-and-forget:
sync handlers run inline, coroutine handlers are scheduled as tasks.
"""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Union

from carechat.core.logger import logger
from carechat.models.enums import BusEventType
from carechat.models.events import BusEvent

EventHandler = Callable[[BusEvent], Union[None, Awaitable[None]]]


class Subscription:
    """Handle returned by subscribe(); call unsubscribe() on teardown."""

    def __init__(self, bus: "NotificationBus", event_type: BusEventType, handler: EventHandler):
        self._bus = bus
        self.event_type = event_type
        self.handler = handler
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._bus.unsubscribe(self.event_type, self.handler)
            self.active = False


class NotificationBus:
    def __init__(self) -> None:
        self._handlers: dict[BusEventType, list[EventHandler]] = {}
        self._pending: set[asyncio.Task[Any]] = set()

    def subscribe(self, event_type: BusEventType, handler: EventHandler) -> Subscription:
        self._handlers.setdefault(event_type, []).append(handler)
        return Subscription(self, event_type, handler)

    def unsubscribe(self, event_type: BusEventType, handler: EventHandler) -> None:
        handlers = self._handlers.get(event_type)
        if not handlers:
            return
        try:
            handlers.remove(handler)
        except ValueError:
            return
        if not handlers:
            self._handlers.pop(event_type, None)

    def subscriber_count(self, event_type: BusEventType) -> int:
        return len(self._handlers.get(event_type, ()))

    def publish(self, event: BusEvent) -> None:
        """Deliver an event without waiting for async handlers."""
        for handler in list(self._handlers.get(event.type, ())):
            try:
                result = handler(event)
            except Exception as e:
                logger.error(f"Handler for {event.type.value} failed: {e}")
                continue
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._pending.add(task)
                task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Async event handler failed: {error}")

    async def drain(self) -> None:
        """Wait until every scheduled handler (and any it triggers) finished."""
        while self._pending:
            pending = list(self._pending)
            await asyncio.gather(*pending, return_exceptions=True)
            self._pending.difference_update(task for task in pending if task.done())
