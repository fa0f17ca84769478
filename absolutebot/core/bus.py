"""Async event bus between transports and the message pipeline."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Coroutine
from uuid import uuid4

from absolutebot.core.context import ChatContext
from absolutebot.utils.logging import get_logger

log = get_logger(__name__)


class EventType(str, Enum):
    MESSAGE_INCOMING = "message.incoming"


@dataclass
class Event:
    type: EventType
    id: str = field(default_factory=lambda: uuid4().hex[:12])
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class MessageIncoming(Event):
    type: EventType = field(default=EventType.MESSAGE_INCOMING, init=False)
    context: ChatContext | None = None
    text: str = ""
    edited: bool = False


Handler = Callable[[Event], Coroutine[Any, Any, None]]


class EventBus:
    """One bounded queue and one consumer task per subscriber.

    Each subscriber sees its events in publish order. A full queue drops
    the event with a warning instead of blocking the transport.
    """

    def __init__(self, max_queue_size: int = 256) -> None:
        self._subscribers: dict[EventType, list[tuple[Handler, asyncio.Queue[Event]]]] = {}
        self._max_queue_size = max_queue_size
        self._tasks: list[asyncio.Task[None]] = []
        self.dropped = 0

    def subscribe(self, event_type: EventType, handler: Handler) -> None:
        queue: asyncio.Queue[Event] = asyncio.Queue(maxsize=self._max_queue_size)
        self._subscribers.setdefault(event_type, []).append((handler, queue))

    async def publish(self, event: Event) -> None:
        for handler, queue in self._subscribers.get(event.type, []):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                self.dropped += 1
                log.warning(
                    "event_queue_full",
                    event_type=event.type.value,
                    handler=handler.__qualname__,
                )

    async def start(self) -> None:
        for event_type, handlers in self._subscribers.items():
            for handler, queue in handlers:
                self._tasks.append(asyncio.create_task(
                    self._consume(handler, queue, event_type),
                    name=f"bus-{event_type.value}-{handler.__qualname__}",
                ))

    async def _consume(
        self, handler: Handler, queue: asyncio.Queue[Event], event_type: EventType
    ) -> None:
        while True:
            event = await queue.get()
            try:
                await handler(event)
            except Exception:
                log.exception("handler_error", event_type=event_type.value, event_id=event.id)
            finally:
                queue.task_done()

    async def drain(self) -> None:
        """Wait until every queued event has been handled."""
        for handlers in self._subscribers.values():
            for _, queue in handlers:
                await queue.join()

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
