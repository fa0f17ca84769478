"""Abstract transport base class."""

from __future__ import annotations

from abc import abstractmethod

from absolutebot.core.bus import EventBus
from absolutebot.core.service import ChatService


class Transport(ChatService):
    """A platform connection: publishes inbound messages, sends outbound ones."""

    def __init__(self, bus: EventBus) -> None:
        self.bus = bus

    @abstractmethod
    async def start(self) -> None: ...

    @abstractmethod
    async def stop(self) -> None: ...
