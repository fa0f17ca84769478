"""Outbound chat service contract and its capability flags."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum, Flag, auto
from typing import TYPE_CHECKING

from absolutebot.errors import UnsupportedCapability

if TYPE_CHECKING:
    from absolutebot.core.context import ChatContext


class Platform(str, Enum):
    TELEGRAM = "Telegram"
    DISCORD = "Discord"
    TWITCH = "Twitch"
    VKPLAY = "VkPlayLive"


class Capability(Flag):
    NONE = 0
    PHOTO = auto()
    DOCUMENT = auto()
    SHORT_URL = auto()
    DELETE = auto()
    PREPARE = auto()
    STICKER = auto()
    MARKDOWN = auto()


class ChatService(ABC):
    """One connected chat backend.

    ``send_message`` is the only required operation. The richer operations
    must be overridden *and* advertised through ``capabilities``; callers
    check ``context.supports(...)`` before using them.
    """

    capabilities: Capability = Capability.NONE

    @property
    @abstractmethod
    def platform(self) -> Platform: ...

    @abstractmethod
    async def send_message(self, text: str, context: ChatContext) -> None: ...

    async def send_photo(self, url_or_base64: str, context: ChatContext) -> None:
        raise UnsupportedCapability(self.platform.value, "photo")

    async def send_document(self, url: str, context: ChatContext) -> None:
        raise UnsupportedCapability(self.platform.value, "document")

    async def send_shortened_url(self, url: str, context: ChatContext) -> None:
        raise UnsupportedCapability(self.platform.value, "short_url")

    async def delete_messages(self, context: ChatContext, count: int) -> None:
        raise UnsupportedCapability(self.platform.value, "delete")

    async def prepare_message(self, context: ChatContext) -> None:
        raise UnsupportedCapability(self.platform.value, "prepare")

    async def send_sticker(self, sticker_id: str, context: ChatContext) -> None:
        raise UnsupportedCapability(self.platform.value, "sticker")

    async def send_markdown(self, text: str, context: ChatContext) -> None:
        raise UnsupportedCapability(self.platform.value, "markdown")
