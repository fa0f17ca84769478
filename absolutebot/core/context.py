"""Platform-neutral chat context: one common record plus a platform payload."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from absolutebot.core.service import Capability, ChatService, Platform
from absolutebot.models import ReplyInfo


class ChannelType(Enum):
    GENERAL = "general"
    PREMIUM = "premium"
    ADMINISTRATIVE = "administrative"
    ANNOUNCE = "announce"


@dataclass(frozen=True)
class TextFormatter:
    bold_marker: str = "*"
    italic_marker: str = "_"

    def bold(self, text: str) -> str:
        return f"{self.bold_marker}{text}{self.bold_marker}"

    def italic(self, text: str) -> str:
        return f"{self.italic_marker}{text}{self.italic_marker}"


COMMON_FORMATTER = TextFormatter()
DISCORD_FORMATTER = TextFormatter(bold_marker="**")


@dataclass
class TelegramPayload:
    channel_id: int
    channel_type: ChannelType
    message_id: int = 0


@dataclass
class DiscordPayload:
    channel_id: int
    guild_type: ChannelType
    chat_type: ChannelType
    tags: list[str] = field(default_factory=list)
    # native discord.Message, used for reactions and replies
    message: Any = None


@dataclass
class TwitchPayload:
    channel: str
    message_id: str = ""


@dataclass
class VkPlayPayload:
    message_id: int = 0
    mention_nicknames: list[str] = field(default_factory=list)
    urls: list[str] = field(default_factory=list)


PlatformPayload = Union[TelegramPayload, DiscordPayload, TwitchPayload, VkPlayPayload]


@dataclass
class ChatContext:
    platform: Platform
    username: str
    max_message_length: int
    service: ChatService
    payload: PlatformPayload
    last_messages: list[str] | None = None
    reply: ReplyInfo | None = None
    formatter: TextFormatter = COMMON_FORMATTER

    def supports(self, capability: Capability) -> bool:
        return capability in self.service.capabilities

    async def send(self, text: str) -> None:
        await self.service.send_message(text, self)


def telegram_context(
    service: ChatService,
    username: str,
    channel_id: int,
    channel_type: ChannelType,
    *,
    message_id: int = 0,
    max_message_length: int = 4096,
    reply: ReplyInfo | None = None,
) -> ChatContext:
    return ChatContext(
        platform=Platform.TELEGRAM,
        username=username,
        max_message_length=max_message_length,
        service=service,
        payload=TelegramPayload(channel_id, channel_type, message_id),
        reply=reply,
    )


def discord_context(
    service: ChatService,
    username: str,
    channel_id: int,
    guild_type: ChannelType,
    chat_type: ChannelType,
    *,
    tags: list[str] | None = None,
    message: Any = None,
    max_message_length: int = 1900,
    reply: ReplyInfo | None = None,
) -> ChatContext:
    return ChatContext(
        platform=Platform.DISCORD,
        username=username,
        max_message_length=max_message_length,
        service=service,
        payload=DiscordPayload(channel_id, guild_type, chat_type, tags or [], message),
        reply=reply,
        formatter=DISCORD_FORMATTER,
    )


def twitch_context(
    service: ChatService,
    username: str,
    channel: str,
    *,
    message_id: str = "",
    max_message_length: int = 500,
    reply: ReplyInfo | None = None,
) -> ChatContext:
    return ChatContext(
        platform=Platform.TWITCH,
        username=username,
        max_message_length=max_message_length,
        service=service,
        payload=TwitchPayload(channel, message_id),
        reply=reply,
    )


def vkplay_context(
    service: ChatService,
    username: str,
    *,
    message_id: int = 0,
    mention_nicknames: list[str] | None = None,
    urls: list[str] | None = None,
    max_message_length: int = 300,
    reply: ReplyInfo | None = None,
) -> ChatContext:
    return ChatContext(
        platform=Platform.VKPLAY,
        username=username,
        max_message_length=max_message_length,
        service=service,
        payload=VkPlayPayload(message_id, mention_nicknames or [], urls or []),
        reply=reply,
    )
