"""Discord transport using discord.py."""

from __future__ import annotations

import asyncio
from typing import Any

import discord

from absolutebot.config import ChunkerConfig, DiscordConfig
from absolutebot.core.bus import EventBus, MessageIncoming
from absolutebot.core.chunker import chunk_message
from absolutebot.core.context import ChannelType, ChatContext, DiscordPayload, discord_context
from absolutebot.core.service import Capability, Platform
from absolutebot.models import ReplyInfo
from absolutebot.transports.base import Transport
from absolutebot.utils.logging import get_logger

log = get_logger(__name__)

_SENDABLE = (discord.TextChannel, discord.DMChannel, discord.Thread)


def _channel_type(mapping: dict[int, str], key: int | None) -> ChannelType:
    if key is None or key not in mapping:
        return ChannelType.GENERAL
    try:
        return ChannelType(mapping[key].lower())
    except ValueError:
        log.warning("discord_unknown_channel_type", id=key, value=mapping[key])
        return ChannelType.GENERAL


class DiscordTransport(Transport):
    capabilities = Capability.PREPARE | Capability.DELETE | Capability.MARKDOWN

    def __init__(
        self,
        config: DiscordConfig,
        bus: EventBus,
        chunker_config: ChunkerConfig | None = None,
    ) -> None:
        super().__init__(bus)
        self._config = config
        self._chunker_config = chunker_config or ChunkerConfig()
        self._task: asyncio.Task[None] | None = None

        intents = discord.Intents.default()
        intents.message_content = True
        intents.guilds = True

        self._client = discord.Client(intents=intents)
        self._setup_handlers()

    @property
    def platform(self) -> Platform:
        return Platform.DISCORD

    def _setup_handlers(self) -> None:
        @self._client.event
        async def on_ready() -> None:
            log.info("discord_connected", user=str(self._client.user))

        @self._client.event
        async def on_message(message: discord.Message) -> None:
            if message.author == self._client.user:
                return
            if self._config.guild_ids and message.guild:
                if message.guild.id not in self._config.guild_ids:
                    return
            if not message.content:
                return

            context, text = await self.build_context(message)
            await self.bus.publish(MessageIncoming(context=context, text=text))

        @self._client.event
        async def on_message_edit(before: discord.Message, after: discord.Message) -> None:
            if after.author == self._client.user or before.content == after.content:
                return
            context, text = await self.build_context(after)
            await self.bus.publish(MessageIncoming(context=context, text=text, edited=True))

    async def build_context(self, message: discord.Message) -> tuple[ChatContext, str]:
        """Convert a discord.Message into a chat context and plain text."""
        text = message.content
        tags: list[str] = []
        for user in message.mentions:
            name = getattr(user, "display_name", user.name)
            text = text.replace(f"<@{user.id}>", f"@{name}").replace(f"<@!{user.id}>", f"@{name}")
            tags.append(name)
        tags.extend(role.name for role in message.role_mentions)

        reply = None
        if message.reference is not None:
            replied = message.reference.resolved
            if replied is None and message.reference.message_id:
                try:
                    replied = await message.channel.fetch_message(message.reference.message_id)
                except discord.HTTPException:
                    log.debug("discord_reply_fetch_failed", message_id=message.reference.message_id)
            if isinstance(replied, discord.Message):
                reply = ReplyInfo(username=replied.author.name, message=replied.content)

        guild_id = message.guild.id if message.guild else None
        context = discord_context(
            self,
            message.author.name,
            message.channel.id,
            _channel_type(self._config.guild_types, guild_id),
            _channel_type(self._config.channel_types, message.channel.id),
            tags=tags,
            message=message,
            max_message_length=self._config.max_message_length,
            reply=reply,
        )
        return context, text.strip()

    async def start(self) -> None:
        self._task = asyncio.create_task(
            self._client.start(self._config.token),
            name="discord-client",
        )
        log.info("discord_transport_starting")

    async def stop(self) -> None:
        await self._client.close()
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None
        log.info("discord_transport_stopped")

    async def _channel(self, context: ChatContext) -> Any:
        payload = context.payload
        assert isinstance(payload, DiscordPayload)
        if payload.message is not None:
            return payload.message.channel
        channel = self._client.get_channel(payload.channel_id)
        if channel is None:
            channel = await self._client.fetch_channel(payload.channel_id)
        return channel

    async def send_message(self, text: str, context: ChatContext) -> None:
        channel = await self._channel(context)
        if not isinstance(channel, _SENDABLE):
            log.error("discord_invalid_channel_type", channel_id=getattr(channel, "id", None))
            return

        chunks = chunk_message(
            text,
            limit=context.max_message_length,
            min_chunk_size=self._chunker_config.min_chunk_size,
        )
        for i, chunk in enumerate(chunks):
            if i > 0:
                async with channel.typing():
                    await asyncio.sleep(self._chunker_config.typing_delay)
            await channel.send(chunk)

    async def send_markdown(self, text: str, context: ChatContext) -> None:
        await self.send_message(text, context)

    async def prepare_message(self, context: ChatContext) -> None:
        channel = await self._channel(context)
        if isinstance(channel, _SENDABLE):
            await channel.typing()

    async def delete_messages(self, context: ChatContext, count: int) -> None:
        channel = await self._channel(context)
        if not isinstance(channel, (discord.TextChannel, discord.Thread)):
            log.warning("discord_delete_unsupported_channel", channel_id=getattr(channel, "id", None))
            return
        payload = context.payload
        assert isinstance(payload, DiscordPayload)
        # messages before the command itself
        deleted = await channel.purge(limit=count, before=payload.message)
        log.info("discord_messages_deleted", channel_id=channel.id, count=len(deleted))
