"""Platform-specific message handlers."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date

from absolutebot.core.context import ChatContext, DiscordPayload, VkPlayPayload
from absolutebot.core.pipeline import (
    BaseMessageHandler,
    BirthdayMessageHandler,
    CensorshipService,
)
from absolutebot.core.service import Capability
from absolutebot.utils.logging import get_logger

log = get_logger(__name__)

TELEGRAM_MENTION_PROBABILITY = 0.008
STICKER_PROBABILITY = 0.01
EMOTE_PROBABILITY = 0.0015
WINTER_MONTHS = frozenset({12, 1, 2})


class TelegramMessageHandler(BaseMessageHandler):
    """Telegram chats, with an occasional sticker (a separate one in winter)."""

    mention_probability = TELEGRAM_MENTION_PROBABILITY

    def __init__(
        self,
        *args,
        sticker_id: str = "",
        winter_sticker_id: str = "",
        sticker_probability: float = STICKER_PROBABILITY,
        today: Callable[[], date] = date.today,
        **kwargs,
    ) -> None:
        super().__init__(*args, **kwargs)
        self._sticker_id = sticker_id
        self._winter_sticker_id = winter_sticker_id
        self._sticker_probability = sticker_probability
        self._today = today

    def current_sticker(self) -> str:
        if self._today().month in WINTER_MONTHS:
            return self._winter_sticker_id
        return self._sticker_id

    async def random_reaction(self, context: ChatContext) -> None:
        sticker = self.current_sticker()
        if not sticker or not context.supports(Capability.STICKER):
            return
        if self._rng.random() < self._sticker_probability:
            log.debug("random_sticker", sticker=sticker)
            await context.service.send_sticker(sticker, context)

    def is_bot_mentioned(self, text: str, context: ChatContext) -> bool:
        return self.mentions_bot(text, context)

    def should_record(self, edited: bool) -> bool:
        # an edit would duplicate a line already in history
        return not edited


class DiscordMessageHandler(BirthdayMessageHandler):
    def is_bot_mentioned(self, text: str, context: ChatContext) -> bool:
        if self.mentions_bot(text, context):
            return True
        payload = context.payload
        if not isinstance(payload, DiscordPayload):
            return False
        name = self.bot_name.lower()
        return any(name in tag.lower() for tag in payload.tags)


class _CensoringHandler(BirthdayMessageHandler):
    def __init__(self, *args, censorship: CensorshipService, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._censorship = censorship

    def postprocess(self, processed: str, context: ChatContext) -> str:
        return self._censorship.apply(processed, context.max_message_length, clean=True)


class TwitchMessageHandler(_CensoringHandler):
    def __init__(
        self,
        *args,
        emote: str = "",
        emote_probability: float = EMOTE_PROBABILITY,
        **kwargs,
    ) -> None:
        super().__init__(*args, **kwargs)
        self._emote = emote
        self._emote_probability = emote_probability

    async def random_reaction(self, context: ChatContext) -> None:
        if self._emote and self._rng.random() < self._emote_probability:
            log.debug("random_emote", emote=self._emote)
            await context.send(self._emote)

    def is_bot_mentioned(self, text: str, context: ChatContext) -> bool:
        return self.mentions_bot(text, context)


class VkPlayMessageHandler(_CensoringHandler):
    def is_bot_mentioned(self, text: str, context: ChatContext) -> bool:
        name = self.bot_name.lower()
        # VK Play strips the @, so the bare name counts
        if name in text.lower() or self.mentions_bot(text, context):
            return True
        payload = context.payload
        if not isinstance(payload, VkPlayPayload):
            return False
        return any(name in nickname.lower() for nickname in payload.mention_nicknames)
