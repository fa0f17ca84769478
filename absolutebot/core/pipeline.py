"""Per-message preprocessing: mention detection, history, birthdays, text fixes."""

from __future__ import annotations

import random
import re
from abc import ABC, abstractmethod
from collections import deque
from typing import TYPE_CHECKING, Protocol

from absolutebot.core.auth import RoleStore, UserRole
from absolutebot.core.context import ChatContext
from absolutebot.utils.logging import get_logger
from absolutebot.utils.text import clean_text, cut_sentence

if TYPE_CHECKING:
    from absolutebot.services.birthdays import BirthdayStore
    from absolutebot.services.collaborators import Translator
    from absolutebot.services.layout import LayoutCorrector

log = get_logger(__name__)

DEFAULT_MENTION_PROBABILITY = 0.005
SYSTEM_LOG_MARKER = "[Система]"

_CHAT_LINE_RE = re.compile(r"^[^\s:]+: .+", re.DOTALL)


class CensorWords(Protocol):
    def words(self) -> list[str]: ...


class MessageProcessingService:
    """Layout correction first, then auto-translation.

    Returns the rewritten text, or None when the message needs no help.
    """

    def __init__(
        self,
        layout: LayoutCorrector | None = None,
        translator: Translator | None = None,
    ) -> None:
        self._layout = layout
        self._translator = translator

    async def process(self, username: str, text: str) -> str | None:
        if self._layout is not None:
            corrected = self._layout.correct(text)
            if corrected != text:
                return corrected

        if self._translator is not None:
            translated = await self._translator.translate(username, text)
            if translated and translated != text:
                return translated
        return None


class CensorshipService:
    def __init__(self, words: CensorWords, replacement: str = "***") -> None:
        self._words = words
        self._replacement = replacement

    def apply(self, text: str, length: int, clean: bool = True) -> str:
        output = clean_text(text) if clean else text
        for word in self._words.words():
            output = re.sub(
                re.escape(word), lambda _: self._replacement, output, flags=re.IGNORECASE
            )
        return cut_sentence(output, length)


class BaseMessageHandler(ABC):
    """Shared mention and engagement behaviour for platform handlers.

    Each handler owns a ring buffer of the last ``history_size`` chat
    lines. When the bot decides to join the conversation on its own, the
    buffer is copied into ``context.last_messages`` for the reply command.
    """

    mention_probability = DEFAULT_MENTION_PROBABILITY

    def __init__(
        self,
        bot_name: str,
        roles: RoleStore,
        processing: MessageProcessingService | None = None,
        *,
        rng: random.Random | None = None,
        history_size: int = 10,
        system_log_marker: str = SYSTEM_LOG_MARKER,
        mention_probability: float | None = None,
    ) -> None:
        self.bot_name = bot_name
        if mention_probability is not None:
            self.mention_probability = mention_probability
        self._roles = roles
        self._processing = processing or MessageProcessingService()
        self._rng = rng or random.Random()
        self._system_log_marker = system_log_marker
        self.history: deque[str] = deque(maxlen=history_size)

    # -- mention helpers ------------------------------------------------

    def is_message_invalid(self, text: str) -> bool:
        if text.startswith(self._system_log_marker):
            return False
        return _CHAT_LINE_RE.match(text) is None

    def add_bot_mention(self, text: str) -> str:
        if text.startswith("!"):
            return text
        mention = "@" + self.bot_name
        lowered = text.lower()
        if lowered.startswith(mention.lower()):
            return text
        if lowered.startswith(self.bot_name.lower()):
            return "@" + text
        return f"{mention} {text}"

    def mentions_bot(self, text: str, context: ChatContext) -> bool:
        """``@name`` anywhere in the text, or a reply to the bot."""
        name = self.bot_name.lower()
        if f"@{name}" in text.lower():
            return True
        return context.reply is not None and context.reply.username.lower() == name

    @abstractmethod
    def is_bot_mentioned(self, text: str, context: ChatContext) -> bool: ...

    # -- history ----------------------------------------------------------

    def save_last_message(self, username: str, text: str) -> None:
        self.history.append(f"{username}: {text}")

    def should_randomly_mention_bot(self, probability: float) -> bool:
        if len(self.history) < (self.history.maxlen or 0):
            return False
        return self._rng.random() < probability

    async def handle_mention(
        self,
        text: str,
        context: ChatContext,
        probability: float = DEFAULT_MENTION_PROBABILITY,
    ) -> str | None:
        """Mention-adjusted text, or None if the sender must be ignored."""
        role = await self._roles.get_role(context.username)
        if role is UserRole.IGNORED:
            return None

        if self.is_bot_mentioned(text, context) and (
            context.reply is None or self.is_message_invalid(context.reply.message)
        ):
            self.history.clear()
            return self.add_bot_mention(text)

        if self.should_randomly_mention_bot(probability):
            context.last_messages = list(self.history)
            self.history.clear()
            log.debug("random_engagement", platform=context.platform.value)
            return self.add_bot_mention(text)

        return text

    # -- flow -------------------------------------------------------------

    async def before_mention(self, context: ChatContext) -> None:
        """Hook run before mention handling."""

    async def random_reaction(self, context: ChatContext) -> None:
        """Hook for an occasional unprompted reaction once the sender is accepted."""

    def should_record(self, edited: bool) -> bool:
        return True

    def postprocess(self, processed: str, context: ChatContext) -> str:
        return processed

    async def handle_message(
        self, text: str, context: ChatContext, edited: bool = False
    ) -> str | None:
        """Run the preprocessing chain; None means stop handling this message."""
        await self.before_mention(context)

        handled = await self.handle_mention(text, context, self.mention_probability)
        if handled is None:
            return None
        await self.random_reaction(context)

        if self.should_record(edited):
            self.save_last_message(context.username, handled)

        processed = await self._processing.process(context.username, handled)
        if not processed:
            return handled

        processed = self.postprocess(processed, context)
        await context.send(f"{context.username}: {processed}")
        return processed


class BirthdayMessageHandler(BaseMessageHandler):
    def __init__(
        self,
        bot_name: str,
        roles: RoleStore,
        birthdays: BirthdayStore,
        processing: MessageProcessingService | None = None,
        **kwargs,
    ) -> None:
        super().__init__(bot_name, roles, processing, **kwargs)
        self._birthdays = birthdays

    async def greet_birthday(self, context: ChatContext) -> None:
        try:
            message = await self._birthdays.congratulate(context.username, context.platform.value)
        except Exception:
            log.exception(
                "birthday_greeting_failed",
                username=context.username,
                platform=context.platform.value,
            )
            return
        if message:
            await context.send(message)

    async def before_mention(self, context: ChatContext) -> None:
        await self.greet_birthday(context)
