"""Base command interface and the shared execution contract."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod

from absolutebot.core.auth import UserRole
from absolutebot.core.context import ChatContext
from absolutebot.core.parser import ParsedCommand
from absolutebot.core.service import Capability
from absolutebot.utils.logging import get_logger

log = get_logger(__name__)

_IMAGE_URL_RE = re.compile(r"^https?://\S+\.(?:png|jpe?g|gif|webp|bmp)(?:[?#]\S*)?$", re.IGNORECASE)
_IMAGE_DATA_PREFIX = "data:image/"


def is_image_like(text: str) -> bool:
    text = text.strip()
    return text.startswith(_IMAGE_DATA_PREFIX) or bool(_IMAGE_URL_RE.match(text))


async def deliver(text: str, context: ChatContext, *, media: bool = False, as_photo: bool = True) -> None:
    """Send through the richest channel the platform supports.

    Media goes photo > document > short link > plain text; anything else is
    plain text.
    """
    service = context.service
    if media:
        if as_photo and context.supports(Capability.PHOTO):
            await service.send_photo(text, context)
            return
        if context.supports(Capability.DOCUMENT):
            await service.send_document(text, context)
            return
        if context.supports(Capability.SHORT_URL):
            await service.send_shortened_url(text, context)
            return
    await service.send_message(text, context)


class ChatCommand(ABC):
    @property
    @abstractmethod
    def name(self) -> str: ...

    @property
    @abstractmethod
    def description(self) -> str: ...

    @property
    def priority(self) -> int:
        """Listing order only; lower comes first."""
        return 1000

    @property
    def usage(self) -> str | None:
        """Human description of the required arguments, or None if there are none."""
        return None

    def can_execute(self, command: ParsedCommand) -> bool:
        return command.role is not UserRole.IGNORED

    @abstractmethod
    async def execute(self, command: ParsedCommand) -> str | None: ...


class BaseCommand(ChatCommand):
    """Template for ordinary commands.

    ``execute`` runs prepare -> argument check -> ``execute_logic`` -> send and
    guarantees exactly one outbound message of its own. A missing argument
    sends the usage hint instead and never reaches ``execute_logic``.
    Exceptions from ``execute_logic`` propagate to the caller.
    """

    async def execute(self, command: ParsedCommand) -> str | None:
        context = command.context
        if context.supports(Capability.PREPARE):
            await context.service.prepare_message(context)

        if not await self.check_parameters(command):
            return command.response

        command.response = await self.execute_logic(command)
        await self.send_response(command)
        return command.response

    @abstractmethod
    async def execute_logic(self, command: ParsedCommand) -> str: ...

    def usage_hint(self) -> str:
        return f"Использование: {self.name} *{self.usage}*"

    async def check_parameters(self, command: ParsedCommand) -> bool:
        if self.usage is None or command.parameters:
            return True
        command.response = self.usage_hint()
        await command.context.send(command.response)
        return False

    async def send_response(self, command: ParsedCommand) -> None:
        assert command.response is not None
        await deliver(command.response, command.context, media=is_image_like(command.response))


class MediaCommand(BaseCommand):
    """Commands whose logic yields a media URL or base64 image."""

    send_as_photo = True

    async def send_media(self, url: str, command: ParsedCommand, as_photo: bool = True) -> None:
        await deliver(url, command.context, media=True, as_photo=as_photo)

    async def send_response(self, command: ParsedCommand) -> None:
        assert command.response is not None
        await self.send_media(command.response, command, as_photo=self.send_as_photo)
