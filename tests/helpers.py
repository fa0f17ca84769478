"""Fakes shared by the test modules."""

from __future__ import annotations

from absolutebot.commands.base import BaseCommand
from absolutebot.core.auth import UserRole
from absolutebot.core.context import (
    ChannelType,
    ChatContext,
    discord_context,
    telegram_context,
    twitch_context,
    vkplay_context,
)
from absolutebot.core.parser import ParsedCommand
from absolutebot.core.service import Capability, ChatService, Platform


class FakeService(ChatService):
    """Records every outbound call as ``(kind, payload)``."""

    def __init__(self, platform: Platform = Platform.TELEGRAM, capabilities: Capability = Capability.NONE):
        self._platform = platform
        self.capabilities = capabilities
        self.sent: list[tuple[str, object]] = []

    @property
    def platform(self) -> Platform:
        return self._platform

    @property
    def texts(self) -> list[str]:
        return [payload for kind, payload in self.sent if kind == "text"]

    async def send_message(self, text, context):
        self.sent.append(("text", text))

    async def send_photo(self, url_or_base64, context):
        self.sent.append(("photo", url_or_base64))

    async def send_document(self, url, context):
        self.sent.append(("document", url))

    async def send_shortened_url(self, url, context):
        self.sent.append(("short_url", url))

    async def delete_messages(self, context, count):
        self.sent.append(("delete", count))

    async def prepare_message(self, context):
        self.sent.append(("prepare", None))

    async def send_sticker(self, sticker_id, context):
        self.sent.append(("sticker", sticker_id))

    async def send_markdown(self, text, context):
        self.sent.append(("markdown", text))


class MemoryRoleStore:
    def __init__(self, roles: dict[str, UserRole] | None = None):
        self.roles = {k.lower(): v for k, v in (roles or {}).items()}

    async def get_role(self, username: str) -> UserRole:
        return self.roles.get(username.lower(), UserRole.DEFAULT)

    async def set_role(self, username: str, role: UserRole) -> bool:
        if self.roles.get(username.lower()) in (UserRole.ADMINISTRATOR, UserRole.BOT):
            return False
        self.roles[username.lower()] = role
        return True


class MemoryConfigStore:
    def __init__(self, values: dict[str, str] | None = None):
        self.values = dict(values or {})

    async def get(self, key, default=None):
        return self.values.get(key, default)

    async def set(self, key, value):
        self.values[key] = value


class EchoCommand(BaseCommand):
    """Repeats its parameters; counts how often the logic ran."""

    def __init__(self, name="!эхо", *, usage=None, priority=1000, allowed=True, response=None, error=None):
        self._name = name
        self._usage = usage
        self._priority = priority
        self._allowed = allowed
        self._response = response
        self._error = error
        self.calls = 0

    @property
    def name(self):
        return self._name

    @property
    def description(self):
        return "описание"

    @property
    def priority(self):
        return self._priority

    @property
    def usage(self):
        return self._usage

    def can_execute(self, command):
        return self._allowed and super().can_execute(command)

    async def execute_logic(self, command):
        self.calls += 1
        if self._error is not None:
            raise self._error
        return self._response or command.parameters or "эхо"


def telegram(
    service: FakeService | None = None,
    username: str = "user",
    channel_type: ChannelType = ChannelType.GENERAL,
    **kwargs,
) -> ChatContext:
    return telegram_context(service or FakeService(Platform.TELEGRAM), username, 1, channel_type, **kwargs)


def discord(
    service: FakeService | None = None,
    username: str = "user",
    guild_type: ChannelType = ChannelType.PREMIUM,
    chat_type: ChannelType = ChannelType.GENERAL,
    **kwargs,
) -> ChatContext:
    return discord_context(service or FakeService(Platform.DISCORD), username, 1, guild_type, chat_type, **kwargs)


def twitch(service: FakeService | None = None, username: str = "user", **kwargs) -> ChatContext:
    return twitch_context(service or FakeService(Platform.TWITCH), username, "channel", **kwargs)


def vkplay(service: FakeService | None = None, username: str = "user", **kwargs) -> ChatContext:
    return vkplay_context(service or FakeService(Platform.VKPLAY), username, **kwargs)


def parsed(
    context: ChatContext,
    command: str = "!эхо",
    parameters: str = "",
    role: UserRole = UserRole.DEFAULT,
) -> ParsedCommand:
    return ParsedCommand(command, parameters, context, role)
