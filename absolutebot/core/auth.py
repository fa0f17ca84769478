"""User roles, channel-scope predicates and the per-platform cooldown."""

from __future__ import annotations

import time
from enum import Enum
from typing import TYPE_CHECKING, Callable, Protocol

from absolutebot.core.context import ChannelType, DiscordPayload, TelegramPayload
from absolutebot.core.service import Platform
from absolutebot.utils.logging import get_logger

if TYPE_CHECKING:
    from absolutebot.core.parser import ParsedCommand

log = get_logger(__name__)


class UserRole(str, Enum):
    ADMINISTRATOR = "administrator"
    MODERATOR = "moderator"
    PREMIUM = "premium"
    DEFAULT = "default"
    IGNORED = "ignored"
    BOT = "bot"


# Roles that are never throttled by the cooldown
COOLDOWN_EXEMPT = frozenset(
    {UserRole.ADMINISTRATOR, UserRole.MODERATOR, UserRole.PREMIUM, UserRole.BOT}
)


class RoleStore(Protocol):
    async def get_role(self, username: str) -> UserRole: ...

    async def set_role(self, username: str, role: UserRole) -> bool: ...


class KeyValueStore(Protocol):
    async def get(self, key: str, default: str | None = None) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...


# ----------------------------------------------------------------------
# Channel scope
# ----------------------------------------------------------------------

def is_administrative_channel(command: ParsedCommand) -> bool:
    payload = command.context.payload
    if isinstance(payload, TelegramPayload):
        return payload.channel_type is ChannelType.ADMINISTRATIVE
    if isinstance(payload, DiscordPayload):
        return (
            payload.guild_type is ChannelType.PREMIUM
            and payload.chat_type is ChannelType.ADMINISTRATIVE
        )
    return False


def is_official_channel(command: ParsedCommand) -> bool:
    payload = command.context.payload
    if isinstance(payload, TelegramPayload):
        return payload.channel_type in (ChannelType.PREMIUM, ChannelType.ADMINISTRATIVE)
    if isinstance(payload, DiscordPayload):
        return payload.guild_type is ChannelType.PREMIUM
    # platforms without a channel concept
    return True


def is_streaming_channel(command: ParsedCommand) -> bool:
    return command.context.platform in (Platform.TWITCH, Platform.VKPLAY)


def has_role(command: ParsedCommand, *roles: UserRole) -> bool:
    return command.role in roles


# ----------------------------------------------------------------------
# Cooldown
# ----------------------------------------------------------------------

class CooldownService:
    """Per-platform command cooldown.

    Durations live in the key-value store under ``cooldown:<platform>`` so
    they survive restarts; last-use times are kept in memory only.
    """

    def __init__(
        self,
        store: KeyValueStore | None = None,
        defaults: dict[str, int] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._durations: dict[str, int] = dict(defaults or {})
        self._last_used: dict[str, float] = {}
        self._clock = clock

    async def load(self, platforms: list[Platform]) -> None:
        if self._store is None:
            return
        for platform in platforms:
            raw = await self._store.get(f"cooldown:{platform.value}")
            if raw is None:
                continue
            try:
                self._durations[platform.value] = int(raw)
            except ValueError:
                log.warning("cooldown_value_invalid", platform=platform.value, value=raw)

    def duration(self, platform: Platform) -> int:
        return self._durations.get(platform.value, 0)

    def is_on_cooldown(self, platform: Platform) -> bool:
        last = self._last_used.get(platform.value)
        if last is None:
            return False
        return self._clock() < last + self.duration(platform)

    def applies_to(self, role: UserRole, platform: Platform) -> bool:
        return role not in COOLDOWN_EXEMPT and self.is_on_cooldown(platform)

    def mark_used(self, platform: Platform) -> None:
        self._last_used[platform.value] = self._clock()

    async def set_cooldown(self, platform: Platform, seconds: str) -> bool:
        try:
            value = int(seconds)
        except ValueError:
            return False
        if value < 0:
            return False
        self._durations[platform.value] = value
        if self._store is not None:
            await self._store.set(f"cooldown:{platform.value}", str(value))
        log.info("cooldown_set", platform=platform.value, seconds=value)
        return True
