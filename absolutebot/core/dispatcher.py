"""Text → command resolution, permission and cooldown gates, execution."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from absolutebot.commands.extra import ExecuteExtraCommand
from absolutebot.core.auth import CooldownService, RoleStore
from absolutebot.core.context import ChatContext
from absolutebot.core.parser import CommandParser, ParsedCommand
from absolutebot.core.registry import CommandRegistry
from absolutebot.utils.logging import get_logger

if TYPE_CHECKING:
    from absolutebot.commands.base import ChatCommand

log = get_logger(__name__)

COOLDOWN_MESSAGE = "Бот на перезарядке. Подождите немного."


class CommandStatus(Protocol):
    async def is_enabled(self, command: str, platform: str) -> bool: ...


class CommandDispatcher:
    """Resolves a chat message to a command and runs it.

    Unknown, forbidden and disabled commands are silent (``None``).
    Exceptions raised by a command propagate to the caller.
    """

    def __init__(
        self,
        parser: CommandParser,
        registry: CommandRegistry,
        roles: RoleStore,
        cooldown: CooldownService,
        status: CommandStatus | None = None,
    ) -> None:
        self._parser = parser
        self._registry = registry
        self._roles = roles
        self._cooldown = cooldown
        self._status = status

    async def execute(self, text: str, context: ChatContext) -> str | None:
        role = await self._roles.get_role(context.username)
        parsed = self._parser.parse(text, context, role)
        if parsed is None:
            return None

        command = self._registry.find(parsed.command)
        if command is not None and await self._is_allowed(command, parsed):
            return await self._run(command, parsed)

        # fall back to commands added from chat
        extra = self._registry.find_by_type(ExecuteExtraCommand)
        if extra is not None and extra.can_execute(parsed):
            return await self._run(extra, parsed)

        log.debug("command_not_executed", command=parsed.command, role=role.value)
        return None

    async def _is_allowed(self, command: ChatCommand, parsed: ParsedCommand) -> bool:
        if not command.can_execute(parsed):
            return False
        if self._status is None:
            return True
        return await self._status.is_enabled(command.name, parsed.context.platform.value)

    async def _run(self, command: ChatCommand, parsed: ParsedCommand) -> str | None:
        context = parsed.context
        if self._cooldown.applies_to(parsed.role, context.platform):
            await context.send(COOLDOWN_MESSAGE)
            return COOLDOWN_MESSAGE

        self._cooldown.mark_used(context.platform)
        log.info(
            "command_executing",
            command=command.name,
            platform=context.platform.value,
            user=context.username,
        )
        return await command.execute(parsed)
